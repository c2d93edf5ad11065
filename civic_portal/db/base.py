# File: civic_portal/db/base.py
# Project: civic-portal

from sqlalchemy.orm import DeclarativeBase

class Base(DeclarativeBase):
    pass
