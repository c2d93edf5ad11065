# File: civic_portal/core/ratelimit.py
# Project: civic-portal

from slowapi import Limiter
from slowapi.util import get_remote_address
from civic_portal.core.config import settings

SUBMIT_LIMIT = "10/minute"
VOTE_LIMIT = "30/minute"
COMMENT_LIMIT = "20/minute"

limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)
