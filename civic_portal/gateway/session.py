# File: civic_portal/gateway/session.py
# Project: civic-portal

from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from civic_portal.core.config import settings
from civic_portal.core.errors import GatewayError
from civic_portal.db.session import get_db
from civic_portal.gateway.base import EntityGateway

bearer = HTTPBearer(auto_error=False)

def build_gateway(db: Session, token: Optional[str] = None) -> EntityGateway:
    backend = (settings.entity_backend or "sql").lower()
    if backend == "hosted":
        from civic_portal.gateway.hosted import HostedGateway
        return HostedGateway(token=token)
    if backend == "sql":
        from civic_portal.gateway.sql import SqlGateway
        return SqlGateway(db)
    raise GatewayError(f"Unknown entity backend '{backend}'", status_code=503)

def get_gateway(creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
                db: Session = Depends(get_db)) -> EntityGateway:
    return build_gateway(db, creds.credentials if creds else None)
