# File: civic_portal/routers/home.py
# Project: civic-portal

from fastapi import APIRouter, Depends
from civic_portal.core.security import PortalSession, get_session
from civic_portal.gateway.base import EntityGateway, DEFAULT_SORT
from civic_portal.gateway.session import get_gateway

router = APIRouter(tags=["home"])

RECENT_ON_HOME = 3

@router.get("/home")
def home(session: PortalSession = Depends(get_session),
         gateway: EntityGateway = Depends(get_gateway)):
    return {
        "user": session.user,
        "recent_issues": gateway.issues.list(DEFAULT_SORT, limit=RECENT_ON_HOME),
        "login_url": None if session.authenticated else gateway.users.login_url("/"),
    }
