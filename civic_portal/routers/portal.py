# File: civic_portal/routers/portal.py
from enum import Enum as PyEnum
from fastapi import APIRouter, Depends
from civic_portal.core.security import PortalSession, get_session
from civic_portal.gateway.base import EntityGateway
from civic_portal.gateway.session import get_gateway

router = APIRouter(prefix="/portal", tags=["portal"])

DASHBOARD_PATH = "/dashboard"

class AccessState(str, PyEnum):
    checking = "checking"  # client-side only, while this request is in flight
    requires_login = "requires_login"
    unauthorized = "unauthorized"
    authorized = "authorized"

@router.get("/access")
def check_access(session: PortalSession = Depends(get_session),
                 gateway: EntityGateway = Depends(get_gateway)):
    """Where to send a visitor of the government portal.

    Convenience only: the dashboard routes check the admin role themselves.
    """
    if not session.authenticated:
        return {
            "state": AccessState.requires_login,
            "redirect": None,
            "login_url": gateway.users.login_url(DASHBOARD_PATH),
        }
    if not session.is_admin:
        return {"state": AccessState.unauthorized, "redirect": None, "login_url": None}
    return {"state": AccessState.authorized, "redirect": DASHBOARD_PATH, "login_url": None}
