# civic_portal/core/security.py
from dataclasses import dataclass
from fastapi import HTTPException, status, Depends
from fastapi.security import HTTPAuthorizationCredentials
from typing import Optional
import time, jwt
from civic_portal.core.config import settings
from civic_portal.core.errors import Forbidden, NotAuthenticated
from passlib.hash import bcrypt_sha256
from civic_portal.gateway.base import EntityGateway
from civic_portal.gateway.session import bearer, get_gateway
from civic_portal.schemas.user import UserOut

ALGO = "HS256"
ACCESS_TTL = 15 * 60
REFRESH_TTL = 7 * 24 * 3600


def hash_password(raw: str) -> str:
    return bcrypt_sha256.hash(raw)

def verify_password(raw: str, hashed: str) -> bool:
    return bcrypt_sha256.verify(raw, hashed)

def _make_token(sub: str, role: str, ttl: int) -> str:
    now = int(time.time())
    payload = {"sub": sub, "role": role, "iat": now, "exp": now + ttl}
    return jwt.encode(payload, settings.jwt_secret, algorithm=ALGO)

def make_tokens(email: str, role: str) -> dict:
    return {
        "access_token": _make_token(email, role, ACCESS_TTL),
        "refresh_token": _make_token(email, role, REFRESH_TTL),
        "token_type": "bearer",
        "expires_in": ACCESS_TTL,
    }

def decode_token(token: Optional[str]) -> dict:
    if not token:
        raise NotAuthenticated("Not authenticated")
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[ALGO])
    except jwt.ExpiredSignatureError:
        raise NotAuthenticated("Token expired")
    except jwt.InvalidTokenError:
        raise NotAuthenticated("Invalid token")


@dataclass
class PortalSession:
    """Who is asking, resolved once per request and handed to each view."""
    user: Optional[UserOut] = None
    token: Optional[str] = None

    @property
    def authenticated(self) -> bool:
        return self.user is not None

    @property
    def is_admin(self) -> bool:
        return bool(self.user and self.user.is_admin)

    @property
    def display_name(self) -> str:
        return self.user.full_name if self.user and self.user.full_name else "Community Member"

    @property
    def reporter(self) -> str:
        if not self.user:
            return "anonymous"
        return self.user.email or self.user.full_name


def get_session(creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
                gateway: EntityGateway = Depends(get_gateway)) -> PortalSession:
    token = creds.credentials if creds else None
    if not token:
        return PortalSession()
    try:
        return PortalSession(user=gateway.users.me(token), token=token)
    except (NotAuthenticated, Forbidden):
        # a rejected token reads as an anonymous visitor
        return PortalSession(token=token)

def get_current_user(session: PortalSession = Depends(get_session)) -> UserOut:
    if not session.user:
        raise NotAuthenticated("Not authenticated")
    return session.user

def require_role(*roles):
    role_values = [r.value if hasattr(r, "value") else r for r in roles]
    def _dep(user: UserOut = Depends(get_current_user)):
        if user.role not in role_values:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="forbidden")
        return user
    return _dep
