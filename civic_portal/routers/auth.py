# File: civic_portal/routers/auth.py
# Project: civic-portal

import logging
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from civic_portal.core.catalog import UserRole
from civic_portal.core.config import settings
from civic_portal.core.security import (
    PortalSession,
    get_current_user,
    get_session,
    hash_password,
    make_tokens,
    verify_password,
)
from civic_portal.db.session import get_db
from civic_portal.gateway.base import EntityGateway
from civic_portal.gateway.session import get_gateway
from civic_portal.models.user import User
from civic_portal.schemas.auth import LoginIn, LoginUrl, RegisterIn, TokenPair
from civic_portal.schemas.user import UserOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _local_accounts():
    # the hosted backend owns its own sign-in page
    if (settings.entity_backend or "sql").lower() != "sql":
        raise HTTPException(status_code=404, detail="Local accounts are disabled")


@router.get("/me", response_model=UserOut)
def me(current: UserOut = Depends(get_current_user)):
    return current


@router.get("/login", response_model=LoginUrl)
def login_url(next: str = Query(default="/", max_length=500),
              gateway: EntityGateway = Depends(get_gateway)):
    return {"login_url": gateway.users.login_url(next)}


@router.post("/logout")
def logout(session: PortalSession = Depends(get_session),
           gateway: EntityGateway = Depends(get_gateway)):
    if session.token:
        gateway.users.logout(session.token)
    return {"ok": True}


@router.post("/register", response_model=TokenPair, dependencies=[Depends(_local_accounts)])
def register(body: RegisterIn, db: Session = Depends(get_db)):
    if db.query(User).filter(User.email == body.email).first():
        raise HTTPException(status_code=400, detail="Email already registered")
    user = User(
        email=body.email,
        full_name=body.full_name.strip(),
        hashed_password=hash_password(body.password),
        role=UserRole.citizen,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"Registered user {user.id}")
    # Sign-in immediately
    return make_tokens(user.email, user.role.value)


@router.post("/token", response_model=TokenPair, dependencies=[Depends(_local_accounts)])
def login(body: LoginIn, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == body.email).first()
    if not user or not user.hashed_password:
        raise HTTPException(status_code=401, detail="Invalid email or password")
    if not verify_password(body.password, user.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid email or password")
    if not user.is_active:
        raise HTTPException(status_code=403, detail="Your account has been deactivated. Please contact support.")
    user.last_login = datetime.now(timezone.utc)
    db.commit()
    return make_tokens(user.email, user.role.value)
