"""
Authentication service.

Credential checks, server-side sessions and the role guard used by routes.

Sessions: the cookie holds an opaque random id; the session store (from the
active Storage) maps it to {"userId": ...} until it expires.
"""

import logging
import secrets
from datetime import timedelta
from typing import Optional

from fastapi import Depends, HTTPException, Request, Response

from storefront import config, schemas
from storefront.passwords import hash_password, verify_password
from storefront.payments import PaymentGateway
from storefront.storage import Storage
from storefront.utils import utcnow

logger = logging.getLogger(__name__)


# ============================================================================
# DEPENDENCIES
# ============================================================================

def get_storage(request: Request) -> Storage:
    return request.app.state.storage


def get_payments(request: Request) -> PaymentGateway:
    return request.app.state.payments


def get_current_user(request: Request, storage: Storage = Depends(get_storage)) -> Optional[schemas.User]:
    """The logged-in user, or None for anonymous / expired sessions."""
    sid = request.cookies.get(config.SESSION_COOKIE_NAME)
    if not sid:
        return None
    data = storage.session_store.get(sid)
    if not data:
        return None
    return storage.get_user(data["userId"])


def require_user(user: Optional[schemas.User] = Depends(get_current_user)) -> schemas.User:
    if user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


def require_roles(*roles: schemas.Role):
    """
    Role guard.

    Usage:
        @router.post("/products")
        def create(user: schemas.User = Depends(require_roles(Role.ADMIN, Role.SUPPLIER))):

    401 when nobody is logged in, 403 when the caller's role is not allowed.
    """
    allowed = frozenset(schemas.Role(role) for role in roles)

    def guard(user: schemas.User = Depends(require_user)) -> schemas.User:
        if user.role not in allowed:
            raise HTTPException(status_code=403, detail="Forbidden")
        return user

    return guard


# ============================================================================
# CREDENTIALS
# ============================================================================

def authenticate(storage: Storage, username: str, password: str) -> Optional[schemas.User]:
    """
    The user when the credentials match, otherwise None.

    Unknown user and wrong password are indistinguishable to the caller.
    """
    user = storage.get_user_by_username(username)
    if user is None or not verify_password(password, user.password):
        return None
    return user


def register_user(storage: Storage, payload: schemas.RegisterRequest) -> schemas.User:
    if storage.get_user_by_username(payload.username) is not None:
        raise HTTPException(status_code=400, detail="Username already exists")
    user = storage.create_user(schemas.UserCreate(
        username=payload.username,
        password=hash_password(payload.password),
        email=payload.email,
        full_name=payload.full_name,
        role=payload.role,
    ))
    logger.info("Registered %s user %s (id=%s)", user.role.value, user.username, user.id)
    return user


def ensure_admin(storage: Storage, username: str, password: str) -> schemas.User:
    """Create the bootstrap admin unless a user with that name already exists."""
    existing = storage.get_user_by_username(username)
    if existing is not None:
        return existing
    admin = storage.create_user(schemas.UserCreate(
        username=username,
        password=hash_password(password),
        role=schemas.Role.ADMIN,
    ))
    logger.info("Seeded admin user %s", username)
    return admin


# ============================================================================
# SESSIONS
# ============================================================================

def start_session(storage: Storage, response: Response, user: schemas.User) -> str:
    sid = secrets.token_urlsafe(32)
    ttl = timedelta(hours=config.SESSION_TTL_HOURS)
    storage.session_store.set(sid, {"userId": user.id}, utcnow() + ttl)
    response.set_cookie(
        key=config.SESSION_COOKIE_NAME,
        value=sid,
        max_age=int(ttl.total_seconds()),
        httponly=True,
        samesite="lax",
        secure=config.SESSION_COOKIE_SECURE,
    )
    return sid


def end_session(storage: Storage, request: Request, response: Response) -> None:
    sid = request.cookies.get(config.SESSION_COOKIE_NAME)
    if sid:
        storage.session_store.destroy(sid)
    response.delete_cookie(config.SESSION_COOKIE_NAME)
