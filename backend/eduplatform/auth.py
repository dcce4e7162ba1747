"""Authentication helpers and FastAPI security dependencies.

This module decodes bearer tokens and exposes `get_current_user`, which
validates the token and returns the corresponding live `User` from the
database. Role gates (`require_roles`) and the ownership gate
(`ensure_owner_or_admin`) build on it.

Token verification raises HTTPExceptions on failure so it can be used
directly inside route dependencies; the ownership gate raises a domain
`ForbiddenError` because services call it too.
"""

import logging

import jwt
from fastapi import Depends, HTTPException, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from . import models, repositories
from .config import Settings
from .database import get_session
from .errors import ForbiddenError

logger = logging.getLogger("eduplatform.auth")

# missing or non-bearer headers reach get_current_user as None
bearer_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=401, detail=detail, headers={"WWW-Authenticate": "Bearer"})


def decode_token(token: str, settings: Settings) -> dict:
    """Decode and verify a JWT token.

    Returns the decoded payload on success or raises an HTTPException
    with status 401 on failure.
    """
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            issuer=settings.JWT_ISSUER,
            options={"require": ["exp", "iss", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise _unauthorized("token expired")
    except jwt.InvalidTokenError as exc:
        logger.info("token_rejected reason=%s", exc)
        raise _unauthorized("invalid token")


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Security(bearer_scheme),
    db: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> models.User:
    """FastAPI dependency that returns the authenticated user.

    The token's `user_id` claim is looked up on every request, so a
    deleted or deactivated account loses access immediately.
    """
    if credentials is None:
        raise _unauthorized("missing bearer token")
    payload = decode_token(credentials.credentials, settings)
    user_id = payload.get("user_id")
    if not isinstance(user_id, int):
        raise _unauthorized("invalid token payload")
    user = repositories.UserRepository(db).get(user_id)
    if not user:
        raise _unauthorized("user not found")
    if not user.is_active:
        raise _unauthorized("account is deactivated")
    return user


def require_roles(*roles: models.UserRole):
    """Dependency factory admitting only users whose role is in `roles`."""
    def dependency(user: models.User = Depends(get_current_user)) -> models.User:
        if user.role not in roles:
            raise HTTPException(status_code=403, detail="insufficient role")
        return user
    return dependency


def is_admin(user: models.User) -> bool:
    return user.role == models.UserRole.administrator


def ensure_admin(caller: models.User):
    if not is_admin(caller):
        raise ForbiddenError("administrator role required")


def ensure_owner_or_admin(caller: models.User, *owner_ids: int):
    """Allow administrators, or callers whose id is one of `owner_ids`."""
    if is_admin(caller) or caller.id in owner_ids:
        return
    raise ForbiddenError("not allowed to access this resource")
