"""Registration, login and the caller's own profile.

Endpoints implemented:
- POST /auth/register
- POST /auth/login
- POST /auth/refresh
- POST /auth/logout
- GET /profile
- PUT /profile
- PUT /profile/password
"""

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from .. import models, services
from ..auth import get_current_user, get_settings
from ..config import Settings
from ..database import get_session
from ..schemas import (
    LoginIn,
    MessageOut,
    PasswordChangeIn,
    ProfileUpdate,
    RefreshOut,
    RegisterIn,
    TokenOut,
    UserOut,
)

router = APIRouter(tags=["auth"])


@router.post("/auth/register", response_model=TokenOut, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterIn, db: Session = Depends(get_session), settings: Settings = Depends(get_settings)):
    """Create an account with the profile variant of its role.

    Returns the new user and a bearer token; 409 when the email or the
    username is already taken.
    """
    auth = services.AuthService(db, settings)
    user, token = auth.register(payload)
    return {"token": token, "user": auth.accounts.describe(user)}


@router.post("/auth/login", response_model=TokenOut)
def login(payload: LoginIn, db: Session = Depends(get_session), settings: Settings = Depends(get_settings)):
    """Authenticate by email and password and return a signed JWT."""
    auth = services.AuthService(db, settings)
    user, token = auth.authenticate(payload.email, payload.password)
    return {"token": token, "user": auth.accounts.describe(user)}


@router.post("/auth/refresh", response_model=RefreshOut)
def refresh(
    db: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
    user: models.User = Depends(get_current_user),
):
    return {"token": services.AuthService(db, settings).issue_token(user)}


@router.post("/auth/logout", response_model=MessageOut)
def logout(user: models.User = Depends(get_current_user)):
    # tokens are stateless; the client simply discards its copy
    return {"message": "logged out"}


@router.get("/profile", response_model=UserOut)
def get_profile(db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.UserService(db).describe(user)


@router.put("/profile", response_model=UserOut)
def update_profile(payload: ProfileUpdate, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    svc = services.UserService(db)
    return svc.describe(svc.update(user, user.id, payload))


@router.put("/profile/password", response_model=MessageOut)
def change_password(payload: PasswordChangeIn, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    services.UserService(db).change_password(user, payload.current_password, payload.new_password)
    return {"message": "password updated"}
