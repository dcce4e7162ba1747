from typing import List

from fastapi import APIRouter, Depends, Path, Response, status
from sqlmodel import Session

from .. import models, services
from ..auth import get_current_user, require_roles
from ..database import get_session
from ..schemas import AddressOut, PaymentOut, ResourceOut, UserOut, UserUpdate

router = APIRouter(prefix="/users", tags=["users"])

admin_only = require_roles(models.UserRole.administrator)


@router.get("", response_model=List[UserOut])
def list_users(db: Session = Depends(get_session), user: models.User = Depends(admin_only)):
    svc = services.UserService(db)
    return svc.describe_many(svc.list_users())


@router.get("/{user_id}", response_model=UserOut)
def get_user(user_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    svc = services.UserService(db)
    return svc.describe(svc.get_user(user_id))


@router.put("/{user_id}", response_model=UserOut)
def update_user(
    payload: UserUpdate,
    user_id: int = Path(gt=0),
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    """Update account fields and the profile fields of the user's role.

    Omitted or null fields are left unchanged, as is a blank username or
    email.
    """
    svc = services.UserService(db)
    return svc.describe(svc.update(user, user_id, payload))


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(user_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(admin_only)):
    services.UserService(db).delete(user, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{user_id}/addresses", response_model=List[AddressOut])
def user_addresses(user_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.UserService(db).addresses_of(user, user_id)


@router.get("/{user_id}/payments", response_model=List[PaymentOut])
def user_payments(user_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.UserService(db).payments_of(user, user_id)


@router.get("/{user_id}/resources", response_model=List[ResourceOut])
def user_resources(user_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.UserService(db).resources_of(user, user_id)
