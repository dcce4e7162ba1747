from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Response
from sqlmodel import Session

from .. import models, services
from ..auth import get_current_user
from ..database import get_session
from ..schemas import OptionCreate, OptionOut, OptionUpdate

router = APIRouter(prefix="/options", tags=["options"])


@router.get("", response_model=List[OptionOut])
def list_options(
    status: Optional[models.OptionStatus] = None,
    enseignant_id: Optional[int] = None,
    famille_id: Optional[int] = None,
    offer_id: Optional[int] = None,
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    return services.OptionService(db).list(
        status=status, enseignant_id=enseignant_id, famille_id=famille_id, offer_id=offer_id,
    )


@router.get("/pending", response_model=List[OptionOut])
def pending_options(db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.OptionService(db).pending()


@router.get("/expiring", response_model=List[OptionOut])
def expiring_options(db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    """Options whose expiration falls within the next 48 hours.

    Reporting only: nothing is transitioned to expired here.
    """
    return services.OptionService(db).expiring()


@router.post("", response_model=OptionOut, status_code=201)
def create_option(payload: OptionCreate, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    """Create an active option; expiration defaults to seven days from now."""
    return services.OptionService(db).create(user, payload)


@router.get("/{option_id}", response_model=OptionOut)
def get_option(option_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.OptionService(db).get(option_id)


@router.put("/{option_id}", response_model=OptionOut)
def update_option(
    payload: OptionUpdate,
    option_id: int = Path(gt=0),
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    return services.OptionService(db).update(user, option_id, payload)


@router.delete("/{option_id}", status_code=204)
def delete_option(option_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    services.OptionService(db).delete(user, option_id)
    return Response(status_code=204)


@router.put("/{option_id}/accept", response_model=OptionOut)
def accept_option(option_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.OptionService(db).accept(user, option_id)


@router.put("/{option_id}/decline", response_model=OptionOut)
def decline_option(option_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    """Decline the option; the resulting status is `expired`."""
    return services.OptionService(db).decline(user, option_id)


@router.put("/{option_id}/cancel", response_model=OptionOut)
def cancel_option(option_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.OptionService(db).cancel(user, option_id)


@router.put("/{option_id}/reject", response_model=OptionOut)
def reject_option(option_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.OptionService(db).reject(user, option_id)


@router.put("/{option_id}/expire", response_model=OptionOut)
def expire_option(option_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.OptionService(db).expire(user, option_id)
