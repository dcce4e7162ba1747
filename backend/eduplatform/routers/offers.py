from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, Response
from sqlmodel import Session

from .. import models, services
from ..auth import get_current_user, require_roles
from ..database import get_session
from ..schemas import (
    ApplicationOut,
    OfferApply,
    OfferCreate,
    OfferDetailOut,
    OfferOut,
    OfferUpdate,
    OptionOut,
)

router = APIRouter(prefix="/offers", tags=["offers"])

admin_only = require_roles(models.UserRole.administrator)


@router.get("", response_model=List[OfferOut])
def list_offers(
    status: Optional[models.OfferStatus] = None,
    subject: Optional[str] = None,
    level: Optional[str] = None,
    min_rate: Optional[float] = Query(default=None, ge=0),
    max_rate: Optional[float] = Query(default=None, ge=0),
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    return services.OfferService(db).list(
        status=status, subject=subject, level=level, min_rate=min_rate, max_rate=max_rate,
    )


@router.get("/active", response_model=List[OfferOut])
def active_offers(db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    """Offers currently open for applications."""
    return services.OfferService(db).active()


@router.get("/search", response_model=List[OfferOut])
def search_offers(
    q: str = "",
    status: Optional[models.OfferStatus] = None,
    subject: Optional[str] = None,
    level: Optional[str] = None,
    min_rate: Optional[float] = Query(default=None, ge=0),
    max_rate: Optional[float] = Query(default=None, ge=0),
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    """Case-insensitive substring match on title, description and subject."""
    return services.OfferService(db).list(
        text=q.strip(), status=status, subject=subject, level=level, min_rate=min_rate, max_rate=max_rate,
    )


@router.post("", response_model=OfferOut, status_code=201)
def create_offer(payload: OfferCreate, db: Session = Depends(get_session), user: models.User = Depends(admin_only)):
    """Create a draft offer; `publish` makes it visible as open."""
    return services.OfferService(db).create(user, payload)


@router.get("/{offer_id}", response_model=OfferDetailOut)
def get_offer(offer_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.OfferService(db).detail(offer_id)


@router.put("/{offer_id}", response_model=OfferOut)
def update_offer(
    payload: OfferUpdate,
    offer_id: int = Path(gt=0),
    db: Session = Depends(get_session),
    user: models.User = Depends(admin_only),
):
    return services.OfferService(db).update(user, offer_id, payload)


@router.delete("/{offer_id}", status_code=204)
def delete_offer(offer_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(admin_only)):
    services.OfferService(db).delete(user, offer_id)
    return Response(status_code=204)


@router.get("/{offer_id}/options", response_model=List[OptionOut])
def offer_options(offer_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.OfferService(db).options_of(offer_id)


@router.put("/{offer_id}/publish", response_model=OfferOut)
def publish_offer(offer_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(admin_only)):
    return services.OfferService(db).publish(user, offer_id)


@router.put("/{offer_id}/close", response_model=OfferOut)
def close_offer(offer_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(admin_only)):
    # closing an already closed offer succeeds
    return services.OfferService(db).close(user, offer_id)


@router.put("/{offer_id}/fill", response_model=OfferOut)
def fill_offer(offer_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(admin_only)):
    return services.OfferService(db).fill(user, offer_id)


@router.post("/{offer_id}/apply", response_model=ApplicationOut)
def apply_to_offer(
    payload: OfferApply,
    offer_id: int = Path(gt=0),
    db: Session = Depends(get_session),
    user: models.User = Depends(require_roles(models.UserRole.enseignant)),
):
    return services.OfferService(db).apply(user, offer_id, payload)


@router.get("/{offer_id}/applicants", response_model=List[ApplicationOut])
def offer_applicants(offer_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.OfferService(db).applicants(offer_id)
