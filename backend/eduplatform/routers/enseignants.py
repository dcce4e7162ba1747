from typing import List

from fastapi import APIRouter, Depends, Path, Response, status
from sqlmodel import Session

from .. import models, services
from ..auth import get_current_user, require_roles
from ..database import get_session
from ..schemas import (
    CourseOut,
    EnseignantCreate,
    EnseignantOut,
    MissionOut,
    OfferOut,
    OptionOut,
    PaymentOut,
    ReportOut,
    UserOut,
    UserUpdate,
)

router = APIRouter(prefix="/enseignants", tags=["enseignants"])

admin_only = require_roles(models.UserRole.administrator)


@router.get("", response_model=List[UserOut])
def list_enseignants(db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.EnseignantService(db).list()


@router.get("/nearby", response_model=List[UserOut])
def nearby_enseignants(db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    """Placeholder proximity search: returns every enseignant."""
    return services.EnseignantService(db).nearby()


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_enseignant(payload: EnseignantCreate, db: Session = Depends(get_session), user: models.User = Depends(admin_only)):
    return services.EnseignantService(db).create(user, payload)


@router.get("/{enseignant_id}", response_model=EnseignantOut)
def get_enseignant(enseignant_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    """Return the enseignant with missions, courses, reports and options."""
    return services.EnseignantService(db).get(enseignant_id)


@router.put("/{enseignant_id}", response_model=UserOut)
def update_enseignant(
    payload: UserUpdate,
    enseignant_id: int = Path(gt=0),
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    return services.EnseignantService(db).update(user, enseignant_id, payload)


@router.delete("/{enseignant_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_enseignant(enseignant_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(admin_only)):
    services.EnseignantService(db).delete(user, enseignant_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{enseignant_id}/students", response_model=List[UserOut])
def enseignant_students(enseignant_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    """Distinct familles across the enseignant's missions and courses."""
    return services.EnseignantService(db).students(enseignant_id)


@router.get("/{enseignant_id}/missions", response_model=List[MissionOut])
def enseignant_missions(enseignant_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.EnseignantService(db).missions_of(enseignant_id)


@router.get("/{enseignant_id}/courses", response_model=List[CourseOut])
def enseignant_courses(enseignant_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.EnseignantService(db).courses_of(enseignant_id)


@router.get("/{enseignant_id}/payments", response_model=List[PaymentOut])
def enseignant_payments(enseignant_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.EnseignantService(db).payments_of(user, enseignant_id)


@router.get("/{enseignant_id}/reports", response_model=List[ReportOut])
def enseignant_reports(enseignant_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.EnseignantService(db).reports_of(enseignant_id)


@router.get("/{enseignant_id}/options", response_model=List[OptionOut])
def enseignant_options(enseignant_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.EnseignantService(db).options_of(enseignant_id)


@router.get("/{enseignant_id}/offers", response_model=List[OfferOut])
def enseignant_offers(enseignant_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    """Offers the enseignant has applied to."""
    return services.EnseignantService(db).offers_of(enseignant_id)
