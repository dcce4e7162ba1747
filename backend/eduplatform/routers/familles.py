from typing import List

from fastapi import APIRouter, Depends, Path, Response, status
from sqlmodel import Session

from .. import models, services
from ..auth import get_current_user, require_roles
from ..database import get_session
from ..schemas import CourseOut, FamilleOut, MissionOut, OptionOut, PaymentOut, UserOut, UserUpdate

router = APIRouter(prefix="/familles", tags=["familles"])


@router.get("", response_model=List[UserOut])
def list_familles(db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.FamilleService(db).list()


@router.get("/{famille_id}", response_model=FamilleOut)
def get_famille(famille_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    """Return the famille with its missions, courses and options."""
    return services.FamilleService(db).get(famille_id)


@router.put("/{famille_id}", response_model=UserOut)
def update_famille(
    payload: UserUpdate,
    famille_id: int = Path(gt=0),
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    return services.FamilleService(db).update(user, famille_id, payload)


@router.delete("/{famille_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_famille(
    famille_id: int = Path(gt=0),
    db: Session = Depends(get_session),
    user: models.User = Depends(require_roles(models.UserRole.administrator)),
):
    services.FamilleService(db).delete(user, famille_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{famille_id}/teachers", response_model=List[UserOut])
def famille_teachers(famille_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    """Distinct enseignants across the famille's missions and courses."""
    return services.FamilleService(db).teachers(famille_id)


@router.get("/{famille_id}/missions", response_model=List[MissionOut])
def famille_missions(famille_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.FamilleService(db).missions_of(famille_id)


@router.get("/{famille_id}/courses", response_model=List[CourseOut])
def famille_courses(famille_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.FamilleService(db).courses_of(famille_id)


@router.get("/{famille_id}/payments", response_model=List[PaymentOut])
def famille_payments(famille_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.FamilleService(db).payments_of(user, famille_id)


@router.get("/{famille_id}/options", response_model=List[OptionOut])
def famille_options(famille_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.FamilleService(db).options_of(famille_id)


@router.post("/{famille_id}/reviews")
def famille_review(famille_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    services.FamilleService(db).review(famille_id)
