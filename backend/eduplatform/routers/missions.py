"""Mission endpoints.

Transitions are exposed as `PUT /missions/{id}/<action>` and never take
a status in the body.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Response, status
from sqlmodel import Session

from .. import models, services
from ..auth import get_current_user
from ..database import get_session
from ..schemas import (
    CourseOut,
    MissionCreate,
    MissionDetailOut,
    MissionExtend,
    MissionOut,
    MissionUpdate,
    PaymentOut,
    ReportOut,
    UtcDatetime,
)

router = APIRouter(prefix="/missions", tags=["missions"])


@router.get("", response_model=List[MissionOut])
def list_missions(
    status: Optional[models.MissionStatus] = None,
    enseignant_id: Optional[int] = None,
    famille_id: Optional[int] = None,
    date_from: Optional[UtcDatetime] = None,
    date_to: Optional[UtcDatetime] = None,
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    """List missions; the date range applies to `start_date`."""
    return services.MissionService(db).list(
        status=status,
        enseignant_id=enseignant_id,
        famille_id=famille_id,
        date_from=date_from,
        date_to=date_to,
    )


@router.post("", response_model=MissionOut, status_code=201)
def create_mission(payload: MissionCreate, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.MissionService(db).create(user, payload)


@router.get("/{mission_id}", response_model=MissionDetailOut)
def get_mission(mission_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.MissionService(db).detail(mission_id)


@router.put("/{mission_id}", response_model=MissionOut)
def update_mission(
    payload: MissionUpdate,
    mission_id: int = Path(gt=0),
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    return services.MissionService(db).update(user, mission_id, payload)


@router.delete("/{mission_id}", status_code=204)
def delete_mission(mission_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    services.MissionService(db).delete(user, mission_id)
    return Response(status_code=204)


@router.put("/{mission_id}/stop", response_model=MissionOut)
def stop_mission(mission_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    """Stop the mission and set its end date to now."""
    return services.MissionService(db).stop(user, mission_id)


@router.put("/{mission_id}/extend", response_model=MissionOut)
def extend_mission(
    payload: MissionExtend,
    mission_id: int = Path(gt=0),
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    return services.MissionService(db).extend(user, mission_id, payload.end_date)


@router.put("/{mission_id}/pause", response_model=MissionOut)
def pause_mission(mission_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.MissionService(db).pause(user, mission_id)


@router.put("/{mission_id}/complete", response_model=MissionOut)
def complete_mission(mission_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.MissionService(db).complete(user, mission_id)


@router.get("/{mission_id}/courses", response_model=List[CourseOut])
def mission_courses(mission_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.MissionService(db).courses_of(mission_id)


@router.get("/{mission_id}/reports", response_model=List[ReportOut])
def mission_reports(mission_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.MissionService(db).reports_of(mission_id)


@router.get("/{mission_id}/payments", response_model=List[PaymentOut])
def mission_payments(mission_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    """Payments attached to the mission's courses."""
    return services.MissionService(db).payments_of(user, mission_id)
