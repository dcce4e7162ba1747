from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Response
from sqlmodel import Session

from .. import models, services
from ..auth import get_current_user
from ..database import get_session
from ..schemas import CourseCreate, CourseDeclare, CourseDetailOut, CourseOut, CourseUpdate, PaymentOut, UtcDatetime

router = APIRouter(prefix="/courses", tags=["courses"])


@router.get("", response_model=List[CourseDetailOut])
def list_courses(
    status: Optional[models.CourseStatus] = None,
    enseignant_id: Optional[int] = None,
    famille_id: Optional[int] = None,
    mission_id: Optional[int] = None,
    date_from: Optional[UtcDatetime] = None,
    date_to: Optional[UtcDatetime] = None,
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    """List courses with their payments; the date range applies to `scheduled_time`."""
    return services.CourseService(db).list(
        status=status,
        enseignant_id=enseignant_id,
        famille_id=famille_id,
        mission_id=mission_id,
        date_from=date_from,
        date_to=date_to,
    )


@router.post("", response_model=CourseOut, status_code=201)
def create_course(payload: CourseCreate, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    """Schedule a course under a mission; famille and enseignant come from the mission."""
    return services.CourseService(db).create(user, payload)


@router.get("/{course_id}", response_model=CourseDetailOut)
def get_course(course_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.CourseService(db).detail(course_id)


@router.put("/{course_id}", response_model=CourseOut)
def update_course(
    payload: CourseUpdate,
    course_id: int = Path(gt=0),
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    return services.CourseService(db).update(user, course_id, payload)


@router.delete("/{course_id}", status_code=204)
def delete_course(course_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    services.CourseService(db).delete(user, course_id)
    return Response(status_code=204)


@router.put("/{course_id}/schedule", response_model=CourseOut)
def schedule_course(course_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.CourseService(db).schedule(user, course_id)


@router.put("/{course_id}/cancel", response_model=CourseOut)
def cancel_course(course_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.CourseService(db).cancel(user, course_id)


@router.put("/{course_id}/complete", response_model=CourseOut)
def complete_course(course_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.CourseService(db).complete(user, course_id)


@router.put("/{course_id}/declare", response_model=CourseOut)
def declare_course(
    payload: CourseDeclare,
    course_id: int = Path(gt=0),
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    """Mark the course in progress; the declared hours are accepted but not stored."""
    return services.CourseService(db).declare(user, course_id, payload.hours)


@router.get("/{course_id}/payments", response_model=List[PaymentOut])
def course_payments(course_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.CourseService(db).payments_of(course_id)
