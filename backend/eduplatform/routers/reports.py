from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Response
from sqlmodel import Session

from .. import models, services
from ..auth import get_current_user, require_roles
from ..database import get_session
from ..schemas import ReportCreate, ReportOut, ReportReview, ReportUpdate

router = APIRouter(prefix="/reports", tags=["reports"])

admin_only = require_roles(models.UserRole.administrator)


@router.get("", response_model=List[ReportOut])
def list_reports(
    status: Optional[models.ReportStatus] = None,
    enseignant_id: Optional[int] = None,
    mission_id: Optional[int] = None,
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    return services.ReportService(db).list(status=status, enseignant_id=enseignant_id, mission_id=mission_id)


@router.post("", response_model=ReportOut, status_code=201)
def create_report(payload: ReportCreate, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    """Draft a report on a mission; only its enseignant or an administrator may."""
    return services.ReportService(db).create(user, payload)


@router.get("/{report_id}", response_model=ReportOut)
def get_report(report_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.ReportService(db).get(report_id)


@router.put("/{report_id}", response_model=ReportOut)
def update_report(
    payload: ReportUpdate,
    report_id: int = Path(gt=0),
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    return services.ReportService(db).update(user, report_id, payload)


@router.delete("/{report_id}", status_code=204)
def delete_report(report_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    services.ReportService(db).delete(user, report_id)
    return Response(status_code=204)


@router.put("/{report_id}/submit", response_model=ReportOut)
def submit_report(report_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.ReportService(db).submit(user, report_id)


@router.put("/{report_id}/validate", response_model=ReportOut)
def validate_report(
    payload: Optional[ReportReview] = None,
    report_id: int = Path(gt=0),
    db: Session = Depends(get_session),
    user: models.User = Depends(admin_only),
):
    comments = payload.comments if payload else None
    return services.ReportService(db).validate(user, report_id, comments)


@router.put("/{report_id}/reject", response_model=ReportOut)
def reject_report(
    payload: Optional[ReportReview] = None,
    report_id: int = Path(gt=0),
    db: Session = Depends(get_session),
    user: models.User = Depends(admin_only),
):
    comments = payload.comments if payload else None
    return services.ReportService(db).reject(user, report_id, comments)
