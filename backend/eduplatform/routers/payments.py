from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, Response
from sqlmodel import Session

from .. import models, services
from ..auth import get_current_user, require_roles
from ..database import get_session
from ..schemas import InvoiceOut, PaymentCreate, PaymentOut, PaymentStatsOut, PaymentUpdate

router = APIRouter(prefix="/payments", tags=["payments"])


@router.get("", response_model=List[PaymentOut])
def list_payments(
    status: Optional[models.PaymentStatus] = None,
    type: Optional[models.PaymentType] = None,
    user_id: Optional[int] = None,
    course_id: Optional[int] = None,
    min_amount: Optional[float] = Query(default=None, ge=0),
    max_amount: Optional[float] = Query(default=None, ge=0),
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    """List payments; non-administrators only see their own."""
    return services.PaymentService(db).list(
        user,
        status=status,
        type=type,
        user_id=user_id,
        course_id=course_id,
        min_amount=min_amount,
        max_amount=max_amount,
    )


@router.get("/stats", response_model=PaymentStatsOut)
def payment_stats(db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.PaymentService(db).stats(user)


@router.post("", response_model=PaymentOut, status_code=201)
def create_payment(payload: PaymentCreate, db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    """Record a pending payment for the caller (administrators may name the user)."""
    return services.PaymentService(db).create(user, payload)


@router.get("/{payment_id}", response_model=PaymentOut)
def get_payment(payment_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.PaymentService(db).get(user, payment_id)


@router.put("/{payment_id}", response_model=PaymentOut)
def update_payment(
    payload: PaymentUpdate,
    payment_id: int = Path(gt=0),
    db: Session = Depends(get_session),
    user: models.User = Depends(get_current_user),
):
    return services.PaymentService(db).update(user, payment_id, payload)


@router.delete("/{payment_id}", status_code=204)
def delete_payment(payment_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    services.PaymentService(db).delete(user, payment_id)
    return Response(status_code=204)


@router.put("/{payment_id}/process", response_model=PaymentOut)
def process_payment(payment_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    """Mark the payment completed; no payment provider is contacted."""
    return services.PaymentService(db).process(user, payment_id)


@router.put("/{payment_id}/fail", response_model=PaymentOut)
def fail_payment(payment_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.PaymentService(db).fail(user, payment_id)


@router.put("/{payment_id}/refund", response_model=PaymentOut)
def refund_payment(
    payment_id: int = Path(gt=0),
    db: Session = Depends(get_session),
    user: models.User = Depends(require_roles(models.UserRole.administrator)),
):
    return services.PaymentService(db).refund(user, payment_id)


@router.get("/{payment_id}/invoice", response_model=InvoiceOut)
def payment_invoice(payment_id: int = Path(gt=0), db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return services.PaymentService(db).invoice(user, payment_id)
