"""Payments router - payment schedules, occurrences and projections."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from advisor_desk.core.deps import get_db, require_csrf_header, require_permission
from advisor_desk.core.policies import POLICIES
from advisor_desk.db.enums import PaymentFrequency, PaymentMethod, PaymentStatusFilter
from advisor_desk.schemas.auth import UserSession
from advisor_desk.schemas.payment import (
    MarkPaidRequest,
    OccurrenceRead,
    PaymentCreate,
    PaymentRead,
    PaymentUpdate,
    ProjectionRead,
)
from advisor_desk.services import payment_service, recurrence_service

router = APIRouter()

policy = POLICIES["payments"]


def _get_payment_or_404(db: Session, session: UserSession, payment_id: UUID):
    payment = payment_service.get_payment(db, session.org_id, payment_id)
    if not payment:
        raise HTTPException(status_code=404, detail="Payment not found")
    return payment


@router.get("/payments", response_model=list[PaymentRead])
def list_payments(
    client_id: UUID | None = Query(None),
    frequency: PaymentFrequency | None = Query(None),
    session: UserSession = Depends(require_permission(policy.default)),
    db: Session = Depends(get_db),
):
    return payment_service.list_payments(db, session.org_id, client_id=client_id, frequency=frequency)


@router.get("/payments/occurrences", response_model=list[OccurrenceRead])
def list_occurrences(
    status: PaymentStatusFilter = Query(PaymentStatusFilter.ALL),
    q: str | None = Query(None, max_length=100),
    frequency: PaymentFrequency | None = Query(None),
    method: PaymentMethod | None = Query(None),
    session: UserSession = Depends(require_permission(policy.default)),
    db: Session = Depends(get_db),
):
    """
    Every stored due date as its own row, ordered by date.

    pending returns unpaid dates, completed returns paid ones.
    """
    return payment_service.list_occurrences(
        db,
        session.org_id,
        status=status,
        search=q,
        frequency=frequency,
        method=method,
    )


@router.post(
    "/payments",
    response_model=PaymentRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_payment(
    data: PaymentCreate,
    session: UserSession = Depends(require_permission(policy.actions["edit"])),
    db: Session = Depends(get_db),
):
    try:
        return payment_service.create_payment(db, session, data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/payments/{payment_id}", response_model=PaymentRead)
def get_payment(
    payment_id: UUID,
    session: UserSession = Depends(require_permission(policy.default)),
    db: Session = Depends(get_db),
):
    return _get_payment_or_404(db, session, payment_id)


@router.patch(
    "/payments/{payment_id}",
    response_model=PaymentRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_payment(
    payment_id: UUID,
    data: PaymentUpdate,
    session: UserSession = Depends(require_permission(policy.actions["edit"])),
    db: Session = Depends(get_db),
):
    payment = _get_payment_or_404(db, session, payment_id)
    try:
        return payment_service.update_payment(db, session, payment, data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete(
    "/payments/{payment_id}",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def delete_payment(
    payment_id: UUID,
    session: UserSession = Depends(require_permission(policy.actions["delete"])),
    db: Session = Depends(get_db),
):
    payment = _get_payment_or_404(db, session, payment_id)
    payment_service.delete_payment(db, session, payment)


@router.post(
    "/payments/{payment_id}/mark-paid",
    response_model=PaymentRead,
    dependencies=[Depends(require_csrf_header)],
)
def mark_paid(
    payment_id: UUID,
    data: MarkPaidRequest,
    session: UserSession = Depends(require_permission(policy.actions["edit"])),
    db: Session = Depends(get_db),
):
    """Mark one due date as paid. Other dates keep their status."""
    payment = _get_payment_or_404(db, session, payment_id)
    try:
        return payment_service.mark_occurrence_paid(
            db, session, payment, data.due_date, method=data.payment_method
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/payments/{payment_id}/projection", response_model=ProjectionRead)
def project_payment(
    payment_id: UUID,
    month: int = Query(..., ge=1, le=12),
    year: int = Query(..., ge=1900, le=9999),
    session: UserSession = Depends(require_permission(policy.default)),
    db: Session = Depends(get_db),
):
    """Dates of this schedule that fall in the given month."""
    payment = _get_payment_or_404(db, session, payment_id)
    dates = list(recurrence_service.project_due_dates(payment, month, year))
    return ProjectionRead(payment_id=payment.id, month=month, year=year, dates=dates)
