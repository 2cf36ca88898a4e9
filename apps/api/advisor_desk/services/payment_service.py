"""Payment service - payment schedules and per-occurrence status."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from advisor_desk.core.permissions import PermissionKey, ensure_permission
from advisor_desk.db.enums import (
    ActivityAction,
    OccurrenceStatus,
    PER_DATE_AMOUNT_FREQUENCIES,
    PaymentFrequency,
    PaymentMethod,
    PaymentStatusFilter,
)
from advisor_desk.db.models import Client, Organization, PaymentSchedule
from advisor_desk.schemas.payment import PaymentCreate, PaymentUpdate
from advisor_desk.services import activity_service, client_service, recurrence_service
from advisor_desk.utils.dates import resolve_timezone, to_zone

CENT = Decimal("0.01")


@dataclass(frozen=True)
class OccurrenceRow:
    payment_id: UUID
    client_id: UUID
    client_name: str | None
    due_date: date
    amount: Decimal
    status: OccurrenceStatus
    frequency: str
    payment_method: str | None
    comments: str | None


def _money(value: Decimal) -> str:
    return str(Decimal(value).quantize(CENT))


def _validate_schedule(
    frequency: PaymentFrequency,
    due_dates: list[date],
    amount: Decimal | None,
    amounts: list[Decimal] | None,
) -> tuple[Decimal, list[str] | None]:
    """
    Check the schedule invariants and return (amount, amounts) to store.

    Quarterly and half-yearly schedules carry one amount per due date and
    their headline amount is the first of them.
    """
    if not due_dates:
        raise ValueError("At least one due date is required")
    if len(set(due_dates)) != len(due_dates):
        raise ValueError("Due dates must be unique")

    if amounts is not None and len(amounts) == 0:
        amounts = None
    if amounts is not None:
        if len(amounts) != len(due_dates):
            raise ValueError("Provide one amount per due date")
        if any(a <= 0 for a in amounts):
            raise ValueError("Amounts must be positive")

    if frequency in PER_DATE_AMOUNT_FREQUENCIES:
        if amounts is None:
            raise ValueError(f"{frequency.value} schedules need one amount per due date")
        return amounts[0], [_money(a) for a in amounts]

    if amount is None:
        if amounts is None:
            raise ValueError("Amount is required")
        amount = amounts[0]
    return amount, [_money(a) for a in amounts] if amounts is not None else None


def _org_today(db: Session, org_id: UUID) -> date:
    org = db.get(Organization, org_id)
    return to_zone(None, resolve_timezone(org.timezone if org else None)).date()


def get_payment(db: Session, org_id: UUID, payment_id: UUID) -> PaymentSchedule | None:
    return (
        db.query(PaymentSchedule)
        .filter(PaymentSchedule.organization_id == org_id, PaymentSchedule.id == payment_id)
        .first()
    )


def list_payments(
    db: Session,
    org_id: UUID,
    client_id: UUID | None = None,
    frequency: PaymentFrequency | None = None,
) -> list[PaymentSchedule]:
    query = db.query(PaymentSchedule).filter(PaymentSchedule.organization_id == org_id)
    if client_id:
        query = query.filter(PaymentSchedule.client_id == client_id)
    if frequency:
        query = query.filter(PaymentSchedule.frequency == frequency.value)
    return query.order_by(PaymentSchedule.created_at.desc(), PaymentSchedule.id).all()


def create_payment(db: Session, actor, data: PaymentCreate) -> PaymentSchedule:
    ensure_permission(actor, PermissionKey.PAYMENTS_EDIT)
    client = client_service.get_client(db, actor.org_id, data.client_id)
    if not client:
        raise ValueError("Client not found")

    amount, amounts = _validate_schedule(data.frequency, data.due_dates, data.amount, data.amounts)
    payment = PaymentSchedule(
        organization_id=actor.org_id,
        client_id=client.id,
        amount=amount,
        amounts=amounts,
        due_dates=[d.isoformat() for d in data.due_dates],
        frequency=data.frequency.value,
        payment_method=data.payment_method.value if data.payment_method else None,
        payment_status={},
        comments=(data.comments or "").strip() or None,
        created_by_id=actor.user_id,
        created_by_name=actor.full_name,
    )
    db.add(payment)
    db.flush()
    activity_service.log_activity(
        db,
        org_id=actor.org_id,
        actor=actor,
        action=ActivityAction.CREATE,
        table_name="payment_schedules",
        record_id=payment.id,
        payload={
            "client_name": client.name,
            "frequency": payment.frequency,
            "amount": _money(amount),
            "due_dates": payment.due_dates,
        },
    )
    db.commit()
    db.refresh(payment)
    return payment


def update_payment(db: Session, actor, payment: PaymentSchedule, data: PaymentUpdate) -> PaymentSchedule:
    """
    Update a schedule.

    Status entries for due dates that are no longer listed are dropped;
    statuses of remaining dates are kept.
    """
    ensure_permission(actor, PermissionKey.PAYMENTS_EDIT)
    fields = data.model_dump(exclude_unset=True)

    frequency = data.frequency or PaymentFrequency(payment.frequency)
    due_dates = data.due_dates if data.due_dates is not None else [
        date.fromisoformat(d) for d in payment.due_dates
    ]
    if "amounts" in fields:
        amounts = data.amounts
    elif payment.amounts is not None:
        amounts = [Decimal(a) for a in payment.amounts]
    else:
        amounts = None
    if "amount" in fields:
        amount = data.amount
    else:
        amount = payment.amount
    if "amounts" in fields and "amount" not in fields and amounts:
        amount = None  # derive from the new per-date amounts

    amount, stored_amounts = _validate_schedule(frequency, due_dates, amount, amounts)

    payment.frequency = frequency.value
    payment.due_dates = [d.isoformat() for d in due_dates]
    payment.amount = amount
    payment.amounts = stored_amounts
    payment.payment_status = {
        key: value
        for key, value in (payment.payment_status or {}).items()
        if key in payment.due_dates
    }
    if "payment_method" in fields:
        payment.payment_method = data.payment_method.value if data.payment_method else None
    if "comments" in fields:
        payment.comments = (data.comments or "").strip() or None

    activity_service.log_activity(
        db,
        org_id=actor.org_id,
        actor=actor,
        action=ActivityAction.UPDATE,
        table_name="payment_schedules",
        record_id=payment.id,
        payload={"fields": sorted(fields)},
    )
    db.commit()
    db.refresh(payment)
    return payment


def delete_payment(db: Session, actor, payment: PaymentSchedule) -> None:
    ensure_permission(actor, PermissionKey.PAYMENTS_DELETE)
    activity_service.log_activity(
        db,
        org_id=actor.org_id,
        actor=actor,
        action=ActivityAction.DELETE,
        table_name="payment_schedules",
        record_id=payment.id,
        payload={"client_name": payment.client_name, "due_dates": payment.due_dates},
    )
    db.delete(payment)
    db.commit()


def mark_occurrence_paid(
    db: Session,
    actor,
    payment: PaymentSchedule,
    due_date: date,
    method: PaymentMethod | None = None,
    today: date | None = None,
) -> PaymentSchedule:
    """
    Mark one due date as paid.

    Only that date's status entry changes. An already-paid date is left
    untouched (paid is never reverted). today defaults to the current date
    in the organization's timezone.

    Raises:
        ValueError: due_date is not one of the schedule's due dates, or has
            not arrived yet
    """
    ensure_permission(actor, PermissionKey.PAYMENTS_EDIT)
    key = due_date.isoformat()
    if key not in (payment.due_dates or []):
        raise ValueError(f"{key} is not a due date of this payment")
    today = today or _org_today(db, payment.organization_id)
    if due_date > today:
        raise ValueError(f"{key} is not due yet")

    if recurrence_service.status_for(payment, key) == OccurrenceStatus.PAID:
        return payment

    payment.payment_status = {**(payment.payment_status or {}), key: OccurrenceStatus.PAID.value}
    if method:
        payment.payment_method = method.value
    activity_service.log_activity(
        db,
        org_id=actor.org_id,
        actor=actor,
        action=ActivityAction.UPDATE,
        table_name="payment_schedules",
        record_id=payment.id,
        payload={"paid": key, "payment_method": payment.payment_method},
    )
    db.commit()
    db.refresh(payment)
    return payment


# =============================================================================
# Occurrence views
# =============================================================================

def _row(payment: PaymentSchedule, occurrence: recurrence_service.Occurrence) -> OccurrenceRow:
    return OccurrenceRow(
        payment_id=payment.id,
        client_id=payment.client_id,
        client_name=payment.client_name,
        due_date=occurrence.due_date,
        amount=occurrence.amount,
        status=occurrence.status,
        frequency=payment.frequency,
        payment_method=payment.payment_method,
        comments=payment.comments,
    )


def list_occurrences(
    db: Session,
    org_id: UUID,
    status: PaymentStatusFilter = PaymentStatusFilter.ALL,
    search: str | None = None,
    frequency: PaymentFrequency | None = None,
    method: PaymentMethod | None = None,
) -> list[OccurrenceRow]:
    """
    Flattened list of every stored due date, ordered by date.

    status pending selects unpaid dates, completed selects paid ones;
    search matches the client name.
    """
    query = (
        db.query(PaymentSchedule)
        .join(Client, PaymentSchedule.client_id == Client.id)
        .filter(PaymentSchedule.organization_id == org_id)
    )
    if search and search.strip():
        query = query.filter(Client.name.ilike(f"%{search.strip()}%"))
    if frequency:
        query = query.filter(PaymentSchedule.frequency == frequency.value)
    if method:
        query = query.filter(PaymentSchedule.payment_method == method.value)

    rows = []
    for payment in query.all():
        for occurrence in recurrence_service.expand_occurrences(payment):
            if status == PaymentStatusFilter.PENDING and occurrence.status != OccurrenceStatus.UNPAID:
                continue
            if status == PaymentStatusFilter.COMPLETED and occurrence.status != OccurrenceStatus.PAID:
                continue
            rows.append(_row(payment, occurrence))
    return sorted(rows, key=lambda r: (r.due_date, r.client_name or ""))


def payments_for_month(db: Session, org_id: UUID, month: int, year: int) -> list[OccurrenceRow]:
    """Projected occurrences of every schedule in a calendar month."""
    payments = db.query(PaymentSchedule).filter(PaymentSchedule.organization_id == org_id).all()
    rows = []
    for payment in payments:
        for occurrence in recurrence_service.occurrences_in_month(payment, month, year):
            rows.append(_row(payment, occurrence))
    return sorted(rows, key=lambda r: (r.due_date, r.client_name or ""))
