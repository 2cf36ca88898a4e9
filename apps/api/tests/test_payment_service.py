"""Payment schedules, per-occurrence status and the flattened views."""
from datetime import date, timedelta
from decimal import Decimal

import pytest

from advisor_desk.core.permissions import PermissionDeniedError
from advisor_desk.db.enums import (
    OccurrenceStatus,
    PaymentFrequency,
    PaymentMethod,
    PaymentStatusFilter,
)
from advisor_desk.schemas.payment import PaymentCreate, PaymentUpdate
from advisor_desk.services import payment_service
from advisor_desk.utils.dates import resolve_timezone, to_zone

from conftest import make_client


def _create(db, session, client, **overrides):
    data = {
        "client_id": client.id,
        "amount": Decimal("1000.00"),
        "due_dates": [date(2024, 1, 15)],
        "frequency": PaymentFrequency.ANNUAL,
    }
    data.update(overrides)
    return payment_service.create_payment(db, session, PaymentCreate(**data))


def test_create_payment_stores_iso_dates(db, editor_session, test_client_record):
    payment = _create(db, editor_session, test_client_record, comments="  first year  ")

    assert payment.due_dates == ["2024-01-15"]
    assert payment.amount == Decimal("1000.00")
    assert payment.payment_status == {}
    assert payment.comments == "first year"
    assert payment.created_by_name == editor_session.full_name


def test_quarterly_needs_one_amount_per_date(db, editor_session, test_client_record):
    with pytest.raises(ValueError):
        _create(
            db,
            editor_session,
            test_client_record,
            frequency=PaymentFrequency.QUARTERLY,
            due_dates=[date(2024, 1, 15), date(2024, 4, 15)],
            amounts=None,
        )

    with pytest.raises(ValueError):
        _create(
            db,
            editor_session,
            test_client_record,
            frequency=PaymentFrequency.QUARTERLY,
            due_dates=[date(2024, 1, 15), date(2024, 4, 15)],
            amounts=[Decimal("100")],
        )


def test_quarterly_headline_amount_is_first_per_date_amount(db, editor_session, test_client_record):
    payment = _create(
        db,
        editor_session,
        test_client_record,
        frequency=PaymentFrequency.QUARTERLY,
        amount=None,
        due_dates=[date(2024, 1, 15), date(2024, 4, 15)],
        amounts=[Decimal("250"), Decimal("300.5")],
    )

    assert payment.amount == Decimal("250.00")
    assert payment.amounts == ["250.00", "300.50"]


def test_duplicate_due_dates_rejected(db, editor_session, test_client_record):
    with pytest.raises(ValueError):
        _create(db, editor_session, test_client_record, due_dates=[date(2024, 1, 15), date(2024, 1, 15)])


def test_payment_for_other_org_client_rejected(db, editor_session, other_org):
    stranger = make_client(db, other_org, name="Ravi Iyer")

    with pytest.raises(ValueError):
        _create(db, editor_session, stranger)


def test_viewer_cannot_create_payment(db, viewer_session, test_client_record):
    with pytest.raises(PermissionDeniedError):
        _create(db, viewer_session, test_client_record)


def test_mark_paid_changes_only_that_date(db, editor_session, test_client_record):
    payment = _create(
        db,
        editor_session,
        test_client_record,
        frequency=PaymentFrequency.ONE_TIME,
        due_dates=[date(2024, 1, 15), date(2024, 2, 15)],
    )

    payment_service.mark_occurrence_paid(
        db, editor_session, payment, date(2024, 2, 15), method=PaymentMethod.UPI
    )

    assert payment.payment_status == {"2024-02-15": "paid"}
    assert payment.payment_method == "upi"


def test_mark_paid_is_idempotent(db, editor_session, test_client_record):
    payment = _create(db, editor_session, test_client_record)

    payment_service.mark_occurrence_paid(db, editor_session, payment, date(2024, 1, 15))
    payment_service.mark_occurrence_paid(db, editor_session, payment, date(2024, 1, 15))

    assert payment.payment_status == {"2024-01-15": "paid"}


def test_mark_paid_rejects_unknown_date(db, editor_session, test_client_record):
    payment = _create(db, editor_session, test_client_record)

    with pytest.raises(ValueError):
        payment_service.mark_occurrence_paid(db, editor_session, payment, date(2024, 3, 1))


def test_mark_paid_rejects_date_not_yet_due(db, editor_session, test_client_record, test_org):
    today = to_zone(None, resolve_timezone(test_org.timezone)).date()
    upcoming = today + timedelta(days=200)
    payment = _create(
        db,
        editor_session,
        test_client_record,
        frequency=PaymentFrequency.ONE_TIME,
        due_dates=[upcoming],
    )

    with pytest.raises(ValueError, match="not due yet"):
        payment_service.mark_occurrence_paid(db, editor_session, payment, upcoming)

    assert payment.payment_status == {}


def test_mark_paid_accepts_date_due_today(db, editor_session, test_client_record):
    payment = _create(db, editor_session, test_client_record, due_dates=[date(2025, 3, 10)])

    payment_service.mark_occurrence_paid(
        db, editor_session, payment, date(2025, 3, 10), today=date(2025, 3, 10)
    )

    assert payment.payment_status == {"2025-03-10": OccurrenceStatus.PAID.value}


def test_update_drops_status_of_removed_dates(db, editor_session, test_client_record):
    payment = _create(
        db,
        editor_session,
        test_client_record,
        frequency=PaymentFrequency.ONE_TIME,
        due_dates=[date(2024, 1, 15), date(2024, 2, 15)],
    )
    payment_service.mark_occurrence_paid(db, editor_session, payment, date(2024, 1, 15))
    payment_service.mark_occurrence_paid(db, editor_session, payment, date(2024, 2, 15))

    payment_service.update_payment(
        db,
        editor_session,
        payment,
        PaymentUpdate(due_dates=[date(2024, 2, 15), date(2024, 3, 15)]),
    )

    assert payment.due_dates == ["2024-02-15", "2024-03-15"]
    assert payment.payment_status == {"2024-02-15": "paid"}


def test_delete_requires_manager(db, editor_session, manager_session, test_client_record):
    payment = _create(db, editor_session, test_client_record)

    with pytest.raises(PermissionDeniedError):
        payment_service.delete_payment(db, editor_session, payment)

    payment_service.delete_payment(db, manager_session, payment)
    assert payment_service.get_payment(db, manager_session.org_id, payment.id) is None


def test_list_occurrences_filters_by_status(db, editor_session, test_client_record):
    payment = _create(
        db,
        editor_session,
        test_client_record,
        frequency=PaymentFrequency.ONE_TIME,
        due_dates=[date(2024, 2, 15), date(2024, 1, 15)],
    )
    payment_service.mark_occurrence_paid(db, editor_session, payment, date(2024, 1, 15))
    org_id = editor_session.org_id

    all_rows = payment_service.list_occurrences(db, org_id)
    pending = payment_service.list_occurrences(db, org_id, status=PaymentStatusFilter.PENDING)
    completed = payment_service.list_occurrences(db, org_id, status=PaymentStatusFilter.COMPLETED)

    assert [r.due_date for r in all_rows] == [date(2024, 1, 15), date(2024, 2, 15)]
    assert [r.due_date for r in pending] == [date(2024, 2, 15)]
    assert [r.status for r in completed] == [OccurrenceStatus.PAID]


def test_list_occurrences_search_matches_client_name(db, editor_session, test_client_record, test_org):
    other_client = make_client(db, test_org, name="Ravi Iyer")
    _create(db, editor_session, test_client_record)
    _create(db, editor_session, other_client)

    rows = payment_service.list_occurrences(db, editor_session.org_id, search="ravi")

    assert [r.client_name for r in rows] == ["Ravi Iyer"]


def test_payments_for_month_projects_recurring_schedules(db, editor_session, test_client_record):
    _create(
        db,
        editor_session,
        test_client_record,
        frequency=PaymentFrequency.QUARTERLY,
        amount=None,
        due_dates=[date(2024, 1, 15)],
        amounts=[Decimal("400")],
    )

    april = payment_service.payments_for_month(db, editor_session.org_id, 4, 2024)
    february = payment_service.payments_for_month(db, editor_session.org_id, 2, 2024)

    assert [(r.due_date, r.amount) for r in april] == [(date(2024, 4, 15), Decimal("400.00"))]
    assert february == []
