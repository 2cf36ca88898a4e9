"""Recurrence projection for payment schedules.

Given a schedule's stored due dates and frequency, compute which concrete
dates fall inside a requested calendar month. Months are 1-based.

Stepping follows calendar overflow rules: a day that does not exist in the
target month rolls forward into the next month (31 Jan + 3 months = 1 May),
and the rolled date is the base for the following step. Apart from rejecting
a month outside 1-12, projection never raises; malformed due dates and
unknown frequencies yield nothing.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Iterator, Protocol, Sequence

from advisor_desk.core.config import settings
from advisor_desk.db.enums import OccurrenceStatus, PaymentFrequency
from advisor_desk.utils.dates import add_months, normalized_date, parse_iso_date


STEP_MONTHS = {
    PaymentFrequency.QUARTERLY.value: 3,
    PaymentFrequency.HALF_YEARLY.value: 6,
}


class RecurringSchedule(Protocol):
    due_dates: Sequence[str]
    frequency: str


@dataclass(frozen=True)
class Occurrence:
    """One due date of a schedule, with its amount and stored status."""

    due_date: date
    amount: Decimal
    status: OccurrenceStatus

    @property
    def key(self) -> str:
        return self.due_date.isoformat()


def _frequency_value(frequency) -> str:
    return frequency.value if isinstance(frequency, PaymentFrequency) else str(frequency or "")


def project_single(
    due: date,
    frequency: str,
    month: int,
    year: int,
    horizon_years: int | None = None,
) -> date | None:
    """Project one stored due date into (month, year); None when it does not land there."""
    if frequency == PaymentFrequency.ONE_TIME.value:
        return due if due.month == month and due.year == year else None

    if frequency == PaymentFrequency.ANNUAL.value:
        if due.month == month and year >= due.year:
            return normalized_date(year, month, due.day)
        return None

    step = STEP_MONTHS.get(frequency)
    if step is None:
        return None

    horizon = horizon_years if horizon_years is not None else settings.PROJECTION_HORIZON_YEARS
    limit = date(year + horizon, 12, 31)
    current = due
    while current <= limit:
        if current.month == month and current.year == year:
            return current
        current = add_months(current, step)
    return None


class DueDateProjection:
    """
    Lazy, restartable view of a schedule's dates inside one month.

    Iterating twice recomputes from the stored due dates, so the projection
    always reflects the schedule as it is when iterated.
    """

    def __init__(self, schedule: RecurringSchedule, month: int, year: int, horizon_years: int | None = None):
        if not 1 <= month <= 12:
            raise ValueError(f"month must be 1-12, got {month}")
        self.schedule = schedule
        self.month = month
        self.year = year
        self.horizon_years = horizon_years

    def __iter__(self) -> Iterator[date]:
        frequency = _frequency_value(self.schedule.frequency)
        for raw in self.schedule.due_dates or []:
            due = parse_iso_date(raw)
            if due is None:
                continue
            projected = project_single(due, frequency, self.month, self.year, self.horizon_years)
            if projected is not None:
                yield projected

    def __repr__(self) -> str:
        return f"DueDateProjection(month={self.month}, year={self.year}, frequency={self.schedule.frequency!r})"


def project_due_dates(schedule: RecurringSchedule, month: int, year: int) -> DueDateProjection:
    """Dates of schedule that fall in the given 1-based month of year."""
    return DueDateProjection(schedule, month, year)


# =============================================================================
# Occurrence helpers
# =============================================================================

def _to_decimal(value, fallback: Decimal) -> Decimal:
    if value is None or value == "":
        return fallback
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return fallback


def amount_for_index(schedule, index: int) -> Decimal:
    """Per-date amount when the schedule carries one, else the headline amount."""
    base = _to_decimal(schedule.amount, Decimal("0"))
    amounts = schedule.amounts or []
    if 0 <= index < len(amounts):
        return _to_decimal(amounts[index], base)
    return base


def status_for(schedule, key: str) -> OccurrenceStatus:
    """Stored status for a due date key; unlisted keys are unpaid."""
    raw = (schedule.payment_status or {}).get(key)
    if raw == OccurrenceStatus.PAID.value:
        return OccurrenceStatus.PAID
    return OccurrenceStatus.UNPAID


def expand_occurrences(schedule) -> list[Occurrence]:
    """One occurrence per stored due date, in stored order."""
    occurrences = []
    for index, raw in enumerate(schedule.due_dates or []):
        due = parse_iso_date(raw)
        if due is None:
            continue
        occurrences.append(
            Occurrence(
                due_date=due,
                amount=amount_for_index(schedule, index),
                status=status_for(schedule, due.isoformat()),
            )
        )
    return occurrences


def occurrences_in_month(schedule, month: int, year: int) -> list[Occurrence]:
    """
    Projected dates in (month, year) paired with amount and status.

    The amount comes from the stored due date that produced the projection.
    Status is looked up by the projected date's ISO key.
    """
    frequency = _frequency_value(schedule.frequency)
    results = []
    for index, raw in enumerate(schedule.due_dates or []):
        due = parse_iso_date(raw)
        if due is None:
            continue
        projected = project_single(due, frequency, month, year)
        if projected is None:
            continue
        results.append(
            Occurrence(
                due_date=projected,
                amount=amount_for_index(schedule, index),
                status=status_for(schedule, projected.isoformat()),
            )
        )
    return results
