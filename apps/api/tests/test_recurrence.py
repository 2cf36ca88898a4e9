"""Recurring due-date projection."""
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from advisor_desk.db.enums import OccurrenceStatus
from advisor_desk.services import recurrence_service
from advisor_desk.utils.dates import add_months, normalized_date


def _schedule(frequency, due_dates, amount="1000.00", amounts=None, payment_status=None):
    return SimpleNamespace(
        frequency=frequency,
        due_dates=due_dates,
        amount=Decimal(amount),
        amounts=amounts,
        payment_status=payment_status or {},
    )


def _project(schedule, month, year):
    return list(recurrence_service.project_due_dates(schedule, month, year))


# =============================================================================
# Calendar arithmetic
# =============================================================================

def test_normalized_date_rolls_overflow_forward():
    assert normalized_date(2023, 2, 29) == date(2023, 3, 1)
    assert normalized_date(2024, 4, 31) == date(2024, 5, 1)
    assert normalized_date(2024, 13, 5) == date(2025, 1, 5)


def test_add_months_rolls_from_month_end():
    assert add_months(date(2024, 1, 31), 3) == date(2024, 5, 1)
    assert add_months(date(2024, 11, 30), 3) == date(2025, 3, 2)
    assert add_months(date(2024, 1, 15), 6) == date(2024, 7, 15)


# =============================================================================
# Frequencies
# =============================================================================

def test_quarterly_lands_in_matching_month():
    schedule = _schedule("quarterly", ["2024-01-15"])

    assert _project(schedule, 4, 2024) == [date(2024, 4, 15)]
    assert _project(schedule, 1, 2024) == [date(2024, 1, 15)]
    assert _project(schedule, 1, 2025) == [date(2025, 1, 15)]


def test_quarterly_skips_months_between_steps():
    schedule = _schedule("quarterly", ["2024-01-15"])

    assert _project(schedule, 2, 2024) == []
    assert _project(schedule, 3, 2024) == []


def test_quarterly_hits_four_months_of_the_year_once_each():
    schedule = _schedule("quarterly", ["2024-01-15"])

    hits = [month for month in range(1, 13) for _ in _project(schedule, month, 2024)]

    assert hits == [1, 4, 7, 10]


def test_quarterly_never_projects_before_the_stored_date():
    schedule = _schedule("quarterly", ["2024-07-15"])

    assert _project(schedule, 4, 2024) == []
    assert _project(schedule, 1, 2024) == []


def test_quarterly_overflow_carries_into_later_steps():
    schedule = _schedule("quarterly", ["2024-01-31"])

    # Jan 31 -> May 1 -> Aug 1 -> Nov 1
    assert _project(schedule, 4, 2024) == []
    assert _project(schedule, 5, 2024) == [date(2024, 5, 1)]
    assert _project(schedule, 8, 2024) == [date(2024, 8, 1)]


def test_half_yearly_steps_six_months():
    schedule = _schedule("half-yearly", ["2024-03-10"])

    assert _project(schedule, 9, 2024) == [date(2024, 9, 10)]
    assert _project(schedule, 3, 2026) == [date(2026, 3, 10)]
    assert _project(schedule, 6, 2024) == []


def test_annual_repeats_from_stored_year():
    schedule = _schedule("annual", ["2022-06-20"])

    assert _project(schedule, 6, 2022) == [date(2022, 6, 20)]
    assert _project(schedule, 6, 2030) == [date(2030, 6, 20)]
    assert _project(schedule, 6, 2021) == []
    assert _project(schedule, 7, 2030) == []


def test_annual_leap_day_rolls_to_march_first():
    schedule = _schedule("annual", ["2024-02-29"])

    assert _project(schedule, 2, 2025) == [date(2025, 3, 1)]
    assert _project(schedule, 2, 2028) == [date(2028, 2, 29)]


def test_one_time_only_in_its_own_month():
    schedule = _schedule("one-time", ["2024-05-05"])

    assert _project(schedule, 5, 2024) == [date(2024, 5, 5)]
    assert _project(schedule, 5, 2025) == []


def test_each_stored_date_projects_independently():
    schedule = _schedule("quarterly", ["2024-01-10", "2024-02-20"])

    assert _project(schedule, 4, 2024) == [date(2024, 4, 10)]
    assert _project(schedule, 5, 2024) == [date(2024, 5, 20)]


def test_projection_reaches_far_future_years():
    due = date(2024, 1, 15)

    assert recurrence_service.project_single(due, "quarterly", 10, 2060) == date(2060, 10, 15)
    assert recurrence_service.project_single(due, "half-yearly", 7, 2045, horizon_years=0) == date(2045, 7, 15)


# =============================================================================
# Robustness
# =============================================================================

def test_malformed_dates_and_unknown_frequency_yield_nothing():
    assert _project(_schedule("quarterly", ["not-a-date", ""]), 1, 2024) == []
    assert _project(_schedule("weekly", ["2024-01-15"]), 1, 2024) == []
    assert _project(_schedule("quarterly", []), 1, 2024) == []


@pytest.mark.parametrize("month", [0, 13])
def test_month_outside_calendar_is_rejected(month):
    with pytest.raises(ValueError):
        recurrence_service.project_due_dates(_schedule("quarterly", ["2024-01-15"]), month, 2024)


def test_projection_is_restartable_and_follows_schedule_changes():
    schedule = _schedule("quarterly", ["2024-01-15"])
    projection = recurrence_service.project_due_dates(schedule, 4, 2024)

    assert list(projection) == [date(2024, 4, 15)]
    assert list(projection) == [date(2024, 4, 15)]

    schedule.due_dates = ["2024-02-15"]
    assert list(projection) == []


# =============================================================================
# Occurrences
# =============================================================================

def test_expand_occurrences_uses_per_date_amounts_and_status():
    schedule = _schedule(
        "quarterly",
        ["2024-01-15", "2024-04-15"],
        amounts=["500.00", "750.00"],
        payment_status={"2024-04-15": "paid"},
    )

    occurrences = recurrence_service.expand_occurrences(schedule)

    assert [o.key for o in occurrences] == ["2024-01-15", "2024-04-15"]
    assert [o.amount for o in occurrences] == [Decimal("500.00"), Decimal("750.00")]
    assert [o.status for o in occurrences] == [OccurrenceStatus.UNPAID, OccurrenceStatus.PAID]


def test_amount_for_index_falls_back_to_headline_amount():
    schedule = _schedule("annual", ["2024-01-15"], amount="1200.00")

    assert recurrence_service.amount_for_index(schedule, 0) == Decimal("1200.00")
    assert recurrence_service.amount_for_index(schedule, 5) == Decimal("1200.00")


def test_occurrences_in_month_reads_status_by_projected_date():
    schedule = _schedule(
        "annual",
        ["2024-03-01"],
        payment_status={"2024-03-01": "paid"},
    )

    this_year = recurrence_service.occurrences_in_month(schedule, 3, 2024)
    next_year = recurrence_service.occurrences_in_month(schedule, 3, 2025)

    assert this_year[0].status == OccurrenceStatus.PAID
    assert next_year[0].due_date == date(2025, 3, 1)
    assert next_year[0].status == OccurrenceStatus.UNPAID
