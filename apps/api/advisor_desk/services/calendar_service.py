"""Calendar service - meetings and projected payments for one month."""

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.orm import Session

from advisor_desk.db.models import ScheduledMeeting
from advisor_desk.services import meeting_service, payment_service
from advisor_desk.services.payment_service import OccurrenceRow
from advisor_desk.utils.dates import month_bounds


@dataclass
class MonthView:
    year: int
    month: int
    meetings: list[ScheduledMeeting]
    payments: list[OccurrenceRow]


def build_month(db: Session, org_id: UUID, month: int, year: int) -> MonthView:
    """Active meetings dated in the month plus every payment occurrence projected into it."""
    first, last = month_bounds(year, month)
    return MonthView(
        year=year,
        month=month,
        meetings=meeting_service.list_meetings(db, org_id, start=first, end=last),
        payments=payment_service.payments_for_month(db, org_id, month, year),
    )
