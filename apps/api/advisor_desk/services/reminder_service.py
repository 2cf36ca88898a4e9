"""Reminder service - meetings whose reminder time is near or has arrived.

A meeting with alert_type "remind" should be announced reminder_minutes
before its start. Delivery (email, push) is done by an external notifier;
this service only selects the meetings and flags them as sent.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy.orm import Session

from advisor_desk.core.config import settings
from advisor_desk.db.enums import AlertType
from advisor_desk.db.models import Organization, ScheduledMeeting
from advisor_desk.utils.dates import combine_local, resolve_timezone, to_zone

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReminderNotice:
    meeting: ScheduledMeeting
    remind_at: datetime
    starts_at: datetime


def _notice(meeting: ScheduledMeeting, tz) -> ReminderNotice:
    starts_at = combine_local(meeting.start_date, meeting.start_time, tz)
    return ReminderNotice(
        meeting=meeting,
        remind_at=starts_at - timedelta(minutes=meeting.reminder_minutes),
        starts_at=starts_at,
    )


def _remind_meetings(db: Session, org_id: UUID, start_date, end_date, unsent_only: bool):
    query = db.query(ScheduledMeeting).filter(
        ScheduledMeeting.organization_id == org_id,
        ScheduledMeeting.alert_type == AlertType.REMIND.value,
        ScheduledMeeting.start_date >= start_date,
        ScheduledMeeting.start_date <= end_date,
    )
    if unsent_only:
        query = query.filter(ScheduledMeeting.reminder_sent.is_(False))
    return query.order_by(ScheduledMeeting.start_date, ScheduledMeeting.start_time).all()


def upcoming_reminders(
    db: Session,
    org_id: UUID,
    now: datetime | None = None,
    window: timedelta | None = None,
) -> list[ReminderNotice]:
    """Reminders due after now and within window (default REMINDER_WINDOW_HOURS)."""
    org = db.get(Organization, org_id)
    if org is None:
        return []
    tz = resolve_timezone(org.timezone)
    local_now = to_zone(now, tz)
    window = window or timedelta(hours=settings.REMINDER_WINDOW_HOURS)
    horizon = local_now + window

    notices = []
    # A reminder can precede its meeting by up to a week
    last_day = (horizon + timedelta(days=7)).date()
    for meeting in _remind_meetings(db, org_id, local_now.date(), last_day, unsent_only=False):
        notice = _notice(meeting, tz)
        if local_now < notice.remind_at <= horizon:
            notices.append(notice)
    return notices


def sweep_due_reminders(db: Session, now: datetime | None = None) -> list[ReminderNotice]:
    """
    Flag every reminder whose time has arrived but whose meeting has not started.

    Returns the flagged reminders for delivery. A reminder is flagged once;
    rescheduling a meeting re-arms it.
    """
    due: list[ReminderNotice] = []
    for org in db.query(Organization).all():
        tz = resolve_timezone(org.timezone)
        local_now = to_zone(now, tz)
        last_day = (local_now + timedelta(days=7)).date()
        for meeting in _remind_meetings(db, org.id, local_now.date(), last_day, unsent_only=True):
            notice = _notice(meeting, tz)
            if notice.remind_at <= local_now < notice.starts_at:
                meeting.reminder_sent = True
                due.append(notice)

    if due:
        db.commit()
        logger.info("Flagged %d meeting reminders", len(due))
    return due
