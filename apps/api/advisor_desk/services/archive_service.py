"""Archive service - moves meetings whose start time has passed into history.

A meeting is past when its start_date + start_time, read in the
organization's timezone, is strictly before now. Each move runs in its own
savepoint: the history row is inserted and flushed before the active row is
deleted, so a failed insert never loses the meeting. The unique index on
meeting_history.original_meeting_id makes a concurrent duplicate insert fail,
which is treated as "already archived".
"""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from advisor_desk.core.structured_logging import build_log_context
from advisor_desk.db.enums import ActivityAction
from advisor_desk.db.models import MeetingHistory, Organization, ScheduledMeeting
from advisor_desk.services import activity_service
from advisor_desk.utils.dates import combine_local, resolve_timezone, to_zone

logger = logging.getLogger(__name__)


def is_past(meeting: ScheduledMeeting, now: datetime, tz) -> bool:
    """True when the meeting's local start instant is strictly before now."""
    return combine_local(meeting.start_date, meeting.start_time, tz) < now


def _history_exists(db: Session, org_id: UUID, meeting_id: UUID) -> bool:
    return (
        db.execute(
            select(MeetingHistory.id).where(
                MeetingHistory.organization_id == org_id,
                MeetingHistory.original_meeting_id == meeting_id,
            )
        ).first()
        is not None
    )


def _history_from_meeting(meeting: ScheduledMeeting) -> MeetingHistory:
    return MeetingHistory(
        organization_id=meeting.organization_id,
        original_meeting_id=meeting.id,
        client_id=meeting.client_id,
        client_name=meeting.client_name or "",
        meeting_type=meeting.meeting_type,
        start_date=meeting.start_date,
        start_time=meeting.start_time,
        location=meeting.location,
        agenda=meeting.agenda,
        meeting_link=meeting.meeting_link,
        alert_type=meeting.alert_type,
        attachments=list(meeting.attachments or []),
        mom_files=[],
        created_by_id=meeting.created_by_id,
        created_by_name=meeting.created_by_name,
    )


def _discard_active_row(db: Session, org_id: UUID, meeting_id: UUID) -> None:
    """Remove a leftover active row for a meeting that is already in history."""
    try:
        with db.begin_nested():
            db.execute(
                delete(ScheduledMeeting).where(
                    ScheduledMeeting.organization_id == org_id,
                    ScheduledMeeting.id == meeting_id,
                )
            )
    except SQLAlchemyError:
        logger.exception(
            "Failed to remove archived meeting from schedule",
            extra=build_log_context(org_id=org_id, meeting_id=meeting_id),
        )


def _archive_one(db: Session, meeting: ScheduledMeeting, actor) -> bool:
    """Move one meeting to history. Returns True when a history row was created."""
    org_id = meeting.organization_id
    meeting_id = meeting.id

    if _history_exists(db, org_id, meeting_id):
        _discard_active_row(db, org_id, meeting_id)
        return False

    try:
        with db.begin_nested():
            history = _history_from_meeting(meeting)
            db.add(history)
            db.flush()
            db.delete(meeting)
            db.flush()
    except IntegrityError:
        if _history_exists(db, org_id, meeting_id):
            # Another archiver inserted the history row first
            logger.info(
                "Meeting already archived",
                extra=build_log_context(org_id=org_id, meeting_id=meeting_id),
            )
            _discard_active_row(db, org_id, meeting_id)
        else:
            logger.exception(
                "Failed to archive meeting; will retry on next run",
                extra=build_log_context(org_id=org_id, meeting_id=meeting_id),
            )
        return False
    except SQLAlchemyError:
        logger.exception(
            "Failed to archive meeting; will retry on next run",
            extra=build_log_context(org_id=org_id, meeting_id=meeting_id),
        )
        return False

    activity_service.log_activity(
        db,
        org_id=org_id,
        actor=actor,
        action=ActivityAction.ARCHIVE,
        table_name="scheduled_meetings",
        record_id=meeting_id,
        payload={
            "history_id": str(history.id),
            "client_name": history.client_name,
            "start_date": history.start_date.isoformat(),
            "start_time": history.start_time.strftime("%H:%M"),
        },
    )
    return True


def archive_past_meetings(
    db: Session,
    org_id: UUID,
    now: datetime | None = None,
    actor=None,
) -> int:
    """
    Archive every past meeting of an organization.

    Args:
        db: Database session
        org_id: Organization to sweep
        now: Reference instant (defaults to the current time; naive values
            are read in the organization's timezone)
        actor: UserSession that triggered the run, or None for the system

    Returns:
        Number of meetings moved to history. Meetings that were already
        archived are not counted.

    Raises:
        SQLAlchemyError: If the active meetings cannot be fetched
    """
    org = db.get(Organization, org_id)
    if org is None:
        logger.warning("Archive requested for unknown organization %s", org_id)
        return 0

    tz = resolve_timezone(org.timezone)
    local_now = to_zone(now, tz)

    candidates = (
        db.query(ScheduledMeeting)
        .filter(
            ScheduledMeeting.organization_id == org_id,
            ScheduledMeeting.start_date <= local_now.date(),
        )
        .order_by(ScheduledMeeting.start_date, ScheduledMeeting.start_time)
        .all()
    )

    archived = 0
    for meeting in candidates:
        if not is_past(meeting, local_now, tz):
            continue
        if _archive_one(db, meeting, actor):
            archived += 1

    db.commit()
    if archived:
        logger.info(
            "Archived %d past meetings",
            archived,
            extra=build_log_context(org_id=org_id),
        )
    return archived


def archive_quietly(db: Session, org_id: UUID, actor=None, now: datetime | None = None) -> int:
    """
    Opportunistic archive run used before listing meetings or history.

    Store failures are logged and never surface to the caller.
    """
    try:
        return archive_past_meetings(db, org_id, now=now, actor=actor)
    except SQLAlchemyError:
        db.rollback()
        logger.exception(
            "Opportunistic archive failed",
            extra=build_log_context(org_id=org_id),
        )
        return 0


def archive_all_organizations(db: Session, now: datetime | None = None) -> int:
    """Run the archiver for every organization. A failing organization is skipped."""
    org_ids = [row[0] for row in db.execute(select(Organization.id)).all()]
    total = 0
    for org_id in org_ids:
        try:
            total += archive_past_meetings(db, org_id, now=now)
        except SQLAlchemyError:
            db.rollback()
            logger.exception(
                "Archive sweep failed for organization",
                extra=build_log_context(org_id=org_id),
            )
    return total
