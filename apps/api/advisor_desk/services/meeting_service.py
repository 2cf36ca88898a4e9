"""Meeting service - the active schedule."""

import logging
from datetime import date, time
from typing import BinaryIO
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from advisor_desk.core.permissions import PermissionKey, ensure_permission
from advisor_desk.db.enums import (
    ActivityAction,
    AlertType,
    DEFAULT_REMINDER_MINUTES,
    MEETING_TYPE_LOCATIONS,
    MeetingType,
)
from advisor_desk.db.models import ScheduledMeeting
from advisor_desk.schemas.meeting import MeetingCreate
from advisor_desk.services import activity_service, attachment_service, client_service, storage_service

logger = logging.getLogger(__name__)


def get_meeting(db: Session, org_id: UUID, meeting_id: UUID) -> ScheduledMeeting | None:
    return (
        db.query(ScheduledMeeting)
        .filter(ScheduledMeeting.organization_id == org_id, ScheduledMeeting.id == meeting_id)
        .first()
    )


def list_meetings(
    db: Session,
    org_id: UUID,
    start: date | None = None,
    end: date | None = None,
    client_id: UUID | None = None,
) -> list[ScheduledMeeting]:
    """Active meetings ordered by date and time, optionally within [start, end]."""
    query = db.query(ScheduledMeeting).filter(ScheduledMeeting.organization_id == org_id)
    if start:
        query = query.filter(ScheduledMeeting.start_date >= start)
    if end:
        query = query.filter(ScheduledMeeting.start_date <= end)
    if client_id:
        query = query.filter(ScheduledMeeting.client_id == client_id)
    return query.order_by(ScheduledMeeting.start_date, ScheduledMeeting.start_time).all()


def _resolve_location(meeting_type: MeetingType, location: str | None) -> str:
    fixed = MEETING_TYPE_LOCATIONS.get(meeting_type)
    if fixed:
        return fixed
    clean = (location or "").strip()
    if not clean:
        raise ValueError("Location is required for face-to-face meetings")
    return clean


def create_meeting(db: Session, actor, data: MeetingCreate) -> ScheduledMeeting:
    """
    Schedule a meeting.

    Online and on-call meetings get a fixed location label; the meeting
    link is kept only for online meetings. Reminder minutes apply to
    remind alerts and default to 30.
    """
    ensure_permission(actor, PermissionKey.MEETINGS_EDIT)
    client = client_service.get_client(db, actor.org_id, data.client_id)
    if not client:
        raise ValueError("Client not found")

    reminder_minutes = DEFAULT_REMINDER_MINUTES
    if data.alert_type == AlertType.REMIND and data.reminder_minutes:
        reminder_minutes = data.reminder_minutes

    link = (data.meeting_link or "").strip() or None
    meeting = ScheduledMeeting(
        organization_id=actor.org_id,
        client_id=client.id,
        meeting_type=data.meeting_type.value,
        start_date=data.start_date,
        start_time=data.start_time.replace(tzinfo=None),
        location=_resolve_location(data.meeting_type, data.location),
        agenda=(data.agenda or "").strip() or None,
        meeting_link=link if data.meeting_type == MeetingType.ONLINE else None,
        alert_type=data.alert_type.value,
        reminder_minutes=reminder_minutes,
        reminder_sent=False,
        attachments=[],
        created_by_id=actor.user_id,
        created_by_name=actor.full_name,
    )
    db.add(meeting)
    db.flush()
    activity_service.log_activity(
        db,
        org_id=actor.org_id,
        actor=actor,
        action=ActivityAction.CREATE,
        table_name="scheduled_meetings",
        record_id=meeting.id,
        payload={
            "client_name": client.name,
            "start_date": meeting.start_date.isoformat(),
            "start_time": meeting.start_time.strftime("%H:%M"),
            "meeting_type": meeting.meeting_type,
        },
    )
    db.commit()
    db.refresh(meeting)
    return meeting


def reschedule_meeting(
    db: Session,
    actor,
    meeting: ScheduledMeeting,
    start_date: date,
    start_time: time,
) -> ScheduledMeeting:
    """Move a meeting to a new date/time and re-arm its reminder."""
    ensure_permission(actor, PermissionKey.MEETINGS_EDIT)
    previous = {
        "start_date": meeting.start_date.isoformat(),
        "start_time": meeting.start_time.strftime("%H:%M"),
    }
    meeting.start_date = start_date
    meeting.start_time = start_time.replace(tzinfo=None)
    meeting.reminder_sent = False
    activity_service.log_activity(
        db,
        org_id=actor.org_id,
        actor=actor,
        action=ActivityAction.UPDATE,
        table_name="scheduled_meetings",
        record_id=meeting.id,
        payload={
            "previous": previous,
            "start_date": start_date.isoformat(),
            "start_time": meeting.start_time.strftime("%H:%M"),
        },
    )
    db.commit()
    db.refresh(meeting)
    return meeting


def delete_meeting(db: Session, actor, meeting: ScheduledMeeting) -> None:
    """Delete an active meeting and its attachment blobs."""
    ensure_permission(actor, PermissionKey.MEETINGS_DELETE)
    org_id = meeting.organization_id
    paths = [entry.get("path") for entry in meeting.attachments or [] if entry.get("path")]

    activity_service.log_activity(
        db,
        org_id=org_id,
        actor=actor,
        action=ActivityAction.DELETE,
        table_name="scheduled_meetings",
        record_id=meeting.id,
        payload={
            "client_name": meeting.client_name,
            "start_date": meeting.start_date.isoformat(),
        },
    )
    db.delete(meeting)
    db.commit()

    for path in paths:
        attachment_service.discard_blob(db, org_id, path)


def add_attachment(
    db: Session,
    actor,
    meeting: ScheduledMeeting,
    filename: str,
    content_type: str | None,
    file: BinaryIO,
    file_size: int,
) -> ScheduledMeeting:
    """
    Upload a file and record it on the meeting.

    Raises:
        ValueError: File failed validation
        StorageError: Upload failed (nothing recorded)
        SQLAlchemyError: Metadata commit failed (blob removed or queued for cleanup)
    """
    ensure_permission(actor, PermissionKey.MEETINGS_EDIT)
    org_id = meeting.organization_id
    meeting_id = meeting.id
    entry = attachment_service.upload(
        org_id,
        meeting_id,
        storage_service.ATTACHMENTS_PREFIX,
        filename,
        content_type,
        file,
        file_size,
    )

    try:
        meeting.attachments = [*(meeting.attachments or []), entry]
        activity_service.log_activity(
            db,
            org_id=org_id,
            actor=actor,
            action=ActivityAction.UPDATE,
            table_name="scheduled_meetings",
            record_id=meeting_id,
            payload={"attachment_added": entry["name"]},
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Attachment metadata save failed; removing uploaded blob")
        attachment_service.discard_blob(db, org_id, entry["path"])
        raise

    db.refresh(meeting)
    return meeting


def attachment_url(meeting: ScheduledMeeting, storage_key: str) -> str | None:
    """Signed URL for one of the meeting's attachments, or None when not attached."""
    if not attachment_service.find_entry(meeting.attachments, storage_key):
        return None
    return storage_service.signed_url(storage_key)
