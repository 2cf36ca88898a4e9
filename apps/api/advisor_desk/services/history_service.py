"""History service - archived meetings and their minutes-of-meeting files.

History rows are immutable apart from mom_files, which starts empty and
is independent of the attachments copied over at archive time.
"""

import logging
from datetime import date
from typing import BinaryIO
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from advisor_desk.core.permissions import PermissionKey, ensure_permission
from advisor_desk.db.enums import ActivityAction, HistoryPeriod, MeetingType
from advisor_desk.db.models import MeetingHistory
from advisor_desk.services import activity_service, attachment_service, storage_service
from advisor_desk.utils.dates import month_bounds, week_bounds

logger = logging.getLogger(__name__)


def get_history(db: Session, org_id: UUID, history_id: UUID) -> MeetingHistory | None:
    return (
        db.query(MeetingHistory)
        .filter(MeetingHistory.organization_id == org_id, MeetingHistory.id == history_id)
        .first()
    )


def list_history(
    db: Session,
    org_id: UUID,
    search: str | None = None,
    period: HistoryPeriod = HistoryPeriod.ALL,
    meeting_type: MeetingType | None = None,
    today: date | None = None,
) -> list[MeetingHistory]:
    """
    List archived meetings, most recent first.

    search matches client name, agenda or location. this_week runs Sunday
    to Saturday around today; this_month covers today's calendar month.
    """
    query = db.query(MeetingHistory).filter(MeetingHistory.organization_id == org_id)

    if search and search.strip():
        pattern = f"%{search.strip()}%"
        query = query.filter(
            or_(
                MeetingHistory.client_name.ilike(pattern),
                MeetingHistory.agenda.ilike(pattern),
                MeetingHistory.location.ilike(pattern),
            )
        )

    if period != HistoryPeriod.ALL:
        today = today or date.today()
        if period == HistoryPeriod.THIS_WEEK:
            start, end = week_bounds(today)
        else:
            start, end = month_bounds(today.year, today.month)
        query = query.filter(MeetingHistory.start_date.between(start, end))

    if meeting_type:
        query = query.filter(MeetingHistory.meeting_type == meeting_type.value)

    return query.order_by(
        MeetingHistory.start_date.desc(), MeetingHistory.start_time.desc()
    ).all()


def add_mom_file(
    db: Session,
    actor,
    history: MeetingHistory,
    filename: str,
    content_type: str | None,
    file: BinaryIO,
    file_size: int,
) -> MeetingHistory:
    """Upload a minutes-of-meeting file and record it on the history row."""
    ensure_permission(actor, PermissionKey.HISTORY_UPLOAD)
    org_id = history.organization_id
    history_id = history.id
    entry = attachment_service.upload(
        org_id,
        history.original_meeting_id,
        storage_service.MOM_FILES_PREFIX,
        filename,
        content_type,
        file,
        file_size,
    )

    try:
        history.mom_files = [*(history.mom_files or []), entry]
        activity_service.log_activity(
            db,
            org_id=org_id,
            actor=actor,
            action=ActivityAction.UPDATE,
            table_name="meeting_history",
            record_id=history_id,
            payload={"mom_file_added": entry["name"]},
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("MOM metadata save failed; removing uploaded blob")
        attachment_service.discard_blob(db, org_id, entry["path"])
        raise

    db.refresh(history)
    return history


def remove_mom_file(db: Session, actor, history: MeetingHistory, storage_key: str) -> MeetingHistory:
    """
    Remove a minutes-of-meeting file.

    Metadata is cleared first; the blob is deleted after the commit (or
    queued for cleanup when the backend fails).

    Raises:
        LookupError: The file is not recorded on this history row
    """
    ensure_permission(actor, PermissionKey.HISTORY_DELETE_FILES)
    entry = attachment_service.find_entry(history.mom_files, storage_key)
    if entry is None:
        raise LookupError("File not found")

    org_id = history.organization_id
    history.mom_files = attachment_service.without_entry(history.mom_files, storage_key)
    activity_service.log_activity(
        db,
        org_id=org_id,
        actor=actor,
        action=ActivityAction.DELETE,
        table_name="meeting_history",
        record_id=history.id,
        payload={"mom_file_removed": entry.get("name")},
    )
    db.commit()

    attachment_service.discard_blob(db, org_id, storage_key)
    db.refresh(history)
    return history


def file_url(history: MeetingHistory, storage_key: str) -> str | None:
    """Signed URL for a MOM file or archived attachment of this history row."""
    if not (
        attachment_service.find_entry(history.mom_files, storage_key)
        or attachment_service.find_entry(history.attachments, storage_key)
    ):
        return None
    return storage_service.signed_url(storage_key)
