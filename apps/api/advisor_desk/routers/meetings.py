"""Meetings router - the active schedule, attachments and reminders."""

from datetime import date, timedelta
from io import BytesIO
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from advisor_desk.core.deps import get_db, require_csrf_header, require_permission
from advisor_desk.core.policies import POLICIES
from advisor_desk.schemas.auth import UserSession
from advisor_desk.schemas.meeting import (
    MeetingCreate,
    MeetingRead,
    MeetingReschedule,
    ReminderRead,
    SignedUrlResponse,
)
from advisor_desk.services import archive_service, meeting_service, reminder_service
from advisor_desk.services.storage_service import StorageError

router = APIRouter()

policy = POLICIES["meetings"]


def _get_meeting_or_404(db: Session, session: UserSession, meeting_id: UUID):
    meeting = meeting_service.get_meeting(db, session.org_id, meeting_id)
    if not meeting:
        raise HTTPException(status_code=404, detail="Meeting not found")
    return meeting


@router.get("/meetings", response_model=list[MeetingRead])
def list_meetings(
    start: date | None = Query(None),
    end: date | None = Query(None),
    client_id: UUID | None = Query(None),
    session: UserSession = Depends(require_permission(policy.default)),
    db: Session = Depends(get_db),
):
    """
    List active meetings by date and time.

    Past meetings are moved to history before the list is read.
    """
    archive_service.archive_quietly(db, session.org_id)
    return meeting_service.list_meetings(db, session.org_id, start=start, end=end, client_id=client_id)


@router.post(
    "/meetings",
    response_model=MeetingRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_meeting(
    data: MeetingCreate,
    session: UserSession = Depends(require_permission(policy.actions["edit"])),
    db: Session = Depends(get_db),
):
    try:
        return meeting_service.create_meeting(db, session, data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/meetings/reminders", response_model=list[ReminderRead])
def list_reminders(
    hours: int | None = Query(None, ge=1, le=24 * 7),
    session: UserSession = Depends(require_permission(policy.default)),
    db: Session = Depends(get_db),
):
    """Reminders that fall within the next `hours` (default REMINDER_WINDOW_HOURS)."""
    window = timedelta(hours=hours) if hours else None
    notices = reminder_service.upcoming_reminders(db, session.org_id, window=window)
    return [
        ReminderRead(
            meeting_id=n.meeting.id,
            client_name=n.meeting.client_name,
            meeting_type=n.meeting.meeting_type,
            start_date=n.meeting.start_date,
            start_time=n.meeting.start_time,
            reminder_minutes=n.meeting.reminder_minutes,
            remind_at=n.remind_at,
        )
        for n in notices
    ]


@router.get("/meetings/{meeting_id}", response_model=MeetingRead)
def get_meeting(
    meeting_id: UUID,
    session: UserSession = Depends(require_permission(policy.default)),
    db: Session = Depends(get_db),
):
    return _get_meeting_or_404(db, session, meeting_id)


@router.patch(
    "/meetings/{meeting_id}/reschedule",
    response_model=MeetingRead,
    dependencies=[Depends(require_csrf_header)],
)
def reschedule_meeting(
    meeting_id: UUID,
    data: MeetingReschedule,
    session: UserSession = Depends(require_permission(policy.actions["edit"])),
    db: Session = Depends(get_db),
):
    meeting = _get_meeting_or_404(db, session, meeting_id)
    return meeting_service.reschedule_meeting(db, session, meeting, data.start_date, data.start_time)


@router.delete(
    "/meetings/{meeting_id}",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def delete_meeting(
    meeting_id: UUID,
    session: UserSession = Depends(require_permission(policy.actions["delete"])),
    db: Session = Depends(get_db),
):
    meeting = _get_meeting_or_404(db, session, meeting_id)
    meeting_service.delete_meeting(db, session, meeting)


# =============================================================================
# Attachments
# =============================================================================

@router.post(
    "/meetings/{meeting_id}/attachments",
    response_model=MeetingRead,
    dependencies=[Depends(require_csrf_header)],
)
async def upload_attachment(
    meeting_id: UUID,
    file: Annotated[UploadFile, File()],
    session: UserSession = Depends(require_permission(policy.actions["edit"])),
    db: Session = Depends(get_db),
):
    """Upload a file and attach it to the meeting."""
    meeting = _get_meeting_or_404(db, session, meeting_id)

    content = await file.read()
    try:
        return meeting_service.add_attachment(
            db,
            session,
            meeting,
            filename=file.filename or "untitled",
            content_type=file.content_type or "application/octet-stream",
            file=BytesIO(content),
            file_size=len(content),
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StorageError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Could not save attachment")


@router.get("/meetings/{meeting_id}/attachments/url", response_model=SignedUrlResponse)
def attachment_url(
    meeting_id: UUID,
    path: str = Query(..., min_length=1),
    session: UserSession = Depends(require_permission(policy.default)),
    db: Session = Depends(get_db),
):
    """Short-lived download URL for one attachment."""
    meeting = _get_meeting_or_404(db, session, meeting_id)
    try:
        url = meeting_service.attachment_url(meeting, path)
    except StorageError as e:
        raise HTTPException(status_code=502, detail=str(e))
    if not url:
        raise HTTPException(status_code=404, detail="Attachment not found")
    return SignedUrlResponse(url=url)
