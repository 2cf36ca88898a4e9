"""History router - archived meetings and minutes-of-meeting files."""

from io import BytesIO
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from advisor_desk.core.deps import get_db, require_csrf_header, require_permission
from advisor_desk.core.policies import POLICIES
from advisor_desk.db.enums import HistoryPeriod, MeetingType
from advisor_desk.schemas.auth import UserSession
from advisor_desk.schemas.meeting import ArchiveResult, HistoryRead, SignedUrlResponse
from advisor_desk.services import archive_service, history_service
from advisor_desk.services.storage_service import StorageError
from advisor_desk.utils.dates import resolve_timezone, to_zone

router = APIRouter()

policy = POLICIES["history"]


def _get_history_or_404(db: Session, session: UserSession, history_id: UUID):
    history = history_service.get_history(db, session.org_id, history_id)
    if not history:
        raise HTTPException(status_code=404, detail="History entry not found")
    return history


@router.get("/history", response_model=list[HistoryRead])
def list_history(
    q: str | None = Query(None, max_length=100),
    period: HistoryPeriod = Query(HistoryPeriod.ALL),
    meeting_type: MeetingType | None = Query(None),
    session: UserSession = Depends(require_permission(policy.default)),
    db: Session = Depends(get_db),
):
    """
    List archived meetings, most recent first.

    Runs the archiver first so meetings that just ended are included.
    """
    archive_service.archive_quietly(db, session.org_id)
    today = to_zone(None, resolve_timezone(session.org_timezone)).date()
    return history_service.list_history(
        db,
        session.org_id,
        search=q,
        period=period,
        meeting_type=meeting_type,
        today=today,
    )


@router.post(
    "/history/sync",
    response_model=ArchiveResult,
    dependencies=[Depends(require_csrf_header)],
)
def sync_history(
    session: UserSession = Depends(require_permission(policy.default)),
    db: Session = Depends(get_db),
):
    """Archive past meetings now and report how many moved."""
    return ArchiveResult(archived=archive_service.archive_past_meetings(db, session.org_id, actor=session))


@router.get("/history/{history_id}", response_model=HistoryRead)
def get_history(
    history_id: UUID,
    session: UserSession = Depends(require_permission(policy.default)),
    db: Session = Depends(get_db),
):
    return _get_history_or_404(db, session, history_id)


@router.post(
    "/history/{history_id}/mom-files",
    response_model=HistoryRead,
    dependencies=[Depends(require_csrf_header)],
)
async def upload_mom_file(
    history_id: UUID,
    file: Annotated[UploadFile, File()],
    session: UserSession = Depends(require_permission(policy.actions["upload"])),
    db: Session = Depends(get_db),
):
    """Attach a minutes-of-meeting file to an archived meeting."""
    history = _get_history_or_404(db, session, history_id)

    content = await file.read()
    try:
        return history_service.add_mom_file(
            db,
            session,
            history,
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
        raise HTTPException(status_code=500, detail="Could not save file")


@router.delete(
    "/history/{history_id}/mom-files",
    response_model=HistoryRead,
    dependencies=[Depends(require_csrf_header)],
)
def delete_mom_file(
    history_id: UUID,
    path: str = Query(..., min_length=1),
    session: UserSession = Depends(require_permission(policy.actions["delete_files"])),
    db: Session = Depends(get_db),
):
    """
    Remove a minutes-of-meeting file.

    Requires: manager
    """
    history = _get_history_or_404(db, session, history_id)
    try:
        return history_service.remove_mom_file(db, session, history, path)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/history/{history_id}/files/url", response_model=SignedUrlResponse)
def file_url(
    history_id: UUID,
    path: str = Query(..., min_length=1),
    session: UserSession = Depends(require_permission(policy.default)),
    db: Session = Depends(get_db),
):
    history = _get_history_or_404(db, session, history_id)
    try:
        url = history_service.file_url(history, path)
    except StorageError as e:
        raise HTTPException(status_code=502, detail=str(e))
    if not url:
        raise HTTPException(status_code=404, detail="File not found")
    return SignedUrlResponse(url=url)
