"""
Internal endpoints for scheduled operations and the OAuth callback handler.

Protected by X-Internal-Secret header.
Call from external cron or the integration service.
"""

from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from advisor_desk.core.config import settings
from advisor_desk.core.deps import get_db
from advisor_desk.schemas.integration import ConnectionStatus, TokenStoreRequest
from advisor_desk.schemas.meeting import ArchiveResult
from advisor_desk.services import archive_service, oauth_service, org_service, reminder_service


router = APIRouter(prefix="/internal", tags=["internal"])


def verify_internal_secret(x_internal_secret: str = Header(...)):
    """Verify the internal secret header."""
    expected = settings.INTERNAL_SECRET
    if not expected:
        raise HTTPException(status_code=501, detail="INTERNAL_SECRET not configured")
    if x_internal_secret != expected:
        raise HTTPException(status_code=403, detail="Invalid internal secret")


class ReminderSweepResponse(BaseModel):
    flagged: int


@router.post(
    "/scheduled/archive",
    response_model=ArchiveResult,
    dependencies=[Depends(verify_internal_secret)],
)
def archive_past_meetings(db: Session = Depends(get_db)):
    """Archive past meetings of every organization."""
    return ArchiveResult(archived=archive_service.archive_all_organizations(db))


@router.post(
    "/scheduled/reminders",
    response_model=ReminderSweepResponse,
    dependencies=[Depends(verify_internal_secret)],
)
def sweep_reminders(db: Session = Depends(get_db)):
    """Flag reminders whose time has arrived so the notifier can deliver them."""
    return ReminderSweepResponse(flagged=len(reminder_service.sweep_due_reminders(db)))


@router.post(
    "/integrations/google-calendar/tokens",
    response_model=ConnectionStatus,
    dependencies=[Depends(verify_internal_secret)],
)
def store_google_calendar_tokens(data: TokenStoreRequest, db: Session = Depends(get_db)):
    """Persist tokens obtained by the OAuth callback (encrypted at rest)."""
    if not org_service.get_org_by_id(db, data.org_id):
        raise HTTPException(status_code=404, detail="Organization not found")
    try:
        connection = oauth_service.store_connection(
            db,
            org_id=data.org_id,
            access_token=data.access_token,
            refresh_token=data.refresh_token,
            token_expiry=data.token_expiry,
            account_email=data.account_email,
            connected_by_user_id=data.connected_by_user_id,
        )
    except RuntimeError as e:
        raise HTTPException(status_code=501, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ConnectionStatus(
        connected=True,
        account_email=connection.account_email,
        token_expiry=connection.token_expiry,
        updated_at=connection.updated_at,
    )
