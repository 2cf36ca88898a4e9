"""Integrations router - Google Calendar connection status."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from advisor_desk.core.deps import get_db, require_csrf_header, require_permission
from advisor_desk.core.policies import POLICIES
from advisor_desk.schemas.auth import UserSession
from advisor_desk.schemas.integration import ConnectionStatus
from advisor_desk.services import oauth_service

router = APIRouter()

manage_integrations = require_permission(POLICIES["integrations"].default)


@router.get("/google-calendar", response_model=ConnectionStatus)
def google_calendar_status(
    session: UserSession = Depends(manage_integrations),
    db: Session = Depends(get_db),
):
    """Whether the organization has an active connection. Tokens are never returned."""
    connection = oauth_service.get_active_connection(db, session.org_id)
    if connection is None:
        return ConnectionStatus(connected=False)
    return ConnectionStatus(
        connected=True,
        account_email=connection.account_email,
        token_expiry=connection.token_expiry,
        updated_at=connection.updated_at,
    )


@router.delete(
    "/google-calendar",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def disconnect_google_calendar(
    session: UserSession = Depends(manage_integrations),
    db: Session = Depends(get_db),
):
    if not oauth_service.disconnect(db, session):
        raise HTTPException(status_code=404, detail="No active connection")
