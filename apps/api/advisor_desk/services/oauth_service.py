"""OAuth connection store - Google Calendar tokens encrypted at rest.

The authorization-code exchange and token refresh live outside this
service; it only persists the resulting tokens and reports status.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from advisor_desk.core.encryption import is_encryption_configured
from advisor_desk.core.permissions import PermissionKey, ensure_permission
from advisor_desk.db.enums import ActivityAction, IntegrationProvider
from advisor_desk.db.models import OAuthConnection
from advisor_desk.services import activity_service


def get_active_connection(
    db: Session,
    org_id: UUID,
    provider: IntegrationProvider = IntegrationProvider.GOOGLE_CALENDAR,
) -> OAuthConnection | None:
    return (
        db.query(OAuthConnection)
        .filter(
            OAuthConnection.organization_id == org_id,
            OAuthConnection.provider == provider.value,
            OAuthConnection.is_active.is_(True),
        )
        .first()
    )


def store_connection(
    db: Session,
    org_id: UUID,
    access_token: str,
    refresh_token: str | None = None,
    token_expiry: datetime | None = None,
    account_email: str | None = None,
    connected_by_user_id: UUID | None = None,
    provider: IntegrationProvider = IntegrationProvider.GOOGLE_CALENDAR,
) -> OAuthConnection:
    """
    Save tokens for an organization, replacing the active connection's tokens.

    A missing refresh_token keeps the stored one (providers only send it on
    first consent).

    Raises:
        RuntimeError: FERNET_KEY not configured
        ValueError: Empty access token
    """
    if not is_encryption_configured():
        raise RuntimeError("FERNET_KEY not configured; refusing to store tokens")
    if not access_token:
        raise ValueError("access_token is required")

    connection = get_active_connection(db, org_id, provider)
    if connection is None:
        connection = OAuthConnection(
            organization_id=org_id,
            provider=provider.value,
            is_active=True,
        )
        db.add(connection)

    connection.access_token = access_token
    if refresh_token:
        connection.refresh_token = refresh_token
    connection.token_expiry = token_expiry
    if account_email:
        connection.account_email = account_email.strip().lower()
    if connected_by_user_id:
        connection.connected_by_user_id = connected_by_user_id
    db.flush()

    activity_service.log_activity(
        db,
        org_id=org_id,
        actor=None,
        action=ActivityAction.UPDATE,
        table_name="oauth_connections",
        record_id=connection.id,
        payload={"provider": provider.value, "account_email": connection.account_email},
    )
    db.commit()
    db.refresh(connection)
    return connection


def disconnect(
    db: Session,
    actor,
    provider: IntegrationProvider = IntegrationProvider.GOOGLE_CALENDAR,
) -> bool:
    """Deactivate the connection and wipe its tokens. Returns False when none was active."""
    ensure_permission(actor, PermissionKey.INTEGRATIONS_MANAGE)
    connection = get_active_connection(db, actor.org_id, provider)
    if connection is None:
        return False

    connection.is_active = False
    connection.access_token = ""
    connection.refresh_token = None
    activity_service.log_activity(
        db,
        org_id=actor.org_id,
        actor=actor,
        action=ActivityAction.DELETE,
        table_name="oauth_connections",
        record_id=connection.id,
        payload={"provider": provider.value},
    )
    db.commit()
    return True
