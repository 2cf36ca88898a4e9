"""Pydantic schemas for integrations. Tokens are never returned."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class ConnectionStatus(BaseModel):
    connected: bool
    account_email: str | None = None
    token_expiry: datetime | None = None
    updated_at: datetime | None = None


class TokenStoreRequest(BaseModel):
    """Payload posted by the OAuth callback handler after the code exchange."""
    org_id: UUID
    access_token: str = Field(min_length=1)
    refresh_token: str | None = None
    token_expiry: datetime | None = None
    account_email: str | None = None
    connected_by_user_id: UUID | None = None
