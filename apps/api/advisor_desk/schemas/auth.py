"""Authentication-related Pydantic schemas."""

from uuid import UUID

from pydantic import BaseModel, Field

from advisor_desk.db.enums import Role


class UserSession(BaseModel):
    """
    Full session context for authenticated requests.

    Built per request from the session cookie by get_current_session and
    passed explicitly into services for authorization and attribution.
    """
    user_id: UUID
    org_id: UUID
    role: Role  # Validated enum
    username: str
    full_name: str
    org_timezone: str = "Asia/Kolkata"


class LoginRequest(BaseModel):
    username: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=1, max_length=200)


class MeResponse(BaseModel):
    """Response schema for GET /auth/me endpoint."""
    user_id: UUID
    username: str
    full_name: str
    org_id: UUID
    org_name: str
    org_timezone: str
    role: Role
    permissions: list[str]
