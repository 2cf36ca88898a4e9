"""Pydantic schemas for clients and client notes."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from advisor_desk.db.enums import ClientType


class ClientCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    type: ClientType


class ClientUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    type: ClientType | None = None


class ClientRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    type: ClientType
    created_at: datetime
    updated_at: datetime


class ClientImportResult(BaseModel):
    """Outcome of a bulk import: counts plus one message per rejected row."""
    success: int
    failed: int
    errors: list[str]


class NoteCreate(BaseModel):
    content: str = Field(min_length=1, max_length=10000)


class NoteRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    client_id: UUID
    content: str
    created_by_id: UUID | None
    created_by_name: str
    created_at: datetime
