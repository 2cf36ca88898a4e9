"""Pydantic schemas for the activity log."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from advisor_desk.db.enums import ActivityAction


class ActivityRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID | None
    username: str
    action_type: ActivityAction
    table_name: str
    record_id: str | None
    payload: dict[str, Any] | None
    created_at: datetime


class ActivityPage(BaseModel):
    items: list[ActivityRead]
    total: int
    page: int
    per_page: int
    pages: int
    usernames: list[str]
