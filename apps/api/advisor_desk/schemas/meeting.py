"""Pydantic schemas for scheduled meetings and meeting history."""

from datetime import date, datetime, time
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from advisor_desk.db.enums import AlertType, MeetingType


class FileEntry(BaseModel):
    """Stored file metadata (attachment or minutes-of-meeting file)."""
    name: str
    path: str
    size: int
    uploaded_at: str


class MeetingCreate(BaseModel):
    client_id: UUID
    meeting_type: MeetingType
    start_date: date
    start_time: time
    location: str | None = Field(default=None, max_length=500)
    agenda: str | None = Field(default=None, max_length=5000)
    meeting_link: str | None = Field(default=None, max_length=1000)
    alert_type: AlertType = AlertType.NONE
    reminder_minutes: int | None = Field(default=None, ge=1, le=7 * 24 * 60)


class MeetingReschedule(BaseModel):
    start_date: date
    start_time: time


class MeetingRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    client_id: UUID
    client_name: str | None
    meeting_type: MeetingType
    start_date: date
    start_time: time
    location: str
    agenda: str | None
    meeting_link: str | None
    alert_type: AlertType
    reminder_minutes: int
    reminder_sent: bool
    attachments: list[FileEntry]
    created_by_name: str
    created_at: datetime


class HistoryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    original_meeting_id: UUID
    client_id: UUID | None
    client_name: str
    meeting_type: MeetingType
    start_date: date
    start_time: time
    location: str
    agenda: str | None
    meeting_link: str | None
    alert_type: AlertType
    attachments: list[FileEntry]
    mom_files: list[FileEntry]
    created_by_name: str
    archived_at: datetime


class ArchiveResult(BaseModel):
    archived: int


class SignedUrlResponse(BaseModel):
    url: str


class ReminderRead(BaseModel):
    meeting_id: UUID
    client_name: str | None
    meeting_type: MeetingType
    start_date: date
    start_time: time
    reminder_minutes: int
    remind_at: datetime
