"""SQLAlchemy ORM models for the active schedule and meeting history."""

from __future__ import annotations

from typing import TYPE_CHECKING

import uuid
from datetime import date, datetime, time

from sqlalchemy import (
    Boolean,
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
    Uuid,
    false,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from advisor_desk.db.base import Base
from advisor_desk.db.enums import AlertType, DEFAULT_REMINDER_MINUTES
from advisor_desk.db.types import JsonDocument
from advisor_desk.utils.dates import utcnow

if TYPE_CHECKING:
    from advisor_desk.db.models import Client


class ScheduledMeeting(Base):
    """
    A meeting on the active schedule.

    start_date/start_time are wall-clock values in the organization's
    timezone. Once that instant passes the row is moved to
    MeetingHistory by the archiver.
    """

    __tablename__ = "scheduled_meetings"
    __table_args__ = (
        Index("idx_meetings_org_start", "organization_id", "start_date", "start_time"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    client_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("clients.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    meeting_type: Mapped[str] = mapped_column(String(20), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    location: Mapped[str] = mapped_column(String(500), nullable=False)
    agenda: Mapped[str | None] = mapped_column(Text, nullable=True)
    meeting_link: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    alert_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default=AlertType.NONE.value
    )
    reminder_minutes: Mapped[int] = mapped_column(
        Integer, nullable=False, default=DEFAULT_REMINDER_MINUTES
    )
    reminder_sent: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )

    # [{name, path, size, uploaded_at}]
    attachments: Mapped[list] = mapped_column(JsonDocument, nullable=False, default=list)

    created_by_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_by_name: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False
    )

    client: Mapped["Client"] = relationship(lazy="joined")

    @property
    def client_name(self) -> str | None:
        return self.client.name if self.client else None


class MeetingHistory(Base):
    """
    Immutable record of a meeting whose start time has passed.

    original_meeting_id is unique: a meeting is archived at most once.
    Only mom_files changes after creation.
    """

    __tablename__ = "meeting_history"
    __table_args__ = (
        Index("idx_history_org_start", "organization_id", "start_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    original_meeting_id: Mapped[uuid.UUID] = mapped_column(Uuid, unique=True, nullable=False)
    client_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("clients.id", ondelete="SET NULL"), nullable=True
    )
    client_name: Mapped[str] = mapped_column(String(255), nullable=False)
    meeting_type: Mapped[str] = mapped_column(String(20), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    location: Mapped[str] = mapped_column(String(500), nullable=False)
    agenda: Mapped[str | None] = mapped_column(Text, nullable=True)
    meeting_link: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    alert_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default=AlertType.NONE.value
    )

    attachments: Mapped[list] = mapped_column(JsonDocument, nullable=False, default=list)
    mom_files: Mapped[list] = mapped_column(JsonDocument, nullable=False, default=list)

    created_by_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_by_name: Mapped[str] = mapped_column(String(255), nullable=False)
    archived_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )
