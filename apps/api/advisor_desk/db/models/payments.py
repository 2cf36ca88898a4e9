"""SQLAlchemy ORM model for payment schedules."""

from __future__ import annotations

from typing import TYPE_CHECKING

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import ForeignKey, Index, Numeric, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from advisor_desk.db.base import Base
from advisor_desk.db.types import JsonDocument
from advisor_desk.utils.dates import utcnow

if TYPE_CHECKING:
    from advisor_desk.db.models import Client


class PaymentSchedule(Base):
    """
    A client's payment plan.

    due_dates holds ISO date strings; amounts, when present, has one
    decimal string per due date. payment_status maps a due date string
    to "paid"/"unpaid" and only ever holds keys listed in due_dates.
    """

    __tablename__ = "payment_schedules"
    __table_args__ = (
        Index("idx_payments_org_client", "organization_id", "client_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    client_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("clients.id", ondelete="RESTRICT"), nullable=False
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    amounts: Mapped[list | None] = mapped_column(JsonDocument, nullable=True)
    due_dates: Mapped[list] = mapped_column(JsonDocument, nullable=False, default=list)
    frequency: Mapped[str] = mapped_column(String(20), nullable=False)
    payment_method: Mapped[str | None] = mapped_column(String(20), nullable=True)
    payment_status: Mapped[dict] = mapped_column(JsonDocument, nullable=False, default=dict)
    comments: Mapped[str | None] = mapped_column(Text, nullable=True)

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
