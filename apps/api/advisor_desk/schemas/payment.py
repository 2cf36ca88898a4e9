"""Pydantic schemas for payment schedules and their occurrences."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from advisor_desk.db.enums import OccurrenceStatus, PaymentFrequency, PaymentMethod


class PaymentCreate(BaseModel):
    client_id: UUID
    amount: Decimal | None = Field(default=None, gt=0, max_digits=12, decimal_places=2)
    amounts: list[Decimal] | None = None
    due_dates: list[date] = Field(min_length=1)
    frequency: PaymentFrequency
    payment_method: PaymentMethod | None = None
    comments: str | None = Field(default=None, max_length=5000)


class PaymentUpdate(BaseModel):
    amount: Decimal | None = Field(default=None, gt=0, max_digits=12, decimal_places=2)
    amounts: list[Decimal] | None = None
    due_dates: list[date] | None = Field(default=None, min_length=1)
    frequency: PaymentFrequency | None = None
    payment_method: PaymentMethod | None = None
    comments: str | None = Field(default=None, max_length=5000)


class MarkPaidRequest(BaseModel):
    due_date: date
    payment_method: PaymentMethod | None = None


class PaymentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    client_id: UUID
    client_name: str | None
    amount: Decimal
    amounts: list[str] | None
    due_dates: list[str]
    frequency: PaymentFrequency
    payment_method: PaymentMethod | None
    payment_status: dict[str, OccurrenceStatus]
    comments: str | None
    created_by_name: str
    created_at: datetime
    updated_at: datetime


class OccurrenceRead(BaseModel):
    """One due date of a schedule, flattened for lists and calendars."""
    model_config = ConfigDict(from_attributes=True)

    payment_id: UUID
    client_id: UUID
    client_name: str | None
    due_date: date
    amount: Decimal
    status: OccurrenceStatus
    frequency: PaymentFrequency
    payment_method: PaymentMethod | None
    comments: str | None = None


class ProjectionRead(BaseModel):
    payment_id: UUID
    month: int
    year: int
    dates: list[date]
