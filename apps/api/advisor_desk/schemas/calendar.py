"""Pydantic schemas for the month calendar view."""

from pydantic import BaseModel

from advisor_desk.schemas.meeting import MeetingRead
from advisor_desk.schemas.payment import OccurrenceRead


class CalendarMonth(BaseModel):
    year: int
    month: int
    meetings: list[MeetingRead]
    payments: list[OccurrenceRead]
