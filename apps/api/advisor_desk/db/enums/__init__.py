"""Enum definitions for application constants."""

from advisor_desk.db.enums.audit import ActivityAction, SYSTEM_ACTOR_NAME
from advisor_desk.db.enums.auth import Role
from advisor_desk.db.enums.clients import ClientType
from advisor_desk.db.enums.integrations import IntegrationProvider
from advisor_desk.db.enums.jobs import DEFAULT_JOB_STATUS, JobStatus, JobType
from advisor_desk.db.enums.meetings import (
    AlertType,
    DEFAULT_REMINDER_MINUTES,
    HistoryPeriod,
    MEETING_TYPE_LOCATIONS,
    MeetingType,
)
from advisor_desk.db.enums.payments import (
    OccurrenceStatus,
    PER_DATE_AMOUNT_FREQUENCIES,
    PaymentFrequency,
    PaymentMethod,
    PaymentStatusFilter,
)

__all__ = [
    "ActivityAction",
    "AlertType",
    "ClientType",
    "DEFAULT_JOB_STATUS",
    "DEFAULT_REMINDER_MINUTES",
    "HistoryPeriod",
    "IntegrationProvider",
    "JobStatus",
    "JobType",
    "MEETING_TYPE_LOCATIONS",
    "MeetingType",
    "OccurrenceStatus",
    "PER_DATE_AMOUNT_FREQUENCIES",
    "PaymentFrequency",
    "PaymentMethod",
    "PaymentStatusFilter",
    "Role",
    "SYSTEM_ACTOR_NAME",
]
