"""SQLAlchemy ORM models."""

from advisor_desk.db.models.audit import ActivityLog
from advisor_desk.db.models.auth import Organization, User
from advisor_desk.db.models.clients import Client, ClientNote
from advisor_desk.db.models.integrations import OAuthConnection
from advisor_desk.db.models.jobs import Job
from advisor_desk.db.models.meetings import MeetingHistory, ScheduledMeeting
from advisor_desk.db.models.payments import PaymentSchedule

__all__ = [
    "ActivityLog",
    "Client",
    "ClientNote",
    "Job",
    "MeetingHistory",
    "OAuthConnection",
    "Organization",
    "PaymentSchedule",
    "ScheduledMeeting",
    "User",
]
