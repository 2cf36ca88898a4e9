"""Integration enums."""

from enum import Enum


class IntegrationProvider(str, Enum):
    """External accounts an organization can connect."""

    GOOGLE_CALENDAR = "google_calendar"
