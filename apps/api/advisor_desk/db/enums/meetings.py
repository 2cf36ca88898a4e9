"""Meeting and history enums."""

from enum import Enum


class MeetingType(str, Enum):
    """How a meeting takes place."""

    ONLINE = "online"
    FACE_TO_FACE = "face_to_face"
    ON_CALL = "on_call"


class AlertType(str, Enum):
    """
    Alert behaviour before a meeting.

    Only REMIND meetings take part in the reminder sweep.
    """

    NONE = "none"
    NOTIFY = "notify"
    REMIND = "remind"


class HistoryPeriod(str, Enum):
    """Date-range presets for the history list."""

    ALL = "all"
    THIS_WEEK = "this_week"
    THIS_MONTH = "this_month"


# Fixed locations for meeting types that have no physical venue
MEETING_TYPE_LOCATIONS = {
    MeetingType.ONLINE: "Online",
    MeetingType.ON_CALL: "On Call",
}

DEFAULT_REMINDER_MINUTES = 30
