"""Activity log enums."""

from enum import Enum


class ActivityAction(str, Enum):
    """Action recorded in the activity log."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    ARCHIVE = "archive"


SYSTEM_ACTOR_NAME = "system"
