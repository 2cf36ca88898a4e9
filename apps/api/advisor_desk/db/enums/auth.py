"""Auth-related enums."""

from enum import Enum


class Role(str, Enum):
    """
    Staff roles with increasing privilege levels.

    - ASSOCIATE_VIEWER: Read-only access to schedules, history and payments
    - ASSOCIATE_EDITOR: Creates and edits records, uploads files, imports clients
    - MANAGER: Everything, including deletes, user admin and the activity log
    """

    ASSOCIATE_VIEWER = "associate_viewer"
    ASSOCIATE_EDITOR = "associate_editor"
    MANAGER = "manager"

    @classmethod
    def has_value(cls, value: str) -> bool:
        """Check if value is a valid role."""
        return value in cls._value2member_map_
