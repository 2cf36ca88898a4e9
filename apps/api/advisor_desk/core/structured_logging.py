"""Log context for `extra=`.

Only identifiers are accepted. Client names, usernames, emails and note
text never reach the log pipeline.
"""

from typing import Any
from uuid import UUID

LOG_CONTEXT_KEYS = frozenset(
    {"org_id", "user_id", "meeting_id", "job_id", "storage_key", "route", "method"}
)


def build_log_context(**fields: Any) -> dict[str, Any]:
    """
    Return an `extra=` dict of the non-empty identifiers in fields.

    Raises:
        ValueError: A field outside LOG_CONTEXT_KEYS was passed
    """
    unknown = set(fields) - LOG_CONTEXT_KEYS
    if unknown:
        raise ValueError(f"Unsupported log context fields: {', '.join(sorted(unknown))}")
    return {
        key: str(value) if isinstance(value, UUID) else value
        for key, value in fields.items()
        if value is not None and value != ""
    }
