"""Job-related enums."""

from enum import Enum


class JobType(str, Enum):
    """Types of background jobs."""

    STORAGE_CLEANUP = "storage_cleanup"  # Delete an orphaned blob
    ARCHIVE_PAST_MEETINGS = "archive_past_meetings"
    REMINDER_SWEEP = "reminder_sweep"


class JobStatus(str, Enum):
    """Status of background jobs."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


DEFAULT_JOB_STATUS = JobStatus.PENDING
