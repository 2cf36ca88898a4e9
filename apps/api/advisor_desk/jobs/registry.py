"""Job handler registry."""

from __future__ import annotations

from typing import Awaitable, Callable, Mapping

from advisor_desk.db.enums import JobType
from advisor_desk.jobs.handlers import meetings, storage

JobHandler = Callable[[object, object], Awaitable[None]]

JOB_HANDLERS: Mapping[str, JobHandler] = {
    JobType.STORAGE_CLEANUP.value: storage.process_storage_cleanup,
    JobType.ARCHIVE_PAST_MEETINGS.value: meetings.process_archive_past_meetings,
    JobType.REMINDER_SWEEP.value: meetings.process_reminder_sweep,
}


def resolve_job_handler(job_type: str) -> JobHandler:
    handler = JOB_HANDLERS.get(job_type)
    if not handler:
        raise ValueError(f"Unknown job type: {job_type}")
    return handler
