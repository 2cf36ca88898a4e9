"""Meeting sweep job handlers."""

from __future__ import annotations

import logging
from uuid import UUID

from advisor_desk.services import archive_service, reminder_service

logger = logging.getLogger(__name__)


async def process_archive_past_meetings(db, job) -> None:
    """Archive past meetings for one organization, or all when the job has none."""
    if job.organization_id:
        archived = archive_service.archive_past_meetings(db, UUID(str(job.organization_id)))
    else:
        archived = archive_service.archive_all_organizations(db)
    logger.info("Archive job %s moved %d meetings", job.id, archived)


async def process_reminder_sweep(db, job) -> None:
    """Flag reminders whose time has arrived."""
    notices = reminder_service.sweep_due_reminders(db)
    for notice in notices:
        logger.info(
            "Reminder due for meeting %s at %s",
            notice.meeting.id,
            notice.starts_at.isoformat(),
        )
