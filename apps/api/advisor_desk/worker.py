"""
Background worker for processing scheduled jobs.

Usage:
    advisor-desk-worker

The worker polls for pending jobs and processes them. Every
ARCHIVE_INTERVAL_SECONDS it also queues an archive sweep and a reminder
sweep so past meetings move to history without a user opening a page.
"""

import asyncio
import logging
import os
import time

from advisor_desk.core.config import settings
from advisor_desk.core.structured_logging import build_log_context
from advisor_desk.db.enums import JobType
from advisor_desk.db.session import SessionLocal
from advisor_desk.jobs.registry import resolve_job_handler
from advisor_desk.services import job_service

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

# Worker configuration
POLL_INTERVAL_SECONDS = int(os.getenv("WORKER_POLL_INTERVAL", "10"))
BATCH_SIZE = int(os.getenv("WORKER_BATCH_SIZE", "10"))

SWEEP_JOB_TYPES = (JobType.ARCHIVE_PAST_MEETINGS, JobType.REMINDER_SWEEP)


async def process_job(db, job) -> None:
    """Process a single job based on its type."""
    logger.info(
        "Processing job %s (type=%s, attempt=%s)", job.id, job.job_type, job.attempts
    )
    handler = resolve_job_handler(job.job_type)
    await handler(db, job)


def schedule_sweeps(db) -> None:
    """Queue the periodic archive and reminder sweeps."""
    for job_type in SWEEP_JOB_TYPES:
        job_service.schedule_job(db, org_id=None, job_type=job_type, payload={})


async def run_pending_jobs(db) -> int:
    """Run one batch of due jobs. Returns how many were attempted."""
    jobs = job_service.get_pending_jobs(db, limit=BATCH_SIZE)
    if jobs:
        logger.info("Found %d pending jobs", len(jobs))

    for job in jobs:
        try:
            job_service.mark_job_running(db, job)
            await process_job(db, job)
            job_service.mark_job_completed(db, job)
            logger.info("Job %s completed successfully", job.id)
        except Exception as e:
            db.rollback()
            job_service.mark_job_failed(db, job, str(e))
            logger.error(
                "Job %s failed: %s",
                job.id,
                type(e).__name__,
                extra=build_log_context(org_id=job.organization_id, job_id=job.id),
            )
    return len(jobs)


async def worker_loop() -> None:
    """Main worker loop - polls for and processes pending jobs."""
    logger.info(
        "Worker starting (poll interval: %ss, batch size: %s, sweep interval: %ss)",
        POLL_INTERVAL_SECONDS,
        BATCH_SIZE,
        settings.ARCHIVE_INTERVAL_SECONDS,
    )

    last_sweep = 0.0
    while True:
        with SessionLocal() as db:
            try:
                if time.monotonic() - last_sweep >= settings.ARCHIVE_INTERVAL_SECONDS:
                    schedule_sweeps(db)
                    last_sweep = time.monotonic()
                await run_pending_jobs(db)
            except Exception as e:
                logger.error("Error in worker loop: %s", e)

        await asyncio.sleep(POLL_INTERVAL_SECONDS)


def main() -> None:
    """Entry point for the worker."""
    try:
        asyncio.run(worker_loop())
    except KeyboardInterrupt:
        logger.info("Worker shutting down")
    except Exception:
        logger.exception(
            "Worker crashed",
            extra=build_log_context(route="worker", method="background"),
        )
        raise


if __name__ == "__main__":
    main()
