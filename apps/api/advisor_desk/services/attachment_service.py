"""Attachment service - file metadata entries and blob compensation.

Meeting attachments and minutes-of-meeting files are stored as blobs plus a
metadata entry ({name, path, size, uploaded_at}) in a JSON list on the
owning row. Uploads happen before the metadata commit; when the commit
fails the blob is deleted again, and when that delete also fails a
storage_cleanup job is queued.
"""

import logging
from typing import BinaryIO
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from advisor_desk.core.structured_logging import build_log_context
from advisor_desk.db.enums import JobType
from advisor_desk.services import job_service, storage_service
from advisor_desk.services.storage_service import StorageError
from advisor_desk.utils.dates import utcnow

logger = logging.getLogger(__name__)


def upload(
    org_id: UUID,
    owner_id: UUID,
    prefix: str,
    filename: str,
    content_type: str | None,
    file: BinaryIO,
    file_size: int,
) -> dict:
    """
    Validate and store a file. Returns the metadata entry to record.

    Raises:
        ValueError: File failed validation
        StorageError: Backend upload failed
    """
    is_valid, error = storage_service.validate_file(filename, file_size)
    if not is_valid:
        raise ValueError(error)

    storage_key = storage_service.build_storage_key(prefix, org_id, owner_id, filename)
    storage_service.upload_blob(storage_key, file, content_type)
    return {
        "name": filename,
        "path": storage_key,
        "size": file_size,
        "uploaded_at": utcnow().isoformat(),
    }


def schedule_cleanup(db: Session, org_id: UUID | None, storage_key: str) -> None:
    """Queue deletion of an orphaned blob for the worker."""
    try:
        job_service.schedule_job(
            db,
            org_id=org_id,
            job_type=JobType.STORAGE_CLEANUP,
            payload={"storage_key": storage_key},
        )
    except SQLAlchemyError:
        db.rollback()
        logger.exception(
            "Could not queue storage cleanup; blob orphaned",
            extra=build_log_context(org_id=org_id, storage_key=storage_key),
        )


def discard_blob(db: Session, org_id: UUID | None, storage_key: str) -> None:
    """Delete a blob now, or queue it for the worker when the backend fails."""
    try:
        storage_service.delete_blob(storage_key)
    except StorageError:
        logger.warning(
            "Blob delete failed; scheduling cleanup",
            extra=build_log_context(org_id=org_id, storage_key=storage_key),
        )
        schedule_cleanup(db, org_id, storage_key)


def find_entry(entries: list | None, storage_key: str) -> dict | None:
    for entry in entries or []:
        if entry.get("path") == storage_key:
            return entry
    return None


def without_entry(entries: list | None, storage_key: str) -> list:
    return [entry for entry in entries or [] if entry.get("path") != storage_key]
