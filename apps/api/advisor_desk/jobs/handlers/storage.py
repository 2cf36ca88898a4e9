"""Storage job handlers."""

from __future__ import annotations

from advisor_desk.services import storage_service


async def process_storage_cleanup(db, job) -> None:
    """Delete a blob left behind by a failed metadata write or file removal."""
    storage_key = (job.payload or {}).get("storage_key")
    if not storage_key:
        raise ValueError("Missing storage_key in job payload")
    storage_service.delete_blob(storage_key)
