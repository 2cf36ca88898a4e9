"""Activity logging service - append-only record of every mutation."""

import csv
import io
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from advisor_desk.db.enums import ActivityAction, SYSTEM_ACTOR_NAME
from advisor_desk.db.models import ActivityLog
from advisor_desk.utils.dates import resolve_timezone

CSV_HEADERS = ["Date", "Time", "User", "Action", "Table", "Record ID"]
CSV_DANGEROUS_PREFIXES = ("=", "+", "-", "@")


def log_activity(
    db: Session,
    org_id: UUID,
    actor,
    action: ActivityAction,
    table_name: str,
    record_id: UUID | str | None = None,
    payload: dict[str, Any] | None = None,
) -> ActivityLog:
    """
    Append an activity entry.

    Args:
        db: Database session
        org_id: Organization context
        actor: UserSession of the acting user, or None for the system
        action: What happened (create/update/delete/archive)
        table_name: Table the record lives in
        record_id: Affected record
        payload: JSON-safe details of the change

    Returns:
        The created entry (flushed, not committed)
    """
    entry = ActivityLog(
        organization_id=org_id,
        user_id=actor.user_id if actor else None,
        username=actor.username if actor else SYSTEM_ACTOR_NAME,
        action_type=action.value,
        table_name=table_name,
        record_id=str(record_id) if record_id is not None else None,
        payload=payload,
    )
    db.add(entry)
    db.flush()  # Don't commit - let caller control transaction
    return entry


def _filtered_query(
    db: Session,
    org_id: UUID,
    action: ActivityAction | None = None,
    username: str | None = None,
):
    query = db.query(ActivityLog).filter(ActivityLog.organization_id == org_id)
    if action:
        query = query.filter(ActivityLog.action_type == action.value)
    if username:
        query = query.filter(func.lower(ActivityLog.username) == username.strip().lower())
    return query


def list_activity(
    db: Session,
    org_id: UUID,
    action: ActivityAction | None = None,
    username: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[ActivityLog], int]:
    """List activity newest first. Returns (entries, total)."""
    query = _filtered_query(db, org_id, action, username)
    total = query.count()
    entries = (
        query.order_by(ActivityLog.created_at.desc(), ActivityLog.id)
        .offset(offset)
        .limit(limit)
        .all()
    )
    return entries, total


def list_usernames(db: Session, org_id: UUID) -> list[str]:
    """Distinct actor names seen in the log (for the user filter)."""
    rows = (
        db.query(ActivityLog.username)
        .filter(ActivityLog.organization_id == org_id)
        .distinct()
        .order_by(ActivityLog.username)
        .all()
    )
    return [row[0] for row in rows]


def _csv_safe(value: str) -> str:
    if value and value.startswith(CSV_DANGEROUS_PREFIXES):
        return f"'{value}"
    return value


def _local(value: datetime, tz) -> datetime:
    if value.tzinfo is None:
        # SQLite returns naive UTC
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(tz)


def export_activity_csv(
    db: Session,
    org_id: UUID,
    timezone_name: str | None = None,
    action: ActivityAction | None = None,
    username: str | None = None,
) -> str:
    """Render the filtered log as CSV with Date and Time in the org timezone."""
    tz = resolve_timezone(timezone_name)
    entries = (
        _filtered_query(db, org_id, action, username)
        .order_by(ActivityLog.created_at.desc(), ActivityLog.id)
        .all()
    )

    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(CSV_HEADERS)
    for entry in entries:
        local = _local(entry.created_at, tz)
        writer.writerow(
            [
                local.strftime("%Y-%m-%d"),
                local.strftime("%H:%M:%S"),
                _csv_safe(entry.username),
                entry.action_type,
                entry.table_name,
                entry.record_id or "",
            ]
        )
    return output.getvalue()
