"""Client service - client records and bulk import."""

import csv
import io
import logging
from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from advisor_desk.core.errors import ConflictError
from advisor_desk.core.permissions import PermissionKey, ensure_permission
from advisor_desk.db.enums import ActivityAction, ClientType
from advisor_desk.db.models import Client, PaymentSchedule, ScheduledMeeting
from advisor_desk.services import activity_service
from advisor_desk.utils.normalization import normalize_client_type, normalize_header, normalize_name

logger = logging.getLogger(__name__)

NAME_HEADERS = {"name", "clientname"}
TYPE_HEADERS = {"clienttype", "type"}


@dataclass
class ImportResult:
    success: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)

    def reject(self, message: str) -> None:
        self.failed += 1
        self.errors.append(message)


def get_client(db: Session, org_id: UUID, client_id: UUID) -> Client | None:
    return (
        db.query(Client)
        .filter(Client.organization_id == org_id, Client.id == client_id)
        .first()
    )


def get_client_by_name(db: Session, org_id: UUID, name: str) -> Client | None:
    """Case-insensitive lookup by name."""
    return (
        db.query(Client)
        .filter(
            Client.organization_id == org_id,
            func.lower(Client.name) == normalize_name(name).lower(),
        )
        .first()
    )


def list_clients(
    db: Session,
    org_id: UUID,
    search: str | None = None,
    client_type: ClientType | None = None,
) -> list[Client]:
    """List clients alphabetically, optionally filtered by name substring and type."""
    query = db.query(Client).filter(Client.organization_id == org_id)
    if search:
        query = query.filter(Client.name.ilike(f"%{search.strip()}%"))
    if client_type:
        query = query.filter(Client.type == client_type.value)
    return query.order_by(Client.name).all()


def create_client(db: Session, actor, name: str, client_type: ClientType) -> Client:
    """
    Create a client.

    Raises:
        ValueError: Empty name
        ConflictError: A client with this name already exists
    """
    ensure_permission(actor, PermissionKey.CLIENTS_EDIT)
    clean_name = normalize_name(name)
    if not clean_name:
        raise ValueError("Client name is required")
    if get_client_by_name(db, actor.org_id, clean_name):
        raise ConflictError(f"Client '{clean_name}' already exists")

    client = Client(organization_id=actor.org_id, name=clean_name, type=client_type.value)
    db.add(client)
    db.flush()
    activity_service.log_activity(
        db,
        org_id=actor.org_id,
        actor=actor,
        action=ActivityAction.CREATE,
        table_name="clients",
        record_id=client.id,
        payload={"name": client.name, "type": client.type},
    )
    db.commit()
    db.refresh(client)
    return client


def update_client(
    db: Session,
    actor,
    client: Client,
    name: str | None = None,
    client_type: ClientType | None = None,
) -> Client:
    """Rename or retype a client. Meetings and payments follow by id."""
    ensure_permission(actor, PermissionKey.CLIENTS_EDIT)
    changes: dict[str, str] = {}

    if name is not None:
        clean_name = normalize_name(name)
        if not clean_name:
            raise ValueError("Client name is required")
        existing = get_client_by_name(db, actor.org_id, clean_name)
        if existing and existing.id != client.id:
            raise ConflictError(f"Client '{clean_name}' already exists")
        if clean_name != client.name:
            changes["name"] = clean_name
            client.name = clean_name

    if client_type is not None and client_type.value != client.type:
        changes["type"] = client_type.value
        client.type = client_type.value

    if changes:
        activity_service.log_activity(
            db,
            org_id=actor.org_id,
            actor=actor,
            action=ActivityAction.UPDATE,
            table_name="clients",
            record_id=client.id,
            payload=changes,
        )
        db.commit()
        db.refresh(client)
    return client


def delete_client(db: Session, actor, client: Client) -> None:
    """
    Delete a client and its notes.

    History keeps its client-name snapshot. Refused while active meetings
    or payment schedules still reference the client.
    """
    ensure_permission(actor, PermissionKey.CLIENTS_DELETE)
    meetings = (
        db.query(func.count(ScheduledMeeting.id))
        .filter(ScheduledMeeting.client_id == client.id)
        .scalar()
    )
    payments = (
        db.query(func.count(PaymentSchedule.id))
        .filter(PaymentSchedule.client_id == client.id)
        .scalar()
    )
    if meetings or payments:
        raise ConflictError(
            f"Client has {meetings} scheduled meeting(s) and {payments} payment schedule(s)"
        )

    activity_service.log_activity(
        db,
        org_id=actor.org_id,
        actor=actor,
        action=ActivityAction.DELETE,
        table_name="clients",
        record_id=client.id,
        payload={"name": client.name},
    )
    db.delete(client)
    db.commit()


# =============================================================================
# Bulk import
# =============================================================================

def _decode(content: bytes | str) -> str:
    if isinstance(content, str):
        return content
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        return content.decode("latin-1")


def import_clients_csv(db: Session, actor, content: bytes | str) -> ImportResult:
    """
    Import clients from CSV with "Name" and "Client Type" columns.

    Headers are matched case-insensitively ("clienttype" also accepted).
    Each row is inserted in its own savepoint; rejected rows are reported
    as "Row N: reason" with N counting the header as row 1.

    Raises:
        ValueError: The file has no usable header
    """
    ensure_permission(actor, PermissionKey.CLIENTS_IMPORT)
    reader = csv.DictReader(io.StringIO(_decode(content)))
    if not reader.fieldnames:
        raise ValueError("CSV file is empty")

    headers = {normalize_header(h): h for h in reader.fieldnames if h}
    name_col = next((headers[h] for h in NAME_HEADERS if h in headers), None)
    type_col = next((headers[h] for h in TYPE_HEADERS if h in headers), None)
    if not name_col or not type_col:
        raise ValueError("CSV must contain 'Name' and 'Client Type' columns")

    result = ImportResult()
    seen: set[str] = set()

    for row_number, row in enumerate(reader, start=2):
        name = normalize_name(row.get(name_col))
        raw_type = row.get(type_col)
        if not name and not (raw_type or "").strip():
            continue  # blank line
        if not name or not (raw_type or "").strip():
            result.reject(f"Row {row_number}: Missing name or client type")
            continue

        client_type = normalize_client_type(raw_type)
        if client_type is None:
            result.reject(f"Row {row_number}: Unknown client type '{raw_type.strip()}'")
            continue

        key = name.lower()
        if key in seen or get_client_by_name(db, actor.org_id, name):
            result.reject(f"Row {row_number}: Client '{name}' already exists")
            continue

        try:
            with db.begin_nested():
                client = Client(organization_id=actor.org_id, name=name, type=client_type.value)
                db.add(client)
                db.flush()
        except IntegrityError:
            result.reject(f"Row {row_number}: Client '{name}' already exists")
            continue

        seen.add(key)
        result.success += 1
        activity_service.log_activity(
            db,
            org_id=actor.org_id,
            actor=actor,
            action=ActivityAction.CREATE,
            table_name="clients",
            record_id=client.id,
            payload={"name": name, "type": client_type.value, "source": "import"},
        )

    db.commit()
    logger.info("Client import finished: %d created, %d rejected", result.success, result.failed)
    return result
