"""Note service - free-text notes on clients."""

from uuid import UUID

import nh3
from sqlalchemy.orm import Session

from advisor_desk.core.permissions import PermissionKey, ensure_permission
from advisor_desk.db.enums import ActivityAction
from advisor_desk.db.models import Client, ClientNote
from advisor_desk.services import activity_service

# Allowed HTML tags for rich text notes
ALLOWED_TAGS = {"p", "br", "strong", "em", "ul", "ol", "li", "a", "blockquote"}
ALLOWED_ATTRIBUTES = {"a": {"href", "target"}}


def sanitize_html(html: str) -> str:
    """Sanitize HTML to prevent XSS, allowing only safe rich text tags."""
    return nh3.clean(html, tags=ALLOWED_TAGS, attributes=ALLOWED_ATTRIBUTES)


def list_notes(db: Session, org_id: UUID, client_id: UUID) -> list[ClientNote]:
    """List notes for a client, newest first."""
    return (
        db.query(ClientNote)
        .filter(ClientNote.organization_id == org_id, ClientNote.client_id == client_id)
        .order_by(ClientNote.created_at.desc(), ClientNote.id)
        .all()
    )


def get_note(db: Session, org_id: UUID, note_id: UUID) -> ClientNote | None:
    return (
        db.query(ClientNote)
        .filter(ClientNote.organization_id == org_id, ClientNote.id == note_id)
        .first()
    )


def create_note(db: Session, actor, client: Client, content: str) -> ClientNote:
    ensure_permission(actor, PermissionKey.NOTES_EDIT)
    clean_content = sanitize_html(content).strip()
    if not clean_content:
        raise ValueError("Note content is required")

    note = ClientNote(
        organization_id=actor.org_id,
        client_id=client.id,
        content=clean_content,
        created_by_id=actor.user_id,
        created_by_name=actor.full_name,
    )
    db.add(note)
    db.flush()
    activity_service.log_activity(
        db,
        org_id=actor.org_id,
        actor=actor,
        action=ActivityAction.CREATE,
        table_name="client_notes",
        record_id=note.id,
        payload={"client_id": str(client.id)},
    )
    db.commit()
    db.refresh(note)
    return note


def delete_note(db: Session, actor, note: ClientNote) -> None:
    """Delete a note. Managers only, whoever wrote it."""
    ensure_permission(actor, PermissionKey.NOTES_DELETE_ANY)

    activity_service.log_activity(
        db,
        org_id=actor.org_id,
        actor=actor,
        action=ActivityAction.DELETE,
        table_name="client_notes",
        record_id=note.id,
        payload={"client_id": str(note.client_id)},
    )
    db.delete(note)
    db.commit()
