"""Clients router - client records, notes and CSV import."""

from uuid import UUID

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from sqlalchemy.orm import Session

from advisor_desk.core.config import settings
from advisor_desk.core.deps import get_db, require_csrf_header, require_permission
from advisor_desk.core.errors import ConflictError
from advisor_desk.core.policies import POLICIES
from advisor_desk.db.enums import ClientType
from advisor_desk.schemas.auth import UserSession
from advisor_desk.schemas.client import (
    ClientCreate,
    ClientImportResult,
    ClientRead,
    ClientUpdate,
    NoteCreate,
    NoteRead,
)
from advisor_desk.services import client_service, note_service

router = APIRouter()

policy = POLICIES["clients"]


def _get_client_or_404(db: Session, session: UserSession, client_id: UUID):
    client = client_service.get_client(db, session.org_id, client_id)
    if not client:
        raise HTTPException(status_code=404, detail="Client not found")
    return client


@router.get("/clients", response_model=list[ClientRead])
def list_clients(
    q: str | None = Query(None, max_length=100),
    client_type: ClientType | None = Query(None, alias="type"),
    session: UserSession = Depends(require_permission(policy.default)),
    db: Session = Depends(get_db),
):
    return client_service.list_clients(db, session.org_id, search=q, client_type=client_type)


@router.post(
    "/clients",
    response_model=ClientRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_client(
    data: ClientCreate,
    session: UserSession = Depends(require_permission(policy.actions["edit"])),
    db: Session = Depends(get_db),
):
    try:
        return client_service.create_client(db, session, data.name, data.type)
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post(
    "/clients/import",
    response_model=ClientImportResult,
    dependencies=[Depends(require_csrf_header)],
)
async def import_clients(
    file: UploadFile = File(...),
    session: UserSession = Depends(require_permission(policy.actions["import"])),
    db: Session = Depends(get_db),
):
    """
    Bulk-create clients from a CSV with "Name" and "Client Type" columns.

    Rows that fail validation are reported, the rest are created.
    """
    content = await file.read()
    if len(content) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="File too large")
    try:
        result = client_service.import_clients_csv(db, session, content)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ClientImportResult(success=result.success, failed=result.failed, errors=result.errors)


@router.get("/clients/{client_id}", response_model=ClientRead)
def get_client(
    client_id: UUID,
    session: UserSession = Depends(require_permission(policy.default)),
    db: Session = Depends(get_db),
):
    return _get_client_or_404(db, session, client_id)


@router.patch(
    "/clients/{client_id}",
    response_model=ClientRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_client(
    client_id: UUID,
    data: ClientUpdate,
    session: UserSession = Depends(require_permission(policy.actions["edit"])),
    db: Session = Depends(get_db),
):
    client = _get_client_or_404(db, session, client_id)
    try:
        return client_service.update_client(db, session, client, name=data.name, client_type=data.type)
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete(
    "/clients/{client_id}",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def delete_client(
    client_id: UUID,
    session: UserSession = Depends(require_permission(policy.actions["delete"])),
    db: Session = Depends(get_db),
):
    client = _get_client_or_404(db, session, client_id)
    try:
        client_service.delete_client(db, session, client)
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))


# =============================================================================
# Notes
# =============================================================================

@router.get("/clients/{client_id}/notes", response_model=list[NoteRead])
def list_notes(
    client_id: UUID,
    session: UserSession = Depends(require_permission(policy.actions["notes_view"])),
    db: Session = Depends(get_db),
):
    """List notes for a client, newest first."""
    _get_client_or_404(db, session, client_id)
    return note_service.list_notes(db, session.org_id, client_id)


@router.post(
    "/clients/{client_id}/notes",
    response_model=NoteRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_note(
    client_id: UUID,
    data: NoteCreate,
    session: UserSession = Depends(require_permission(policy.actions["notes_edit"])),
    db: Session = Depends(get_db),
):
    client = _get_client_or_404(db, session, client_id)
    try:
        return note_service.create_note(db, session, client, data.content)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete(
    "/notes/{note_id}",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def delete_note(
    note_id: UUID,
    session: UserSession = Depends(require_permission(policy.actions["notes_delete"])),
    db: Session = Depends(get_db),
):
    """
    Delete a note.

    Requires: manager
    """
    note = note_service.get_note(db, session.org_id, note_id)
    if not note:
        raise HTTPException(status_code=404, detail="Note not found")
    note_service.delete_note(db, session, note)
