"""Local storage downloads addressed by short-lived signed tokens."""

import mimetypes
import os

import jwt
from fastapi import APIRouter, HTTPException
from fastapi.responses import FileResponse

from advisor_desk.core.security import decode_file_token
from advisor_desk.services import storage_service
from advisor_desk.services.storage_service import StorageError

router = APIRouter()


@router.get("/local/{token}")
def download_local_file(token: str):
    """
    Serve a locally stored blob.

    The token is the credential: it names the key and expires after
    SIGNED_URL_EXPIRY_SECONDS.
    """
    try:
        storage_key = decode_file_token(token)
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=403, detail="Invalid or expired link")

    try:
        path = storage_service.local_path(storage_key)
    except StorageError:
        raise HTTPException(status_code=403, detail="Invalid or expired link")
    if not os.path.isfile(path):
        raise HTTPException(status_code=404, detail="File not found")

    media_type, _ = mimetypes.guess_type(path)
    return FileResponse(
        path,
        media_type=media_type or "application/octet-stream",
        filename=os.path.basename(storage_key),
    )
