"""Blob storage for meeting attachments and minutes-of-meeting files.

Backends:
- local: files under LOCAL_STORAGE_PATH, downloaded through a signed token
  served by GET /files/local/{token}
- s3: any S3-compatible bucket via boto3 presigned URLs
"""

from __future__ import annotations

import os
import secrets
import time
from typing import BinaryIO
from uuid import UUID

import boto3
from botocore.client import BaseClient
from botocore.exceptions import BotoCoreError, ClientError

from advisor_desk.core.config import settings
from advisor_desk.core.security import create_file_token

ATTACHMENTS_PREFIX = "meeting-attachments"
MOM_FILES_PREFIX = "mom-files"

ALLOWED_EXTENSIONS = {
    "pdf", "png", "jpg", "jpeg", "doc", "docx", "xls", "xlsx", "csv", "txt", "ppt", "pptx",
}


class StorageError(Exception):
    """Raised when a blob operation fails on the backend."""


# =============================================================================
# Backend helpers
# =============================================================================

def get_s3_client() -> BaseClient:
    """Return a configured S3 client (supports S3-compatible endpoints)."""
    endpoint = settings.S3_ENDPOINT_URL.rstrip("/") if settings.S3_ENDPOINT_URL else None
    return boto3.client(
        "s3",
        region_name=settings.S3_REGION or None,
        aws_access_key_id=settings.AWS_ACCESS_KEY_ID or None,
        aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY or None,
        endpoint_url=endpoint,
    )


def _backend() -> str:
    return (settings.STORAGE_BACKEND or "local").lower()


def _local_root() -> str:
    path = settings.LOCAL_STORAGE_PATH
    os.makedirs(path, exist_ok=True)
    return path


def local_path(storage_key: str) -> str:
    """Resolve a key under the local root, refusing keys that escape it."""
    root = os.path.realpath(_local_root())
    path = os.path.realpath(os.path.join(root, storage_key))
    if os.path.commonpath([root, path]) != root:
        raise StorageError("Invalid storage key")
    return path


# =============================================================================
# Validation and keys
# =============================================================================

def file_extension(filename: str) -> str:
    return filename.rsplit(".", 1)[-1].lower() if "." in filename else ""


def validate_file(filename: str, file_size: int) -> tuple[bool, str | None]:
    """
    Validate file against the extension allowlist and size limit.

    Returns (is_valid, error_message)
    """
    if not filename:
        return False, "Filename is required"
    ext = file_extension(filename)
    if ext not in ALLOWED_EXTENSIONS:
        return False, f"File extension '.{ext}' not allowed"
    if file_size <= 0:
        return False, "File is empty"
    if file_size > settings.MAX_UPLOAD_BYTES:
        max_mb = settings.MAX_UPLOAD_BYTES // (1024 * 1024)
        return False, f"File exceeds {max_mb} MB limit"
    return True, None


def build_storage_key(prefix: str, org_id: UUID, owner_id: UUID, filename: str) -> str:
    """
    Namespaced key: {prefix}/{org}/{owner}_{timestamp}_{random}.{ext}

    The random suffix keeps keys unguessable and unique per upload.
    """
    ext = file_extension(filename) or "bin"
    stamp = int(time.time() * 1000)
    return f"{prefix}/{org_id}/{owner_id}_{stamp}_{secrets.token_hex(4)}.{ext}"


# =============================================================================
# Blob operations
# =============================================================================

def upload_blob(storage_key: str, file: BinaryIO, content_type: str | None = None) -> None:
    """Store file under storage_key on the configured backend."""
    file.seek(0)
    if _backend() == "s3":
        extra = {"ContentType": content_type} if content_type else None
        try:
            get_s3_client().upload_fileobj(file, settings.S3_BUCKET, storage_key, ExtraArgs=extra)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Upload failed: {exc}") from exc
        return

    path = local_path(storage_key)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    try:
        with open(path, "wb") as f:
            f.write(file.read())
    except OSError as exc:
        raise StorageError(f"Upload failed: {exc}") from exc


def signed_url(storage_key: str) -> str:
    """Short-lived download URL for storage_key."""
    if _backend() == "s3":
        try:
            return get_s3_client().generate_presigned_url(
                "get_object",
                Params={"Bucket": settings.S3_BUCKET, "Key": storage_key},
                ExpiresIn=settings.SIGNED_URL_EXPIRY_SECONDS,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Could not sign URL: {exc}") from exc
    return f"/files/local/{create_file_token(storage_key)}"


def delete_blob(storage_key: str) -> None:
    """Delete storage_key. Deleting a missing blob is not an error."""
    if _backend() == "s3":
        try:
            get_s3_client().delete_object(Bucket=settings.S3_BUCKET, Key=storage_key)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Delete failed: {exc}") from exc
        return

    path = local_path(storage_key)
    try:
        if os.path.exists(path):
            os.remove(path)
    except OSError as exc:
        raise StorageError(f"Delete failed: {exc}") from exc
