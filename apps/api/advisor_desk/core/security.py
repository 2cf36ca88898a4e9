"""Security utilities: session tokens, signed file tokens and password hashing."""

from datetime import datetime, timedelta, timezone
from uuid import UUID

import jwt
from passlib.context import CryptContext

from advisor_desk.core.config import settings


pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

FILE_TOKEN_AUDIENCE = "file-download"


# =============================================================================
# Passwords
# =============================================================================

def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    try:
        return pwd_context.verify(password, password_hash)
    except ValueError:
        # Unrecognised hash format
        return False


# =============================================================================
# Session Token (JWT in cookie)
# =============================================================================

def create_session_token(
    user_id: UUID,
    org_id: UUID,
    role: str,
    token_version: int,
) -> str:
    """
    Create signed session JWT.

    Always signs with current secret (JWT_SECRET).
    Token contains user identity, org context, and revocation version.
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "org_id": str(org_id),
        "role": role,
        "token_version": token_version,
        "iat": now,
        "exp": now + timedelta(hours=settings.SESSION_EXPIRES_HOURS),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm="HS256")


def _decode(token: str, **kwargs) -> dict:
    last_error = None
    for secret in settings.jwt_secrets:
        try:
            return jwt.decode(token, secret, algorithms=["HS256"], **kwargs)
        except jwt.InvalidTokenError as e:
            last_error = e
            continue
    raise last_error  # type: ignore


def decode_session_token(token: str) -> dict:
    """
    Decode and verify session JWT.

    Tries current secret first, then previous (for rotation support).

    Raises:
        jwt.InvalidTokenError: If token invalid with all secrets or expired
    """
    return _decode(token)


# =============================================================================
# Signed download tokens (local storage backend)
# =============================================================================

def create_file_token(storage_key: str, expires_in: int | None = None) -> str:
    """Sign a short-lived token granting read access to one storage key."""
    ttl = expires_in or settings.SIGNED_URL_EXPIRY_SECONDS
    payload = {
        "key": storage_key,
        "aud": FILE_TOKEN_AUDIENCE,
        "exp": datetime.now(timezone.utc) + timedelta(seconds=ttl),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm="HS256")


def decode_file_token(token: str) -> str:
    """Return the storage key of a valid file token (raises jwt.InvalidTokenError)."""
    payload = _decode(token, audience=FILE_TOKEN_AUDIENCE)
    return payload["key"]
