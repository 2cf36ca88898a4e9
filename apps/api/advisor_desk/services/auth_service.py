"""Auth service - username/password login and session issuance."""

import logging

from sqlalchemy.orm import Session

from advisor_desk.core.security import create_session_token, verify_password
from advisor_desk.core.structured_logging import build_log_context
from advisor_desk.db.models import User
from advisor_desk.utils.dates import utcnow
from advisor_desk.utils.normalization import normalize_username

logger = logging.getLogger(__name__)


def authenticate(db: Session, username: str, password: str) -> User | None:
    """
    Verify credentials.

    Returns the user when the password matches and the account is active,
    otherwise None.
    """
    user = (
        db.query(User)
        .filter(User.username == normalize_username(username))
        .first()
    )
    if not user or not verify_password(password, user.password_hash):
        return None
    if not user.is_active:
        logger.info("Login refused for disabled account", extra=build_log_context(user_id=user.id))
        return None
    return user


def record_login(db: Session, user: User) -> str:
    """Stamp last_login_at and return a fresh session token."""
    user.last_login_at = utcnow()
    db.commit()
    db.refresh(user)
    logger.info(
        "User logged in",
        extra=build_log_context(user_id=user.id, org_id=user.organization_id),
    )
    return create_session_token(
        user_id=user.id,
        org_id=user.organization_id,
        role=user.role,
        token_version=user.token_version,
    )


def revoke_sessions(db: Session, user: User) -> User:
    """Invalidate every session issued to user."""
    user.token_version += 1
    db.commit()
    db.refresh(user)
    return user
