"""User service - staff account administration."""

from uuid import UUID

from sqlalchemy.orm import Session

from advisor_desk.core.errors import ConflictError
from advisor_desk.core.permissions import PermissionKey, ensure_permission
from advisor_desk.core.security import hash_password
from advisor_desk.db.enums import ActivityAction, Role
from advisor_desk.db.models import User
from advisor_desk.services import activity_service
from advisor_desk.utils.normalization import normalize_username

MIN_PASSWORD_LENGTH = 8


def _validate_password(password: str) -> None:
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")


def get_user(db: Session, org_id: UUID, user_id: UUID) -> User | None:
    return db.query(User).filter(User.organization_id == org_id, User.id == user_id).first()


def get_user_by_username(db: Session, username: str) -> User | None:
    return db.query(User).filter(User.username == normalize_username(username)).first()


def list_users(db: Session, org_id: UUID) -> list[User]:
    return db.query(User).filter(User.organization_id == org_id).order_by(User.username).all()


def create_user(
    db: Session,
    actor,
    org_id: UUID,
    username: str,
    full_name: str,
    password: str,
    role: Role,
) -> User:
    """
    Create a staff account.

    actor is None when called from the CLI bootstrap.

    Raises:
        ValueError: Invalid username or weak password
        ConflictError: Username taken
    """
    ensure_permission(actor, PermissionKey.USERS_MANAGE)
    clean_username = normalize_username(username)
    if not clean_username or not clean_username.replace(".", "").replace("_", "").replace("-", "").isalnum():
        raise ValueError("Username may contain letters, digits, dots, dashes and underscores")
    _validate_password(password)
    if get_user_by_username(db, clean_username):
        raise ConflictError(f"Username '{clean_username}' is taken")

    user = User(
        organization_id=org_id,
        username=clean_username,
        full_name=full_name.strip() or clean_username,
        password_hash=hash_password(password),
        role=role.value,
        is_active=True,
    )
    db.add(user)
    db.flush()
    activity_service.log_activity(
        db,
        org_id=org_id,
        actor=actor,
        action=ActivityAction.CREATE,
        table_name="users",
        record_id=user.id,
        payload={"username": clean_username, "role": role.value},
    )
    db.commit()
    db.refresh(user)
    return user


def update_user(
    db: Session,
    actor,
    user: User,
    role: Role | None = None,
    is_active: bool | None = None,
    full_name: str | None = None,
    password: str | None = None,
) -> User:
    """
    Change role, activation, name or password.

    Role changes, deactivation and password resets revoke existing
    sessions. Managers cannot demote or deactivate themselves.
    """
    ensure_permission(actor, PermissionKey.USERS_MANAGE)
    is_self = actor is not None and actor.user_id == user.id
    changes: dict = {}
    revoke = False

    if role is not None and role.value != user.role:
        if is_self:
            raise ValueError("You cannot change your own role")
        changes["role"] = role.value
        user.role = role.value
        revoke = True

    if is_active is not None and is_active != user.is_active:
        if is_self and not is_active:
            raise ValueError("You cannot deactivate your own account")
        changes["is_active"] = is_active
        user.is_active = is_active
        revoke = revoke or not is_active

    if full_name is not None and full_name.strip() and full_name.strip() != user.full_name:
        changes["full_name"] = full_name.strip()
        user.full_name = full_name.strip()

    if password is not None:
        _validate_password(password)
        user.password_hash = hash_password(password)
        changes["password"] = "reset"
        revoke = True

    if not changes:
        return user

    if revoke:
        user.token_version += 1
    activity_service.log_activity(
        db,
        org_id=user.organization_id,
        actor=actor,
        action=ActivityAction.UPDATE,
        table_name="users",
        record_id=user.id,
        payload=changes,
    )
    db.commit()
    db.refresh(user)
    return user


def delete_user(db: Session, actor, user: User) -> None:
    ensure_permission(actor, PermissionKey.USERS_MANAGE)
    if actor is not None and actor.user_id == user.id:
        raise ValueError("You cannot delete your own account")
    activity_service.log_activity(
        db,
        org_id=user.organization_id,
        actor=actor,
        action=ActivityAction.DELETE,
        table_name="users",
        record_id=user.id,
        payload={"username": user.username},
    )
    db.delete(user)
    db.commit()
