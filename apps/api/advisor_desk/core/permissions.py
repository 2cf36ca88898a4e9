"""Permission registry and role defaults.

Every mutating service checks a permission key against the caller's
role, independent of the route dependency that already checked it.
"""

from enum import Enum

from advisor_desk.db.enums import Role


class PermissionKey(str, Enum):
    """Named permissions checked by routes and services."""

    MEETINGS_VIEW = "view_meetings"
    MEETINGS_EDIT = "edit_meetings"
    MEETINGS_DELETE = "delete_meetings"

    HISTORY_VIEW = "view_history"
    HISTORY_UPLOAD = "upload_history_files"
    HISTORY_DELETE_FILES = "delete_history_files"

    PAYMENTS_VIEW = "view_payments"
    PAYMENTS_EDIT = "edit_payments"
    PAYMENTS_DELETE = "delete_payments"

    CLIENTS_VIEW = "view_clients"
    CLIENTS_EDIT = "edit_clients"
    CLIENTS_DELETE = "delete_clients"
    CLIENTS_IMPORT = "import_clients"

    NOTES_VIEW = "view_notes"
    NOTES_EDIT = "edit_notes"
    NOTES_DELETE_ANY = "delete_any_note"

    ACTIVITY_VIEW = "view_activity"
    USERS_MANAGE = "manage_users"
    INTEGRATIONS_MANAGE = "manage_integrations"


P = PermissionKey

_VIEW_PERMISSIONS = {
    P.MEETINGS_VIEW,
    P.HISTORY_VIEW,
    P.PAYMENTS_VIEW,
    P.CLIENTS_VIEW,
    P.NOTES_VIEW,
}

_EDIT_PERMISSIONS = {
    P.MEETINGS_EDIT,
    P.HISTORY_UPLOAD,
    P.PAYMENTS_EDIT,
    P.CLIENTS_EDIT,
    P.CLIENTS_IMPORT,
    P.NOTES_EDIT,
}

ROLE_DEFAULTS: dict[str, set[PermissionKey]] = {
    Role.ASSOCIATE_VIEWER.value: set(_VIEW_PERMISSIONS),
    Role.ASSOCIATE_EDITOR.value: _VIEW_PERMISSIONS | _EDIT_PERMISSIONS,
    Role.MANAGER.value: set(PermissionKey),
}


class PermissionDeniedError(Exception):
    """Raised when an actor's role does not grant a permission."""

    def __init__(self, permission: PermissionKey | str, role: str | None = None):
        self.permission = permission.value if isinstance(permission, PermissionKey) else permission
        self.role = role
        super().__init__(f"Role '{role}' lacks permission '{self.permission}'")


def get_role_permissions(role: Role | str) -> set[PermissionKey]:
    """Permissions granted to a role (empty for unknown roles)."""
    value = role.value if isinstance(role, Role) else role
    return ROLE_DEFAULTS.get(value, set())


def has_permission(role: Role | str, permission: PermissionKey) -> bool:
    return permission in get_role_permissions(role)


def ensure_permission(actor, permission: PermissionKey) -> None:
    """
    Raise PermissionDeniedError unless actor (a UserSession) holds permission.

    A None actor is the system (worker, cron) and is always allowed.
    """
    if actor is None:
        return
    if not has_permission(actor.role, permission):
        role = actor.role.value if isinstance(actor.role, Role) else actor.role
        raise PermissionDeniedError(permission, role)
