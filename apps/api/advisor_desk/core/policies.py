"""Centralized RBAC policies for API resources."""

from dataclasses import dataclass

from advisor_desk.core.permissions import PermissionKey as P


@dataclass(frozen=True)
class ResourcePolicy:
    """Default permission + per-action overrides for a resource."""

    default: P | None
    actions: dict[str, P]


POLICIES: dict[str, ResourcePolicy] = {
    "meetings": ResourcePolicy(
        default=P.MEETINGS_VIEW,
        actions={
            "edit": P.MEETINGS_EDIT,
            "delete": P.MEETINGS_DELETE,
        },
    ),
    "history": ResourcePolicy(
        default=P.HISTORY_VIEW,
        actions={
            "upload": P.HISTORY_UPLOAD,
            "delete_files": P.HISTORY_DELETE_FILES,
        },
    ),
    "payments": ResourcePolicy(
        default=P.PAYMENTS_VIEW,
        actions={
            "edit": P.PAYMENTS_EDIT,
            "delete": P.PAYMENTS_DELETE,
        },
    ),
    "clients": ResourcePolicy(
        default=P.CLIENTS_VIEW,
        actions={
            "edit": P.CLIENTS_EDIT,
            "delete": P.CLIENTS_DELETE,
            "import": P.CLIENTS_IMPORT,
            "notes_view": P.NOTES_VIEW,
            "notes_edit": P.NOTES_EDIT,
            "notes_delete": P.NOTES_DELETE_ANY,
        },
    ),
    "activity": ResourcePolicy(default=P.ACTIVITY_VIEW, actions={}),
    "users": ResourcePolicy(default=P.USERS_MANAGE, actions={}),
    "integrations": ResourcePolicy(default=P.INTEGRATIONS_MANAGE, actions={}),
}
