"""Role-based authorization for the grant tracker.

Maps each role to a fixed permission set and answers grant-scoped access
questions.  Everything here is a pure predicate: an unknown role or a
missing permission yields ``False``, never an exception.  Turning a
``False`` into an HTTP error is the job of
:mod:`app.services.access_control`.
"""

from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Union

from app.models.core import UserRole


class Permission(str, Enum):
    GRANTS_VIEW = "grants:view"
    GRANTS_CREATE = "grants:create"
    GRANTS_EDIT = "grants:edit"
    GRANTS_DELETE = "grants:delete"
    BUDGETS_VIEW = "budgets:view"
    BUDGETS_EDIT = "budgets:edit"
    BUDGETS_APPROVE = "budgets:approve"
    DOCUMENTS_VIEW = "documents:view"
    DOCUMENTS_UPLOAD = "documents:upload"
    DOCUMENTS_DELETE = "documents:delete"
    REPORTS_VIEW = "reports:view"
    REPORTS_CREATE = "reports:create"
    USERS_VIEW = "users:view"
    USERS_MANAGE = "users:manage"
    ADMIN_ALL = "admin:all"


RoleLike = Union[UserRole, str]
PermissionLike = Union[Permission, str]

ALL_PERMISSIONS: FrozenSet[str] = frozenset(p.value for p in Permission)

# ---------------------------------------------------------------------------
# Role -> permissions (source of truth)
# ---------------------------------------------------------------------------
# Sets hold plain string values so lookups work for both enum members and
# raw strings coming off a token or request body.

ROLE_PERMISSIONS: Mapping[str, FrozenSet[str]] = MappingProxyType(
    {
        # Everything, including the wildcard.
        UserRole.ADMIN.value: ALL_PERMISSIONS,
        # Creates and runs their own grants.
        UserRole.PI.value: frozenset(
            {
                "grants:view",
                "grants:create",
                "grants:edit",
                "budgets:view",
                "budgets:edit",
                "documents:view",
                "documents:upload",
                "documents:delete",
                "reports:view",
                "reports:create",
            }
        ),
        # Reviews and approves budgets across all grants.
        UserRole.FINANCE.value: frozenset(
            {
                "grants:view",
                "budgets:view",
                "budgets:edit",
                "budgets:approve",
                "documents:view",
                "documents:upload",
                "reports:view",
            }
        ),
        UserRole.VIEWER.value: frozenset(
            {"grants:view", "budgets:view", "documents:view", "reports:view"}
        ),
    }
)

ROLE_DISPLAY_NAMES: Mapping[str, str] = MappingProxyType(
    {
        "ADMIN": "Administrator",
        "PI": "Principal Investigator",
        "FINANCE": "Finance Officer",
        "VIEWER": "Viewer",
    }
)

ROLE_DESCRIPTIONS: Mapping[str, str] = MappingProxyType(
    {
        "ADMIN": "Full system access with user management capabilities",
        "PI": "Can create and manage their own grants and budgets",
        "FINANCE": "Can view and approve budgets across all grants",
        "VIEWER": "Read-only access to grants, budgets, and reports",
    }
)


def _value(tag: Any) -> str:
    return tag.value if isinstance(tag, Enum) else str(tag)


def _owner_of(grant: Any) -> Any:
    if isinstance(grant, Mapping):
        return grant.get("principal_investigator_id")
    return getattr(grant, "principal_investigator_id", None)


# ---------------------------------------------------------------------------
# Permission checks
# ---------------------------------------------------------------------------


def get_role_permissions(role: RoleLike) -> FrozenSet[str]:
    """Permission set for *role*; empty for an unknown role."""
    return ROLE_PERMISSIONS.get(_value(role), frozenset())


def has_permission(role: RoleLike, permission: PermissionLike) -> bool:
    granted = get_role_permissions(role)
    return _value(permission) in granted or Permission.ADMIN_ALL.value in granted


def has_any_permission(role: RoleLike, permissions: Iterable[PermissionLike]) -> bool:
    return any(has_permission(role, permission) for permission in permissions)


def has_all_permissions(role: RoleLike, permissions: Iterable[PermissionLike]) -> bool:
    return all(has_permission(role, permission) for permission in permissions)


# ---------------------------------------------------------------------------
# Grant-scoped checks
# ---------------------------------------------------------------------------


def can_access_grant(role: RoleLike, user_id: str, grant: Any) -> bool:
    """ADMIN sees everything, a PI only their own grants, others need grants:view.

    *grant* may be a mapping or an object with ``principal_investigator_id``.
    """
    role = _value(role)
    if role == UserRole.ADMIN.value:
        return True
    if role == UserRole.PI.value:
        return _owner_of(grant) == user_id
    return has_permission(role, Permission.GRANTS_VIEW)


def can_edit_grant(role: RoleLike, user_id: str, grant: Any) -> bool:
    role = _value(role)
    if not has_permission(role, Permission.GRANTS_EDIT):
        return False
    if role == UserRole.ADMIN.value:
        return True
    if role == UserRole.PI.value:
        return _owner_of(grant) == user_id
    return False


def can_delete_grant(role: RoleLike) -> bool:
    """Deletion is reserved for administrators whatever the permission table says."""
    return _value(role) == UserRole.ADMIN.value and has_permission(
        role, Permission.GRANTS_DELETE
    )


def can_approve_budget(role: RoleLike) -> bool:
    return has_permission(role, Permission.BUDGETS_APPROVE)


def can_manage_users(role: RoleLike) -> bool:
    return has_permission(role, Permission.USERS_MANAGE)


def can_perform_bulk_operations(role: RoleLike) -> bool:
    return _value(role) in (UserRole.ADMIN.value, UserRole.FINANCE.value)


def get_available_grant_actions(role: RoleLike, user_id: str, grant: Any) -> List[str]:
    """Actions *role* may take on *grant*, in display order."""
    actions: List[str] = []
    if can_access_grant(role, user_id, grant):
        actions.append("view")
    if can_edit_grant(role, user_id, grant):
        actions.append("edit")
    if can_delete_grant(role):
        actions.append("delete")
    if has_permission(role, Permission.DOCUMENTS_UPLOAD):
        actions.append("upload_documents")
    if has_permission(role, Permission.REPORTS_CREATE):
        actions.append("create_reports")
    return actions


# ---------------------------------------------------------------------------
# Presentation helpers
# ---------------------------------------------------------------------------


def get_role_display_name(role: RoleLike) -> str:
    return ROLE_DISPLAY_NAMES.get(_value(role), _value(role))


def get_role_description(role: RoleLike) -> str:
    return ROLE_DESCRIPTIONS.get(_value(role), "")


def get_role_ui_config(role: RoleLike) -> Dict[str, Any]:
    """Which parts of the interface a role should see.

    ``max_grants_visible`` is ``None`` when unlimited.
    """
    role = _value(role)
    is_admin = role == UserRole.ADMIN.value
    is_finance = role == UserRole.FINANCE.value
    is_pi = role == UserRole.PI.value
    if is_admin:
        max_visible = None
    elif is_pi:
        max_visible = 50
    else:
        max_visible = 25
    return {
        "show_admin_panel": is_admin,
        "show_user_management": is_admin,
        "show_finance_tools": is_admin or is_finance,
        "show_budget_approval": is_admin or is_finance,
        "show_create_grant": is_admin or is_pi,
        "show_bulk_operations": is_admin or is_finance,
        "show_advanced_reports": is_admin or is_finance,
        "max_grants_visible": max_visible,
        "can_export_data": is_admin or is_finance,
        "can_modify_settings": is_admin,
    }
