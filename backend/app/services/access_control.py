"""Shared access-control helpers for grant-scoped resources.

Wraps the pure predicates in :mod:`app.permissions` and turns a denial
into an ``HTTPException`` the routers can let propagate.
"""

import logging
from typing import Callable

from fastapi import Depends, HTTPException, status

from app.auth import CurrentUser, get_current_user
from app.permissions import (
    Permission,
    can_access_grant,
    can_delete_grant,
    can_edit_grant,
    has_permission,
)
from app.store import GrantRecord, GrantStore

logger = logging.getLogger(__name__)


def _forbidden(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def ensure_permission(user: CurrentUser, permission: Permission) -> None:
    if not has_permission(user.role, permission):
        logger.warning(
            "Denied %s to user %s (role %s)", permission.value, user.id, user.role
        )
        raise _forbidden(
            f"Insufficient permissions for this operation. Requires {permission.value}."
        )


def require_permission(permission: Permission) -> Callable:
    """Dependency factory: the current user must hold *permission*.

    Usage::

        user: CurrentUser = Depends(require_permission(Permission.GRANTS_CREATE))
    """

    async def _dependency(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        ensure_permission(user, permission)
        return user

    return _dependency


def require_grant_access(
    store: GrantStore,
    grant_id: str,
    user: CurrentUser,
    edit: bool = False,
) -> GrantRecord:
    """Load a grant and enforce view (or, with *edit*, edit) rights on it."""
    grant = store.get(grant_id)
    if grant is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Grant not found",
        )

    allowed = (can_edit_grant if edit else can_access_grant)(user.role, user.id, grant)
    if not allowed:
        logger.warning(
            "Denied %s on grant %s to user %s (role %s)",
            "edit" if edit else "view",
            grant_id,
            user.id,
            user.role,
        )
        raise _forbidden(
            "Not authorized to edit this grant"
            if edit
            else "Not authorized to access this grant"
        )
    return grant


def require_grant_delete(store: GrantStore, grant_id: str, user: CurrentUser) -> GrantRecord:
    """Load a grant for deletion. Only administrators may delete."""
    grant = store.get(grant_id)
    if grant is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Grant not found",
        )
    if not can_delete_grant(user.role):
        logger.warning("Denied delete on grant %s to user %s (role %s)", grant_id, user.id, user.role)
        raise _forbidden("Only administrators can delete grants")
    return grant
