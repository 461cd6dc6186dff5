"""Grants router -- list, stats, read, create, update and delete grants.

Every payload runs through the validation engine before the store is
touched; every grant-scoped call goes through access control first.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status

from app.deps import CurrentUser, _safe_error, get_current_user, get_store
from app.models.core import UserRole
from app.models.validation import FieldErrors, validate
from app.permissions import Permission, get_available_grant_actions
from app.services.access_control import (
    ensure_permission,
    require_grant_access,
    require_grant_delete,
    require_permission,
)
from app.store import DuplicateGrantNumber, GrantStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["grants"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _invalid(errors: FieldErrors) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail={"message": "Validation failed", "errors": errors},
    )


def _validated(schema_id: str, payload: Any) -> Dict[str, Any]:
    """Validate *payload* or raise 422 with the per-field error map."""
    result = validate(schema_id, payload)
    if not result.success:
        raise _invalid(result.errors)
    return result.data


def _duplicate_number() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail="Grant number already exists",
    )


def _owned_only(user: CurrentUser) -> Optional[str]:
    """Principal investigators only ever see their own grants."""
    return user.id if user.role == UserRole.PI.value else None


# ---------------------------------------------------------------------------
# GET list
# ---------------------------------------------------------------------------


@router.get("/grants")
async def list_grants(
    search: Optional[str] = Query(None),
    grant_status: Optional[str] = Query(None, alias="status"),
    agency_name: Optional[str] = Query(None),
    principal_investigator_id: Optional[str] = Query(None),
    start_date_from: Optional[str] = Query(None),
    start_date_to: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    cursor: Optional[str] = Query(None),
    current_user: CurrentUser = Depends(require_permission(Permission.GRANTS_VIEW)),
    store: GrantStore = Depends(get_store),
):
    """List grants newest-first with search filters and cursor pagination.

    Returns:
        ``{"grants": [...], "next_cursor": str | None}``
    """
    raw = {
        "search": search,
        "status": grant_status,
        "agency_name": agency_name,
        "principal_investigator_id": principal_investigator_id,
        "start_date_from": start_date_from,
        "start_date_to": start_date_to,
        "limit": limit,
        "cursor": cursor,
    }
    filters = _validated(
        "search_grants", {key: value for key, value in raw.items() if value is not None}
    )

    owner = _owned_only(current_user)
    if owner is not None:
        filters["principal_investigator_id"] = owner

    try:
        grants, next_cursor = store.list(**filters)
    except Exception as e:
        logger.error("Failed to list grants: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_safe_error("listing grants", e),
        ) from e

    return {"grants": grants, "next_cursor": next_cursor}


# ---------------------------------------------------------------------------
# GET stats
# ---------------------------------------------------------------------------


@router.get("/grants/stats")
async def grant_stats(
    current_user: CurrentUser = Depends(require_permission(Permission.GRANTS_VIEW)),
    store: GrantStore = Depends(get_store),
):
    """Counts of all, active, draft and closed grants visible to the caller."""
    try:
        return store.stats(principal_investigator_id=_owned_only(current_user))
    except Exception as e:
        logger.error("Failed to compute grant stats: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_safe_error("computing grant stats", e),
        ) from e


# ---------------------------------------------------------------------------
# GET one
# ---------------------------------------------------------------------------


@router.get("/grants/{grant_id}")
async def get_grant(
    grant_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    store: GrantStore = Depends(get_store),
):
    return require_grant_access(store, grant_id, current_user)


@router.get("/grants/{grant_id}/actions")
async def get_grant_actions(
    grant_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    store: GrantStore = Depends(get_store),
):
    """Actions the caller may take on this grant, in display order."""
    grant = require_grant_access(store, grant_id, current_user)
    return {
        "grant_id": grant_id,
        "actions": get_available_grant_actions(current_user.role, current_user.id, grant),
    }


# ---------------------------------------------------------------------------
# POST create
# ---------------------------------------------------------------------------


@router.post("/grants", status_code=status.HTTP_201_CREATED)
async def create_grant(
    payload: Any = Body(...),
    current_user: CurrentUser = Depends(require_permission(Permission.GRANTS_CREATE)),
    store: GrantStore = Depends(get_store),
):
    """Create a grant. The caller is recorded as its creator.

    Raises:
        422 on invalid payload, 409 when the grant number is taken.
    """
    if isinstance(payload, dict):
        payload = {**payload, "created_by_id": current_user.id}
    data = _validated("grant.create", payload)

    if store.get_by_number(data["grant_number_master"]) is not None:
        raise _duplicate_number()

    try:
        grant = store.create(data)
    except DuplicateGrantNumber:
        raise _duplicate_number()
    except Exception as e:
        logger.error("Failed to create grant: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_safe_error("creating grant", e),
        ) from e

    logger.info("User %s created grant %s", current_user.id, grant["id"])
    return grant


# ---------------------------------------------------------------------------
# PATCH update
# ---------------------------------------------------------------------------


@router.patch("/grants/{grant_id}")
async def update_grant(
    grant_id: str,
    payload: Any = Body(...),
    current_user: CurrentUser = Depends(get_current_user),
    store: GrantStore = Depends(get_store),
):
    """Apply a partial update.

    The merged record must still be a valid grant, so an update that moves
    ``end_date`` before the stored ``start_date`` is rejected.
    """
    ensure_permission(current_user, Permission.GRANTS_EDIT)
    grant = require_grant_access(store, grant_id, current_user, edit=True)
    changes = _validated("grant.update", payload)
    _validated("grant", {**grant, **changes})

    number = changes.get("grant_number_master")
    if number is not None and number != grant["grant_number_master"]:
        if store.get_by_number(number) is not None:
            raise _duplicate_number()

    try:
        updated = store.update(grant_id, changes)
    except DuplicateGrantNumber:
        raise _duplicate_number()
    except Exception as e:
        logger.error("Failed to update grant %s: %s", grant_id, e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_safe_error("updating grant", e),
        ) from e

    if updated is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Grant not found",
        )
    logger.info("User %s updated grant %s", current_user.id, grant_id)
    return updated


# ---------------------------------------------------------------------------
# DELETE
# ---------------------------------------------------------------------------


@router.delete("/grants/{grant_id}")
async def delete_grant(
    grant_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    store: GrantStore = Depends(get_store),
):
    require_grant_delete(store, grant_id, current_user)
    try:
        store.delete(grant_id)
    except Exception as e:
        logger.error("Failed to delete grant %s: %s", grant_id, e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_safe_error("deleting grant", e),
        ) from e

    logger.info("User %s deleted grant %s", current_user.id, grant_id)
    return {"success": True}
