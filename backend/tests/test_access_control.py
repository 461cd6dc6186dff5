"""
Unit Tests for Authentication and Grant Access Control

Covers token issue/verify in ``app.auth`` and the HTTP-raising wrappers
in ``app.services.access_control``.

Usage:
    cd backend && pytest tests/test_access_control.py -v
"""

import pytest
import sys
import os
from datetime import date, timedelta

from fastapi import HTTPException
from jose import jwt

# Add backend to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from app.auth import (
    JWT_ALGORITHM,
    JWT_SECRET,
    CurrentUser,
    create_access_token,
    decode_access_token,
)
from app.permissions import Permission
from app.services.access_control import (
    ensure_permission,
    require_grant_access,
    require_grant_delete,
)
from app.store import InMemoryGrantStore


# ============================================================================
# TEST DATA FACTORIES
# ============================================================================

ADMIN = CurrentUser(id="cladmin000000000000000001", role="ADMIN", email="admin@agency.gov")
PI = CurrentUser(id="clpi00000000000000000001", role="PI", email="pi@university.edu")
OTHER_PI = CurrentUser(id="clpi00000000000000000002", role="PI")
FINANCE = CurrentUser(id="clfin0000000000000000001", role="FINANCE")
VIEWER = CurrentUser(id="clview000000000000000001", role="VIEWER")


def make_grant_data(owner: str = PI.id, number: str = "NSF-2024-001") -> dict:
    """Factory for validated grant data ready for the store."""
    return {
        "grant_title": "Watershed Resilience Study",
        "grant_number_master": number,
        "agency_name": "National Science Foundation",
        "principal_investigator_id": owner,
        "created_by_id": ADMIN.id,
        "start_date": date(2024, 1, 1),
        "end_date": date(2026, 12, 31),
        "total_years": 3,
        "status": "ACTIVE",
    }


@pytest.fixture
def store():
    return InMemoryGrantStore()


@pytest.fixture
def grant(store):
    return store.create(make_grant_data())


# ============================================================================
# AUTH
# ============================================================================


class TestTokens:
    """Tests for JWT issue and verification."""

    def test_token_carries_identity(self):
        user = decode_access_token(create_access_token(PI))
        assert user == CurrentUser(id=PI.id, role="PI", email=PI.email, full_name="")

    def test_expired_token_rejected(self):
        token = create_access_token(PI, expires_in=timedelta(seconds=-5))
        with pytest.raises(HTTPException) as exc_info:
            decode_access_token(token)
        assert exc_info.value.status_code == 401

    def test_unknown_role_rejected(self):
        token = jwt.encode({"sub": PI.id, "role": "OWNER"}, JWT_SECRET, algorithm=JWT_ALGORITHM)
        with pytest.raises(HTTPException) as exc_info:
            decode_access_token(token)
        assert exc_info.value.detail == "Invalid token role"

    def test_missing_subject_rejected(self):
        token = jwt.encode({"role": "ADMIN"}, JWT_SECRET, algorithm=JWT_ALGORITHM)
        with pytest.raises(HTTPException) as exc_info:
            decode_access_token(token)
        assert exc_info.value.status_code == 401

    def test_wrong_signature_rejected(self):
        token = jwt.encode({"sub": PI.id, "role": "PI"}, "another-secret", algorithm=JWT_ALGORITHM)
        with pytest.raises(HTTPException):
            decode_access_token(token)


# ============================================================================
# ACCESS CONTROL
# ============================================================================


class TestEnsurePermission:
    def test_allowed(self):
        ensure_permission(PI, Permission.GRANTS_CREATE)

    def test_denied_is_403(self):
        with pytest.raises(HTTPException) as exc_info:
            ensure_permission(VIEWER, Permission.GRANTS_CREATE)
        assert exc_info.value.status_code == 403
        assert "grants:create" in exc_info.value.detail


class TestRequireGrantAccess:
    """Tests for grant-scoped access checks."""

    def test_missing_grant_is_404(self, store):
        with pytest.raises(HTTPException) as exc_info:
            require_grant_access(store, "clmissing0000000000000001", ADMIN)
        assert exc_info.value.status_code == 404

    def test_owner_can_view_and_edit(self, store, grant):
        assert require_grant_access(store, grant["id"], PI)["id"] == grant["id"]
        assert require_grant_access(store, grant["id"], PI, edit=True)["id"] == grant["id"]

    def test_other_pi_is_forbidden(self, store, grant):
        with pytest.raises(HTTPException) as exc_info:
            require_grant_access(store, grant["id"], OTHER_PI)
        assert exc_info.value.status_code == 403

    def test_finance_views_but_cannot_edit(self, store, grant):
        require_grant_access(store, grant["id"], FINANCE)
        with pytest.raises(HTTPException) as exc_info:
            require_grant_access(store, grant["id"], FINANCE, edit=True)
        assert exc_info.value.detail == "Not authorized to edit this grant"

    def test_delete_is_admin_only(self, store, grant):
        assert require_grant_delete(store, grant["id"], ADMIN)["id"] == grant["id"]
        for user in (PI, FINANCE, VIEWER):
            with pytest.raises(HTTPException) as exc_info:
                require_grant_delete(store, grant["id"], user)
            assert exc_info.value.status_code == 403


class TestInMemoryStore:
    """Tests for store paging and filtering."""

    def test_new_ids_look_like_cuids(self, grant):
        from app.models.validation import is_cuid

        assert is_cuid(grant["id"])
        assert grant["current_year_number"] == 1

    def test_cursor_pagination(self, store):
        for n in range(5):
            store.create(make_grant_data(number=f"NSF-2024-00{n}"))
        first, cursor = store.list(limit=2)
        assert len(first) == 2
        assert cursor is not None
        second, _ = store.list(limit=2, cursor=cursor)
        assert second[0]["id"] == cursor
        assert not {g["id"] for g in first} & {g["id"] for g in second}

    def test_search_is_case_insensitive(self, store, grant):
        grants, _ = store.list(search="watershed")
        assert [g["id"] for g in grants] == [grant["id"]]
        grants, _ = store.list(search="nsf-2024")
        assert len(grants) == 1

    def test_stats(self, store, grant):
        store.create(make_grant_data(owner=OTHER_PI.id, number="NIH-1"))
        assert store.stats() == {
            "total_grants": 2,
            "active_grants": 2,
            "draft_grants": 0,
            "closed_grants": 0,
        }
        assert store.stats(principal_investigator_id=PI.id)["total_grants"] == 1
