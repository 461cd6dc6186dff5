"""
Unit Tests for the Role-Based Authorization Engine

Covers the role -> permission table, grant-scoped checks, the ordered
action list and the presentation helpers.

Usage:
    cd backend && pytest tests/test_permissions.py -v
"""

import pytest
import sys
import os
from types import SimpleNamespace

# Add backend to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from app.models.core import UserRole
from app.permissions import (
    ALL_PERMISSIONS,
    Permission,
    ROLE_PERMISSIONS,
    can_access_grant,
    can_approve_budget,
    can_delete_grant,
    can_edit_grant,
    can_manage_users,
    can_perform_bulk_operations,
    get_available_grant_actions,
    get_role_description,
    get_role_display_name,
    get_role_permissions,
    get_role_ui_config,
    has_all_permissions,
    has_any_permission,
    has_permission,
)


# ============================================================================
# TEST DATA FACTORIES
# ============================================================================

PI_ID = "clpi00000000000000000001"
OTHER_PI_ID = "clpi00000000000000000002"


def make_grant(owner: str = PI_ID) -> dict:
    """Factory for the minimal grant shape the authorization engine reads."""
    return {"id": "clgr00000000000000000001", "principal_investigator_id": owner}


# ============================================================================
# ROLE TABLE
# ============================================================================


class TestRolePermissions:
    """Tests for the role -> permission table."""

    def test_admin_holds_every_permission(self):
        """ADMIN holds every permission including the wildcard."""
        for permission in Permission:
            assert has_permission(UserRole.ADMIN, permission)
        assert get_role_permissions("ADMIN") == ALL_PERMISSIONS

    def test_viewer_is_read_only(self):
        """VIEWER only has the four view permissions."""
        assert get_role_permissions(UserRole.VIEWER) == {
            "grants:view",
            "budgets:view",
            "documents:view",
            "reports:view",
        }
        assert not has_permission(UserRole.VIEWER, Permission.GRANTS_EDIT)

    def test_pi_permissions(self):
        """PI can create grants and delete documents but not approve budgets."""
        assert has_permission(UserRole.PI, Permission.GRANTS_CREATE)
        assert has_permission(UserRole.PI, Permission.DOCUMENTS_DELETE)
        assert not has_permission(UserRole.PI, Permission.BUDGETS_APPROVE)
        assert not has_permission(UserRole.PI, Permission.GRANTS_DELETE)

    def test_finance_permissions(self):
        """FINANCE approves budgets but cannot create grants."""
        assert has_permission(UserRole.FINANCE, Permission.BUDGETS_APPROVE)
        assert not has_permission(UserRole.FINANCE, Permission.GRANTS_CREATE)
        assert not has_permission(UserRole.FINANCE, Permission.DOCUMENTS_DELETE)

    def test_only_admin_holds_wildcard(self):
        """admin:all is granted to ADMIN alone."""
        holders = [role for role, perms in ROLE_PERMISSIONS.items() if "admin:all" in perms]
        assert holders == ["ADMIN"]

    def test_strings_and_enums_are_interchangeable(self):
        """Raw strings and enum members give the same answer."""
        assert has_permission("PI", "grants:create")
        assert has_permission(UserRole.PI, "grants:create")
        assert has_permission("PI", Permission.GRANTS_CREATE)

    def test_unknown_role_has_nothing(self):
        """An unknown role gets an empty permission set and never raises."""
        assert get_role_permissions("AUDITOR") == frozenset()
        assert not has_permission("AUDITOR", Permission.GRANTS_VIEW)
        assert not can_access_grant("AUDITOR", PI_ID, make_grant())

    def test_unknown_permission_is_denied(self):
        assert not has_permission(UserRole.VIEWER, "grants:archive")
        assert has_permission(UserRole.ADMIN, "grants:archive")


class TestPermissionSets:
    """Tests for any/all permission checks."""

    def test_any_with_empty_list_is_false(self):
        assert has_any_permission(UserRole.ADMIN, []) is False

    def test_all_with_empty_list_is_true(self):
        assert has_all_permissions(UserRole.VIEWER, []) is True

    def test_any_matches_single_grant(self):
        perms = [Permission.USERS_MANAGE, Permission.REPORTS_VIEW]
        assert has_any_permission(UserRole.VIEWER, perms)
        assert not has_all_permissions(UserRole.VIEWER, perms)

    def test_all_for_admin(self):
        assert has_all_permissions(UserRole.ADMIN, list(Permission))


# ============================================================================
# GRANT-SCOPED CHECKS
# ============================================================================


class TestGrantAccess:
    """Tests for can_access_grant / can_edit_grant / can_delete_grant."""

    @pytest.mark.parametrize("role", ["ADMIN", "FINANCE", "VIEWER"])
    def test_non_pi_roles_see_every_grant(self, role):
        assert can_access_grant(role, "clsomeoneelse0001", make_grant())

    def test_pi_sees_only_own_grants(self):
        assert can_access_grant(UserRole.PI, PI_ID, make_grant())
        assert not can_access_grant(UserRole.PI, OTHER_PI_ID, make_grant())

    def test_grant_may_be_an_object(self):
        grant = SimpleNamespace(principal_investigator_id=PI_ID)
        assert can_edit_grant(UserRole.PI, PI_ID, grant)
        assert not can_edit_grant(UserRole.PI, OTHER_PI_ID, grant)

    def test_edit_rights(self):
        grant = make_grant()
        assert can_edit_grant(UserRole.ADMIN, OTHER_PI_ID, grant)
        assert can_edit_grant(UserRole.PI, PI_ID, grant)
        assert not can_edit_grant(UserRole.PI, OTHER_PI_ID, grant)
        assert not can_edit_grant(UserRole.FINANCE, PI_ID, grant)
        assert not can_edit_grant(UserRole.VIEWER, PI_ID, grant)

    def test_grant_without_owner_is_hidden_from_pi(self):
        assert not can_access_grant(UserRole.PI, PI_ID, {})

    def test_only_admin_deletes(self):
        assert can_delete_grant(UserRole.ADMIN)
        for role in ("PI", "FINANCE", "VIEWER"):
            assert not can_delete_grant(role)

    def test_role_capabilities(self):
        assert can_approve_budget(UserRole.FINANCE)
        assert can_approve_budget(UserRole.ADMIN)
        assert not can_approve_budget(UserRole.PI)
        assert can_manage_users(UserRole.ADMIN)
        assert not can_manage_users(UserRole.FINANCE)
        assert can_perform_bulk_operations(UserRole.FINANCE)
        assert not can_perform_bulk_operations(UserRole.PI)


class TestAvailableActions:
    """Tests for the ordered action list."""

    def test_admin_actions(self):
        assert get_available_grant_actions(UserRole.ADMIN, OTHER_PI_ID, make_grant()) == [
            "view",
            "edit",
            "delete",
            "upload_documents",
            "create_reports",
        ]

    def test_owning_pi_actions(self):
        assert get_available_grant_actions(UserRole.PI, PI_ID, make_grant()) == [
            "view",
            "edit",
            "upload_documents",
            "create_reports",
        ]

    def test_foreign_pi_keeps_role_wide_actions(self):
        """Role-wide actions do not depend on grant ownership."""
        assert get_available_grant_actions(UserRole.PI, OTHER_PI_ID, make_grant()) == [
            "upload_documents",
            "create_reports",
        ]

    def test_finance_actions(self):
        assert get_available_grant_actions(UserRole.FINANCE, PI_ID, make_grant()) == [
            "view",
            "upload_documents",
        ]

    def test_viewer_actions(self):
        assert get_available_grant_actions(UserRole.VIEWER, PI_ID, make_grant()) == ["view"]

    def test_unknown_role_has_no_actions(self):
        assert get_available_grant_actions("GUEST", PI_ID, make_grant()) == []


# ============================================================================
# PRESENTATION HELPERS
# ============================================================================


class TestRolePresentation:
    """Tests for display names, descriptions and UI config."""

    def test_display_names(self):
        assert get_role_display_name(UserRole.ADMIN) == "Administrator"
        assert get_role_display_name("PI") == "Principal Investigator"
        assert get_role_display_name(UserRole.FINANCE) == "Finance Officer"
        assert get_role_display_name(UserRole.VIEWER) == "Viewer"

    def test_unknown_role_display_name_is_the_role(self):
        assert get_role_display_name("GUEST") == "GUEST"
        assert get_role_description("GUEST") == ""

    def test_descriptions_exist_for_every_role(self):
        for role in UserRole:
            assert get_role_description(role)

    def test_ui_config_limits(self):
        assert get_role_ui_config(UserRole.ADMIN)["max_grants_visible"] is None
        assert get_role_ui_config(UserRole.PI)["max_grants_visible"] == 50
        assert get_role_ui_config(UserRole.FINANCE)["max_grants_visible"] == 25
        assert get_role_ui_config(UserRole.VIEWER)["max_grants_visible"] == 25

    def test_ui_config_flags(self):
        finance = get_role_ui_config(UserRole.FINANCE)
        assert finance["show_budget_approval"]
        assert not finance["show_admin_panel"]
        assert not finance["show_create_grant"]
        assert get_role_ui_config(UserRole.PI)["show_create_grant"]
        assert get_role_ui_config(UserRole.ADMIN)["can_modify_settings"]
