"""Tests for the layered permission resolver and the branch access checker."""

import pytest

from spacefy.core.principal import Principal
from spacefy.exceptions import PermissionNotFoundError
from spacefy.services.permission_service import (
    authorize,
    can_access_branch,
    format_permission,
    is_platform_admin,
)
from tests.fakes import InMemoryPermissionStore


@pytest.fixture()
def store():
    s = InMemoryPermissionStore()
    s.add_permission("VIEW-DEVICES")
    s.add_permission("UPDATE-DEVICES")
    return s


ADMIN = Principal(user_id="u1", role_id="role-admin", role_name="ADMIN")
STAFF = Principal(user_id="u2", role_id="role-staff", role_name="STAFF")


class TestBypassRoles:

    @pytest.mark.parametrize("role_name", ["OWNER", "DEVELOPER", "owner"])
    def test_bypass_role_allowed_without_lookup(self, store, role_name):
        principal = Principal(user_id="x", role_id="r", role_name=role_name)
        assert authorize(store, principal, "VIEW-DEVICES") is True
        assert store.lookups == 0

    def test_bypass_role_allowed_for_unknown_permission(self, store):
        owner = Principal(user_id="x", role_id="r", role_name="OWNER")
        assert authorize(store, owner, "NOT-IN-CATALOG") is True

    def test_custom_bypass_set(self, store):
        assert authorize(store, ADMIN, "VIEW-DEVICES", bypass_roles=frozenset({"ADMIN"})) is True


class TestPrecedence:

    def test_no_rows_denies(self, store):
        assert authorize(store, ADMIN, "VIEW-DEVICES") is False

    def test_unknown_permission_raises(self, store):
        with pytest.raises(PermissionNotFoundError) as exc:
            authorize(store, ADMIN, "FLY-DEVICES")
        assert exc.value.status_code == 500

    def test_role_grant_allows(self, store):
        store.role_grants.add(("role-admin", "perm-view-devices"))
        assert authorize(store, ADMIN, "VIEW-DEVICES") is True

    def test_user_deny_beats_role_grant(self, store):
        store.role_grants.add(("role-admin", "perm-view-devices"))
        store.user_overrides[("u1", "perm-view-devices")] = False
        assert authorize(store, ADMIN, "VIEW-DEVICES") is False

    def test_user_allow_without_role_grant(self, store):
        store.user_overrides[("u1", "perm-view-devices")] = True
        assert authorize(store, ADMIN, "VIEW-DEVICES") is True

    def test_branch_deny_beats_user_allow(self, store):
        store.user_overrides[("u1", "perm-view-devices")] = True
        store.branch_overrides[("u1", "b1", "perm-view-devices")] = False
        assert authorize(store, ADMIN, "VIEW-DEVICES", branch_id="b1") is False

    def test_branch_allow_beats_user_deny(self, store):
        store.user_overrides[("u1", "perm-view-devices")] = False
        store.branch_overrides[("u1", "b1", "perm-view-devices")] = True
        assert authorize(store, ADMIN, "VIEW-DEVICES", branch_id="b1") is True

    def test_branch_override_ignored_without_branch(self, store):
        store.branch_overrides[("u1", "b1", "perm-view-devices")] = True
        assert authorize(store, ADMIN, "VIEW-DEVICES") is False

    def test_branch_override_for_other_branch_falls_through(self, store):
        store.branch_overrides[("u1", "b2", "perm-view-devices")] = False
        store.role_grants.add(("role-admin", "perm-view-devices"))
        assert authorize(store, ADMIN, "VIEW-DEVICES", branch_id="b1") is True

    def test_override_is_per_permission(self, store):
        store.user_overrides[("u1", "perm-update-devices")] = True
        assert authorize(store, ADMIN, "VIEW-DEVICES") is False


class TestBranchAccess:

    def test_bypass_role_has_access(self, store):
        assert can_access_branch(store, "x", "DEVELOPER", "b1") is True

    def test_staff_needs_assignment(self, store):
        assert can_access_branch(store, "u2", "STAFF", "b1") is False
        store.staff_assignments.add(("u2", "b1"))
        assert can_access_branch(store, "u2", "STAFF", "b1") is True

    def test_staff_branch_override_does_not_grant_access(self, store):
        store.branch_overrides[("u2", "b1", "perm-view-devices")] = True
        assert can_access_branch(store, "u2", "STAFF", "b1") is False

    def test_other_role_linked_by_any_branch_override(self, store):
        assert can_access_branch(store, "u1", "ADMIN", "b1") is False
        store.branch_overrides[("u1", "b1", "perm-update-devices")] = False
        # Any row links the user to the branch, even a deny for another permission.
        assert can_access_branch(store, "u1", "ADMIN", "b1") is True
        assert can_access_branch(store, "u1", "ADMIN", "b2") is False


class TestHelpers:

    def test_format_permission(self):
        assert format_permission("VIEW-DEVICES") == "View Devices"
        assert format_permission("DELETE-BRANCH-USER-PERMISSIONS") == "Delete Branch User Permissions"

    def test_is_platform_admin(self):
        assert is_platform_admin(Principal("x", "r", "developer")) is True
        assert is_platform_admin(Principal("x", "r", "OWNER")) is False


class TestStaffBranchDeny:

    def test_branch_deny_only_applies_inside_that_branch(self, store):
        store.role_grants.add(("role-staff", "perm-view-devices"))
        store.branch_overrides[("u2", "b1", "perm-view-devices")] = False

        assert authorize(store, STAFF, "VIEW-DEVICES", branch_id="b1") is False
        assert authorize(store, STAFF, "VIEW-DEVICES") is True

    def test_removing_layers_falls_back_in_order(self, store):
        store.role_grants.add(("role-admin", "perm-view-devices"))
        store.user_overrides[("u1", "perm-view-devices")] = False
        store.branch_overrides[("u1", "b1", "perm-view-devices")] = True
        assert authorize(store, ADMIN, "VIEW-DEVICES", branch_id="b1") is True

        del store.branch_overrides[("u1", "b1", "perm-view-devices")]
        assert authorize(store, ADMIN, "VIEW-DEVICES", branch_id="b1") is False

        del store.user_overrides[("u1", "perm-view-devices")]
        assert authorize(store, ADMIN, "VIEW-DEVICES", branch_id="b1") is True

        store.role_grants.clear()
        assert authorize(store, ADMIN, "VIEW-DEVICES", branch_id="b1") is False
