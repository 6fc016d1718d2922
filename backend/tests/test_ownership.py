"""Tests for resource ownership checks."""

import pytest

from spacefy.core.principal import Principal, Role as RoleName
from spacefy.exceptions import ForbiddenError, MisconfiguredRouteError, ResourceNotFoundError
from spacefy.models.business import Branch, Business, Device
from spacefy.models.user import User
from spacefy.repositories.permission_store import SqlPermissionStore
from spacefy.services.ownership_service import OwnershipScope, check_ownership, resolve_scope
from tests.factories import assign_staff, make_branch, make_business, make_user, override_branch


def _principal(user: User) -> Principal:
    return Principal(user_id=user.id, role_id=user.role_id, role_name=user.role_name)


@pytest.fixture()
def store(db):
    return SqlPermissionStore(db)


class TestScopeResolution:

    def test_known_scope_strings(self):
        assert resolve_scope("branch") is OwnershipScope.BRANCH

    def test_unknown_scope_is_a_wiring_error(self):
        with pytest.raises(MisconfiguredRouteError) as exc:
            resolve_scope("tenant")
        assert exc.value.status_code == 500


class TestUserScope:

    def test_self_allowed(self, db, store):
        user = make_user(db, RoleName.CUSTOMER)
        found = check_ownership(db, store, OwnershipScope.USER, User, user.id, _principal(user), owner_field="id")
        assert found.id == user.id

    def test_other_user_denied(self, db, store):
        me = make_user(db, RoleName.CUSTOMER)
        other = make_user(db, RoleName.CUSTOMER)
        with pytest.raises(ForbiddenError, match="another user's user"):
            check_ownership(db, store, OwnershipScope.USER, User, other.id, _principal(me), owner_field="id")

    def test_platform_admin_allowed(self, db, store):
        admin = make_user(db, RoleName.DEVELOPER)
        other = make_user(db, RoleName.CUSTOMER)
        assert check_ownership(db, store, "user", User, other.id, _principal(admin), owner_field="id") is not None

    def test_missing_resource_is_404_before_ownership(self, db, store):
        me = make_user(db, RoleName.CUSTOMER)
        with pytest.raises(ResourceNotFoundError):
            check_ownership(db, store, OwnershipScope.USER, User, "nope", _principal(me), owner_field="id")

    def test_missing_owner_field_is_a_wiring_error(self, db, store):
        owner = make_user(db, RoleName.OWNER)
        branch = make_branch(db, make_business(db, owner))
        with pytest.raises(MisconfiguredRouteError):
            check_ownership(db, store, OwnershipScope.USER, Branch, branch.id, _principal(owner))


class TestBusinessScope:

    def test_owner_allowed(self, db, store):
        owner = make_user(db, RoleName.OWNER)
        business = make_business(db, owner)
        assert check_ownership(db, store, OwnershipScope.BUSINESS, Business, business.id, _principal(owner)) is business

    def test_other_owner_denied(self, db, store):
        owner = make_user(db, RoleName.OWNER)
        rival = make_user(db, RoleName.OWNER)
        business = make_business(db, owner)
        with pytest.raises(ForbiddenError):
            check_ownership(db, store, OwnershipScope.BUSINESS, Business, business.id, _principal(rival))


class TestBranchScope:

    def test_staff_in_assigned_branch(self, db, store):
        owner = make_user(db, RoleName.OWNER)
        branch = make_branch(db, make_business(db, owner))
        staff = make_user(db, RoleName.STAFF)
        assign_staff(db, staff, branch)
        device = Device(branch_id=branch.id, type="PC", hourly_price=5.0)
        db.add(device)
        db.commit()

        assert check_ownership(db, store, OwnershipScope.BRANCH, Device, device.id, _principal(staff)) is device

    def test_resource_outside_path_branch_is_not_found(self, db, store):
        owner = make_user(db, RoleName.OWNER)
        business = make_business(db, owner)
        north, south = make_branch(db, business, "North"), make_branch(db, business, "South")
        device = Device(branch_id=south.id, type="PC", hourly_price=5.0)
        db.add(device)
        db.commit()

        with pytest.raises(ResourceNotFoundError):
            check_ownership(
                db, store, OwnershipScope.BRANCH, Device, device.id, _principal(owner), path_branch_id=north.id
            )
        found = check_ownership(
            db, store, OwnershipScope.BRANCH, Device, device.id, _principal(owner), path_branch_id=south.id
        )
        assert found is device

    def test_staff_outside_branch_denied(self, db, store):
        owner = make_user(db, RoleName.OWNER)
        business = make_business(db, owner)
        home, other = make_branch(db, business, "Home"), make_branch(db, business, "Other")
        staff = make_user(db, RoleName.STAFF)
        assign_staff(db, staff, home)

        with pytest.raises(ForbiddenError):
            check_ownership(db, store, OwnershipScope.BRANCH, Branch, other.id, _principal(staff))

    def test_admin_linked_by_branch_override(self, db, store):
        owner = make_user(db, RoleName.OWNER)
        branch = make_branch(db, make_business(db, owner))
        admin = make_user(db, RoleName.ADMIN)

        with pytest.raises(ForbiddenError):
            check_ownership(db, store, OwnershipScope.BRANCH, Branch, branch.id, _principal(admin))

        override_branch(db, admin, branch, "VIEW-DEVICES")
        assert check_ownership(db, store, OwnershipScope.BRANCH, Branch, branch.id, _principal(admin)) is branch

    def test_bypass_role_allowed(self, db, store):
        owner = make_user(db, RoleName.OWNER)
        branch = make_branch(db, make_business(db, make_user(db, RoleName.OWNER)))
        assert check_ownership(db, store, OwnershipScope.BRANCH, Branch, branch.id, _principal(owner)) is branch
