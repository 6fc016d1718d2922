"""Authorization through the HTTP layer: permissions, branch access, ownership."""

from spacefy.core.principal import Role as RoleName
from spacefy.models.business import Device, StaffProfile
from spacefy.models.permission import Permission
from tests.factories import (
    API,
    assign_staff,
    auth_headers,
    grant_role,
    make_branch,
    make_business,
    make_user,
    override_branch,
    override_user,
)


def _device(client, headers, branch_id, **overrides):
    payload = {"branch_id": branch_id, "type": "PC", "hourly_price": 4.5}
    payload.update(overrides)
    return client.post(f"{API}/devices", json=payload, headers=headers)


class TestPermissionGate:

    def test_no_grant_is_403_with_readable_name(self, client, db):
        admin = make_user(db, RoleName.ADMIN)
        resp = client.get(f"{API}/businesses", headers=auth_headers(admin))
        assert resp.status_code == 403
        body = resp.json()
        assert body["success"] is False
        assert body["message"] == "Forbidden: You do not have permission to perform View Businesses"

    def test_role_grant_allows(self, client, db):
        grant_role(db, RoleName.ADMIN, "VIEW-BUSINESSES")
        admin = make_user(db, RoleName.ADMIN)
        resp = client.get(f"{API}/businesses", headers=auth_headers(admin))
        assert resp.status_code == 200
        assert resp.json()["meta"]["page"] == 1

    def test_user_deny_beats_role_grant(self, client, db):
        grant_role(db, RoleName.ADMIN, "VIEW-BUSINESSES")
        admin = make_user(db, RoleName.ADMIN)
        override_user(db, admin, "VIEW-BUSINESSES", is_allowed=False)
        assert client.get(f"{API}/businesses", headers=auth_headers(admin)).status_code == 403

    def test_bypass_role_needs_no_grant(self, client, db):
        owner = make_user(db, RoleName.OWNER)
        assert client.get(f"{API}/businesses", headers=auth_headers(owner)).status_code == 200

    def test_permission_missing_from_catalog_is_500(self, client, db):
        db.query(Permission).filter(Permission.name == "VIEW-BUSINESSES").delete()
        db.commit()
        admin = make_user(db, RoleName.ADMIN)
        resp = client.get(f"{API}/businesses", headers=auth_headers(admin))
        assert resp.status_code == 500
        assert resp.json()["error"] == "PERMISSION_NOT_CONFIGURED"

    def test_platform_admin_only_route(self, client, db):
        owner = make_user(db, RoleName.OWNER)
        resp = client.post(f"{API}/roles", json={"name": "manager"}, headers=auth_headers(owner))
        assert resp.status_code == 403

        dev = make_user(db, RoleName.DEVELOPER)
        resp = client.post(f"{API}/roles", json={"name": "manager"}, headers=auth_headers(dev))
        assert resp.status_code == 201
        assert resp.json()["data"]["name"] == "MANAGER"


class TestBranchScopedRoutes:

    def _setup(self, db):
        owner = make_user(db, RoleName.OWNER)
        business = make_business(db, owner)
        return owner, make_branch(db, business, "North"), make_branch(db, business, "South")

    def test_branch_id_required(self, client, db):
        grant_role(db, RoleName.ADMIN, "CREATE-DEVICES")
        admin = make_user(db, RoleName.ADMIN)
        resp = client.post(f"{API}/devices", json={"type": "PC", "hourly_price": 1}, headers=auth_headers(admin))
        assert resp.status_code == 400

    def test_admin_without_branch_link_denied(self, client, db):
        _, north, _ = self._setup(db)
        grant_role(db, RoleName.ADMIN, "VIEW-DEVICES")
        admin = make_user(db, RoleName.ADMIN)
        resp = client.get(f"{API}/devices/branch/{north.id}", headers=auth_headers(admin))
        assert resp.status_code == 403
        assert resp.json()["message"] == "You do not have access to this branch"

    def test_branch_override_links_and_allows(self, client, db):
        _, north, south = self._setup(db)
        admin = make_user(db, RoleName.ADMIN)
        override_branch(db, admin, north, "VIEW-DEVICES")

        assert client.get(f"{API}/devices/branch/{north.id}", headers=auth_headers(admin)).status_code == 200
        assert client.get(f"{API}/devices/branch/{south.id}", headers=auth_headers(admin)).status_code == 403

    def test_branch_deny_beats_user_allow(self, client, db):
        _, north, _ = self._setup(db)
        admin = make_user(db, RoleName.ADMIN)
        override_user(db, admin, "VIEW-DEVICES", is_allowed=True)
        override_branch(db, admin, north, "VIEW-DEVICES", is_allowed=False)
        assert client.get(f"{API}/devices/branch/{north.id}", headers=auth_headers(admin)).status_code == 403

    def test_staff_confined_to_assigned_branch(self, client, db):
        _, north, south = self._setup(db)
        grant_role(db, RoleName.STAFF, "VIEW-DEVICES", "CREATE-DEVICES")
        staff = make_user(db, RoleName.STAFF)
        assign_staff(db, staff, north)
        headers = auth_headers(staff)

        assert _device(client, headers, north.id).status_code == 201
        assert _device(client, headers, south.id).status_code == 403
        resp = client.get(f"{API}/devices/branch/{north.id}", headers=headers)
        assert resp.status_code == 200
        assert resp.json()["meta"]["total"] == 1

    def test_device_route_checks_device_branch(self, client, db):
        owner, north, south = self._setup(db)
        device_id = _device(client, auth_headers(owner), south.id).json()["data"]["id"]

        grant_role(db, RoleName.STAFF, "VIEW-DEVICES")
        staff = make_user(db, RoleName.STAFF)
        assign_staff(db, staff, north)

        # Path names a branch the staff member holds, the device lives elsewhere.
        resp = client.get(f"{API}/devices/{north.id}/{device_id}", headers=auth_headers(staff))
        assert resp.status_code == 404

    def test_other_device_type_needs_label(self, client, db):
        owner, north, _ = self._setup(db)
        resp = _device(client, auth_headers(owner), north.id, type="OTHER")
        assert resp.status_code == 400
        resp = _device(client, auth_headers(owner), north.id, type="OTHER", custom_type_label="Pinball")
        assert resp.status_code == 201

    def test_multiple_branch_ids_all_checked(self, client, db):
        _, north, south = self._setup(db)
        target = make_user(db, RoleName.ADMIN)
        admin = make_user(db, RoleName.ADMIN)
        override_branch(db, admin, north, "CREATE-BRANCH-USER-PERMISSIONS")
        payload = {
            "user_id": target.id,
            "branch_ids": [north.id, south.id],
            "permission_ids": [db.query(Permission.id).filter(Permission.name == "VIEW-DEVICES").scalar()],
            "is_allowed": True,
        }
        resp = client.post(f"{API}/branch-user-permissions", json=payload, headers=auth_headers(admin))
        assert resp.status_code == 403

        payload["branch_ids"] = [north.id]
        resp = client.post(f"{API}/branch-user-permissions", json=payload, headers=auth_headers(admin))
        assert resp.status_code == 201
        assert resp.json()["data"]["inserted_count"] == 1


class TestCrossBranchItemRoutes:
    """Item routes whose path branch differs from the item's own branch."""

    def _setup(self, db, name):
        owner = make_user(db, RoleName.OWNER)
        business = make_business(db, owner)
        north, south = make_branch(db, business, "North"), make_branch(db, business, "South")
        admin = make_user(db, RoleName.ADMIN)
        override_branch(db, admin, north, name, is_allowed=True)
        override_branch(db, admin, south, name, is_allowed=False)
        return owner, north, south, admin

    def test_device_update_denied_in_its_branch_stays_denied(self, client, db):
        owner, north, south, admin = self._setup(db, "UPDATE-DEVICES")
        device_id = _device(client, auth_headers(owner), south.id).json()["data"]["id"]
        headers = auth_headers(admin)

        resp = client.patch(f"{API}/devices/{south.id}/{device_id}", json={"hourly_price": 99}, headers=headers)
        assert resp.status_code == 403
        resp = client.patch(f"{API}/devices/{north.id}/{device_id}", json={"hourly_price": 99}, headers=headers)
        assert resp.status_code == 404

        db.expire_all()
        assert db.query(Device).filter(Device.id == device_id).one().hourly_price == 4.5

    def test_device_delete_through_other_branch_is_404(self, client, db):
        owner, north, south, admin = self._setup(db, "DELETE-DEVICES")
        device_id = _device(client, auth_headers(owner), south.id).json()["data"]["id"]

        resp = client.delete(f"{API}/devices/{north.id}/{device_id}", headers=auth_headers(admin))
        assert resp.status_code == 404
        db.expire_all()
        assert db.query(Device).filter(Device.id == device_id).count() == 1

    def test_device_in_path_branch_still_allowed(self, client, db):
        owner, north, _, admin = self._setup(db, "UPDATE-DEVICES")
        device_id = _device(client, auth_headers(owner), north.id).json()["data"]["id"]

        resp = client.patch(
            f"{API}/devices/{north.id}/{device_id}", json={"hourly_price": 6}, headers=auth_headers(admin)
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["hourly_price"] == 6

    def test_staff_profile_delete_through_other_branch_is_404(self, client, db):
        _, north, south, admin = self._setup(db, "DELETE-STAFF-PROFILES")
        profile = assign_staff(db, make_user(db, RoleName.STAFF), south)
        profile_id = profile.id

        resp = client.delete(f"{API}/staff-profiles/{north.id}/{profile_id}", headers=auth_headers(admin))
        assert resp.status_code == 404
        resp = client.delete(f"{API}/staff-profiles/{south.id}/{profile_id}", headers=auth_headers(admin))
        assert resp.status_code == 403

        db.expire_all()
        assert db.query(StaffProfile).filter(StaffProfile.id == profile_id).count() == 1


class TestOwnership:

    def test_business_owner_only(self, client, db):
        owner = make_user(db, RoleName.OWNER)
        rival = make_user(db, RoleName.OWNER)
        business = make_business(db, owner)

        assert client.get(f"{API}/businesses/{business.id}", headers=auth_headers(owner)).status_code == 200
        # The owner's read is now cached; ownership still runs for the rival.
        resp = client.get(f"{API}/businesses/{business.id}", headers=auth_headers(rival))
        assert resp.status_code == 403

    def test_platform_admin_sees_any_business(self, client, db):
        business = make_business(db, make_user(db, RoleName.OWNER))
        dev = make_user(db, RoleName.DEVELOPER)
        assert client.get(f"{API}/businesses/{business.id}", headers=auth_headers(dev)).status_code == 200

    def test_missing_business_is_404(self, client, db):
        owner = make_user(db, RoleName.OWNER)
        resp = client.get(f"{API}/businesses/does-not-exist", headers=auth_headers(owner))
        assert resp.status_code == 404
        assert resp.json()["error"] == "RESOURCE_NOT_FOUND"

    def test_branch_only_on_own_business(self, client, db):
        owner = make_user(db, RoleName.OWNER)
        rival = make_user(db, RoleName.OWNER)
        business = make_business(db, owner)
        payload = {"business_id": business.id, "name": "East"}

        assert client.post(f"{API}/branches", json=payload, headers=auth_headers(rival)).status_code == 403
        assert client.post(f"{API}/branches", json=payload, headers=auth_headers(owner)).status_code == 201

    def test_user_reads_only_self(self, client, db):
        grant_role(db, RoleName.CUSTOMER, "VIEW-USERS")
        me = make_user(db, RoleName.CUSTOMER)
        other = make_user(db, RoleName.CUSTOMER)

        assert client.get(f"{API}/users/{me.id}", headers=auth_headers(me)).status_code == 200
        resp = client.get(f"{API}/users/{other.id}", headers=auth_headers(me))
        assert resp.status_code == 403
        assert resp.json()["message"] == "You cannot access another user's user"
