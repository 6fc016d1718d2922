"""Space endpoints: branch-scoped CRUD, listing filters, and caching."""

from spacefy.core.principal import Role as RoleName
from tests.factories import (
    API,
    assign_staff,
    auth_headers,
    drain_invalidations,
    grant_role,
    make_branch,
    make_business,
    make_user,
    override_branch,
)


def _space(client, headers, branch_id, **overrides):
    payload = {"branch_id": branch_id, "name": "Room A", "type": "MEETING", "capacity": 8}
    payload.update(overrides)
    return client.post(f"{API}/spaces", json=payload, headers=headers)


def _setup(db):
    owner = make_user(db, RoleName.OWNER)
    business = make_business(db, owner)
    return owner, make_branch(db, business, "North"), make_branch(db, business, "South")


class TestSpaceCrud:

    def test_create_and_get(self, client, db):
        owner, north, _ = _setup(db)
        headers = auth_headers(owner)
        created = _space(client, headers, north.id)
        assert created.status_code == 201
        space = created.json()["data"]
        assert space["type"] == "MEETING"
        assert space["is_active"] is True

        resp = client.get(f"{API}/spaces/{north.id}/{space['id']}", headers=headers)
        assert resp.status_code == 200
        assert resp.json()["data"]["capacity"] == 8

    def test_label_only_for_other_type(self, client, db):
        owner, north, _ = _setup(db)
        headers = auth_headers(owner)
        assert _space(client, headers, north.id, custom_type_label="Nook").status_code == 400
        resp = _space(client, headers, north.id, type="OTHER", custom_type_label="Nook")
        assert resp.status_code == 201
        assert resp.json()["data"]["custom_type_label"] == "Nook"

    def test_capacity_must_be_positive(self, client, db):
        owner, north, _ = _setup(db)
        assert _space(client, auth_headers(owner), north.id, capacity=0).status_code == 400

    def test_unknown_branch_is_404(self, client, db):
        owner, _, _ = _setup(db)
        assert _space(client, auth_headers(owner), "no-such-branch").status_code == 404

    def test_update_and_delete(self, client, db):
        owner, north, _ = _setup(db)
        headers = auth_headers(owner)
        space_id = _space(client, headers, north.id).json()["data"]["id"]

        resp = client.patch(f"{API}/spaces/{north.id}/{space_id}", json={"capacity": 12}, headers=headers)
        assert resp.status_code == 200
        assert resp.json()["data"]["capacity"] == 12

        assert client.patch(f"{API}/spaces/{north.id}/{space_id}", json={}, headers=headers).status_code == 400

        assert client.delete(f"{API}/spaces/{north.id}/{space_id}", headers=headers).status_code == 200
        assert client.get(f"{API}/spaces/{north.id}/{space_id}", headers=headers).status_code == 404


class TestSpaceListing:

    def test_filters_by_type_and_active(self, client, db):
        owner, north, south = _setup(db)
        headers = auth_headers(owner)
        _space(client, headers, north.id, name="Desk 1", type="DESK")
        _space(client, headers, north.id, name="Desk 2", type="DESK", is_active=False)
        _space(client, headers, north.id, name="Board", type="MEETING")
        _space(client, headers, south.id, name="Elsewhere", type="DESK")

        assert client.get(f"{API}/spaces/branch/{north.id}", headers=headers).json()["meta"]["total"] == 3
        desks = client.get(f"{API}/spaces/branch/{north.id}?type=DESK", headers=headers).json()
        assert desks["meta"]["total"] == 2
        active = client.get(f"{API}/spaces/branch/{north.id}?type=DESK&is_active=true", headers=headers).json()
        assert [s["name"] for s in active["data"]] == ["Desk 1"]

    def test_filters_are_part_of_the_cache_key(self, client, db, cache_store):
        owner, north, _ = _setup(db)
        headers = auth_headers(owner)
        _space(client, headers, north.id, type="DESK")
        drain_invalidations(client)

        client.get(f"{API}/spaces/branch/{north.id}", headers=headers)
        filtered = client.get(f"{API}/spaces/branch/{north.id}?type=VIP", headers=headers)
        assert filtered.json()["source"] == "database"
        assert filtered.json()["meta"]["total"] == 0
        key = f"spaces:branch_id={north.id}:type=VIP:is_active=all:page=1:limit=10:sort=created_at:order=desc"
        assert key in cache_store.values

    def test_create_invalidates_branch_listing(self, client, db):
        owner, north, _ = _setup(db)
        headers = auth_headers(owner)
        client.get(f"{API}/spaces/branch/{north.id}", headers=headers)

        assert _space(client, headers, north.id).status_code == 201
        drain_invalidations(client)

        listing = client.get(f"{API}/spaces/branch/{north.id}", headers=headers).json()
        assert listing["source"] == "database"
        assert listing["meta"]["total"] == 1


class TestSpaceAccess:

    def test_staff_confined_to_assigned_branch(self, client, db):
        owner, north, south = _setup(db)
        south_space = _space(client, auth_headers(owner), south.id).json()["data"]["id"]
        grant_role(db, RoleName.STAFF, "VIEW-SPACES", "CREATE-SPACES")
        staff = make_user(db, RoleName.STAFF)
        assign_staff(db, staff, north)
        headers = auth_headers(staff)

        assert _space(client, headers, north.id).status_code == 201
        assert _space(client, headers, south.id).status_code == 403
        assert client.get(f"{API}/spaces/branch/{south.id}", headers=headers).status_code == 403
        assert client.get(f"{API}/spaces/{north.id}/{south_space}", headers=headers).status_code == 404

    def test_branch_deny_holds_for_other_branch_path(self, client, db):
        owner, north, south = _setup(db)
        space_id = _space(client, auth_headers(owner), south.id).json()["data"]["id"]
        admin = make_user(db, RoleName.ADMIN)
        override_branch(db, admin, north, "UPDATE-SPACES", is_allowed=True)
        override_branch(db, admin, south, "UPDATE-SPACES", is_allowed=False)
        headers = auth_headers(admin)

        resp = client.patch(f"{API}/spaces/{south.id}/{space_id}", json={"capacity": 2}, headers=headers)
        assert resp.status_code == 403
        resp = client.patch(f"{API}/spaces/{north.id}/{space_id}", json={"capacity": 2}, headers=headers)
        assert resp.status_code == 404
