from asset_service.repositories.permission_repository import get_permission_by_name_db


def test_requests_without_token_are_rejected(client):
    response = client.get("/api/groups/me")

    assert response.status_code == 401
    body = response.json()
    assert body["status"] == 401
    assert body["data"] is None
    assert body["error"] == "Not authenticated"
    assert "timestamp" in body


def test_group_lifecycle_over_http(client, make_user, make_asset, auth_headers):
    alice = make_user("alice")
    bob = make_user("bob")
    make_asset(alice, "Drill", 2)

    response = client.post("/api/groups/", json={"name": "Household"}, headers=auth_headers(alice))
    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Group created"
    group_id = body["data"]["id"]

    response = client.post(
        f"/api/groups/{group_id}/members", json={"user_id": str(bob.id)}, headers=auth_headers(alice)
    )
    assert response.status_code == 200
    assert response.json()["data"]["member_added"] is True

    response = client.get("/api/groups/me", headers=auth_headers(bob))
    assert response.status_code == 200
    members = {m["username"] for m in response.json()["data"]["members"]}
    assert members == {"alice", "bob"}

    response = client.get(f"/api/groups/{group_id}/assets", headers=auth_headers(bob))
    assert [a["name"] for a in response.json()["data"]] == ["Drill"]

    response = client.delete(f"/api/groups/{group_id}/members/{alice.id}", headers=auth_headers(bob))
    assert response.status_code == 403
    assert response.json()["message"] == "Access denied to remove group members"

    response = client.delete(f"/api/groups/{group_id}", headers=auth_headers(alice))
    assert response.status_code == 200
    assert client.get("/api/groups/me", headers=auth_headers(bob)).status_code == 404


def test_duplicate_grant_over_http(client, make_user, auth_headers):
    alice = make_user("alice")
    bob = make_user("bob")
    group_id = client.post("/api/groups/", json={"name": "Household"}, headers=auth_headers(alice)).json()["data"]["id"]
    client.post(f"/api/groups/{group_id}/members", json={"user_id": str(bob.id)}, headers=auth_headers(alice))
    payload = {"user_id": str(bob.id), "permission_id": str(get_permission_by_name_db("Manage").id)}

    first = client.post(f"/api/groups/{group_id}/permissions", json=payload, headers=auth_headers(alice))
    second = client.post(f"/api/groups/{group_id}/permissions", json=payload, headers=auth_headers(alice))

    assert first.status_code == 201
    assert second.status_code == 409
    assert second.json()["message"] == "User already has this permission"


def test_join_by_token_over_http(client, make_user, auth_headers):
    alice = make_user("alice")
    bob = make_user("bob")
    group_id = client.post("/api/groups/", json={"name": "Household"}, headers=auth_headers(alice)).json()["data"]["id"]

    token = client.post(f"/api/groups/{group_id}/invitation-token", headers=auth_headers(alice)).json()["data"]
    response = client.post("/api/groups/join", json={"token": token["invitation_token"]}, headers=auth_headers(bob))

    assert response.status_code == 200
    assert response.json()["data"]["id"] == group_id


def test_stock_adjust_over_http(client, make_user, make_asset, auth_headers):
    alice = make_user("alice")
    asset = make_asset(alice, "Screws", 5)

    response = client.post(
        "/api/stock/adjust",
        json={"asset_id": str(asset.id), "amount": 7, "change_type": "DECREASE"},
        headers=auth_headers(alice),
    )
    assert response.status_code == 409
    assert response.json()["message"] == "insufficient stock"

    response = client.post(
        "/api/stock/adjust",
        json={"asset_id": str(asset.id), "amount": 3, "change_type": "INCREASE"},
        headers=auth_headers(alice),
    )
    assert response.status_code == 200
    assert response.json()["data"]["latest_quantity"] == 8

    history = client.get(f"/api/stock/{asset.id}/history", headers=auth_headers(alice)).json()["data"]
    assert len(history) == 1


def test_invalid_body_uses_envelope(client, make_user, auth_headers):
    alice = make_user("alice")
    response = client.post(
        "/api/stock/adjust",
        json={"asset_id": "not-a-uuid", "amount": 1, "change_type": "SIDEWAYS"},
        headers=auth_headers(alice),
    )
    assert response.status_code == 422
    assert response.json()["message"] == "Invalid request"


def test_permission_catalog_admin_endpoints(client, make_user, auth_headers):
    root = make_user("root", is_admin=True)
    bob = make_user("bob")

    assert client.post("/api/admin/permissions", json={"name": "Audit"}, headers=auth_headers(bob)).status_code == 403
    response = client.post("/api/admin/permissions", json={"name": "Audit"}, headers=auth_headers(root))
    assert response.status_code == 201

    names = {p["name"] for p in client.get("/api/permissions", headers=auth_headers(bob)).json()["data"]}
    assert "Audit" in names


def test_user_settings_toggle_auto_accept(client, make_user, auth_headers):
    alice = make_user("alice")

    response = client.patch(
        "/api/users/me/settings", json={"auto_accept_group_invites": False}, headers=auth_headers(alice)
    )

    assert response.status_code == 200
    assert response.json()["data"]["auto_accept_group_invites"] is False
    assert client.get("/api/users/me", headers=auth_headers(alice)).json()["data"]["username"] == "alice"
