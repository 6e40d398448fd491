from fastapi.testclient import TestClient

from tests.conftest import auth_headers, create_school, create_school_admin


def test_school_crud_and_soft_delete_round_trip(app_client: TestClient):
    headers = auth_headers(app_client)
    school, _ = create_school(app_client, headers, name="River School")
    school_id = school["id"]
    assert school["deleted_at"] is None

    fetched = app_client.get(f"/schools/{school_id}", headers=headers)
    assert fetched.status_code == 200
    assert fetched.json()["data"]["name"] == "River School"

    updated = app_client.put(f"/schools/{school_id}", headers=headers, json={"name": "River Academy"})
    assert updated.status_code == 200, updated.text
    assert updated.json()["data"]["name"] == "River Academy"

    # read-after-write through the cache
    fetched = app_client.get(f"/schools/{school_id}", headers=headers)
    assert fetched.json()["data"]["name"] == "River Academy"

    deleted = app_client.delete(f"/schools/{school_id}", headers=headers)
    assert deleted.status_code == 200
    assert deleted.json() == {"ok": True, "message": "School deleted"}

    missing = app_client.get(f"/schools/{school_id}", headers=headers)
    assert missing.status_code == 404
    assert missing.json()["code"] == "NOT_FOUND"

    again = app_client.delete(f"/schools/{school_id}", headers=headers)
    assert again.status_code == 404

    listing = app_client.get("/schools", headers=headers).json()["data"]
    assert school_id not in [item["id"] for item in listing["items"]]

    with_deleted = app_client.get("/schools", headers=headers, params={"include_deleted": True}).json()["data"]
    tombstone = next(item for item in with_deleted["items"] if item["id"] == school_id)
    assert tombstone["deleted_at"] is not None
    assert tombstone["deleted_by"] is not None

    restored = app_client.post(f"/schools/{school_id}/restore", headers=headers)
    assert restored.status_code == 200, restored.text
    assert restored.json()["data"]["deleted_at"] is None
    assert app_client.get(f"/schools/{school_id}", headers=headers).status_code == 200


def test_restore_active_school_is_not_found(app_client: TestClient):
    headers = auth_headers(app_client)
    school, _ = create_school(app_client, headers)

    response = app_client.post(f"/schools/{school['id']}/restore", headers=headers)
    assert response.status_code == 404


def test_update_requires_a_field(app_client: TestClient):
    headers = auth_headers(app_client)
    school, _ = create_school(app_client, headers)

    response = app_client.put(f"/schools/{school['id']}", headers=headers, json={})
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_create_school_validates_payload_and_admin(app_client: TestClient):
    headers = auth_headers(app_client)

    invalid = app_client.post("/schools", headers=headers, json={"name": "X", "address": "1 Main Street"})
    assert invalid.status_code == 400
    body = invalid.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert {detail["field"] for detail in body["details"]} >= {"body.name", "body.admin_id"}

    unknown_admin = app_client.post(
        "/schools",
        headers=headers,
        json={"name": "Ghost School", "address": "1 Main Street", "admin_id": "does-not-exist"},
    )
    assert unknown_admin.status_code == 404


def test_school_admin_scope(app_client: TestClient):
    headers = auth_headers(app_client)
    own, admin_headers = create_school(app_client, headers, name="Own School")
    other, _ = create_school(app_client, headers, name="Other School")

    assert app_client.get(f"/schools/{own['id']}", headers=admin_headers).status_code == 200

    foreign = app_client.get(f"/schools/{other['id']}", headers=admin_headers)
    assert foreign.status_code == 403
    assert foreign.json() == {"ok": False, "code": "FORBIDDEN", "message": "Access denied"}

    assert app_client.get("/schools", headers=admin_headers).status_code == 403
    assert app_client.delete(f"/schools/{own['id']}", headers=admin_headers).status_code == 403
    assert app_client.put(f"/schools/{own['id']}", headers=admin_headers, json={"name": "Mine"}).status_code == 403


def test_school_admin_without_school_is_forbidden(app_client: TestClient):
    headers = auth_headers(app_client)
    school, _ = create_school(app_client, headers)
    orphan = create_school_admin(app_client, headers)

    login = app_client.post("/auth/login", json={"email": orphan["email"], "password": "secret123"})
    orphan_headers = {"Authorization": f"Bearer {login.json()['access_token']}"}

    assert app_client.get(f"/schools/{school['id']}", headers=orphan_headers).status_code == 403
    assert app_client.get("/classrooms", headers=orphan_headers).status_code == 403


def test_school_list_pagination(app_client: TestClient):
    headers = auth_headers(app_client)
    created = {create_school(app_client, headers, name=f"School {index}")[0]["id"] for index in range(3)}

    first = app_client.get("/schools", headers=headers, params={"limit": 2}).json()["data"]
    assert len(first["items"]) == 2
    assert first["hasMore"] is True
    assert first["nextCursor"] == first["items"][-1]["id"]

    second = app_client.get(
        "/schools", headers=headers, params={"limit": 2, "cursor": first["nextCursor"]}
    ).json()["data"]
    assert len(second["items"]) == 1
    assert second["hasMore"] is False
    assert second["nextCursor"] is None

    seen = [item["id"] for item in first["items"] + second["items"]]
    assert seen == sorted(seen)
    assert set(seen) == created


def test_oversized_limit_is_clamped(app_client: TestClient):
    headers = auth_headers(app_client)
    create_school(app_client, headers)

    response = app_client.get("/schools", headers=headers, params={"limit": 1000})
    assert response.status_code == 200
    assert response.json()["data"]["hasMore"] is False

    rejected = app_client.get("/schools", headers=headers, params={"limit": 0})
    assert rejected.status_code == 400


def test_page_uses_camel_case_cursor_fields(app_client: TestClient):
    headers = auth_headers(app_client)
    create_school(app_client, headers)

    data = app_client.get("/schools", headers=headers).json()["data"]
    assert set(data) == {"items", "nextCursor", "hasMore"}
