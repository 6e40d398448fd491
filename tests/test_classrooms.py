from fastapi.testclient import TestClient

from tests.conftest import auth_headers, create_classroom, create_school, enroll


def test_classroom_crud(app_client: TestClient):
    headers = auth_headers(app_client)
    school, admin_headers = create_school(app_client, headers)

    classroom = create_classroom(app_client, admin_headers, name="Room 1", capacity=3)
    assert classroom["school_id"] == school["id"]
    assert classroom["student_count"] == 0
    assert classroom["capacity"] == 3

    fetched = app_client.get(f"/classrooms/{classroom['id']}", headers=admin_headers)
    assert fetched.status_code == 200
    assert fetched.json()["data"]["name"] == "Room 1"

    updated = app_client.put(f"/classrooms/{classroom['id']}", headers=admin_headers, json={"name": "Room 2"})
    assert updated.status_code == 200, updated.text

    fetched = app_client.get(f"/classrooms/{classroom['id']}", headers=admin_headers)
    assert fetched.json()["data"]["name"] == "Room 2"

    listing = app_client.get("/classrooms", headers=admin_headers)
    assert [item["name"] for item in listing.json()["data"]] == ["Room 2"]


def test_super_admin_must_name_the_school(app_client: TestClient):
    headers = auth_headers(app_client)
    school, _ = create_school(app_client, headers)

    missing = app_client.get("/classrooms", headers=headers)
    assert missing.status_code == 400
    assert missing.json() == {"ok": False, "code": "VALIDATION_ERROR", "message": "school_id is required"}

    created = app_client.post(
        "/classrooms", headers=headers, json={"name": "Lab", "capacity": 10, "school_id": school["id"]}
    )
    assert created.status_code == 201, created.text

    listing = app_client.get("/classrooms", headers=headers, params={"school_id": school["id"]})
    assert [item["name"] for item in listing.json()["data"]] == ["Lab"]


def test_super_admin_conflicting_school_ids(app_client: TestClient):
    headers = auth_headers(app_client)
    first, _ = create_school(app_client, headers, name="First School")
    second, _ = create_school(app_client, headers, name="Second School")

    response = app_client.post(
        "/classrooms",
        headers=headers,
        params={"school_id": first["id"]},
        json={"name": "Lab", "capacity": 10, "school_id": second["id"]},
    )
    assert response.status_code == 400


def test_tenant_isolation(app_client: TestClient):
    headers = auth_headers(app_client)
    _, admin_a = create_school(app_client, headers, name="School A")
    school_b, admin_b = create_school(app_client, headers, name="School B")
    classroom_b = create_classroom(app_client, admin_b, name="B room")

    via_query = app_client.get("/classrooms", headers=admin_a, params={"school_id": school_b["id"]})
    assert via_query.status_code == 403
    assert via_query.json()["code"] == "FORBIDDEN"

    via_body = app_client.post(
        "/classrooms", headers=admin_a, json={"name": "Sneaky", "capacity": 5, "school_id": school_b["id"]}
    )
    assert via_body.status_code == 403

    # a classroom of another school is invisible rather than forbidden
    direct = app_client.get(f"/classrooms/{classroom_b['id']}", headers=admin_a)
    assert direct.status_code == 404

    # warm cache does not leak it either
    assert app_client.get(f"/classrooms/{classroom_b['id']}", headers=admin_b).status_code == 200
    assert app_client.get(f"/classrooms/{classroom_b['id']}", headers=admin_a).status_code == 404

    assert app_client.get("/classrooms", headers=admin_a).json()["data"] == []


def test_list_is_invalidated_on_create(app_client: TestClient):
    headers = auth_headers(app_client)
    _, admin_headers = create_school(app_client, headers)
    create_classroom(app_client, admin_headers, name="Room A")

    assert len(app_client.get("/classrooms", headers=admin_headers).json()["data"]) == 1

    create_classroom(app_client, admin_headers, name="Room B")
    names = {item["name"] for item in app_client.get("/classrooms", headers=admin_headers).json()["data"]}
    assert names == {"Room A", "Room B"}


def test_cached_classroom_reflects_enrollment(app_client: TestClient):
    headers = auth_headers(app_client)
    _, admin_headers = create_school(app_client, headers)
    classroom = create_classroom(app_client, admin_headers, capacity=2)

    assert app_client.get(f"/classrooms/{classroom['id']}", headers=admin_headers).json()["data"]["student_count"] == 0
    assert enroll(app_client, admin_headers, classroom["id"], "kid@school.test").status_code == 201

    fetched = app_client.get(f"/classrooms/{classroom['id']}", headers=admin_headers).json()["data"]
    assert fetched["student_count"] == 1
    listed = app_client.get("/classrooms", headers=admin_headers).json()["data"]
    assert listed[0]["student_count"] == 1


def test_capacity_cannot_drop_below_enrollment(app_client: TestClient):
    headers = auth_headers(app_client)
    _, admin_headers = create_school(app_client, headers)
    classroom = create_classroom(app_client, admin_headers, capacity=3)
    for index in range(2):
        assert enroll(app_client, admin_headers, classroom["id"], f"kid{index}@school.test").status_code == 201

    shrink = app_client.put(f"/classrooms/{classroom['id']}", headers=admin_headers, json={"capacity": 1})
    assert shrink.status_code == 409
    assert shrink.json()["code"] == "CAPACITY_BELOW_ENROLLMENT"

    exact = app_client.put(f"/classrooms/{classroom['id']}", headers=admin_headers, json={"capacity": 2})
    assert exact.status_code == 200
    assert exact.json()["data"]["capacity"] == 2


def test_invalid_capacity_is_rejected(app_client: TestClient):
    headers = auth_headers(app_client)
    _, admin_headers = create_school(app_client, headers)

    response = app_client.post("/classrooms", headers=admin_headers, json={"name": "Room", "capacity": 0})
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_delete_and_restore_classroom(app_client: TestClient):
    headers = auth_headers(app_client)
    _, admin_headers = create_school(app_client, headers)
    classroom = create_classroom(app_client, admin_headers)
    classroom_id = classroom["id"]
    app_client.get(f"/classrooms/{classroom_id}", headers=admin_headers)

    deleted = app_client.delete(f"/classrooms/{classroom_id}", headers=admin_headers)
    assert deleted.status_code == 200
    assert app_client.get(f"/classrooms/{classroom_id}", headers=admin_headers).status_code == 404
    assert app_client.get("/classrooms", headers=admin_headers).json()["data"] == []

    blocked = enroll(app_client, admin_headers, classroom_id, "late@school.test")
    assert blocked.status_code == 404
    assert blocked.json()["code"] == "CLASSROOM_NOT_FOUND"

    restored = app_client.post(f"/classrooms/{classroom_id}/restore", headers=admin_headers)
    assert restored.status_code == 200, restored.text
    assert restored.json()["data"]["deleted_at"] is None
    assert len(app_client.get("/classrooms", headers=admin_headers).json()["data"]) == 1

    assert app_client.post(f"/classrooms/{classroom_id}/restore", headers=admin_headers).status_code == 404


def test_recovery_listing_includes_deleted_classrooms(app_client: TestClient):
    headers = auth_headers(app_client)
    _, admin_headers = create_school(app_client, headers)
    kept = create_classroom(app_client, admin_headers, name="Kept")
    gone = create_classroom(app_client, admin_headers, name="Gone")
    app_client.get("/classrooms", headers=admin_headers)
    app_client.delete(f"/classrooms/{gone['id']}", headers=admin_headers)

    listing = app_client.get("/classrooms", headers=admin_headers, params={"include_deleted": True})
    assert listing.status_code == 200
    rooms = {item["id"]: item for item in listing.json()["data"]}
    assert set(rooms) == {kept["id"], gone["id"]}
    assert rooms[gone["id"]]["deleted_at"] is not None

    # the recovery listing never reaches the cached tenant list
    active = app_client.get("/classrooms", headers=admin_headers).json()["data"]
    assert [item["id"] for item in active] == [kept["id"]]
    restored = app_client.post(f"/classrooms/{gone['id']}/restore", headers=admin_headers)
    assert restored.status_code == 200
