import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select

from app.db.session import get_session_factory
from app.models.audit_log import AuditLog
from app.services.audit import AuditService
from tests.conftest import auth_headers, create_classroom, create_school, enroll


def _audit_rows() -> list[AuditLog]:
    with get_session_factory()() as db:
        return list(db.scalars(select(AuditLog).order_by(AuditLog.created_at.asc())).all())


def test_mutations_are_audited(app_client: TestClient):
    headers = auth_headers(app_client)
    school, admin_headers = create_school(app_client, headers)
    classroom = create_classroom(app_client, admin_headers)
    student = enroll(app_client, admin_headers, classroom["id"], "kid@school.test").json()["data"]
    app_client.put(f"/classrooms/{classroom['id']}", headers=admin_headers, json={"name": "Renamed"})
    app_client.delete(f"/students/{student['id']}", headers=admin_headers)

    app_client.app.state.runner.flush()
    rows = _audit_rows()

    recorded = {(row.action, row.resource_type, row.resource_id) for row in rows}
    assert ("CREATE", "School", school["id"]) in recorded
    assert ("CREATE", "Classroom", classroom["id"]) in recorded
    assert ("CREATE", "Student", student["id"]) in recorded
    assert ("UPDATE", "Classroom", classroom["id"]) in recorded
    assert ("SOFT_DELETE", "Student", student["id"]) in recorded

    update = next(row for row in rows if row.action == "UPDATE")
    assert update.changes["before"]["name"] == "Room A"
    assert update.changes["after"]["name"] == "Renamed"
    assert update.school_id == school["id"]
    assert update.performed_by is not None


def test_audit_failure_does_not_fail_request(app_client: TestClient, monkeypatch: pytest.MonkeyPatch):
    headers = auth_headers(app_client)
    _, admin_headers = create_school(app_client, headers)
    app_client.app.state.runner.flush()

    def broken_write(self, entry):
        raise RuntimeError("audit storage unavailable")

    monkeypatch.setattr(AuditService, "_write", broken_write)

    classroom = create_classroom(app_client, admin_headers)
    response = enroll(app_client, admin_headers, classroom["id"], "kid@school.test")
    assert response.status_code == 201

    app_client.app.state.runner.flush()
    assert not any(row.resource_type == "Student" for row in _audit_rows())
