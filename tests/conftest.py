from pathlib import Path
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

SUPER_ADMIN_EMAIL = "root@school.test"
SUPER_ADMIN_PASSWORD = "admin123"
DEFAULT_PASSWORD = "secret123"


@pytest.fixture()
def app_client(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    db_file = tmp_path / "test.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite+pysqlite:///{db_file.as_posix()}")
    monkeypatch.setenv("CACHE_BACKEND", "memory")
    monkeypatch.setenv("JWT_SECRET", "test-secret")
    monkeypatch.setenv("AUTO_CREATE_ADMIN", "true")
    monkeypatch.setenv("BOOTSTRAP_ADMIN_EMAIL", SUPER_ADMIN_EMAIL)
    monkeypatch.setenv("BOOTSTRAP_ADMIN_PASSWORD", SUPER_ADMIN_PASSWORD)

    from app import models  # noqa: F401
    from app.core.config import clear_settings_cache
    from app.db.base import Base
    from app.db.session import get_engine, reset_engine
    from app.main import create_app

    clear_settings_cache()
    reset_engine()
    Base.metadata.create_all(bind=get_engine())

    app = create_app()
    with TestClient(app) as client:
        yield client

    Base.metadata.drop_all(bind=get_engine())
    reset_engine()
    clear_settings_cache()


def login(client: TestClient, email: str, password: str) -> dict[str, str]:
    response = client.post("/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    token = response.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


def auth_headers(client: TestClient) -> dict[str, str]:
    return login(client, SUPER_ADMIN_EMAIL, SUPER_ADMIN_PASSWORD)


def create_school_admin(client: TestClient, headers: dict[str, str], school_id: str | None = None) -> dict:
    response = client.post(
        "/users",
        headers=headers,
        json={
            "email": f"admin-{uuid4().hex[:8]}@school.test",
            "password": DEFAULT_PASSWORD,
            "role": "SCHOOL_ADMIN",
            "school_id": school_id,
        },
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


def create_school(client: TestClient, headers: dict[str, str], name: str = "North High") -> tuple[dict, dict[str, str]]:
    """Create a school with its own admin; returns the school and that admin's headers."""
    admin = create_school_admin(client, headers)
    response = client.post(
        "/schools",
        headers=headers,
        json={"name": name, "address": "1 Main Street", "admin_id": admin["id"]},
    )
    assert response.status_code == 201, response.text
    school = response.json()["data"]
    return school, login(client, admin["email"], DEFAULT_PASSWORD)


def create_classroom(client: TestClient, headers: dict[str, str], name: str = "Room A", capacity: int = 5) -> dict:
    response = client.post("/classrooms", headers=headers, json={"name": name, "capacity": capacity})
    assert response.status_code == 201, response.text
    return response.json()["data"]


def enroll(client: TestClient, headers: dict[str, str], classroom_id: str, email: str, **extra):
    return client.post(
        "/students/enroll",
        headers=headers,
        json={"first_name": "Ada", "last_name": "Lovelace", "email": email, "classroom_id": classroom_id, **extra},
    )
