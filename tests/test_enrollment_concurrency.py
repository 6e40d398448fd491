import threading
from concurrent.futures import ThreadPoolExecutor

from fastapi.testclient import TestClient

from app.core.errors import CapacityExceeded
from app.db.session import get_session_factory
from app.schemas.students import StudentEnrollRequest
from app.services.cache import EntityCache, MemoryCache
from app.services.students import StudentService
from tests.conftest import auth_headers, create_classroom, create_school

CAPACITY = 5
ATTEMPTS = 12


def test_concurrent_enrollment_never_exceeds_capacity(app_client: TestClient):
    headers = auth_headers(app_client)
    school, admin_headers = create_school(app_client, headers)
    classroom = create_classroom(app_client, admin_headers, capacity=CAPACITY)

    cache = EntityCache(MemoryCache())
    audit = app_client.app.state.audit
    start = threading.Barrier(ATTEMPTS)

    def attempt(index: int) -> str:
        payload = StudentEnrollRequest(
            first_name="Kid",
            last_name=str(index),
            email=f"kid{index}@school.test",
            classroom_id=classroom["id"],
        )
        with get_session_factory()() as db:
            service = StudentService(db, cache, audit)
            start.wait()
            try:
                service.enroll(payload, school["id"], actor_id="tester")
            except CapacityExceeded:
                return "full"
        return "enrolled"

    with ThreadPoolExecutor(max_workers=ATTEMPTS) as pool:
        outcomes = list(pool.map(attempt, range(ATTEMPTS)))

    assert outcomes.count("enrolled") == CAPACITY
    assert outcomes.count("full") == ATTEMPTS - CAPACITY

    fetched = app_client.get(f"/classrooms/{classroom['id']}", headers=admin_headers).json()["data"]
    assert fetched["student_count"] == CAPACITY
    students = app_client.get("/students", headers=admin_headers).json()["data"]
    assert len(students["items"]) == CAPACITY
