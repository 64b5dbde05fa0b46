"""Fixtures for API route tests."""

from datetime import timedelta

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from coursereg.api.app import register_exception_handlers
from coursereg.api.dependencies import Services, get_services
from coursereg.api.routes import approvals, course_uploads, courses, registrations, semesters
from coursereg.config import Settings
from coursereg.workflow.rules import utcnow

STUDENT = {"X-User-Id": "student-1", "X-User-Role": "STUDENT"}
OTHER_STUDENT = {"X-User-Id": "student-2", "X-User-Role": "STUDENT"}
STAFF = {"X-User-Id": "staff-1", "X-User-Role": "STAFF"}
REGISTRAR = {"X-User-Id": "registrar-1", "X-User-Role": "REGISTRAR"}


@pytest.fixture
def services():
    """Services backed by an in-memory database."""
    s = Services(Settings(db_path=":memory:"))
    yield s
    s.close()


@pytest.fixture
def app(services: Services):
    """Create a test FastAPI app with mocked dependencies."""
    app = FastAPI()

    # Override services dependency
    def override_get_services():
        yield services

    app.dependency_overrides[get_services] = override_get_services

    register_exception_handlers(app)

    # Include routes
    for module in (semesters, courses, registrations, course_uploads, approvals):
        app.include_router(module.router, prefix="/api/v1")

    return app


@pytest.fixture
def client(app: FastAPI):
    """Create a test client."""
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def semester_id(services: Services) -> str:
    semester = services.store.create_semester(
        "First Semester",
        "2025/2026",
        is_active=True,
        registration_deadline=utcnow() + timedelta(days=30),
        course_upload_deadline=utcnow() + timedelta(days=30),
    )
    return semester.id


@pytest.fixture
def course_ids(services: Services) -> dict[str, str]:
    return {
        "CSC401": services.store.create_course("CSC401", "Compilers", 12, "Computer Science").id,
        "CSC402": services.store.create_course(
            "CSC402", "Operating Systems", 12, "Computer Science"
        ).id,
        "MTH301": services.store.create_course("MTH301", "Numerical Analysis", 3, "Mathematics").id,
    }


@pytest.fixture
def registration_id(client: TestClient, semester_id: str) -> str:
    response = client.post(
        "/api/v1/registrations", json={"semester_id": semester_id}, headers=STUDENT
    )
    assert response.status_code == 200
    return response.json()["data"]["id"]
