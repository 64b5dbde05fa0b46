"""Shared pytest fixtures and configuration."""

from datetime import timedelta

import pytest

from coursereg.store import Course, RegistrationStore, Semester
from coursereg.workflow import (
    Actor,
    CatalogService,
    CourseUploadService,
    RegistrationService,
    Role,
)
from coursereg.workflow.rules import utcnow


# Register custom markers
def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: fast tests with no external dependencies")
    config.addinivalue_line("markers", "integration: component interaction tests")


# Shared fixtures


@pytest.fixture
def store() -> RegistrationStore:
    """Create an in-memory RegistrationStore."""
    s = RegistrationStore(":memory:")
    yield s
    s.close()


@pytest.fixture
def semester(store: RegistrationStore) -> Semester:
    """An active semester with both windows open for a month."""
    return store.create_semester(
        name="First Semester",
        academic_year="2025/2026",
        is_active=True,
        registration_deadline=utcnow() + timedelta(days=30),
        course_upload_deadline=utcnow() + timedelta(days=30),
    )


@pytest.fixture
def courses(store: RegistrationStore) -> dict[str, Course]:
    """Reference courses keyed by code."""
    return {
        "CSC401": store.create_course("CSC401", "Compilers", 12, "Computer Science"),
        "CSC402": store.create_course("CSC402", "Operating Systems", 12, "Computer Science"),
        "MTH301": store.create_course("MTH301", "Numerical Analysis", 3, "Mathematics"),
        "MTH302": store.create_course("MTH302", "Linear Algebra", 6, "Mathematics"),
    }


@pytest.fixture
def student() -> Actor:
    return Actor(id="student-1", role=Role.STUDENT)


@pytest.fixture
def other_student() -> Actor:
    return Actor(id="student-2", role=Role.STUDENT)


@pytest.fixture
def staff() -> Actor:
    return Actor(id="staff-1", role=Role.STAFF)


@pytest.fixture
def registrar() -> Actor:
    return Actor(id="registrar-1", role=Role.REGISTRAR)


@pytest.fixture
def catalog(store: RegistrationStore) -> CatalogService:
    return CatalogService(store)


@pytest.fixture
def registrations(store: RegistrationStore) -> RegistrationService:
    return RegistrationService(store)


@pytest.fixture
def course_uploads(
    store: RegistrationStore, registrations: RegistrationService
) -> CourseUploadService:
    return CourseUploadService(store, registrations)
