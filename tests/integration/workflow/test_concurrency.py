"""Integration tests for concurrent writes against a file database."""

import tempfile
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta
from pathlib import Path

import pytest

from coursereg.store import RegistrationStore
from coursereg.workflow import (
    Actor,
    CourseUploadService,
    CreditLimitExceededError,
    InvalidStateError,
    RegistrationService,
    Role,
)
from coursereg.workflow.rules import utcnow

STUDENT = Actor(id="student-1", role=Role.STUDENT)
STAFF = Actor(id="staff-1", role=Role.STAFF)


@pytest.fixture
def file_store():
    """RegistrationStore on a temporary SQLite file."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        path = f.name
    store = RegistrationStore(path)
    yield store
    store.close()
    Path(path).unlink(missing_ok=True)
    Path(f"{path}-wal").unlink(missing_ok=True)
    Path(f"{path}-shm").unlink(missing_ok=True)


@pytest.fixture
def services(file_store: RegistrationStore):
    registrations = RegistrationService(file_store)
    return registrations, CourseUploadService(file_store, registrations)


@pytest.fixture
def semester_id(file_store: RegistrationStore) -> str:
    return file_store.create_semester(
        "First Semester",
        "2025/2026",
        is_active=True,
        registration_deadline=utcnow() + timedelta(days=30),
        course_upload_deadline=utcnow() + timedelta(days=30),
    ).id


def _run_together(count: int, target):
    """Run target(i) for i in range(count) from threads released at the same moment."""
    barrier = threading.Barrier(count)

    def run(i: int):
        barrier.wait()
        try:
            return target(i)
        except Exception as e:
            return e

    with ThreadPoolExecutor(max_workers=count) as pool:
        return list(pool.map(run, range(count)))


@pytest.mark.integration
class TestConcurrentWrites:
    """Races on the same registration stay within the workflow rules."""

    def test_concurrent_adds_never_exceed_ceiling(
        self, file_store: RegistrationStore, services, semester_id: str
    ) -> None:
        registrations, course_uploads = services
        registration = registrations.get_or_create_registration(STUDENT.id, semester_id, STUDENT)
        course_ids = [
            file_store.create_course(f"GEN{i:03d}", f"Elective {i}", 5, "General").id
            for i in range(10)
        ]

        results = _run_together(
            len(course_ids),
            lambda i: course_uploads.add_course(registration.id, course_ids[i], STUDENT),
        )

        failures = [r for r in results if isinstance(r, Exception)]
        assert all(isinstance(f, CreditLimitExceededError) for f in failures)
        assert len(results) - len(failures) == 4
        assert registrations.compute_total_credits(registration.id) == 20

    def test_concurrent_approvals_decide_once(
        self, file_store: RegistrationStore, services, semester_id: str
    ) -> None:
        registrations, course_uploads = services
        registration = registrations.get_or_create_registration(STUDENT.id, semester_id, STUDENT)
        course = file_store.create_course("GEN001", "Elective", 3, "General")
        upload = course_uploads.add_course(registration.id, course.id, STUDENT)

        results = _run_together(
            5, lambda _i: course_uploads.approve_course_upload(upload.id, STAFF)
        )

        failures = [r for r in results if isinstance(r, Exception)]
        assert len(failures) == 4
        assert all(isinstance(f, InvalidStateError) for f in failures)
        assert len(file_store.list_approvals(target_id=upload.id)) == 1

    def test_concurrent_get_or_create_returns_one_registration(
        self, file_store: RegistrationStore, services, semester_id: str
    ) -> None:
        registrations, _ = services

        results = _run_together(
            5, lambda _i: registrations.get_or_create_registration(STUDENT.id, semester_id, STUDENT)
        )

        assert not any(isinstance(r, Exception) for r in results)
        assert len({r.id for r in results}) == 1
        assert len(file_store.list_registrations(student_id=STUDENT.id)) == 1

    def test_concurrent_registration_approvals_decide_once(
        self, file_store: RegistrationStore, services, semester_id: str
    ) -> None:
        registrations, _ = services
        registration = registrations.get_or_create_registration(STUDENT.id, semester_id, STUDENT)

        results = _run_together(
            5, lambda _i: registrations.approve_registration(registration.id, STAFF)
        )

        failures = [r for r in results if isinstance(r, Exception)]
        assert len(failures) == 4
        assert all(isinstance(f, InvalidStateError) for f in failures)
        assert len(file_store.list_registration_cards()) == 1
