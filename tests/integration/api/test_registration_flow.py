"""Integration tests for the full registration flow over HTTP."""

import tempfile
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from coursereg.api.app import create_app
from coursereg.config import Settings

STUDENT = {"X-User-Id": "student-1", "X-User-Role": "STUDENT"}
STAFF = {"X-User-Id": "staff-1", "X-User-Role": "STAFF"}
REGISTRAR = {"X-User-Id": "registrar-1", "X-User-Role": "REGISTRAR"}


@pytest.fixture
def temp_db_path() -> str:
    """Create a temporary database path."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        return f.name


@pytest.fixture
def client(temp_db_path: str):
    """Create a test client with temporary database."""
    app = create_app(Settings(db_path=temp_db_path, card_prefix="UNI"))
    with TestClient(app, raise_server_exceptions=False) as client:
        yield client
    # Cleanup
    Path(temp_db_path).unlink(missing_ok=True)
    Path(f"{temp_db_path}-wal").unlink(missing_ok=True)
    Path(f"{temp_db_path}-shm").unlink(missing_ok=True)


def _deadline(days: int) -> str:
    return (datetime.now(UTC) + timedelta(days=days)).isoformat()


def _setup_catalog(client: TestClient) -> tuple[str, dict[str, str]]:
    semester = client.post(
        "/api/v1/semesters",
        json={
            "name": "First Semester",
            "academic_year": "2025/2026",
            "is_active": True,
            "registration_deadline": _deadline(30),
            "course_upload_deadline": _deadline(30),
        },
        headers=REGISTRAR,
    )
    assert semester.status_code == 201

    course_ids = {}
    for code, credits, department in (
        ("CSC401", 12, "Computer Science"),
        ("CSC402", 12, "Computer Science"),
        ("MTH301", 3, "Mathematics"),
    ):
        response = client.post(
            "/api/v1/courses",
            json={
                "code": code,
                "title": f"Course {code}",
                "credits": credits,
                "department": department,
            },
            headers=REGISTRAR,
        )
        assert response.status_code == 201
        course_ids[code] = response.json()["data"]["id"]

    return semester.json()["data"]["id"], course_ids


@pytest.mark.integration
class TestRegistrationFullFlow:
    """Register, add courses, decide, and collect the card."""

    def test_full_flow(self, client: TestClient) -> None:
        semester_id, course_ids = _setup_catalog(client)

        # 1. Register
        registered = client.post(
            "/api/v1/registrations", json={"semester_id": semester_id}, headers=STUDENT
        )
        assert registered.status_code == 200
        registration_id = registered.json()["data"]["id"]

        # 2. Fill to the credit ceiling
        uploads = {}
        for code in ("CSC401", "CSC402"):
            response = client.post(
                f"/api/v1/registrations/{registration_id}/courses",
                json={"course_id": course_ids[code]},
                headers=STUDENT,
            )
            assert response.status_code == 201
            uploads[code] = response.json()["data"]["id"]

        refused = client.post(
            f"/api/v1/registrations/{registration_id}/courses",
            json={"course_id": course_ids["MTH301"]},
            headers=STUDENT,
        )
        assert refused.status_code == 400
        assert refused.json()["code"] == "CreditLimitExceededError"

        # 3. Staff reject one course, which frees its credits
        rejected = client.post(
            f"/api/v1/course-uploads/{uploads['CSC402']}/reject",
            json={"reason": "Section full"},
            headers=STAFF,
        )
        assert rejected.json()["data"]["status"] == "REJECTED"

        added = client.post(
            f"/api/v1/registrations/{registration_id}/courses",
            json={"course_id": course_ids["MTH301"]},
            headers=STUDENT,
        )
        assert added.status_code == 201
        uploads["MTH301"] = added.json()["data"]["id"]

        # 4. Bulk approve, including the rejected one
        bulk = client.post(
            "/api/v1/course-uploads/bulk-approve",
            json={"ids": [uploads["CSC401"], uploads["MTH301"], uploads["CSC402"]]},
            headers=STAFF,
        )
        assert bulk.json()["data"]["succeeded_count"] == 2
        assert bulk.json()["data"]["failed_ids"] == [uploads["CSC402"]]

        # 5. Approve the registration
        approved = client.post(f"/api/v1/registrations/{registration_id}/approve", headers=STAFF)
        assert approved.json()["data"]["status"] == "APPROVED"

        # 6. Registration detail reflects every decision
        detail = client.get(f"/api/v1/registrations/{registration_id}", headers=STUDENT).json()
        credits = detail["data"]["credits"]
        assert credits["total_credits"] == 15
        assert credits["approved_courses"] == 2
        assert credits["rejected_courses"] == 1

        # 7. Card issued with the configured prefix
        cards = client.get("/api/v1/registration-cards", headers=STUDENT).json()["data"]
        assert len(cards) == 1
        assert cards[0]["card_number"].startswith("UNI")

        # 8. Audit trail has every decision
        history = client.get("/api/v1/approvals/history", headers=STAFF).json()["data"]
        assert len(history) == 4

    def test_decided_registration_is_frozen(self, client: TestClient) -> None:
        semester_id, course_ids = _setup_catalog(client)
        registration_id = client.post(
            "/api/v1/registrations", json={"semester_id": semester_id}, headers=STUDENT
        ).json()["data"]["id"]
        upload_id = client.post(
            f"/api/v1/registrations/{registration_id}/courses",
            json={"course_id": course_ids["MTH301"]},
            headers=STUDENT,
        ).json()["data"]["id"]

        client.post(
            f"/api/v1/registrations/{registration_id}/reject",
            json={"reason": "Fees unpaid"},
            headers=STAFF,
        )

        add = client.post(
            f"/api/v1/registrations/{registration_id}/courses",
            json={"course_id": course_ids["CSC401"]},
            headers=STUDENT,
        )
        drop = client.delete(f"/api/v1/course-uploads/{upload_id}", headers=STUDENT)
        again = client.post(
            f"/api/v1/registrations/{registration_id}/approve", headers=STAFF
        )

        assert add.status_code == 409
        assert drop.status_code == 409
        assert again.status_code == 409
        # The course upload keeps its own status
        upload = client.get(f"/api/v1/course-uploads/{upload_id}", headers=STUDENT).json()
        assert upload["data"]["status"] == "PENDING"

    def test_closed_semester(self, client: TestClient) -> None:
        closed = client.post(
            "/api/v1/semesters",
            json={
                "name": "Closed Semester",
                "academic_year": "2024/2025",
                "is_active": True,
                "registration_deadline": _deadline(-1),
            },
            headers=REGISTRAR,
        ).json()["data"]

        response = client.post(
            "/api/v1/registrations", json={"semester_id": closed["id"]}, headers=STUDENT
        )

        assert response.status_code == 400
        assert response.json()["code"] == "InvalidSemesterError"
        listed = client.get("/api/v1/registrations", headers=STUDENT).json()["data"]
        assert listed == []
