"""Unit tests for Semester and Course operations in RegistrationStore."""

import pytest

from coursereg.store import (
    CourseExistsError,
    CourseNotFoundError,
    RegistrationStore,
    SemesterNotFoundError,
)


@pytest.mark.unit
class TestSemesterOperations:
    """Tests for semester CRUD."""

    def test_create_and_get(self, store: RegistrationStore) -> None:
        semester = store.create_semester(name="First Semester", academic_year="2025/2026")

        fetched = store.get_semester(semester.id)

        assert fetched.name == "First Semester"
        assert fetched.academic_year == "2025/2026"
        assert fetched.created_at is not None

    def test_get_missing(self, store: RegistrationStore) -> None:
        with pytest.raises(SemesterNotFoundError, match="missing"):
            store.get_semester("missing")

    def test_creating_active_deactivates_others(self, store: RegistrationStore) -> None:
        first = store.create_semester("First Semester", "2025/2026", is_active=True)
        second = store.create_semester("Second Semester", "2025/2026", is_active=True)

        assert store.get_semester(first.id).is_active is False
        assert store.get_active_semester().id == second.id

    def test_creating_inactive_keeps_active(self, store: RegistrationStore) -> None:
        first = store.create_semester("First Semester", "2025/2026", is_active=True)
        store.create_semester("Second Semester", "2025/2026")

        assert store.get_active_semester().id == first.id

    def test_activate(self, store: RegistrationStore) -> None:
        first = store.create_semester("First Semester", "2025/2026", is_active=True)
        second = store.create_semester("Second Semester", "2025/2026")

        activated = store.activate_semester(second.id)

        assert activated.is_active is True
        assert store.get_semester(first.id).is_active is False

    def test_activate_missing(self, store: RegistrationStore) -> None:
        with pytest.raises(SemesterNotFoundError):
            store.activate_semester("missing")

    def test_no_active(self, store: RegistrationStore) -> None:
        store.create_semester("First Semester", "2025/2026")

        with pytest.raises(SemesterNotFoundError):
            store.get_active_semester()


@pytest.mark.unit
class TestCourseOperations:
    """Tests for course CRUD."""

    def test_create_and_get(self, store: RegistrationStore) -> None:
        course = store.create_course("CSC401", "Compilers", 3, "Computer Science")

        fetched = store.get_course(course.id)

        assert fetched.code == "CSC401"
        assert fetched.credits == 3

    def test_duplicate_code(self, store: RegistrationStore) -> None:
        store.create_course("CSC401", "Compilers", 3, "Computer Science")

        with pytest.raises(CourseExistsError, match="CSC401"):
            store.create_course("CSC401", "Other", 2, "Computer Science")

    def test_get_missing(self, store: RegistrationStore) -> None:
        with pytest.raises(CourseNotFoundError):
            store.get_course("missing")

    def test_list_ordered_by_code(self, store: RegistrationStore) -> None:
        store.create_course("MTH301", "Numerical Analysis", 3, "Mathematics")
        store.create_course("CSC401", "Compilers", 3, "Computer Science")

        assert [c.code for c in store.list_courses()] == ["CSC401", "MTH301"]
        assert [c.code for c in store.list_courses("Mathematics")] == ["MTH301"]
