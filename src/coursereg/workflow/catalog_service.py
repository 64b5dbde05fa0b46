"""CatalogService - Semester and course reference data."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from coursereg.workflow.rules import require_registrar, to_naive_utc

if TYPE_CHECKING:
    from datetime import datetime

    from coursereg.store import Course, RegistrationStore, Semester
    from coursereg.workflow.models import Actor

logger = logging.getLogger(__name__)


class CatalogService:
    """Read access for everyone, writes for registrars."""

    def __init__(self, store: RegistrationStore) -> None:
        self.store = store

    def create_semester(
        self,
        actor: Actor,
        name: str,
        academic_year: str,
        is_active: bool = False,
        registration_deadline: datetime | None = None,
        course_upload_deadline: datetime | None = None,
    ) -> Semester:
        """Create a semester. An active one replaces the current active semester."""
        require_registrar(actor, "create semesters")
        semester = self.store.create_semester(
            name=name,
            academic_year=academic_year,
            is_active=is_active,
            registration_deadline=to_naive_utc(registration_deadline),
            course_upload_deadline=to_naive_utc(course_upload_deadline),
        )
        logger.info("Semester %s (%s) created by %s", semester.id, semester.name, actor)
        return semester

    def activate_semester(self, actor: Actor, semester_id: str) -> Semester:
        require_registrar(actor, "activate semesters")
        semester = self.store.activate_semester(semester_id)
        logger.info("Semester %s activated by %s", semester_id, actor)
        return semester

    def get_semester(self, semester_id: str) -> Semester:
        return self.store.get_semester(semester_id)

    def get_active_semester(self) -> Semester:
        return self.store.get_active_semester()

    def list_semesters(self, academic_year: str | None = None) -> list[Semester]:
        return self.store.list_semesters(academic_year=academic_year)

    def create_course(
        self, actor: Actor, code: str, title: str, credits: int, department: str
    ) -> Course:
        """Create a course. Credits must be positive."""
        require_registrar(actor, "create courses")
        if credits <= 0:
            raise ValueError(f"credits must be positive, got {credits}")
        course = self.store.create_course(
            code=code, title=title, credits=credits, department=department
        )
        logger.info("Course %s (%d credits) created by %s", code, credits, actor)
        return course

    def get_course(self, course_id: str) -> Course:
        return self.store.get_course(course_id)

    def list_courses(self, department: str | None = None) -> list[Course]:
        return self.store.list_courses(department=department)
