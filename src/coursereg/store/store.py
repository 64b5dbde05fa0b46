"""RegistrationStore - Main API for registration store operations."""

from __future__ import annotations

import threading
from contextlib import contextmanager, nullcontext
from datetime import datetime  # noqa: TC003 - used at runtime for SQLAlchemy
from typing import TYPE_CHECKING

from sqlalchemy import Integer, cast, func, select, update
from sqlalchemy.exc import IntegrityError

from coursereg.store.database import Database
from coursereg.store.exceptions import (
    CourseExistsError,
    CourseNotFoundError,
    CourseUploadExistsError,
    CourseUploadNotFoundError,
    RegistrationExistsError,
    RegistrationNotFoundError,
    SemesterNotFoundError,
)
from coursereg.store.models import (
    Approval,
    ApprovalStatus,
    ApprovalTarget,
    Course,
    CourseUpload,
    Registration,
    RegistrationCard,
    Semester,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy import Select
    from sqlalchemy.orm import Session


def _is_unique_violation(error: IntegrityError) -> bool:
    return "UNIQUE constraint failed" in str(error)


class _LockEntry:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0


class RegistrationStore:
    """Main API for registration store operations.

    Provides CRUD operations for semesters, courses, registrations,
    course uploads, approval records and registration cards.
    """

    def __init__(self, db_path: str = "coursereg.db") -> None:
        """Initialize the store with a SQLite database.

        Creates database and tables if they don't exist.

        Args:
            db_path: Path to SQLite database file
        """
        self._db = Database(db_path)
        self._db.create_tables()
        self._locks: dict[str, _LockEntry] = {}
        self._locks_guard = threading.Lock()
        self._card_lock = threading.Lock()

    def close(self) -> None:
        """Close the database connection."""
        self._db.close()

    @contextmanager
    def registration_lock(self, registration_id: str) -> Iterator[None]:
        """Serialize credit-checked writes for one registration.

        The lock lives only while some caller holds or waits on it, so the
        table never outgrows the registrations currently being edited.

        Args:
            registration_id: The registration's unique ID
        """
        with self._locks_guard:
            entry = self._locks.get(registration_id)
            if entry is None:
                entry = self._locks[registration_id] = _LockEntry()
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._locks_guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._locks[registration_id]

    @property
    def held_registration_locks(self) -> int:
        """Number of registrations whose lock is currently held or awaited."""
        with self._locks_guard:
            return len(self._locks)

    # --- Semester Operations ---

    def create_semester(
        self,
        name: str,
        academic_year: str,
        is_active: bool = False,
        registration_deadline: datetime | None = None,
        course_upload_deadline: datetime | None = None,
    ) -> Semester:
        """Create a new semester.

        Creating an active semester deactivates every other semester.

        Args:
            name: Semester name (e.g. "First Semester")
            academic_year: Academic year label (e.g. "2024/2025")
            is_active: Whether this becomes the active semester
            registration_deadline: Last moment registrations may be created (UTC)
            course_upload_deadline: Last moment courses may be added (UTC)

        Returns:
            Created Semester object with generated ID
        """
        session = self._db.get_session()
        try:
            if is_active:
                session.execute(update(Semester).values(is_active=False))
            semester = Semester(
                name=name,
                academic_year=academic_year,
                is_active=is_active,
                registration_deadline=registration_deadline,
                course_upload_deadline=course_upload_deadline,
            )
            session.add(semester)
            session.commit()
            session.refresh(semester)
            return semester
        finally:
            session.close()

    def get_semester(self, semester_id: str) -> Semester:
        """Get semester by ID.

        Raises:
            SemesterNotFoundError: If semester doesn't exist
        """
        session = self._db.get_session()
        try:
            semester = session.get(Semester, semester_id)
            if semester is None:
                raise SemesterNotFoundError(f"Semester with id '{semester_id}' not found")
            return semester
        finally:
            session.close()

    def get_active_semester(self) -> Semester:
        """Get the currently active semester.

        Raises:
            SemesterNotFoundError: If no semester is active
        """
        session = self._db.get_session()
        try:
            stmt = select(Semester).where(Semester.is_active.is_(True))
            semester = session.execute(stmt).scalar_one_or_none()
            if semester is None:
                raise SemesterNotFoundError("No active semester")
            return semester
        finally:
            session.close()

    def list_semesters(self, academic_year: str | None = None) -> list[Semester]:
        """List semesters, most recently created first."""
        session = self._db.get_session()
        try:
            stmt = select(Semester)
            if academic_year is not None:
                stmt = stmt.where(Semester.academic_year == academic_year)
            stmt = stmt.order_by(Semester.created_at.desc(), Semester.name)
            return list(session.execute(stmt).scalars().all())
        finally:
            session.close()

    def activate_semester(self, semester_id: str) -> Semester:
        """Make a semester the only active one.

        Raises:
            SemesterNotFoundError: If semester doesn't exist
        """
        session = self._db.get_session()
        try:
            semester = session.get(Semester, semester_id)
            if semester is None:
                raise SemesterNotFoundError(f"Semester with id '{semester_id}' not found")
            session.execute(
                update(Semester).where(Semester.id != semester_id).values(is_active=False)
            )
            semester.is_active = True
            session.commit()
            session.refresh(semester)
            return semester
        finally:
            session.close()

    # --- Course Operations ---

    def create_course(self, code: str, title: str, credits: int, department: str) -> Course:
        """Create a new course.

        Raises:
            CourseExistsError: If a course with the same code exists
        """
        session = self._db.get_session()
        try:
            course = Course(code=code, title=title, credits=credits, department=department)
            session.add(course)
            session.commit()
            session.refresh(course)
            return course
        except IntegrityError as e:
            session.rollback()
            if _is_unique_violation(e):
                raise CourseExistsError(f"Course with code '{code}' already exists") from e
            raise
        finally:
            session.close()

    def get_course(self, course_id: str) -> Course:
        """Get course by ID.

        Raises:
            CourseNotFoundError: If course doesn't exist
        """
        session = self._db.get_session()
        try:
            course = session.get(Course, course_id)
            if course is None:
                raise CourseNotFoundError(f"Course with id '{course_id}' not found")
            return course
        finally:
            session.close()

    def list_courses(self, department: str | None = None) -> list[Course]:
        """List courses ordered by code, optionally for one department."""
        session = self._db.get_session()
        try:
            stmt = select(Course)
            if department is not None:
                stmt = stmt.where(Course.department == department)
            stmt = stmt.order_by(Course.code)
            return list(session.execute(stmt).scalars().all())
        finally:
            session.close()

    # --- Registration Operations ---

    def create_registration(self, student_id: str, semester_id: str) -> Registration:
        """Create a PENDING registration.

        Args:
            student_id: The student's ID
            semester_id: The semester's ID

        Returns:
            Created Registration object

        Raises:
            SemesterNotFoundError: If semester doesn't exist
            RegistrationExistsError: If the student already has one for the semester
        """
        session = self._db.get_session()
        try:
            if session.get(Semester, semester_id) is None:
                raise SemesterNotFoundError(f"Semester with id '{semester_id}' not found")

            registration = Registration(student_id=student_id, semester_id=semester_id)
            session.add(registration)
            session.commit()
            session.refresh(registration)
            return registration
        except IntegrityError as e:
            session.rollback()
            if _is_unique_violation(e):
                raise RegistrationExistsError(
                    f"Registration for student '{student_id}' in semester "
                    f"'{semester_id}' already exists"
                ) from e
            raise
        finally:
            session.close()

    def get_registration(self, registration_id: str) -> Registration:
        """Get registration by ID.

        Raises:
            RegistrationNotFoundError: If registration doesn't exist
        """
        session = self._db.get_session()
        try:
            registration = session.get(Registration, registration_id)
            if registration is None:
                raise RegistrationNotFoundError(
                    f"Registration with id '{registration_id}' not found"
                )
            return registration
        finally:
            session.close()

    def find_registration(self, student_id: str, semester_id: str) -> Registration | None:
        """Look up a registration by student and semester. Returns None if absent."""
        session = self._db.get_session()
        try:
            stmt = select(Registration).where(
                Registration.student_id == student_id,
                Registration.semester_id == semester_id,
            )
            return session.execute(stmt).scalar_one_or_none()
        finally:
            session.close()

    def get_registration_for_student(self, student_id: str, semester_id: str) -> Registration:
        """Get registration by student and semester.

        Raises:
            RegistrationNotFoundError: If registration doesn't exist
        """
        registration = self.find_registration(student_id, semester_id)
        if registration is None:
            raise RegistrationNotFoundError(
                f"Registration for student '{student_id}' not found in semester '{semester_id}'"
            )
        return registration

    def list_registrations(
        self,
        student_id: str | None = None,
        semester_id: str | None = None,
        status: ApprovalStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Registration]:
        """List registrations with optional filters.

        Returns:
            Registrations ordered by created_at descending (most recent first)
        """
        session = self._db.get_session()
        try:
            stmt = select(Registration)
            if student_id is not None:
                stmt = stmt.where(Registration.student_id == student_id)
            if semester_id is not None:
                stmt = stmt.where(Registration.semester_id == semester_id)
            if status is not None:
                stmt = stmt.where(Registration.status == status.value)
            stmt = stmt.order_by(Registration.created_at.desc(), Registration.id)
            stmt = stmt.limit(limit).offset(offset)
            return list(session.execute(stmt).scalars().all())
        finally:
            session.close()

    def transition_registration(
        self,
        registration_id: str,
        to_status: ApprovalStatus,
        approver_id: str,
        reason: str | None = None,
        card_prefix: str | None = None,
        issued_at: datetime | None = None,
    ) -> Registration | None:
        """Move a PENDING registration to a decided status and record the approval.

        The update only applies while the row is still PENDING. Status change,
        audit entry and (for an approval with ``card_prefix``) the student's
        registration card commit together or not at all.

        Args:
            registration_id: The registration's unique ID
            to_status: APPROVED or REJECTED
            approver_id: ID of the deciding staff member
            reason: Rejection reason or approval comment
            card_prefix: Issue a card with this prefix when approving
            issued_at: Card issue timestamp (UTC), required with card_prefix

        Returns:
            The updated Registration, or None if it was no longer PENDING
        """
        issue_card = to_status is ApprovalStatus.APPROVED and card_prefix is not None
        if issue_card and issued_at is None:
            raise ValueError("issued_at is required when issuing a card")

        with self._card_lock if issue_card else nullcontext():
            return self._transition_registration(
                registration_id,
                to_status,
                approver_id,
                reason,
                card_prefix if issue_card else None,
                issued_at,
            )

    def _transition_registration(
        self,
        registration_id: str,
        to_status: ApprovalStatus,
        approver_id: str,
        reason: str | None,
        card_prefix: str | None,
        issued_at: datetime | None,
    ) -> Registration | None:
        session = self._db.get_session()
        try:
            result = session.execute(
                update(Registration)
                .where(
                    Registration.id == registration_id,
                    Registration.status == ApprovalStatus.PENDING.value,
                )
                .values(
                    status=to_status.value,
                    decided_by=approver_id,
                    rejection_reason=reason if to_status is ApprovalStatus.REJECTED else None,
                )
            )
            if result.rowcount == 0:
                session.rollback()
                return None
            session.add(
                Approval(
                    target_type=ApprovalTarget.REGISTRATION.value,
                    target_id=registration_id,
                    approver_id=approver_id,
                    status=to_status.value,
                    comments=reason,
                )
            )
            registration = session.get(Registration, registration_id, populate_existing=True)
            if card_prefix is not None and registration is not None:
                self._add_registration_card(
                    session,
                    registration.student_id,
                    registration.semester_id,
                    card_prefix,
                    issued_at,  # type: ignore[arg-type]
                )
            session.commit()
            return registration
        finally:
            session.close()

    # --- Course Upload Operations ---

    def create_course_upload(
        self,
        registration_id: str,
        course_id: str,
    ) -> CourseUpload:
        """Create a PENDING course upload under a registration.

        Student and semester are taken from the parent registration.

        Raises:
            RegistrationNotFoundError: If registration doesn't exist
            CourseNotFoundError: If course doesn't exist
            CourseUploadExistsError: If the student already has this course in the semester
        """
        session = self._db.get_session()
        try:
            registration = session.get(Registration, registration_id)
            if registration is None:
                raise RegistrationNotFoundError(
                    f"Registration with id '{registration_id}' not found"
                )
            if session.get(Course, course_id) is None:
                raise CourseNotFoundError(f"Course with id '{course_id}' not found")

            upload = CourseUpload(
                student_id=registration.student_id,
                course_id=course_id,
                semester_id=registration.semester_id,
                registration_id=registration_id,
            )
            session.add(upload)
            session.commit()
            session.refresh(upload)
            return upload
        except IntegrityError as e:
            session.rollback()
            if _is_unique_violation(e):
                raise CourseUploadExistsError(
                    f"Course '{course_id}' already present in registration '{registration_id}'"
                ) from e
            raise
        finally:
            session.close()

    def get_course_upload(self, course_upload_id: str) -> CourseUpload:
        """Get course upload by ID.

        Raises:
            CourseUploadNotFoundError: If course upload doesn't exist
        """
        session = self._db.get_session()
        try:
            upload = session.get(CourseUpload, course_upload_id)
            if upload is None:
                raise CourseUploadNotFoundError(
                    f"Course upload with id '{course_upload_id}' not found"
                )
            return upload
        finally:
            session.close()

    def find_course_upload(
        self, student_id: str, course_id: str, semester_id: str
    ) -> CourseUpload | None:
        """Look up a course upload by its natural key. Returns None if absent."""
        session = self._db.get_session()
        try:
            stmt = select(CourseUpload).where(
                CourseUpload.student_id == student_id,
                CourseUpload.course_id == course_id,
                CourseUpload.semester_id == semester_id,
            )
            return session.execute(stmt).scalar_one_or_none()
        finally:
            session.close()

    @staticmethod
    def _filter_course_uploads(
        stmt: Select,
        registration_id: str | None,
        student_id: str | None,
        semester_id: str | None,
        department: str | None,
        status: ApprovalStatus | None,
    ) -> Select:
        if registration_id is not None:
            stmt = stmt.where(CourseUpload.registration_id == registration_id)
        if student_id is not None:
            stmt = stmt.where(CourseUpload.student_id == student_id)
        if semester_id is not None:
            stmt = stmt.where(CourseUpload.semester_id == semester_id)
        if department is not None:
            stmt = stmt.where(
                CourseUpload.course_id.in_(
                    select(Course.id).where(Course.department == department)
                )
            )
        if status is not None:
            stmt = stmt.where(CourseUpload.status == status.value)
        return stmt

    def list_course_uploads(
        self,
        registration_id: str | None = None,
        student_id: str | None = None,
        semester_id: str | None = None,
        department: str | None = None,
        status: ApprovalStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[CourseUpload]:
        """List course uploads with optional filters.

        Args:
            registration_id: Filter by parent registration (optional)
            student_id: Filter by student (optional)
            semester_id: Filter by semester (optional)
            department: Filter by the course's department (optional)
            status: Filter by approval status (optional)
            limit: Max results to return
            offset: Offset for pagination

        Returns:
            Course uploads ordered by created_at descending
        """
        session = self._db.get_session()
        try:
            stmt = self._filter_course_uploads(
                select(CourseUpload), registration_id, student_id, semester_id, department, status
            )
            stmt = stmt.order_by(CourseUpload.created_at.desc(), CourseUpload.id)
            stmt = stmt.limit(limit).offset(offset)
            return list(session.execute(stmt).scalars().all())
        finally:
            session.close()

    def count_course_uploads(
        self,
        registration_id: str | None = None,
        student_id: str | None = None,
        semester_id: str | None = None,
        department: str | None = None,
        status: ApprovalStatus | None = None,
    ) -> int:
        """Count course uploads matching the same filters as list_course_uploads."""
        session = self._db.get_session()
        try:
            stmt = self._filter_course_uploads(
                select(func.count(CourseUpload.id)),
                registration_id,
                student_id,
                semester_id,
                department,
                status,
            )
            return int(session.execute(stmt).scalar_one())
        finally:
            session.close()

    def delete_course_upload(self, course_upload_id: str) -> None:
        """Delete a course upload.

        Raises:
            CourseUploadNotFoundError: If course upload doesn't exist
        """
        session = self._db.get_session()
        try:
            upload = session.get(CourseUpload, course_upload_id)
            if upload is None:
                raise CourseUploadNotFoundError(
                    f"Course upload with id '{course_upload_id}' not found"
                )
            session.delete(upload)
            session.commit()
        finally:
            session.close()

    def transition_course_upload(
        self,
        course_upload_id: str,
        to_status: ApprovalStatus,
        approver_id: str,
        reason: str | None = None,
    ) -> CourseUpload | None:
        """Move a PENDING course upload to a decided status and record the approval.

        Returns:
            The updated CourseUpload, or None if it was no longer PENDING
        """
        session = self._db.get_session()
        try:
            result = session.execute(
                update(CourseUpload)
                .where(
                    CourseUpload.id == course_upload_id,
                    CourseUpload.status == ApprovalStatus.PENDING.value,
                )
                .values(
                    status=to_status.value,
                    decided_by=approver_id,
                    rejection_reason=reason if to_status is ApprovalStatus.REJECTED else None,
                )
            )
            if result.rowcount == 0:
                session.rollback()
                return None
            session.add(
                Approval(
                    target_type=ApprovalTarget.COURSE_UPLOAD.value,
                    target_id=course_upload_id,
                    approver_id=approver_id,
                    status=to_status.value,
                    comments=reason,
                )
            )
            session.commit()
            return session.get(CourseUpload, course_upload_id, populate_existing=True)
        finally:
            session.close()

    # --- Aggregation ---

    def sum_credits(self, registration_id: str) -> int:
        """Sum course credits over the registration's non-rejected uploads."""
        session = self._db.get_session()
        try:
            stmt = (
                select(func.coalesce(func.sum(Course.credits), 0))
                .select_from(CourseUpload)
                .join(Course, CourseUpload.course_id == Course.id)
                .where(
                    CourseUpload.registration_id == registration_id,
                    CourseUpload.status != ApprovalStatus.REJECTED.value,
                )
            )
            return int(session.execute(stmt).scalar_one())
        finally:
            session.close()

    def count_by_status(self, registration_id: str) -> dict[ApprovalStatus, int]:
        """Count the registration's course uploads per status."""
        session = self._db.get_session()
        try:
            stmt = (
                select(CourseUpload.status, func.count(CourseUpload.id))
                .where(CourseUpload.registration_id == registration_id)
                .group_by(CourseUpload.status)
            )
            counts = {status: 0 for status in ApprovalStatus}
            for status, count in session.execute(stmt).all():
                counts[ApprovalStatus(status)] = count
            return counts
        finally:
            session.close()

    # --- Approval History ---

    def list_approvals(
        self,
        target_type: ApprovalTarget | None = None,
        target_id: str | None = None,
        approver_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Approval]:
        """List approval decisions, most recent first."""
        session = self._db.get_session()
        try:
            stmt = select(Approval)
            if target_type is not None:
                stmt = stmt.where(Approval.target_type == target_type.value)
            if target_id is not None:
                stmt = stmt.where(Approval.target_id == target_id)
            if approver_id is not None:
                stmt = stmt.where(Approval.approver_id == approver_id)
            stmt = stmt.order_by(Approval.created_at.desc(), Approval.id)
            stmt = stmt.limit(limit).offset(offset)
            return list(session.execute(stmt).scalars().all())
        finally:
            session.close()

    # --- Registration Cards ---

    def find_registration_card(self, student_id: str, semester_id: str) -> RegistrationCard | None:
        """Look up the card issued to a student for a semester."""
        session = self._db.get_session()
        try:
            stmt = select(RegistrationCard).where(
                RegistrationCard.student_id == student_id,
                RegistrationCard.semester_id == semester_id,
            )
            return session.execute(stmt).scalar_one_or_none()
        finally:
            session.close()

    def list_registration_cards(
        self,
        student_id: str | None = None,
        semester_id: str | None = None,
    ) -> list[RegistrationCard]:
        """List issued registration cards ordered by card number."""
        session = self._db.get_session()
        try:
            stmt = select(RegistrationCard)
            if student_id is not None:
                stmt = stmt.where(RegistrationCard.student_id == student_id)
            if semester_id is not None:
                stmt = stmt.where(RegistrationCard.semester_id == semester_id)
            stmt = stmt.order_by(RegistrationCard.card_number)
            return list(session.execute(stmt).scalars().all())
        finally:
            session.close()

    def issue_registration_card(
        self,
        student_id: str,
        semester_id: str,
        prefix: str,
        issued_at: datetime,
    ) -> RegistrationCard:
        """Issue a registration card, or return the one already issued.

        Card numbers look like ``BU2025-0001``: prefix, issue year, and a
        counter padded to four digits that restarts every year and keeps
        counting past 9999.

        Args:
            student_id: The student's ID
            semester_id: The semester's ID
            prefix: Card number prefix
            issued_at: Issue timestamp (UTC)

        Returns:
            The student's card for the semester
        """
        with self._card_lock:
            session = self._db.get_session()
            try:
                card = self._add_registration_card(
                    session, student_id, semester_id, prefix, issued_at
                )
                session.commit()
                return card
            finally:
                session.close()

    def _add_registration_card(
        self,
        session: Session,
        student_id: str,
        semester_id: str,
        prefix: str,
        issued_at: datetime,
    ) -> RegistrationCard:
        """Add the next card in the year's series to ``session`` unless one exists.

        Callers hold ``_card_lock`` until the session commits.
        """
        existing = session.execute(
            select(RegistrationCard).where(
                RegistrationCard.student_id == student_id,
                RegistrationCard.semester_id == semester_id,
            )
        ).scalar_one_or_none()
        if existing is not None:
            return existing

        series = f"{prefix}{issued_at.year}-"
        counter = cast(func.substr(RegistrationCard.card_number, len(series) + 1), Integer)
        latest = session.execute(
            select(func.max(counter)).where(
                RegistrationCard.card_number.startswith(series, autoescape=True)
            )
        ).scalar()
        sequence = (latest or 0) + 1

        card = RegistrationCard(
            student_id=student_id,
            semester_id=semester_id,
            card_number=f"{series}{sequence:04d}",
            issued_at=issued_at,
        )
        session.add(card)
        session.flush()
        return card
