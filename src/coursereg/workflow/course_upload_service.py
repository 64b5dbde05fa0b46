"""CourseUploadService - Course selections within a registration."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from coursereg.store import (
    ApprovalStatus,
    CourseUploadExistsError,
    NotFoundError,
)
from coursereg.workflow.exceptions import (
    AuthorizationError,
    DuplicateCourseError,
    InvalidStateError,
    WorkflowError,
)
from coursereg.workflow.models import BulkApprovalResult, CourseUploadPage, PendingQueue
from coursereg.workflow.rules import (
    ensure_pending,
    ensure_semester_open,
    require_approver,
    require_owner,
    require_viewer,
    utcnow,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from datetime import datetime

    from coursereg.store import CourseUpload, RegistrationStore
    from coursereg.workflow.models import Actor
    from coursereg.workflow.registration_service import RegistrationService

logger = logging.getLogger(__name__)


class CourseUploadService:
    """Manages individual course selections and their approval.

    Adds and drops for one registration are serialized through the store's
    per-registration lock, so the credit check and the insert that follows
    it cannot interleave with another add for the same registration.
    """

    def __init__(
        self,
        store: RegistrationStore,
        registrations: RegistrationService,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """Initialize the service.

        Args:
            store: RegistrationStore for persistence.
            registrations: RegistrationService providing credit totals.
            clock: Returns the current naive UTC time.
        """
        self.store = store
        self.registrations = registrations
        self._clock = clock

    def add_course(self, registration_id: str, course_id: str, actor: Actor) -> CourseUpload:
        """Add a course to a PENDING registration.

        Args:
            registration_id: The parent registration.
            course_id: The course to add.
            actor: The student (or a registrar on their behalf).

        Returns:
            The created PENDING course upload.

        Raises:
            RegistrationNotFoundError: If the registration doesn't exist.
            CourseNotFoundError: If the course doesn't exist.
            AuthorizationError: If actor does not own the registration.
            InvalidStateError: If the registration is not PENDING.
            InvalidSemesterError: If the course upload window is closed.
            DuplicateCourseError: If the course is already in the registration.
            CreditLimitExceededError: If the credit ceiling would be exceeded.
        """
        with self.store.registration_lock(registration_id):
            registration = self.store.get_registration(registration_id)
            require_owner(actor, registration.student_id, "add courses")
            ensure_pending(registration.approval_status, "registration", "add courses")

            course = self.store.get_course(course_id)
            ensure_semester_open(registration.semester, self._clock(), "course upload")

            existing = self.store.find_course_upload(
                registration.student_id, course_id, registration.semester_id
            )
            if existing is not None:
                raise DuplicateCourseError(
                    f"Course {course.code} is already in your registration "
                    f"({existing.status})"
                )

            try:
                new_total = self.registrations.check_credit_capacity(
                    registration_id, course.credits
                )
            except WorkflowError:
                logger.warning(
                    "Credit limit refused %s (%d credits) for registration %s",
                    course.code,
                    course.credits,
                    registration_id,
                )
                raise

            try:
                upload = self.store.create_course_upload(registration_id, course_id)
            except CourseUploadExistsError as e:
                raise DuplicateCourseError(
                    f"Course {course.code} is already in your registration"
                ) from e

        logger.info(
            "Added course %s to registration %s (total %d credits, by %s)",
            course.code,
            registration_id,
            new_total,
            actor,
        )
        return upload

    def drop_course(self, course_upload_id: str, actor: Actor) -> None:
        """Remove a PENDING course upload from a PENDING registration.

        Raises:
            CourseUploadNotFoundError: If the course upload doesn't exist.
            AuthorizationError: If actor does not own the course upload.
            InvalidStateError: If the course upload or its registration is decided.
        """
        upload = self.store.get_course_upload(course_upload_id)
        with self.store.registration_lock(upload.registration_id):
            upload = self.store.get_course_upload(course_upload_id)
            require_owner(actor, upload.student_id, "drop courses")
            ensure_pending(upload.approval_status, "course", "drop course")
            registration = self.store.get_registration(upload.registration_id)
            ensure_pending(registration.approval_status, "registration", "drop course")

            self.store.delete_course_upload(course_upload_id)

        logger.info(
            "Dropped course upload %s from registration %s (by %s)",
            course_upload_id,
            upload.registration_id,
            actor,
        )

    def approve_course_upload(self, course_upload_id: str, approver: Actor) -> CourseUpload:
        """Approve a single PENDING course upload.

        Raises:
            AuthorizationError: If approver is not staff or a registrar.
            CourseUploadNotFoundError: If the course upload doesn't exist.
            InvalidStateError: If the course upload is not PENDING.
        """
        upload = self._decide(course_upload_id, approver, ApprovalStatus.APPROVED)
        logger.info("Course upload %s approved by %s", course_upload_id, approver)
        return upload

    def reject_course_upload(
        self, course_upload_id: str, approver: Actor, reason: str
    ) -> CourseUpload:
        """Reject a single PENDING course upload, storing the reason.

        Its credits stop counting toward the registration total.

        Raises:
            AuthorizationError: If approver is not staff or a registrar.
            CourseUploadNotFoundError: If the course upload doesn't exist.
            InvalidStateError: If the course upload is not PENDING.
        """
        upload = self._decide(course_upload_id, approver, ApprovalStatus.REJECTED, reason)
        logger.info("Course upload %s rejected by %s: %s", course_upload_id, approver, reason)
        return upload

    def bulk_approve_course_uploads(
        self, course_upload_ids: Iterable[str], approver: Actor
    ) -> BulkApprovalResult:
        """Approve each course upload independently.

        An ID that is unknown or already decided is reported in the result and
        does not stop the others from being approved.

        Raises:
            AuthorizationError: If approver is not staff or a registrar.
        """
        require_approver(approver, "approve course registrations")

        result = BulkApprovalResult()
        for course_upload_id in course_upload_ids:
            try:
                self.approve_course_upload(course_upload_id, approver)
            except (WorkflowError, NotFoundError) as e:
                result.failed_ids.append(course_upload_id)
                result.errors[course_upload_id] = str(e)
            else:
                result.succeeded_count += 1

        if result.failed_ids:
            logger.warning(
                "Bulk approval by %s: %d approved, %d failed (%s)",
                approver,
                result.succeeded_count,
                len(result.failed_ids),
                ", ".join(result.failed_ids),
            )
        else:
            logger.info(
                "Bulk approval by %s: %d approved", approver, result.succeeded_count
            )
        return result

    def _decide(
        self,
        course_upload_id: str,
        approver: Actor,
        to_status: ApprovalStatus,
        reason: str | None = None,
    ) -> CourseUpload:
        action = "approve" if to_status is ApprovalStatus.APPROVED else "reject"
        require_approver(approver, f"{action} course registrations")

        upload = self.store.get_course_upload(course_upload_id)
        with self.store.registration_lock(upload.registration_id):
            upload = self.store.get_course_upload(course_upload_id)
            ensure_pending(upload.approval_status, "course", action)

            updated = self.store.transition_course_upload(
                course_upload_id, to_status, approver_id=approver.id, reason=reason
            )
        if updated is None:
            raise InvalidStateError(f"Cannot {action}: course was decided concurrently")
        return updated

    def get_course_upload(self, course_upload_id: str, actor: Actor) -> CourseUpload:
        """Get a course upload the actor may view."""
        upload = self.store.get_course_upload(course_upload_id)
        require_viewer(actor, upload.student_id)
        return upload

    def list_course_uploads(
        self,
        actor: Actor,
        registration_id: str | None = None,
        student_id: str | None = None,
        semester_id: str | None = None,
        department: str | None = None,
        status: ApprovalStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> CourseUploadPage:
        """List course uploads with filters and pagination.

        Students only ever see their own course uploads.
        """
        if not actor.is_approver:
            if student_id is not None and student_id != actor.id:
                raise AuthorizationError("You are not allowed to view these course uploads")
            student_id = actor.id

        filters = {
            "registration_id": registration_id,
            "student_id": student_id,
            "semester_id": semester_id,
            "department": department,
            "status": status,
        }
        items = self.store.list_course_uploads(**filters, limit=limit, offset=offset)
        total = self.store.count_course_uploads(**filters)
        return CourseUploadPage(items=items, total=total, limit=limit, offset=offset)

    def pending_queue(
        self,
        approver: Actor,
        semester_id: str | None = None,
        department: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> PendingQueue:
        """Pending registrations and course uploads awaiting a decision."""
        require_approver(approver, "view the approval queue")

        registrations = self.store.list_registrations(
            semester_id=semester_id, status=ApprovalStatus.PENDING, limit=limit, offset=offset
        )
        page = self.list_course_uploads(
            approver,
            semester_id=semester_id,
            department=department,
            status=ApprovalStatus.PENDING,
            limit=limit,
            offset=offset,
        )
        return PendingQueue(
            registrations=registrations,
            course_uploads=page.items,
            total_course_uploads=page.total,
        )
