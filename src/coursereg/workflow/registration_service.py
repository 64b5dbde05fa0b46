"""RegistrationService - Semester registration lifecycle."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from coursereg.store import (
    ApprovalStatus,
    ApprovalTarget,
    CreditSummary,
    RegistrationExistsError,
    SemesterNotFoundError,
)
from coursereg.workflow.exceptions import InvalidSemesterError, InvalidStateError
from coursereg.workflow.rules import (
    CreditRule,
    ensure_pending,
    ensure_semester_open,
    require_approver,
    require_owner,
    require_viewer,
    utcnow,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from coursereg.store import (
        Approval,
        Registration,
        RegistrationCard,
        RegistrationStore,
    )
    from coursereg.workflow.models import Actor

logger = logging.getLogger(__name__)


class RegistrationService:
    """Owns the existence and status of semester registrations.

    A registration is created PENDING and moves exactly once to APPROVED or
    REJECTED. Deciding a registration never changes the status of its
    course uploads; those are decided one by one through CourseUploadService.
    """

    def __init__(
        self,
        store: RegistrationStore,
        credit_rule: CreditRule | None = None,
        card_prefix: str = "BU",
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """Initialize the service.

        Args:
            store: RegistrationStore for persistence.
            credit_rule: Credit ceiling. Defaults to 24 credits.
            card_prefix: Prefix for issued registration card numbers.
            clock: Returns the current naive UTC time.
        """
        self.store = store
        self.credit_rule = credit_rule if credit_rule is not None else CreditRule()
        self.card_prefix = card_prefix
        self._clock = clock

    def get_or_create_registration(
        self, student_id: str, semester_id: str, actor: Actor
    ) -> Registration:
        """Return the student's registration for the semester, creating it if needed.

        Args:
            student_id: The student registering.
            semester_id: The semester to register for.
            actor: The user performing the action.

        Returns:
            The existing or newly created PENDING registration.

        Raises:
            AuthorizationError: If actor is not the student or a registrar.
            InvalidSemesterError: If the semester is missing, inactive, or past
                its registration deadline.
        """
        require_owner(actor, student_id, "register")

        try:
            semester = self.store.get_semester(semester_id)
        except SemesterNotFoundError as e:
            raise InvalidSemesterError(f"Semester '{semester_id}' does not exist") from e
        ensure_semester_open(semester, self._clock(), "registration")

        existing = self.store.find_registration(student_id, semester_id)
        if existing is not None:
            return existing

        try:
            registration = self.store.create_registration(student_id, semester_id)
        except RegistrationExistsError:
            # Lost a create race; the winner's row is the registration.
            return self.store.get_registration_for_student(student_id, semester_id)

        logger.info(
            "Created registration %s for student %s in semester %s (by %s)",
            registration.id,
            student_id,
            semester_id,
            actor,
        )
        return registration

    def get_registration(self, registration_id: str, actor: Actor) -> Registration:
        """Get a registration the actor may view."""
        registration = self.store.get_registration(registration_id)
        require_viewer(actor, registration.student_id)
        return registration

    def get_registration_for_student(
        self, student_id: str, semester_id: str, actor: Actor
    ) -> Registration:
        """Get a student's registration for a semester without creating it."""
        require_viewer(actor, student_id)
        return self.store.get_registration_for_student(student_id, semester_id)

    def list_registrations(
        self,
        actor: Actor,
        student_id: str | None = None,
        semester_id: str | None = None,
        status: ApprovalStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Registration]:
        """List registrations. Students only ever see their own."""
        if not actor.is_approver:
            require_viewer(actor, student_id if student_id is not None else actor.id)
            student_id = actor.id
        return self.store.list_registrations(
            student_id=student_id,
            semester_id=semester_id,
            status=status,
            limit=limit,
            offset=offset,
        )

    def compute_total_credits(self, registration_id: str) -> int:
        """Sum credits over the registration's non-rejected course uploads.

        Raises:
            RegistrationNotFoundError: If the registration doesn't exist.
        """
        self.store.get_registration(registration_id)
        return self.store.sum_credits(registration_id)

    def check_credit_capacity(self, registration_id: str, additional_credits: int) -> int:
        """Verify that adding credits keeps the registration within the ceiling.

        Returns:
            The total the registration would reach.

        Raises:
            CreditLimitExceededError: If the ceiling would be exceeded.
        """
        current = self.compute_total_credits(registration_id)
        return self.credit_rule.check(current, additional_credits)

    def credit_summary(self, registration_id: str) -> CreditSummary:
        """Credit load and per-status course counts for a registration."""
        total = self.compute_total_credits(registration_id)
        counts = self.store.count_by_status(registration_id)
        return CreditSummary(
            registration_id=registration_id,
            total_credits=total,
            max_credits=self.credit_rule.max_credits,
            pending_courses=counts[ApprovalStatus.PENDING],
            approved_courses=counts[ApprovalStatus.APPROVED],
            rejected_courses=counts[ApprovalStatus.REJECTED],
        )

    def approve_registration(self, registration_id: str, approver: Actor) -> Registration:
        """Approve a PENDING registration and issue the student's registration card.

        Course uploads keep their own statuses.

        Raises:
            AuthorizationError: If approver is not staff or a registrar.
            RegistrationNotFoundError: If the registration doesn't exist.
            InvalidStateError: If the registration is not PENDING.
        """
        registration = self._decide(registration_id, approver, ApprovalStatus.APPROVED)
        card = self.store.find_registration_card(
            registration.student_id, registration.semester_id
        )
        logger.info(
            "Registration %s approved by %s (card %s)",
            registration_id,
            approver,
            card.card_number if card is not None else None,
        )
        return registration

    def reject_registration(
        self, registration_id: str, approver: Actor, reason: str
    ) -> Registration:
        """Reject a PENDING registration, storing the reason.

        Raises:
            AuthorizationError: If approver is not staff or a registrar.
            RegistrationNotFoundError: If the registration doesn't exist.
            InvalidStateError: If the registration is not PENDING.
        """
        registration = self._decide(
            registration_id, approver, ApprovalStatus.REJECTED, reason=reason
        )
        logger.info("Registration %s rejected by %s: %s", registration_id, approver, reason)
        return registration

    def _decide(
        self,
        registration_id: str,
        approver: Actor,
        to_status: ApprovalStatus,
        reason: str | None = None,
    ) -> Registration:
        action = "approve" if to_status is ApprovalStatus.APPROVED else "reject"
        require_approver(approver, f"{action} registrations")

        registration = self.store.get_registration(registration_id)
        try:
            ensure_pending(registration.approval_status, "registration", action)
        except InvalidStateError:
            logger.warning(
                "Refused to %s registration %s in state %s",
                action,
                registration_id,
                registration.status,
            )
            raise

        updated = self.store.transition_registration(
            registration_id,
            to_status,
            approver_id=approver.id,
            reason=reason,
            card_prefix=self.card_prefix,
            issued_at=self._clock(),
        )
        if updated is None:
            raise InvalidStateError(f"Cannot {action}: registration was decided concurrently")
        return updated

    def list_registration_cards(
        self,
        actor: Actor,
        student_id: str | None = None,
        semester_id: str | None = None,
    ) -> list[RegistrationCard]:
        """List issued registration cards. Students only ever see their own."""
        if not actor.is_approver:
            require_viewer(actor, student_id if student_id is not None else actor.id)
            student_id = actor.id
        return self.store.list_registration_cards(student_id=student_id, semester_id=semester_id)

    def approval_history(
        self,
        actor: Actor,
        target_type: ApprovalTarget | None = None,
        target_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Approval]:
        """Audit trail of approve/reject decisions, visible to approvers."""
        require_approver(actor, "view approval history")
        return self.store.list_approvals(
            target_type=target_type, target_id=target_id, limit=limit, offset=offset
        )
