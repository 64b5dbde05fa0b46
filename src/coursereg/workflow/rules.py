"""Credit, status, deadline and role rules shared by the workflow services."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from coursereg.store import ApprovalStatus
from coursereg.workflow.exceptions import (
    AuthorizationError,
    CreditLimitExceededError,
    InvalidSemesterError,
    InvalidStateError,
)
from coursereg.workflow.models import Actor, Role

if TYPE_CHECKING:
    from coursereg.store import Semester

MAX_CREDITS = 24


def utcnow() -> datetime:
    """Current time as a naive UTC datetime, matching stored timestamps."""
    return datetime.now(UTC).replace(tzinfo=None)


def to_naive_utc(value: datetime | None) -> datetime | None:
    """Normalize an aware datetime to naive UTC. Naive values are taken as UTC."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


class CreditRule:
    """Ceiling on the total credits of a registration's non-rejected courses."""

    def __init__(self, max_credits: int = MAX_CREDITS) -> None:
        if max_credits <= 0:
            raise ValueError(f"max_credits must be positive, got {max_credits}")
        self.max_credits = max_credits

    def fits(self, current: int, additional: int) -> bool:
        return current + additional <= self.max_credits

    def check(self, current: int, additional: int) -> int:
        """Return the new total, or raise if it would exceed the ceiling.

        Raises:
            CreditLimitExceededError: If current + additional > max_credits
        """
        if not self.fits(current, additional):
            raise CreditLimitExceededError(current, additional, self.max_credits)
        return current + additional

    def remaining(self, current: int) -> int:
        return max(self.max_credits - current, 0)


def ensure_pending(status: ApprovalStatus, what: str, action: str) -> None:
    """Raise InvalidStateError unless status is PENDING.

    Args:
        status: Current status of the record
        what: Record description for the message (e.g. "Registration")
        action: Attempted action (e.g. "approve")
    """
    if status is not ApprovalStatus.PENDING:
        raise InvalidStateError(f"Cannot {action}: {what} is already {status.value}")


def ensure_semester_open(semester: Semester, now: datetime, window: str) -> None:
    """Raise InvalidSemesterError if the semester is closed for the given window.

    Args:
        semester: The semester being registered for
        now: Current naive UTC time
        window: "registration" or "course upload"
    """
    if not semester.is_active:
        raise InvalidSemesterError(f"Semester '{semester.name}' is not open for {window}")

    if window == "registration":
        deadline = semester.registration_deadline
    else:
        deadline = semester.course_upload_deadline

    if deadline is not None and now > to_naive_utc(deadline):
        raise InvalidSemesterError(
            f"The {window} deadline for semester '{semester.name}' has passed"
        )


def require_approver(actor: Actor, action: str) -> None:
    """Only STAFF, REGISTRAR and ADMIN may decide on pending records."""
    if not actor.is_approver:
        raise AuthorizationError(f"Only staff or registrars can {action}")


def require_registrar(actor: Actor, action: str) -> None:
    """Only REGISTRAR and ADMIN may manage reference data."""
    if not actor.can_override:
        raise AuthorizationError(f"Only registrars can {action}")


def require_owner(actor: Actor, student_id: str, action: str) -> None:
    """The owning student, or a registrar acting on their behalf."""
    if actor.can_override:
        return
    if actor.role is Role.STUDENT and actor.id == student_id:
        return
    raise AuthorizationError(f"You are not allowed to {action} for this student")


def require_viewer(actor: Actor, student_id: str) -> None:
    """The owning student or any approver may read a student's records."""
    if actor.is_approver or actor.id == student_id:
        return
    raise AuthorizationError("You are not allowed to view this student's records")
