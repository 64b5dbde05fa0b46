"""Exceptions for the registration workflow.

Every error here is an expected, user-facing outcome. ``kind`` names the
error category reported to API clients.
"""


class WorkflowError(Exception):
    """Base exception for workflow errors."""

    kind = "WorkflowError"


class InvalidSemesterError(WorkflowError):
    """Semester is missing, inactive, or past its registration/upload deadline."""

    kind = "InvalidSemesterError"


class InvalidStateError(WorkflowError):
    """Transition attempted from a status that does not permit it."""

    kind = "InvalidStateError"


class DuplicateCourseError(WorkflowError):
    """Course already present in the student's registration for the semester."""

    kind = "DuplicateCourseError"


class CreditLimitExceededError(WorkflowError):
    """Adding the course would push the registration over the credit ceiling."""

    kind = "CreditLimitExceededError"

    def __init__(self, current: int, requested: int, limit: int) -> None:
        self.current = current
        self.requested = requested
        self.limit = limit
        super().__init__(
            f"You have reached the maximum credit limit of {limit} "
            f"(registered: {current}, requested: {requested})"
        )


class AuthorizationError(WorkflowError):
    """Actor lacks the role required for the requested action."""

    kind = "AuthorizationError"
