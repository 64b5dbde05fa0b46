"""Custom exceptions for the registration store."""


class StoreError(Exception):
    """Base exception for store errors."""


class NotFoundError(StoreError):
    """Referenced record does not exist."""

    kind = "NotFoundError"


class SemesterNotFoundError(NotFoundError):
    """Semester with given ID does not exist."""


class CourseNotFoundError(NotFoundError):
    """Course with given ID does not exist."""


class RegistrationNotFoundError(NotFoundError):
    """Registration with given ID (or student/semester pair) does not exist."""


class CourseUploadNotFoundError(NotFoundError):
    """Course upload with given ID does not exist."""


class CourseExistsError(StoreError):
    """Course with given code already exists."""


class RegistrationExistsError(StoreError):
    """Registration for this student and semester already exists."""


class CourseUploadExistsError(StoreError):
    """Course upload for this student, course and semester already exists."""
