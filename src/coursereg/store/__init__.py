"""Registration store - Persistent storage for registrations and course uploads."""

from coursereg.store.exceptions import (
    CourseExistsError,
    CourseNotFoundError,
    CourseUploadExistsError,
    CourseUploadNotFoundError,
    NotFoundError,
    RegistrationExistsError,
    RegistrationNotFoundError,
    SemesterNotFoundError,
    StoreError,
)
from coursereg.store.models import (
    Approval,
    ApprovalStatus,
    ApprovalTarget,
    Course,
    CourseUpload,
    CreditSummary,
    Registration,
    RegistrationCard,
    Semester,
)
from coursereg.store.store import RegistrationStore

__all__ = [
    "Approval",
    "ApprovalStatus",
    "ApprovalTarget",
    "Course",
    "CourseExistsError",
    "CourseNotFoundError",
    "CourseUpload",
    "CourseUploadExistsError",
    "CourseUploadNotFoundError",
    "CreditSummary",
    "NotFoundError",
    "Registration",
    "RegistrationCard",
    "RegistrationExistsError",
    "RegistrationNotFoundError",
    "RegistrationStore",
    "Semester",
    "SemesterNotFoundError",
    "StoreError",
]
