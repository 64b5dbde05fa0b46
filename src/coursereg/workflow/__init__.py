"""Workflow package - Registration and course approval state machines."""

from coursereg.store import NotFoundError
from coursereg.workflow.catalog_service import CatalogService
from coursereg.workflow.course_upload_service import CourseUploadService
from coursereg.workflow.exceptions import (
    AuthorizationError,
    CreditLimitExceededError,
    DuplicateCourseError,
    InvalidSemesterError,
    InvalidStateError,
    WorkflowError,
)
from coursereg.workflow.models import (
    Actor,
    BulkApprovalResult,
    CourseUploadPage,
    PendingQueue,
    Role,
)
from coursereg.workflow.registration_service import RegistrationService
from coursereg.workflow.rules import MAX_CREDITS, CreditRule

__all__ = [
    "MAX_CREDITS",
    "Actor",
    "AuthorizationError",
    "BulkApprovalResult",
    "CatalogService",
    "CourseUploadPage",
    "CourseUploadService",
    "CreditLimitExceededError",
    "CreditRule",
    "DuplicateCourseError",
    "InvalidSemesterError",
    "InvalidStateError",
    "NotFoundError",
    "PendingQueue",
    "RegistrationService",
    "Role",
    "WorkflowError",
]
