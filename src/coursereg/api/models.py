"""Pydantic models for REST API."""

from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class APIResponse(BaseModel, Generic[T]):
    """Standard API response wrapper.

    On failure ``error`` carries the human-readable reason and ``code`` the
    error kind (e.g. "CreditLimitExceededError").
    """

    data: T | None = None
    error: str | None = None
    code: str | None = None


# Semester models


class SemesterCreate(BaseModel):
    """Request model for creating a semester."""

    name: str = Field(..., min_length=1, max_length=255)
    academic_year: str = Field(..., min_length=1, max_length=20)
    is_active: bool = False
    registration_deadline: datetime | None = None
    course_upload_deadline: datetime | None = None


class SemesterResponse(BaseModel):
    """Response model for a semester."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    academic_year: str
    is_active: bool
    registration_deadline: datetime | None
    course_upload_deadline: datetime | None
    created_at: datetime
    updated_at: datetime


def semester_to_response(semester: Any) -> SemesterResponse:
    """Convert a Semester model to SemesterResponse."""
    return SemesterResponse.model_validate(semester)


# Course models


class CourseCreate(BaseModel):
    """Request model for creating a course."""

    code: str = Field(..., min_length=1, max_length=50)
    title: str = Field(..., min_length=1, max_length=255)
    credits: int = Field(..., gt=0, le=30)
    department: str = Field(..., min_length=1, max_length=255)


class CourseResponse(BaseModel):
    """Response model for a course."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    code: str
    title: str
    credits: int
    department: str


def course_to_response(course: Any) -> CourseResponse:
    """Convert a Course model to CourseResponse."""
    return CourseResponse.model_validate(course)


# Registration models


class RegistrationCreate(BaseModel):
    """Request model for registering for a semester.

    ``student_id`` defaults to the calling user.
    """

    semester_id: str = Field(..., min_length=1)
    student_id: str | None = None


class RegistrationResponse(BaseModel):
    """Response model for a registration."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    student_id: str
    semester_id: str
    status: str
    rejection_reason: str | None
    decided_by: str | None
    created_at: datetime
    updated_at: datetime


def registration_to_response(registration: Any) -> RegistrationResponse:
    """Convert a Registration model to RegistrationResponse."""
    return RegistrationResponse.model_validate(registration)


class RejectRequest(BaseModel):
    """Request model for rejecting a registration or course upload."""

    reason: str = Field(..., min_length=1, max_length=2000)


# Course upload models


class AddCourseRequest(BaseModel):
    """Request model for adding a course to a registration."""

    course_id: str = Field(..., min_length=1)


class CourseUploadResponse(BaseModel):
    """Response model for a course upload."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    student_id: str
    course_id: str
    semester_id: str
    registration_id: str
    status: str
    rejection_reason: str | None
    decided_by: str | None
    created_at: datetime
    updated_at: datetime
    course: CourseResponse


def course_upload_to_response(upload: Any) -> CourseUploadResponse:
    """Convert a CourseUpload model to CourseUploadResponse."""
    return CourseUploadResponse.model_validate(upload)


class CourseUploadPageResponse(BaseModel):
    """Response model for a page of course uploads."""

    model_config = ConfigDict(from_attributes=True)

    items: list[CourseUploadResponse]
    total: int
    limit: int
    offset: int


class CreditSummaryResponse(BaseModel):
    """Response model for a registration's credit load."""

    model_config = ConfigDict(from_attributes=True)

    registration_id: str
    total_credits: int
    max_credits: int
    remaining_credits: int
    pending_courses: int
    approved_courses: int
    rejected_courses: int


class RegistrationDetailResponse(RegistrationResponse):
    """Registration with its course uploads and credit summary."""

    course_uploads: list[CourseUploadResponse]
    credits: CreditSummaryResponse


class BulkApproveRequest(BaseModel):
    """Request model for bulk approval of course uploads."""

    ids: list[str] = Field(..., min_length=1, max_length=500)


class BulkApprovalResponse(BaseModel):
    """Response model for bulk approval."""

    model_config = ConfigDict(from_attributes=True)

    succeeded_count: int
    failed_ids: list[str]
    errors: dict[str, str]


# Approval models


class PendingQueueResponse(BaseModel):
    """Response model for the approver queue."""

    model_config = ConfigDict(from_attributes=True)

    registrations: list[RegistrationResponse]
    course_uploads: list[CourseUploadResponse]
    total_course_uploads: int


class ApprovalResponse(BaseModel):
    """Response model for an approval audit entry."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    target_type: str
    target_id: str
    approver_id: str
    status: str
    comments: str | None
    created_at: datetime


class RegistrationCardResponse(BaseModel):
    """Response model for an issued registration card."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    student_id: str
    semester_id: str
    card_number: str
    issued_at: datetime
