"""Course upload endpoints."""

from fastapi import APIRouter, Query, status

from coursereg.api.dependencies import ActorDep, CourseUploadServiceDep
from coursereg.api.models import (
    APIResponse,
    BulkApprovalResponse,
    BulkApproveRequest,
    CourseUploadPageResponse,
    CourseUploadResponse,
    RejectRequest,
    course_upload_to_response,
)
from coursereg.store import ApprovalStatus

router = APIRouter(prefix="/course-uploads", tags=["course-uploads"])


@router.get("", response_model=APIResponse[CourseUploadPageResponse])
def list_course_uploads(
    course_uploads: CourseUploadServiceDep,
    actor: ActorDep,
    registration_id: str | None = Query(default=None, description="Filter by registration"),
    student_id: str | None = Query(default=None, description="Filter by student ID"),
    semester_id: str | None = Query(default=None, description="Filter by semester ID"),
    department: str | None = Query(default=None, description="Filter by course department"),
    status_filter: ApprovalStatus | None = Query(
        default=None, alias="status", description="Filter by status"
    ),
    limit: int = Query(default=10, ge=1, le=1000, description="Page size"),
    offset: int = Query(default=0, ge=0, description="Pagination offset"),
) -> APIResponse[CourseUploadPageResponse]:
    """List course uploads with filters and pagination."""
    page = course_uploads.list_course_uploads(
        actor,
        registration_id=registration_id,
        student_id=student_id,
        semester_id=semester_id,
        department=department,
        status=status_filter,
        limit=limit,
        offset=offset,
    )
    return APIResponse(data=CourseUploadPageResponse.model_validate(page))


@router.post("/bulk-approve", response_model=APIResponse[BulkApprovalResponse])
def bulk_approve(
    body: BulkApproveRequest, course_uploads: CourseUploadServiceDep, actor: ActorDep
) -> APIResponse[BulkApprovalResponse]:
    """Approve several course uploads; failures are reported per ID."""
    result = course_uploads.bulk_approve_course_uploads(body.ids, actor)
    return APIResponse(data=BulkApprovalResponse.model_validate(result))


@router.get("/{course_upload_id}", response_model=APIResponse[CourseUploadResponse])
def get_course_upload(
    course_upload_id: str, course_uploads: CourseUploadServiceDep, actor: ActorDep
) -> APIResponse[CourseUploadResponse]:
    """Get a course upload by ID."""
    upload = course_uploads.get_course_upload(course_upload_id, actor)
    return APIResponse(data=course_upload_to_response(upload))


@router.delete("/{course_upload_id}", status_code=status.HTTP_204_NO_CONTENT)
def drop_course(
    course_upload_id: str, course_uploads: CourseUploadServiceDep, actor: ActorDep
) -> None:
    """Drop a pending course upload."""
    course_uploads.drop_course(course_upload_id, actor)


@router.post("/{course_upload_id}/approve", response_model=APIResponse[CourseUploadResponse])
def approve_course_upload(
    course_upload_id: str, course_uploads: CourseUploadServiceDep, actor: ActorDep
) -> APIResponse[CourseUploadResponse]:
    """Approve a pending course upload."""
    upload = course_uploads.approve_course_upload(course_upload_id, actor)
    return APIResponse(data=course_upload_to_response(upload))


@router.post("/{course_upload_id}/reject", response_model=APIResponse[CourseUploadResponse])
def reject_course_upload(
    course_upload_id: str,
    body: RejectRequest,
    course_uploads: CourseUploadServiceDep,
    actor: ActorDep,
) -> APIResponse[CourseUploadResponse]:
    """Reject a pending course upload."""
    upload = course_uploads.reject_course_upload(course_upload_id, actor, body.reason)
    return APIResponse(data=course_upload_to_response(upload))
