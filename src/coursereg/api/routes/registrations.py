"""Semester registration endpoints."""

from fastapi import APIRouter, Query, status

from coursereg.api.dependencies import ActorDep, CourseUploadServiceDep, RegistrationServiceDep
from coursereg.api.models import (
    AddCourseRequest,
    APIResponse,
    CourseUploadResponse,
    CreditSummaryResponse,
    RegistrationCreate,
    RegistrationDetailResponse,
    RegistrationResponse,
    RejectRequest,
    course_upload_to_response,
    registration_to_response,
)
from coursereg.store import ApprovalStatus

router = APIRouter(prefix="/registrations", tags=["registrations"])


@router.post("", response_model=APIResponse[RegistrationResponse])
def register_for_semester(
    body: RegistrationCreate, registrations: RegistrationServiceDep, actor: ActorDep
) -> APIResponse[RegistrationResponse]:
    """Get or create the student's registration for a semester."""
    student_id = body.student_id if body.student_id is not None else actor.id
    registration = registrations.get_or_create_registration(student_id, body.semester_id, actor)
    return APIResponse(data=registration_to_response(registration))


@router.get("", response_model=APIResponse[list[RegistrationResponse]])
def list_registrations(
    registrations: RegistrationServiceDep,
    actor: ActorDep,
    student_id: str | None = Query(default=None, description="Filter by student ID"),
    semester_id: str | None = Query(default=None, description="Filter by semester ID"),
    status_filter: ApprovalStatus | None = Query(
        default=None, alias="status", description="Filter by status"
    ),
    limit: int = Query(default=100, ge=1, le=1000, description="Max results"),
    offset: int = Query(default=0, ge=0, description="Pagination offset"),
) -> APIResponse[list[RegistrationResponse]]:
    """List registrations with optional filters."""
    found = registrations.list_registrations(
        actor,
        student_id=student_id,
        semester_id=semester_id,
        status=status_filter,
        limit=limit,
        offset=offset,
    )
    return APIResponse(data=[registration_to_response(r) for r in found])


@router.get("/{registration_id}", response_model=APIResponse[RegistrationDetailResponse])
def get_registration(
    registration_id: str,
    registrations: RegistrationServiceDep,
    course_uploads: CourseUploadServiceDep,
    actor: ActorDep,
) -> APIResponse[RegistrationDetailResponse]:
    """Get a registration with its course uploads and credit summary."""
    registration = registrations.get_registration(registration_id, actor)
    page = course_uploads.list_course_uploads(
        actor, registration_id=registration_id, limit=1000
    )
    summary = registrations.credit_summary(registration_id)
    detail = RegistrationDetailResponse(
        **registration_to_response(registration).model_dump(),
        course_uploads=[course_upload_to_response(u) for u in page.items],
        credits=CreditSummaryResponse.model_validate(summary),
    )
    return APIResponse(data=detail)


@router.get("/{registration_id}/credits", response_model=APIResponse[CreditSummaryResponse])
def get_credit_summary(
    registration_id: str, registrations: RegistrationServiceDep, actor: ActorDep
) -> APIResponse[CreditSummaryResponse]:
    """Get the credit load of a registration."""
    registrations.get_registration(registration_id, actor)
    summary = registrations.credit_summary(registration_id)
    return APIResponse(data=CreditSummaryResponse.model_validate(summary))


@router.post("/{registration_id}/approve", response_model=APIResponse[RegistrationResponse])
def approve_registration(
    registration_id: str, registrations: RegistrationServiceDep, actor: ActorDep
) -> APIResponse[RegistrationResponse]:
    """Approve a pending registration."""
    registration = registrations.approve_registration(registration_id, actor)
    return APIResponse(data=registration_to_response(registration))


@router.post("/{registration_id}/reject", response_model=APIResponse[RegistrationResponse])
def reject_registration(
    registration_id: str,
    body: RejectRequest,
    registrations: RegistrationServiceDep,
    actor: ActorDep,
) -> APIResponse[RegistrationResponse]:
    """Reject a pending registration."""
    registration = registrations.reject_registration(registration_id, actor, body.reason)
    return APIResponse(data=registration_to_response(registration))


@router.post(
    "/{registration_id}/courses",
    response_model=APIResponse[CourseUploadResponse],
    status_code=status.HTTP_201_CREATED,
)
def add_course(
    registration_id: str,
    body: AddCourseRequest,
    course_uploads: CourseUploadServiceDep,
    actor: ActorDep,
) -> APIResponse[CourseUploadResponse]:
    """Add a course to a pending registration."""
    upload = course_uploads.add_course(registration_id, body.course_id, actor)
    return APIResponse(data=course_upload_to_response(upload))
