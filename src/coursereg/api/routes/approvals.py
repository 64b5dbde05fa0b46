"""Approver queue, approval history and registration card endpoints."""

from fastapi import APIRouter, Query

from coursereg.api.dependencies import ActorDep, CourseUploadServiceDep, RegistrationServiceDep
from coursereg.api.models import (
    APIResponse,
    ApprovalResponse,
    PendingQueueResponse,
    RegistrationCardResponse,
)
from coursereg.store import ApprovalTarget

router = APIRouter(tags=["approvals"])


@router.get("/approvals/pending", response_model=APIResponse[PendingQueueResponse])
def pending_queue(
    course_uploads: CourseUploadServiceDep,
    actor: ActorDep,
    semester_id: str | None = Query(default=None, description="Filter by semester ID"),
    department: str | None = Query(default=None, description="Filter by course department"),
    limit: int = Query(default=100, ge=1, le=1000, description="Max results"),
    offset: int = Query(default=0, ge=0, description="Pagination offset"),
) -> APIResponse[PendingQueueResponse]:
    """Pending registrations and course uploads awaiting a decision."""
    queue = course_uploads.pending_queue(
        actor, semester_id=semester_id, department=department, limit=limit, offset=offset
    )
    return APIResponse(data=PendingQueueResponse.model_validate(queue))


@router.get("/approvals/history", response_model=APIResponse[list[ApprovalResponse]])
def approval_history(
    registrations: RegistrationServiceDep,
    actor: ActorDep,
    target_type: ApprovalTarget | None = Query(default=None, description="Record kind"),
    target_id: str | None = Query(default=None, description="Record ID"),
    limit: int = Query(default=100, ge=1, le=1000, description="Max results"),
    offset: int = Query(default=0, ge=0, description="Pagination offset"),
) -> APIResponse[list[ApprovalResponse]]:
    """Audit trail of approve/reject decisions."""
    approvals = registrations.approval_history(
        actor, target_type=target_type, target_id=target_id, limit=limit, offset=offset
    )
    return APIResponse(data=[ApprovalResponse.model_validate(a) for a in approvals])


@router.get("/registration-cards", response_model=APIResponse[list[RegistrationCardResponse]])
def list_registration_cards(
    registrations: RegistrationServiceDep,
    actor: ActorDep,
    student_id: str | None = Query(default=None, description="Filter by student ID"),
    semester_id: str | None = Query(default=None, description="Filter by semester ID"),
) -> APIResponse[list[RegistrationCardResponse]]:
    """List issued registration cards."""
    cards = registrations.list_registration_cards(
        actor, student_id=student_id, semester_id=semester_id
    )
    return APIResponse(data=[RegistrationCardResponse.model_validate(c) for c in cards])
