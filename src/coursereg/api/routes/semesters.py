"""Semester endpoints."""

from fastapi import APIRouter, Query, status

from coursereg.api.dependencies import ActorDep, CatalogDep
from coursereg.api.models import (
    APIResponse,
    SemesterCreate,
    SemesterResponse,
    semester_to_response,
)

router = APIRouter(prefix="/semesters", tags=["semesters"])


@router.get("", response_model=APIResponse[list[SemesterResponse]])
def list_semesters(
    catalog: CatalogDep,
    _actor: ActorDep,
    academic_year: str | None = Query(default=None, description="Filter by academic year"),
) -> APIResponse[list[SemesterResponse]]:
    """List semesters."""
    semesters = catalog.list_semesters(academic_year=academic_year)
    return APIResponse(data=[semester_to_response(s) for s in semesters])


@router.post(
    "",
    response_model=APIResponse[SemesterResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_semester(
    semester: SemesterCreate, catalog: CatalogDep, actor: ActorDep
) -> APIResponse[SemesterResponse]:
    """Create a semester (registrars only)."""
    created = catalog.create_semester(
        actor,
        name=semester.name,
        academic_year=semester.academic_year,
        is_active=semester.is_active,
        registration_deadline=semester.registration_deadline,
        course_upload_deadline=semester.course_upload_deadline,
    )
    return APIResponse(data=semester_to_response(created))


@router.get("/active", response_model=APIResponse[SemesterResponse])
def get_active_semester(catalog: CatalogDep, _actor: ActorDep) -> APIResponse[SemesterResponse]:
    """Get the currently active semester."""
    return APIResponse(data=semester_to_response(catalog.get_active_semester()))


@router.get("/{semester_id}", response_model=APIResponse[SemesterResponse])
def get_semester(
    semester_id: str, catalog: CatalogDep, _actor: ActorDep
) -> APIResponse[SemesterResponse]:
    """Get a semester by ID."""
    return APIResponse(data=semester_to_response(catalog.get_semester(semester_id)))


@router.post("/{semester_id}/activate", response_model=APIResponse[SemesterResponse])
def activate_semester(
    semester_id: str, catalog: CatalogDep, actor: ActorDep
) -> APIResponse[SemesterResponse]:
    """Make a semester the active one (registrars only)."""
    return APIResponse(data=semester_to_response(catalog.activate_semester(actor, semester_id)))
