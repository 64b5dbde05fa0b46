"""Course endpoints."""

from fastapi import APIRouter, Query, status

from coursereg.api.dependencies import ActorDep, CatalogDep
from coursereg.api.models import (
    APIResponse,
    CourseCreate,
    CourseResponse,
    course_to_response,
)

router = APIRouter(prefix="/courses", tags=["courses"])


@router.get("", response_model=APIResponse[list[CourseResponse]])
def list_courses(
    catalog: CatalogDep,
    _actor: ActorDep,
    department: str | None = Query(default=None, description="Filter by department"),
) -> APIResponse[list[CourseResponse]]:
    """List courses ordered by code."""
    courses = catalog.list_courses(department=department)
    return APIResponse(data=[course_to_response(c) for c in courses])


@router.post(
    "",
    response_model=APIResponse[CourseResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_course(
    course: CourseCreate, catalog: CatalogDep, actor: ActorDep
) -> APIResponse[CourseResponse]:
    """Create a course (registrars only)."""
    created = catalog.create_course(
        actor,
        code=course.code,
        title=course.title,
        credits=course.credits,
        department=course.department,
    )
    return APIResponse(data=course_to_response(created))


@router.get("/{course_id}", response_model=APIResponse[CourseResponse])
def get_course(
    course_id: str, catalog: CatalogDep, _actor: ActorDep
) -> APIResponse[CourseResponse]:
    """Get a course by ID."""
    return APIResponse(data=course_to_response(catalog.get_course(course_id)))
