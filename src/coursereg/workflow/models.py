"""Data models for the registration workflow."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from coursereg.store import CourseUpload, Registration


class Role(StrEnum):
    """Role supplied by the identity provider."""

    STUDENT = "STUDENT"
    STAFF = "STAFF"
    REGISTRAR = "REGISTRAR"
    ADMIN = "ADMIN"


APPROVER_ROLES = frozenset({Role.STAFF, Role.REGISTRAR, Role.ADMIN})
OVERRIDE_ROLES = frozenset({Role.REGISTRAR, Role.ADMIN})


@dataclass(frozen=True)
class Actor:
    """The authenticated user performing an operation."""

    id: str
    role: Role

    @property
    def is_approver(self) -> bool:
        return self.role in APPROVER_ROLES

    @property
    def can_override(self) -> bool:
        """Registrar-level users may act on behalf of students."""
        return self.role in OVERRIDE_ROLES

    def __str__(self) -> str:
        return f"{self.role.value}:{self.id}"


@dataclass
class BulkApprovalResult:
    """Outcome of a bulk approval.

    Attributes:
        succeeded_count: Number of course uploads moved to APPROVED.
        failed_ids: IDs that could not be approved, in request order.
        errors: Reason per failed ID.
    """

    succeeded_count: int = 0
    failed_ids: list[str] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)


@dataclass
class CourseUploadPage:
    """One page of course uploads with the total match count."""

    items: list[CourseUpload]
    total: int
    limit: int
    offset: int


@dataclass
class PendingQueue:
    """Records awaiting an approver's decision."""

    registrations: list[Registration]
    course_uploads: list[CourseUpload]
    total_course_uploads: int
