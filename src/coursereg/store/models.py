"""SQLAlchemy models for the registration store."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime  # noqa: TC003 - used at runtime for SQLAlchemy
from enum import StrEnum
from typing import Any

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    mapped_column,
    relationship,
)


class ApprovalStatus(StrEnum):
    """Approval status shared by registrations, course uploads and approvals."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ApprovalTarget(StrEnum):
    """Kind of record an Approval entry refers to."""

    REGISTRATION = "registration"
    COURSE_UPLOAD = "course_upload"


def generate_uuid() -> str:
    """Generate a new UUID string."""
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class Semester(Base):
    """Semester model - reference data gating registration windows."""

    __tablename__ = "semesters"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    academic_year: Mapped[str] = mapped_column(String(20), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False)
    registration_deadline: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    course_upload_deadline: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )

    def __init__(
        self,
        name: str,
        academic_year: str,
        id: str | None = None,
        is_active: bool = False,
        registration_deadline: datetime | None = None,
        course_upload_deadline: datetime | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.id = id if id is not None else generate_uuid()
        self.name = name
        self.academic_year = academic_year
        self.is_active = is_active
        self.registration_deadline = registration_deadline
        self.course_upload_deadline = course_upload_deadline

    def __repr__(self) -> str:
        return (
            f"<Semester(id={self.id!r}, name={self.name!r}, "
            f"academic_year={self.academic_year!r}, is_active={self.is_active!r})>"
        )


class Course(Base):
    """Course model - reference data carrying the credit weight."""

    __tablename__ = "courses"
    __table_args__ = (CheckConstraint("credits > 0", name="ck_courses_credits_positive"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    code: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    credits: Mapped[int] = mapped_column(Integer, nullable=False)
    department: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )

    def __init__(
        self,
        code: str,
        title: str,
        credits: int,
        department: str,
        id: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.id = id if id is not None else generate_uuid()
        self.code = code
        self.title = title
        self.credits = credits
        self.department = department

    def __repr__(self) -> str:
        return f"<Course(id={self.id!r}, code={self.code!r}, credits={self.credits!r})>"


class Registration(Base):
    """Registration model - one student's enrollment record for one semester."""

    __tablename__ = "registrations"
    __table_args__ = (
        UniqueConstraint("student_id", "semester_id", name="uq_registrations_student_semester"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    student_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    semester_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("semesters.id"), nullable=False
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    decided_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    semester: Mapped[Semester] = relationship("Semester", lazy="joined")
    course_uploads: Mapped[list[CourseUpload]] = relationship(
        "CourseUpload", back_populates="registration", cascade="all, delete-orphan"
    )

    def __init__(
        self,
        student_id: str,
        semester_id: str,
        id: str | None = None,
        status: str | None = None,
        rejection_reason: str | None = None,
        decided_by: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.id = id if id is not None else generate_uuid()
        self.student_id = student_id
        self.semester_id = semester_id
        self.status = status if status is not None else ApprovalStatus.PENDING.value
        self.rejection_reason = rejection_reason
        self.decided_by = decided_by

    @property
    def approval_status(self) -> ApprovalStatus:
        """Get status as ApprovalStatus enum."""
        return ApprovalStatus(self.status)

    @approval_status.setter
    def approval_status(self, value: ApprovalStatus) -> None:
        """Set status from ApprovalStatus enum."""
        self.status = value.value

    def __repr__(self) -> str:
        return (
            f"<Registration(id={self.id!r}, student_id={self.student_id!r}, "
            f"semester_id={self.semester_id!r}, status={self.status!r})>"
        )


class CourseUpload(Base):
    """Course upload model - a student's request to take one course in a semester."""

    __tablename__ = "course_uploads"
    __table_args__ = (
        UniqueConstraint(
            "student_id", "course_id", "semester_id", name="uq_course_uploads_student_course"
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    student_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    course_id: Mapped[str] = mapped_column(String(36), ForeignKey("courses.id"), nullable=False)
    semester_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("semesters.id"), nullable=False
    )
    registration_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("registrations.id"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    decided_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    course: Mapped[Course] = relationship("Course", lazy="joined")
    registration: Mapped[Registration] = relationship(
        "Registration", back_populates="course_uploads"
    )

    def __init__(
        self,
        student_id: str,
        course_id: str,
        semester_id: str,
        registration_id: str,
        id: str | None = None,
        status: str | None = None,
        rejection_reason: str | None = None,
        decided_by: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.id = id if id is not None else generate_uuid()
        self.student_id = student_id
        self.course_id = course_id
        self.semester_id = semester_id
        self.registration_id = registration_id
        self.status = status if status is not None else ApprovalStatus.PENDING.value
        self.rejection_reason = rejection_reason
        self.decided_by = decided_by

    @property
    def approval_status(self) -> ApprovalStatus:
        """Get status as ApprovalStatus enum."""
        return ApprovalStatus(self.status)

    @approval_status.setter
    def approval_status(self, value: ApprovalStatus) -> None:
        """Set status from ApprovalStatus enum."""
        self.status = value.value

    def __repr__(self) -> str:
        return (
            f"<CourseUpload(id={self.id!r}, course_id={self.course_id!r}, "
            f"status={self.status!r})>"
        )


class Approval(Base):
    """Approval model - audit entry for one approve/reject decision."""

    __tablename__ = "approvals"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    target_type: Mapped[str] = mapped_column(String(20), nullable=False)
    target_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    approver_id: Mapped[str] = mapped_column(String(36), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    comments: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )

    def __init__(
        self,
        target_type: str,
        target_id: str,
        approver_id: str,
        status: str,
        id: str | None = None,
        comments: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.id = id if id is not None else generate_uuid()
        self.target_type = target_type
        self.target_id = target_id
        self.approver_id = approver_id
        self.status = status
        self.comments = comments

    def __repr__(self) -> str:
        return (
            f"<Approval(target_type={self.target_type!r}, target_id={self.target_id!r}, "
            f"status={self.status!r})>"
        )


class RegistrationCard(Base):
    """Registration card model - issued once a semester registration is approved."""

    __tablename__ = "registration_cards"
    __table_args__ = (
        UniqueConstraint("student_id", "semester_id", name="uq_registration_cards_student"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    student_id: Mapped[str] = mapped_column(String(36), nullable=False)
    semester_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("semesters.id"), nullable=False
    )
    card_number: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    issued_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    def __init__(
        self,
        student_id: str,
        semester_id: str,
        card_number: str,
        issued_at: datetime,
        id: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.id = id if id is not None else generate_uuid()
        self.student_id = student_id
        self.semester_id = semester_id
        self.card_number = card_number
        self.issued_at = issued_at

    def __repr__(self) -> str:
        return (
            f"<RegistrationCard(card_number={self.card_number!r}, "
            f"student_id={self.student_id!r})>"
        )


@dataclass
class CreditSummary:
    """Credit load of one registration."""

    registration_id: str
    total_credits: int
    max_credits: int
    pending_courses: int
    approved_courses: int
    rejected_courses: int

    @property
    def remaining_credits(self) -> int:
        """Credits still available before the ceiling."""
        return max(self.max_credits - self.total_credits, 0)
