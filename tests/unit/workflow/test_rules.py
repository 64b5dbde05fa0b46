"""Unit tests for workflow rules."""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from coursereg.store import ApprovalStatus, Semester
from coursereg.workflow import (
    MAX_CREDITS,
    Actor,
    AuthorizationError,
    CreditLimitExceededError,
    CreditRule,
    InvalidSemesterError,
    InvalidStateError,
    Role,
)
from coursereg.workflow.rules import (
    ensure_pending,
    ensure_semester_open,
    require_approver,
    require_owner,
    require_registrar,
    require_viewer,
    to_naive_utc,
    utcnow,
)


def make_semester(**kwargs) -> Semester:
    defaults = {"name": "First Semester", "academic_year": "2025/2026", "is_active": True}
    defaults.update(kwargs)
    return Semester(**defaults)


@pytest.mark.unit
class TestCreditRule:
    """Tests for CreditRule."""

    def test_default_ceiling(self) -> None:
        assert CreditRule().max_credits == MAX_CREDITS == 24

    def test_exactly_at_ceiling_fits(self) -> None:
        rule = CreditRule()

        assert rule.fits(21, 3)
        assert rule.check(21, 3) == 24

    def test_over_ceiling_raises(self) -> None:
        rule = CreditRule()

        with pytest.raises(CreditLimitExceededError) as exc_info:
            rule.check(24, 3)

        assert exc_info.value.current == 24
        assert exc_info.value.requested == 3
        assert exc_info.value.limit == 24
        assert "maximum credit limit of 24" in str(exc_info.value)

    def test_custom_ceiling(self) -> None:
        rule = CreditRule(max_credits=18)

        assert not rule.fits(12, 7)
        assert rule.remaining(12) == 6

    def test_remaining_never_negative(self) -> None:
        assert CreditRule().remaining(30) == 0

    def test_non_positive_ceiling_rejected(self) -> None:
        with pytest.raises(ValueError):
            CreditRule(max_credits=0)


@pytest.mark.unit
class TestEnsurePending:
    """Tests for ensure_pending."""

    def test_pending_passes(self) -> None:
        ensure_pending(ApprovalStatus.PENDING, "registration", "approve")

    @pytest.mark.parametrize("status", [ApprovalStatus.APPROVED, ApprovalStatus.REJECTED])
    def test_decided_raises(self, status: ApprovalStatus) -> None:
        with pytest.raises(InvalidStateError, match=f"already {status.value}"):
            ensure_pending(status, "registration", "approve")


@pytest.mark.unit
class TestEnsureSemesterOpen:
    """Tests for ensure_semester_open."""

    def test_open_semester_passes(self) -> None:
        now = utcnow()
        semester = make_semester(
            registration_deadline=now + timedelta(days=1),
            course_upload_deadline=now + timedelta(days=1),
        )

        ensure_semester_open(semester, now, "registration")
        ensure_semester_open(semester, now, "course upload")

    def test_no_deadline_is_open(self) -> None:
        ensure_semester_open(make_semester(), utcnow(), "registration")

    def test_inactive_semester_raises(self) -> None:
        with pytest.raises(InvalidSemesterError, match="not open"):
            ensure_semester_open(make_semester(is_active=False), utcnow(), "registration")

    def test_registration_deadline_passed(self) -> None:
        now = utcnow()
        semester = make_semester(
            registration_deadline=now - timedelta(minutes=1),
            course_upload_deadline=now + timedelta(days=1),
        )

        with pytest.raises(InvalidSemesterError, match="registration deadline"):
            ensure_semester_open(semester, now, "registration")
        ensure_semester_open(semester, now, "course upload")

    def test_course_upload_deadline_passed(self) -> None:
        now = utcnow()
        semester = make_semester(
            registration_deadline=now + timedelta(days=1),
            course_upload_deadline=now - timedelta(minutes=1),
        )

        with pytest.raises(InvalidSemesterError, match="course upload deadline"):
            ensure_semester_open(semester, now, "course upload")

    def test_aware_deadline_compared_in_utc(self) -> None:
        now = datetime(2025, 9, 1, 12, 0)
        # 13:30 at UTC+2 is 11:30 UTC, already passed at 12:00 UTC
        deadline = datetime(2025, 9, 1, 13, 30, tzinfo=timezone(timedelta(hours=2)))

        with pytest.raises(InvalidSemesterError):
            ensure_semester_open(make_semester(registration_deadline=deadline), now, "registration")


@pytest.mark.unit
class TestTimeHelpers:
    """Tests for utcnow and to_naive_utc."""

    def test_utcnow_is_naive(self) -> None:
        assert utcnow().tzinfo is None

    def test_to_naive_utc_converts_aware(self) -> None:
        aware = datetime(2025, 1, 1, 10, 0, tzinfo=timezone(timedelta(hours=-5)))

        assert to_naive_utc(aware) == datetime(2025, 1, 1, 15, 0)

    def test_to_naive_utc_keeps_naive_and_none(self) -> None:
        naive = datetime(2025, 1, 1, 10, 0)

        assert to_naive_utc(naive) is naive
        assert to_naive_utc(None) is None

    def test_to_naive_utc_utc_input(self) -> None:
        assert to_naive_utc(datetime(2025, 1, 1, tzinfo=UTC)) == datetime(2025, 1, 1)


@pytest.mark.unit
class TestRoleChecks:
    """Tests for role checks."""

    def test_approver_roles(self) -> None:
        for role in (Role.STAFF, Role.REGISTRAR, Role.ADMIN):
            require_approver(Actor(id="a", role=role), "approve")

        with pytest.raises(AuthorizationError):
            require_approver(Actor(id="s", role=Role.STUDENT), "approve")

    def test_registrar_roles(self) -> None:
        require_registrar(Actor(id="r", role=Role.REGISTRAR), "create courses")
        require_registrar(Actor(id="a", role=Role.ADMIN), "create courses")

        with pytest.raises(AuthorizationError):
            require_registrar(Actor(id="s", role=Role.STAFF), "create courses")

    def test_owner_is_matching_student(self) -> None:
        require_owner(Actor(id="student-1", role=Role.STUDENT), "student-1", "register")

        with pytest.raises(AuthorizationError):
            require_owner(Actor(id="student-2", role=Role.STUDENT), "student-1", "register")

    def test_staff_cannot_act_as_owner(self) -> None:
        with pytest.raises(AuthorizationError):
            require_owner(Actor(id="student-1", role=Role.STAFF), "student-1", "register")

    def test_registrar_overrides_owner(self) -> None:
        require_owner(Actor(id="registrar-1", role=Role.REGISTRAR), "student-1", "register")

    def test_viewer(self) -> None:
        require_viewer(Actor(id="student-1", role=Role.STUDENT), "student-1")
        require_viewer(Actor(id="staff-1", role=Role.STAFF), "student-1")

        with pytest.raises(AuthorizationError):
            require_viewer(Actor(id="student-2", role=Role.STUDENT), "student-1")

    def test_actor_str(self) -> None:
        assert str(Actor(id="staff-1", role=Role.STAFF)) == "STAFF:staff-1"
