from datetime import datetime, timedelta, timezone

import pytest

from classroom.core.exceptions import (
    NotAuthorized,
    NotFound,
    SubmissionClosed,
    SubmissionLocked,
    ValidationFailed,
)
from classroom.crud.trusted import create_class
from classroom.models.profile import RoleType
from classroom.models.submission import Submission, SubmissionStatus
from classroom.services import catalog, registry
from classroom.services import submissions as lifecycle
from classroom.services.submissions import compute_is_late, effective_deadline

DUE = datetime(2024, 1, 10, tzinfo=timezone.utc)
BEFORE_DUE = datetime(2024, 1, 9, 23, 0, tzinfo=timezone.utc)
AFTER_DUE = datetime(2024, 1, 10, 1, 0, tzinfo=timezone.utc)


@pytest.fixture
def setup(db, storage, make_profile):
    """One teacher, one enrolled student and one assignment due 2024-01-10."""

    def _setup(allow_late: bool = False):
        _, teacher = make_profile("teacher@example.com", RoleType.TEACHER)
        _, student = make_profile("student@example.com", RoleType.STUDENT)
        classroom = create_class(db, teacher, name="Physics", subject="Science", allow_late_submissions=allow_late)
        registry.join_class(db, student, classroom.class_code)
        assignment, _ = catalog.create_assignment(
            db, storage, teacher, classroom.id, title="Lab report", due_date=DUE, points=100
        )
        return teacher, student, assignment

    return _setup


def _rows(db, assignment_id):
    db.expire_all()
    return db.query(Submission).filter(Submission.assignment_id == assignment_id).all()


def test_effective_deadline_prefers_override():
    earlier = DUE - timedelta(days=2)
    later = DUE + timedelta(days=2)
    assert effective_deadline(DUE, None) == DUE
    assert effective_deadline(DUE, earlier) == earlier
    assert effective_deadline(DUE, later) == later
    assert effective_deadline(None, None) is None


def test_compute_is_late_boundaries():
    assert compute_is_late(DUE, DUE) is False
    assert compute_is_late(DUE, DUE + timedelta(seconds=1)) is True
    assert compute_is_late(None, AFTER_DUE) is False
    # Naive values are treated as UTC
    assert compute_is_late(DUE.replace(tzinfo=None), AFTER_DUE) is True


def test_on_time_submission_is_created_not_late(db, storage, setup):
    _, student, assignment = setup()

    result = lifecycle.submit(db, storage, student, assignment.id, "My answer", now=BEFORE_DUE)

    assert result.created is True
    assert result.submission.is_late is False
    assert result.submission.status == SubmissionStatus.SUBMITTED
    assert lifecycle.submission_state(result.submission) == "submitted"


def test_late_submission_rejected_when_class_disallows_late_work(db, storage, setup):
    _, student, assignment = setup(allow_late=False)

    with pytest.raises(SubmissionClosed) as exc:
        lifecycle.submit(db, storage, student, assignment.id, "Too late", now=AFTER_DUE)

    assert exc.value.code == "submission_closed"
    assert _rows(db, assignment.id) == []


def test_rejected_late_resubmission_leaves_existing_row_untouched(db, storage, setup):
    _, student, assignment = setup(allow_late=False)
    first = lifecycle.submit(db, storage, student, assignment.id, "Original", now=BEFORE_DUE)
    submitted_at = first.submission.submitted_at

    with pytest.raises(SubmissionClosed):
        lifecycle.submit(db, storage, student, assignment.id, "Changed", now=AFTER_DUE)

    rows = _rows(db, assignment.id)
    assert len(rows) == 1
    assert rows[0].content == "Original"
    assert rows[0].is_late is False
    assert rows[0].submitted_at == submitted_at


def test_late_submission_accepted_and_flagged_when_allowed(db, storage, setup):
    _, student, assignment = setup(allow_late=True)

    result = lifecycle.submit(db, storage, student, assignment.id, "Late but welcome", now=AFTER_DUE)

    assert result.created is True
    assert result.submission.is_late is True


def test_submitting_exactly_at_deadline_is_on_time(db, storage, setup):
    _, student, assignment = setup(allow_late=False)

    result = lifecycle.submit(db, storage, student, assignment.id, "Just in time", now=DUE)

    assert result.submission.is_late is False


def test_later_override_reopens_submission(db, storage, setup):
    teacher, student, assignment = setup(allow_late=False)
    first = lifecycle.submit(db, storage, student, assignment.id, "Draft", now=BEFORE_DUE)
    lifecycle.set_deadline_override(db, teacher, first.submission.id, DUE + timedelta(days=3))

    result = lifecycle.submit(db, storage, student, assignment.id, "Final", now=DUE + timedelta(days=1))

    assert result.created is False
    assert result.submission.is_late is False
    assert result.submission.content == "Final"


def test_earlier_override_closes_submission_before_due_date(db, storage, setup):
    teacher, student, assignment = setup(allow_late=False)
    first = lifecycle.submit(db, storage, student, assignment.id, "Draft", now=DUE - timedelta(days=5))
    lifecycle.set_deadline_override(db, teacher, first.submission.id, DUE - timedelta(days=3))

    with pytest.raises(SubmissionClosed):
        lifecycle.submit(db, storage, student, assignment.id, "Final", now=DUE - timedelta(days=1))


def test_earlier_override_marks_late_when_late_work_allowed(db, storage, setup):
    teacher, student, assignment = setup(allow_late=True)
    first = lifecycle.submit(db, storage, student, assignment.id, "Draft", now=DUE - timedelta(days=5))
    lifecycle.set_deadline_override(db, teacher, first.submission.id, DUE - timedelta(days=3))

    result = lifecycle.submit(db, storage, student, assignment.id, "Final", now=DUE - timedelta(days=1))

    assert result.submission.is_late is True


def test_repeated_submits_keep_a_single_row(db, storage, setup):
    _, student, assignment = setup()

    results = [
        lifecycle.submit(db, storage, student, assignment.id, f"Attempt {i}", now=BEFORE_DUE - timedelta(hours=3 - i))
        for i in range(3)
    ]

    assert [r.created for r in results] == [True, False, False]
    rows = _rows(db, assignment.id)
    assert len(rows) == 1
    assert rows[0].content == "Attempt 2"


def test_is_late_is_frozen_when_due_date_moves(db, storage, setup):
    teacher, student, assignment = setup(allow_late=True)
    lifecycle.submit(db, storage, student, assignment.id, "Late", now=AFTER_DUE)

    catalog.update_assignment(db, teacher, assignment.id, {"due_date": AFTER_DUE + timedelta(days=7)})

    rows = _rows(db, assignment.id)
    assert rows[0].is_late is True


def test_grade_records_status_and_score(db, storage, setup):
    teacher, student, assignment = setup()
    submitted = lifecycle.submit(db, storage, student, assignment.id, "Answer", now=BEFORE_DUE)

    graded = lifecycle.grade(db, teacher, submitted.submission.id, 85, feedback="Good work", now=AFTER_DUE)

    assert graded.status == SubmissionStatus.GRADED
    assert graded.grade == 85
    assert graded.feedback == "Good work"
    assert graded.graded_at is not None
    assert lifecycle.submission_state(graded) == "graded"


def test_regrading_overwrites_previous_grade(db, storage, setup):
    teacher, student, assignment = setup()
    submitted = lifecycle.submit(db, storage, student, assignment.id, "Answer", now=BEFORE_DUE)
    lifecycle.grade(db, teacher, submitted.submission.id, 60, feedback="First pass")

    regraded = lifecycle.grade(db, teacher, submitted.submission.id, 90, feedback=None)

    assert regraded.grade == 90
    assert regraded.feedback is None


@pytest.mark.parametrize("bad_grade", [-1, 101])
def test_grade_outside_points_is_rejected(db, storage, setup, bad_grade):
    teacher, student, assignment = setup()
    submitted = lifecycle.submit(db, storage, student, assignment.id, "Answer", now=BEFORE_DUE)

    with pytest.raises(ValidationFailed):
        lifecycle.grade(db, teacher, submitted.submission.id, bad_grade)

    assert _rows(db, assignment.id)[0].grade is None


def test_points_cannot_drop_below_existing_grade(db, storage, setup):
    teacher, student, assignment = setup()
    submitted = lifecycle.submit(db, storage, student, assignment.id, "Answer", now=BEFORE_DUE)
    lifecycle.grade(db, teacher, submitted.submission.id, 85)

    with pytest.raises(ValidationFailed) as exc:
        catalog.update_assignment(db, teacher, assignment.id, {"points": 50})
    assert "85" in exc.value.detail

    db.expire_all()
    assert catalog.update_assignment(db, teacher, assignment.id, {"points": 85}).points == 85
    assert catalog.update_assignment(db, teacher, assignment.id, {"points": 120}).points == 120


def test_graded_submission_cannot_be_resubmitted(db, storage, setup):
    teacher, student, assignment = setup(allow_late=True)
    submitted = lifecycle.submit(db, storage, student, assignment.id, "Answer", now=BEFORE_DUE)
    lifecycle.grade(db, teacher, submitted.submission.id, 70)

    with pytest.raises(SubmissionLocked):
        lifecycle.submit(db, storage, student, assignment.id, "Sneaky edit", now=BEFORE_DUE)

    assert _rows(db, assignment.id)[0].content == "Answer"


def test_grade_with_deadline_override(db, storage, setup):
    teacher, student, assignment = setup()
    submitted = lifecycle.submit(db, storage, student, assignment.id, "Answer", now=BEFORE_DUE)
    extension = DUE + timedelta(days=2)

    graded = lifecycle.grade(db, teacher, submitted.submission.id, 50, deadline_override=extension)

    assert graded.deadline_override.replace(tzinfo=timezone.utc) == extension


def test_only_class_teacher_can_grade(db, storage, setup, make_profile):
    _, student, assignment = setup()
    _, other_teacher = make_profile("other@example.com", RoleType.TEACHER)
    submitted = lifecycle.submit(db, storage, student, assignment.id, "Answer", now=BEFORE_DUE)

    with pytest.raises(NotAuthorized):
        lifecycle.grade(db, other_teacher, submitted.submission.id, 80)
    with pytest.raises(NotAuthorized):
        lifecycle.grade(db, student, submitted.submission.id, 100)


def test_unenrolled_student_cannot_submit(db, storage, setup, make_profile):
    _, _, assignment = setup()
    _, outsider = make_profile("outsider@example.com", RoleType.STUDENT)

    with pytest.raises(NotAuthorized):
        lifecycle.submit(db, storage, outsider, assignment.id, "Let me in", now=BEFORE_DUE)


def test_teacher_cannot_submit(db, storage, setup):
    teacher, _, assignment = setup()

    with pytest.raises(NotAuthorized):
        lifecycle.submit(db, storage, teacher, assignment.id, "Answer key", now=BEFORE_DUE)


def test_submit_to_missing_assignment(db, storage, setup):
    _, student, _ = setup()

    with pytest.raises(NotFound):
        lifecycle.submit(db, storage, student, 9999, "Answer", now=BEFORE_DUE)
