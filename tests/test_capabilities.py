import pytest

from classroom.core.exceptions import NotAuthorized
from classroom.models.classroom import Classroom
from classroom.models.profile import RoleType
from classroom.models.submission import Submission
from classroom.services.capabilities import Viewer, require

TEACHER = Viewer(profile_id=1, role=RoleType.TEACHER)
OTHER_TEACHER = Viewer(profile_id=2, role=RoleType.TEACHER)
STUDENT = Viewer(profile_id=3, role=RoleType.STUDENT)
OTHER_STUDENT = Viewer(profile_id=4, role=RoleType.STUDENT)
ADMIN = Viewer(profile_id=5, role=RoleType.ADMIN)


@pytest.fixture
def classroom():
    return Classroom(id=10, name="Math", teacher_id=TEACHER.profile_id, class_code="ABC123")


def _submission(grade=None):
    return Submission(id=20, assignment_id=30, student_id=STUDENT.profile_id, content="x", grade=grade)


def test_role_flags():
    assert TEACHER.can_create_class and not TEACHER.can_enroll
    assert STUDENT.can_enroll and not STUDENT.can_create_class
    assert not ADMIN.can_create_class and not ADMIN.can_enroll
    assert ADMIN.is_admin and not TEACHER.is_admin


def test_class_ownership(classroom):
    assert TEACHER.can_edit_class(classroom)
    assert TEACHER.can_manage_assignment(classroom)
    assert TEACHER.can_grade(classroom)
    assert not OTHER_TEACHER.can_edit_class(classroom)
    assert not OTHER_TEACHER.can_grade(classroom)
    assert not ADMIN.can_edit_class(classroom)
    assert ADMIN.can_delete_class(classroom)
    assert not OTHER_TEACHER.can_delete_class(classroom)


def test_class_visibility(classroom):
    assert TEACHER.can_view_class(classroom, enrolled=False)
    assert ADMIN.can_view_class(classroom, enrolled=False)
    assert STUDENT.can_view_class(classroom, enrolled=True)
    assert not STUDENT.can_view_class(classroom, enrolled=False)
    assert not OTHER_TEACHER.can_view_class(classroom, enrolled=True)


def test_submit_requires_enrolled_student(classroom):
    assert STUDENT.can_submit(classroom, enrolled=True)
    assert not STUDENT.can_submit(classroom, enrolled=False)
    assert not TEACHER.can_submit(classroom, enrolled=True)


def test_submission_editing_locks_after_grade(classroom):
    ungraded = _submission()
    graded = _submission(grade=90)

    assert STUDENT.can_edit_submission(ungraded)
    assert not STUDENT.can_edit_submission(graded)
    assert not OTHER_STUDENT.can_edit_submission(ungraded)

    assert STUDENT.can_delete_submission_file(ungraded, classroom)
    assert not STUDENT.can_delete_submission_file(graded, classroom)
    assert TEACHER.can_delete_submission_file(graded, classroom)
    assert not OTHER_TEACHER.can_delete_submission_file(ungraded, classroom)


def test_submission_visibility(classroom):
    submission = _submission()
    assert STUDENT.can_view_submission(submission, classroom)
    assert TEACHER.can_view_submission(submission, classroom)
    assert ADMIN.can_view_submission(submission, classroom)
    assert not OTHER_STUDENT.can_view_submission(submission, classroom)
    assert not OTHER_TEACHER.can_view_submission(submission, classroom)


def test_assignment_capabilities_for_student(classroom):
    before = STUDENT.assignment_capabilities(classroom, enrolled=True)
    after_grading = STUDENT.assignment_capabilities(classroom, enrolled=True, submission=_submission(grade=85))

    assert before["can_submit"] is True
    assert before["can_upload_files"] is True
    assert before["can_grade"] is False
    assert after_grading["can_submit"] is False
    assert after_grading["can_upload_files"] is False


def test_assignment_capabilities_for_teacher(classroom):
    capabilities = TEACHER.assignment_capabilities(classroom, enrolled=False)
    assert capabilities == {
        "can_edit_assignment": True,
        "can_grade": True,
        "can_submit": False,
        "can_enroll": False,
        "can_upload_files": False,
    }


def test_require():
    require(True)
    with pytest.raises(NotAuthorized) as exc:
        require(False, "Nope")
    assert exc.value.status_code == 403
    assert exc.value.detail == "Nope"
