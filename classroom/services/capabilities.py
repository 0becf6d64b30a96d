"""
What the current viewer may do, decided once from (role, ownership).

Routers and services ask a Viewer instead of comparing roles themselves.
"""
from dataclasses import dataclass
from typing import Dict, Optional

from classroom.core.exceptions import NotAuthorized
from classroom.models.classroom import Classroom
from classroom.models.profile import Profile, RoleType
from classroom.models.submission import Submission


@dataclass(frozen=True)
class Viewer:
    profile_id: int
    role: RoleType

    @classmethod
    def from_profile(cls, profile: Profile) -> "Viewer":
        return cls(profile_id=profile.id, role=profile.role)

    @property
    def is_admin(self) -> bool:
        return self.role == RoleType.ADMIN

    @property
    def is_teacher(self) -> bool:
        return self.role == RoleType.TEACHER

    @property
    def is_student(self) -> bool:
        return self.role == RoleType.STUDENT

    @property
    def can_create_class(self) -> bool:
        return self.is_teacher

    @property
    def can_enroll(self) -> bool:
        return self.is_student

    def owns_class(self, classroom: Classroom) -> bool:
        return self.is_teacher and classroom.teacher_id == self.profile_id

    def can_view_class(self, classroom: Classroom, enrolled: bool) -> bool:
        return self.is_admin or self.owns_class(classroom) or (self.is_student and enrolled)

    def can_edit_class(self, classroom: Classroom) -> bool:
        return self.owns_class(classroom)

    def can_delete_class(self, classroom: Classroom) -> bool:
        return self.is_admin or self.owns_class(classroom)

    def can_manage_assignment(self, classroom: Classroom) -> bool:
        return self.owns_class(classroom)

    def can_grade(self, classroom: Classroom) -> bool:
        return self.owns_class(classroom)

    def can_submit(self, classroom: Classroom, enrolled: bool) -> bool:
        return self.is_student and enrolled

    def owns_submission(self, submission: Submission) -> bool:
        return self.is_student and submission.student_id == self.profile_id

    def can_edit_submission(self, submission: Submission) -> bool:
        return self.owns_submission(submission) and not submission.is_graded

    def can_view_submission(self, submission: Submission, classroom: Classroom) -> bool:
        return self.is_admin or self.owns_submission(submission) or self.owns_class(classroom)

    def can_delete_submission_file(self, submission: Submission, classroom: Classroom) -> bool:
        return self.can_edit_submission(submission) or self.owns_class(classroom)

    def assignment_capabilities(
        self,
        classroom: Classroom,
        enrolled: bool,
        submission: Optional[Submission] = None,
    ) -> Dict[str, bool]:
        can_submit = self.can_submit(classroom, enrolled)
        if can_submit and submission is not None:
            can_submit = self.can_edit_submission(submission)
        return {
            "can_edit_assignment": self.can_manage_assignment(classroom),
            "can_grade": self.can_grade(classroom),
            "can_submit": can_submit,
            "can_enroll": self.can_enroll,
            "can_upload_files": can_submit,
        }

    def submission_capabilities(self, submission: Submission, classroom: Classroom) -> Dict[str, bool]:
        return {
            "can_grade": self.can_grade(classroom),
            "can_edit": self.can_edit_submission(submission),
            "can_delete_files": self.can_delete_submission_file(submission, classroom),
        }


def require(allowed: bool, detail: str = None) -> None:
    if not allowed:
        raise NotAuthorized(detail)
