from classroom.models.profile import Profile, RoleType
from classroom.models.classroom import Classroom, Enrollment
from classroom.models.assignment import Assignment
from classroom.models.submission import Submission, SubmissionStatus
from classroom.models.files import (
    SubmissionFile,
    AssignmentAttachment,
    StudyMaterial,
    SUBMISSIONS_BUCKET,
    ATTACHMENTS_BUCKET,
    STUDY_MATERIALS_BUCKET,
)
from classroom.models.audit_log import AuditLogEntry
