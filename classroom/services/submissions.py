"""
Submission lifecycle for one (assignment, student) pair.

    NotStarted --submit--> Submitted --grade--> Graded
                           Submitted --submit--> Submitted   (while ungraded)
                                                 Graded --grade--> Graded (teacher only)

NotStarted is the absence of a row; there is never more than one row per pair.
Lateness is decided when the student writes and is not recomputed afterwards.
"""
import functools
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from classroom.core.exceptions import (
    NotFound,
    SubmissionClosed,
    SubmissionLocked,
    ValidationFailed,
)
from classroom.crud.assignments import get_assignment
from classroom.crud.classes import is_enrolled
from classroom.crud.submissions import get_student_submission, get_submission, get_submission_file
from classroom.models.files import SUBMISSIONS_BUCKET, SubmissionFile
from classroom.models.submission import Submission, SubmissionStatus
from classroom.services.attachments import (
    FileUploadResult,
    IncomingFile,
    UploadPolicy,
    delete_file_record,
    upload_batch,
    validate_batch,
)
from classroom.services.capabilities import Viewer, require
from classroom.services.file_storage import ObjectStorage
from classroom.utils.helpers import ensure_utc, get_utc_now

logger = logging.getLogger(__name__)

NOT_STARTED = "not_started"


@dataclass
class SubmitResult:
    submission: Submission
    created: bool
    files: List[FileUploadResult] = field(default_factory=list)


def effective_deadline(due_date: Optional[datetime], deadline_override: Optional[datetime]) -> Optional[datetime]:
    """The per-student override wins over the assignment due date, earlier or later."""
    if deadline_override is not None:
        return ensure_utc(deadline_override)
    return ensure_utc(due_date)


def compute_is_late(deadline: Optional[datetime], now: datetime) -> bool:
    return deadline is not None and ensure_utc(now) > ensure_utc(deadline)


def submission_state(submission: Optional[Submission]) -> str:
    if submission is None:
        return NOT_STARTED
    if submission.grade is not None:
        return SubmissionStatus.GRADED.value
    return SubmissionStatus.SUBMITTED.value


def submit(
    db: Session,
    storage: ObjectStorage,
    viewer: Viewer,
    assignment_id: int,
    content: str,
    files: Optional[List[IncomingFile]] = None,
    policy: UploadPolicy = UploadPolicy.BEST_EFFORT,
    now: Optional[datetime] = None,
) -> SubmitResult:
    """
    Create or update the caller's submission for an assignment, then attach files.

    Raises:
        NotFound: assignment does not exist
        NotAuthorized: caller is not a student enrolled in the assignment's class
        SubmissionLocked: the existing submission has been graded
        SubmissionClosed: the effective deadline has passed and the class refuses late work
    """
    files = files or []
    assignment = get_assignment(db, assignment_id)
    if assignment is None:
        raise NotFound("Assignment not found")
    classroom = assignment.classroom

    enrolled = is_enrolled(db, classroom.id, viewer.profile_id)
    require(viewer.can_submit(classroom, enrolled), "Only students enrolled in this class can submit")
    validate_batch(files)

    prior = get_student_submission(db, assignment.id, viewer.profile_id)
    if prior is not None and prior.is_graded:
        raise SubmissionLocked()

    now = ensure_utc(now or get_utc_now())
    deadline = effective_deadline(assignment.due_date, prior.deadline_override if prior else None)
    is_late = compute_is_late(deadline, now)
    if is_late and not classroom.allow_late_submissions:
        logger.info(
            f"Rejected late submission: assignment={assignment.id} student={viewer.profile_id} "
            f"deadline={deadline.isoformat()}"
        )
        raise SubmissionClosed()

    submission, created = _upsert(db, assignment.id, viewer.profile_id, content, now, is_late, prior)
    logger.info(
        f"{'Created' if created else 'Updated'} submission {submission.id} "
        f"assignment={assignment.id} student={viewer.profile_id} late={is_late}"
    )

    results = []
    if files:
        results = upload_batch(
            db,
            storage,
            files,
            bucket=SUBMISSIONS_BUCKET,
            prefix=str(submission.id),
            make_record=functools.partial(SubmissionFile, submission_id=submission.id),
            policy=policy,
        )
        failed = [r for r in results if not r.ok]
        if failed:
            logger.warning(f"Submission {submission.id}: {len(failed)} of {len(results)} files failed to upload")

    return SubmitResult(submission=submission, created=created, files=results)


def _upsert(db, assignment_id, student_id, content, now, is_late, prior):
    if prior is None:
        submission = Submission(
            assignment_id=assignment_id,
            student_id=student_id,
            content=content,
            status=SubmissionStatus.SUBMITTED,
            submitted_at=now,
            is_late=is_late,
        )
        db.add(submission)
        try:
            db.commit()
            db.refresh(submission)
            return submission, True
        except IntegrityError:
            # A concurrent first submit won the insert; fall through to update it
            db.rollback()
            prior = get_student_submission(db, assignment_id, student_id)
            if prior is None:
                raise
            if prior.is_graded:
                raise SubmissionLocked()

    prior.content = content
    prior.status = SubmissionStatus.SUBMITTED
    prior.submitted_at = now
    prior.is_late = is_late
    db.commit()
    db.refresh(prior)
    return prior, False


def grade(
    db: Session,
    viewer: Viewer,
    submission_id: int,
    grade: int,
    feedback: Optional[str] = None,
    deadline_override: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> Submission:
    """
    Record a grade. Repeating the call overwrites the previous grade and feedback.

    Raises:
        NotFound: submission does not exist
        NotAuthorized: caller does not teach the submission's class
        ValidationFailed: grade outside 0..assignment.points
    """
    submission = get_submission(db, submission_id)
    if submission is None:
        raise NotFound("Submission not found")
    assignment = submission.assignment
    require(viewer.can_grade(assignment.classroom), "Only the class teacher can grade submissions")

    if grade is None or grade < 0 or grade > assignment.points:
        raise ValidationFailed(f"Grade must be between 0 and {assignment.points}")

    submission.grade = grade
    submission.feedback = feedback
    submission.graded_at = ensure_utc(now or get_utc_now())
    submission.status = SubmissionStatus.GRADED
    if deadline_override is not None:
        submission.deadline_override = ensure_utc(deadline_override)
    db.commit()
    db.refresh(submission)
    logger.info(f"Graded submission {submission.id}: {grade}/{assignment.points} by profile {viewer.profile_id}")
    return submission


def set_deadline_override(
    db: Session,
    viewer: Viewer,
    submission_id: int,
    deadline_override: Optional[datetime],
) -> Submission:
    """Set or clear a per-student deadline without grading."""
    submission = get_submission(db, submission_id)
    if submission is None:
        raise NotFound("Submission not found")
    require(
        viewer.can_grade(submission.assignment.classroom),
        "Only the class teacher can change deadlines",
    )
    submission.deadline_override = ensure_utc(deadline_override)
    db.commit()
    db.refresh(submission)
    return submission


def delete_submission_file(db: Session, storage: ObjectStorage, viewer: Viewer, file_id: int) -> None:
    """
    Remove one submission file: the owning student while ungraded, or the class teacher.
    The stored object goes first; the metadata row survives a storage failure.
    """
    record = get_submission_file(db, file_id)
    if record is None:
        raise NotFound("File not found")
    submission = record.submission
    require(
        viewer.can_delete_submission_file(submission, submission.assignment.classroom),
        "You cannot delete this file",
    )
    delete_file_record(db, storage, record)
    logger.info(f"Deleted submission file {file_id} from submission {submission.id}")
