from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from classroom.models.assignment import Assignment
from classroom.models.classroom import Classroom
from classroom.models.files import SubmissionFile
from classroom.models.submission import Submission


def get_submission(db: Session, submission_id: int) -> Optional[Submission]:
    return (
        db.query(Submission)
        .options(
            joinedload(Submission.assignment).joinedload(Assignment.classroom),
            joinedload(Submission.student),
        )
        .filter(Submission.id == submission_id)
        .first()
    )


def get_student_submission(db: Session, assignment_id: int, student_id: int) -> Optional[Submission]:
    return db.query(Submission).filter(
        Submission.assignment_id == assignment_id,
        Submission.student_id == student_id,
    ).first()


def get_assignment_submissions(db: Session, assignment_id: int) -> List[Submission]:
    return (
        db.query(Submission)
        .options(joinedload(Submission.student))
        .filter(Submission.assignment_id == assignment_id)
        .order_by(Submission.submitted_at.desc(), Submission.id.desc())
        .all()
    )


def get_student_submissions(db: Session, student_id: int) -> List[Submission]:
    return (
        db.query(Submission)
        .options(joinedload(Submission.assignment).joinedload(Assignment.classroom))
        .filter(Submission.student_id == student_id)
        .order_by(Submission.submitted_at.desc(), Submission.id.desc())
        .all()
    )


def get_teacher_submissions(db: Session, teacher_id: int) -> List[Submission]:
    return (
        db.query(Submission)
        .join(Assignment, Assignment.id == Submission.assignment_id)
        .join(Classroom, Classroom.id == Assignment.class_id)
        .options(
            joinedload(Submission.assignment).joinedload(Assignment.classroom),
            joinedload(Submission.student),
        )
        .filter(Classroom.teacher_id == teacher_id)
        .order_by(Submission.submitted_at.desc(), Submission.id.desc())
        .all()
    )


def get_submission_files(db: Session, submission_id: int) -> List[SubmissionFile]:
    return (
        db.query(SubmissionFile)
        .filter(SubmissionFile.submission_id == submission_id)
        .order_by(SubmissionFile.created_at.desc(), SubmissionFile.id.desc())
        .all()
    )


def get_submission_file(db: Session, file_id: int) -> Optional[SubmissionFile]:
    return (
        db.query(SubmissionFile)
        .options(
            joinedload(SubmissionFile.submission)
            .joinedload(Submission.assignment)
            .joinedload(Assignment.classroom)
        )
        .filter(SubmissionFile.id == file_id)
        .first()
    )
