from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from classroom.models.assignment import Assignment
from classroom.models.classroom import Classroom, Enrollment
from classroom.models.files import AssignmentAttachment


def get_assignment(db: Session, assignment_id: int) -> Optional[Assignment]:
    return (
        db.query(Assignment)
        .options(joinedload(Assignment.classroom))
        .filter(Assignment.id == assignment_id)
        .first()
    )


def get_teacher_assignments(db: Session, teacher_id: int) -> List[Assignment]:
    return (
        db.query(Assignment)
        .join(Classroom, Classroom.id == Assignment.class_id)
        .options(joinedload(Assignment.classroom))
        .filter(Classroom.teacher_id == teacher_id)
        .order_by(Assignment.created_at.desc(), Assignment.id.desc())
        .all()
    )


def get_student_assignments(db: Session, student_id: int) -> List[Assignment]:
    return (
        db.query(Assignment)
        .join(Enrollment, Enrollment.class_id == Assignment.class_id)
        .options(joinedload(Assignment.classroom))
        .filter(Enrollment.student_id == student_id)
        .order_by(Assignment.created_at.desc(), Assignment.id.desc())
        .all()
    )


def get_attachments(db: Session, assignment_id: int) -> List[AssignmentAttachment]:
    return (
        db.query(AssignmentAttachment)
        .filter(AssignmentAttachment.assignment_id == assignment_id)
        .order_by(AssignmentAttachment.created_at.desc(), AssignmentAttachment.id.desc())
        .all()
    )


def get_attachment(db: Session, attachment_id: int) -> Optional[AssignmentAttachment]:
    return db.query(AssignmentAttachment).filter(AssignmentAttachment.id == attachment_id).first()
