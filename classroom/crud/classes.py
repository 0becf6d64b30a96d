from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from classroom.models.assignment import Assignment
from classroom.models.classroom import Classroom, Enrollment
from classroom.models.files import StudyMaterial
from classroom.models.profile import Profile


def get_class(db: Session, class_id: int) -> Optional[Classroom]:
    return db.query(Classroom).filter(Classroom.id == class_id).first()


def get_class_by_code(db: Session, class_code: str) -> Optional[Classroom]:
    return db.query(Classroom).filter(Classroom.class_code == class_code).first()


def class_code_exists(db: Session, class_code: str) -> bool:
    return db.query(Classroom.id).filter(Classroom.class_code == class_code).first() is not None


def is_enrolled(db: Session, class_id: int, student_id: int) -> bool:
    return db.query(Enrollment.id).filter(
        Enrollment.class_id == class_id,
        Enrollment.student_id == student_id,
    ).first() is not None


def enrollment_counts(db: Session, class_ids: List[int]) -> Dict[int, int]:
    if not class_ids:
        return {}
    rows = (
        db.query(Enrollment.class_id, func.count(Enrollment.id))
        .filter(Enrollment.class_id.in_(class_ids))
        .group_by(Enrollment.class_id)
        .all()
    )
    return {class_id: count for class_id, count in rows}


def get_class_students(db: Session, class_id: int) -> List[Profile]:
    return (
        db.query(Profile)
        .join(Enrollment, Enrollment.student_id == Profile.id)
        .filter(Enrollment.class_id == class_id)
        .order_by(Profile.full_name)
        .all()
    )


def get_class_assignments(db: Session, class_id: int) -> List[Assignment]:
    return (
        db.query(Assignment)
        .filter(Assignment.class_id == class_id)
        .order_by(Assignment.created_at.desc(), Assignment.id.desc())
        .all()
    )


def get_study_materials(db: Session, class_id: int) -> List[StudyMaterial]:
    return (
        db.query(StudyMaterial)
        .filter(StudyMaterial.class_id == class_id)
        .order_by(StudyMaterial.created_at.desc(), StudyMaterial.id.desc())
        .all()
    )


def get_study_material(db: Session, material_id: int) -> Optional[StudyMaterial]:
    return db.query(StudyMaterial).filter(StudyMaterial.id == material_id).first()


def get_all_classes(db: Session) -> List[Classroom]:
    return (
        db.query(Classroom)
        .options(joinedload(Classroom.teacher))
        .order_by(Classroom.created_at.desc(), Classroom.id.desc())
        .all()
    )


def get_teacher_enrollments(db: Session, teacher_id: int) -> List[Enrollment]:
    """Enrollments across every class the teacher owns, with student and class loaded."""
    return (
        db.query(Enrollment)
        .join(Classroom, Classroom.id == Enrollment.class_id)
        .options(joinedload(Enrollment.student), joinedload(Enrollment.classroom))
        .filter(Classroom.teacher_id == teacher_id)
        .order_by(Enrollment.created_at, Enrollment.id)
        .all()
    )


def get_teacher_roster(db: Session, teacher_id: int) -> List[dict]:
    """Students across the teacher's classes, one entry per student with their class names."""
    roster = {}
    for enrollment in get_teacher_enrollments(db, teacher_id):
        student = enrollment.student
        if student.id not in roster:
            roster[student.id] = {
                "id": student.id,
                "email": student.email,
                "full_name": student.full_name,
                "classes": [],
            }
        roster[student.id]["classes"].append(enrollment.classroom.name)
    return list(roster.values())
