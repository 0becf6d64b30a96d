"""
Trusted queries.

These are the only functions that read or write across ownership lines on the
caller's behalf. Each one checks the viewer itself instead of relying on
per-table filtering at the call site.
"""
import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from classroom.core.config.settings import get_settings
from classroom.core.exceptions import Conflict, NotAuthorized, ValidationFailed
from classroom.crud.classes import class_code_exists, enrollment_counts
from classroom.models.classroom import Classroom, Enrollment
from classroom.services.capabilities import Viewer
from classroom.utils.helpers import generate_class_code

logger = logging.getLogger(__name__)


def list_my_classes(db: Session, viewer: Viewer) -> List[dict]:
    """
    Classes visible to the viewer, newest first: taught classes for a teacher,
    enrolled classes for a student and every class for an admin.
    Each entry carries its enrollment_count.
    """
    logger.info(f"list_my_classes called by profile {viewer.profile_id}")
    query = db.query(Classroom)
    if viewer.is_teacher:
        query = query.filter(Classroom.teacher_id == viewer.profile_id)
    elif viewer.is_student:
        query = query.join(Enrollment, Enrollment.class_id == Classroom.id).filter(
            Enrollment.student_id == viewer.profile_id
        )
    elif not viewer.is_admin:
        return []

    classes = query.order_by(Classroom.created_at.desc(), Classroom.id.desc()).all()
    counts = enrollment_counts(db, [c.id for c in classes])
    return [
        {
            "id": c.id,
            "name": c.name,
            "subject": c.subject,
            "description": c.description,
            "teacher_id": c.teacher_id,
            "class_code": c.class_code,
            "allow_late_submissions": c.allow_late_submissions,
            "created_at": c.created_at,
            "enrollment_count": counts.get(c.id, 0),
        }
        for c in classes
    ]


def create_class(
    db: Session,
    viewer: Viewer,
    name: str,
    subject: Optional[str] = "",
    description: Optional[str] = None,
    allow_late_submissions: bool = False,
) -> Classroom:
    """Create a class owned by the calling teacher with a fresh unique class code."""
    if not viewer.can_create_class:
        raise NotAuthorized("Only teachers can create classes")
    if not name or not name.strip():
        raise ValidationFailed("Class name is required")

    settings = get_settings()
    logger.info(f"create_class called by profile {viewer.profile_id}")
    for attempt in range(settings.CLASS_CODE_MAX_ATTEMPTS):
        class_code = generate_class_code(settings.CLASS_CODE_LENGTH)
        if class_code_exists(db, class_code):
            continue

        classroom = Classroom(
            name=name.strip(),
            subject=(subject or "").strip(),
            description=description,
            teacher_id=viewer.profile_id,
            class_code=class_code,
            allow_late_submissions=allow_late_submissions,
        )
        db.add(classroom)
        try:
            db.commit()
        except IntegrityError:
            # Another class took the code between the check and the insert
            db.rollback()
            logger.info(f"Class code collision on attempt {attempt + 1}, retrying")
            continue
        db.refresh(classroom)
        return classroom

    raise Conflict("Could not generate a unique class code, please try again")
