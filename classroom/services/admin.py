"""Admin mutations. Each successful change is written to the audit log."""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from classroom.core.exceptions import Conflict, NotFound, ValidationFailed
from classroom.crud.audit_logs import record_audit_action
from classroom.crud.classes import get_class
from classroom.crud.profiles import create_profile, get_profile, get_profile_by_email
from classroom.models.classroom import Classroom
from classroom.models.files import SubmissionFile
from classroom.models.profile import Profile, RoleType
from classroom.models.submission import Submission
from classroom.services.attachments import purge_objects
from classroom.services.capabilities import Viewer
from classroom.services.file_storage import ObjectStorage
from classroom.services.registry import UPDATABLE_CLASS_FIELDS, remove_class

logger = logging.getLogger(__name__)


def create_user(db: Session, admin: Viewer, email: str, full_name: str, password: str, role: RoleType) -> Profile:
    if get_profile_by_email(db, email):
        raise Conflict(f"Email {email} is already registered")
    profile = create_profile(db, email=email, full_name=full_name, password=password, role=role)
    record_audit_action(
        db,
        admin.profile_id,
        "create_user",
        "user",
        profile.id,
        {"email": profile.email, "role": profile.role.value},
    )
    return profile


def update_user(
    db: Session,
    admin: Viewer,
    user_id: int,
    full_name: Optional[str] = None,
    role: Optional[RoleType] = None,
) -> Profile:
    profile = get_profile(db, user_id)
    if profile is None:
        raise NotFound("User not found")

    changes = {}
    if full_name is not None:
        if not full_name.strip():
            raise ValidationFailed("Full name is required")
        profile.full_name = full_name.strip()
        changes["full_name"] = profile.full_name
    if role is not None and role != profile.role:
        if profile.id == admin.profile_id:
            raise ValidationFailed("You cannot change your own role")
        if profile.role == RoleType.TEACHER and profile.classes_taught:
            raise ValidationFailed("Reassign or delete this teacher's classes before changing their role")
        changes["role"] = {"from": profile.role.value, "to": role.value}
        profile.role = role
    db.commit()
    db.refresh(profile)

    record_audit_action(db, admin.profile_id, "update_user", "user", profile.id, changes)
    return profile


def delete_user(db: Session, storage: ObjectStorage, admin: Viewer, user_id: int) -> None:
    """Delete a profile together with the classes it teaches and the files it submitted."""
    profile = get_profile(db, user_id)
    if profile is None:
        raise NotFound("User not found")
    if profile.id == admin.profile_id:
        raise ValidationFailed("You cannot delete your own account")

    for classroom in db.query(Classroom).filter(Classroom.teacher_id == profile.id).all():
        remove_class(db, storage, classroom)

    submitted = (
        db.query(SubmissionFile)
        .join(Submission, Submission.id == SubmissionFile.submission_id)
        .filter(Submission.student_id == profile.id)
        .all()
    )
    purge_objects(storage, submitted)

    details = {"email": profile.email, "role": profile.role.value}
    db.delete(profile)
    db.commit()
    logger.info(f"Deleted profile {user_id}")
    record_audit_action(db, admin.profile_id, "delete_user", "user", user_id, details)


def update_class(db: Session, admin: Viewer, class_id: int, **fields) -> Classroom:
    """Like the teacher edit, plus reassigning the class to another teacher."""
    classroom = get_class(db, class_id)
    if classroom is None:
        raise NotFound("Class not found")

    changes = {}
    teacher_id = fields.pop("teacher_id", None)
    if teacher_id is not None and teacher_id != classroom.teacher_id:
        teacher = get_profile(db, teacher_id)
        if teacher is None or teacher.role != RoleType.TEACHER:
            raise ValidationFailed("Classes can only be assigned to teachers")
        classroom.teacher_id = teacher.id
        changes["teacher_id"] = teacher.id

    for key, value in fields.items():
        if key not in UPDATABLE_CLASS_FIELDS or value is None:
            continue
        if key == "name" and not str(value).strip():
            raise ValidationFailed("Class name is required")
        setattr(classroom, key, value)
        changes[key] = value
    db.commit()
    db.refresh(classroom)

    record_audit_action(db, admin.profile_id, "update_class", "class", classroom.id, changes)
    return classroom


def delete_class(db: Session, storage: ObjectStorage, admin: Viewer, class_id: int) -> None:
    classroom = get_class(db, class_id)
    if classroom is None:
        raise NotFound("Class not found")
    details = {"name": classroom.name, "class_code": classroom.class_code, "teacher_id": classroom.teacher_id}
    remove_class(db, storage, classroom)
    record_audit_action(db, admin.profile_id, "delete_class", "class", class_id, details)
