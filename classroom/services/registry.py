"""Class & enrollment registry."""
import functools
import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from classroom.core.exceptions import AlreadyEnrolled, NotAuthorized, NotFound, ValidationFailed
from classroom.crud.classes import get_class, get_class_by_code, get_study_material, is_enrolled
from classroom.models.assignment import Assignment
from classroom.models.classroom import Classroom, Enrollment
from classroom.models.files import STUDY_MATERIALS_BUCKET, AssignmentAttachment, StudyMaterial, SubmissionFile
from classroom.models.submission import Submission
from classroom.services.attachments import (
    FileUploadResult,
    IncomingFile,
    UploadPolicy,
    delete_file_record,
    purge_objects,
    upload_batch,
    validate_batch,
)
from classroom.services.capabilities import Viewer, require
from classroom.services.file_storage import ObjectStorage
from classroom.utils.helpers import normalize_class_code

logger = logging.getLogger(__name__)

UPDATABLE_CLASS_FIELDS = ("name", "subject", "description", "allow_late_submissions")


def join_class(db: Session, viewer: Viewer, code: str) -> Classroom:
    """
    Enroll the calling student in the class whose code matches (case-insensitive).

    Raises:
        NotAuthorized: caller is not a student
        ValidationFailed: blank code
        NotFound: no class has that code
        AlreadyEnrolled: the student is already in the class
    """
    require(viewer.can_enroll, "Only students can join classes")
    class_code = normalize_class_code(code)
    if not class_code:
        raise ValidationFailed("Class code is required")

    classroom = get_class_by_code(db, class_code)
    if classroom is None:
        raise NotFound("Invalid class code")

    db.add(Enrollment(class_id=classroom.id, student_id=viewer.profile_id))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise AlreadyEnrolled()
    logger.info(f"Student {viewer.profile_id} joined class {classroom.id}")
    return classroom


def get_visible_class(db: Session, viewer: Viewer, class_id: int) -> Classroom:
    classroom = get_class(db, class_id)
    if classroom is None:
        raise NotFound("Class not found")
    enrolled = viewer.is_student and is_enrolled(db, classroom.id, viewer.profile_id)
    require(viewer.can_view_class(classroom, enrolled), "You do not have access to this class")
    return classroom


def update_class(db: Session, viewer: Viewer, class_id: int, **fields) -> Classroom:
    classroom = get_class(db, class_id)
    if classroom is None:
        raise NotFound("Class not found")
    require(viewer.can_edit_class(classroom), "You are not authorized to edit this class")

    for key, value in fields.items():
        if key not in UPDATABLE_CLASS_FIELDS or value is None:
            continue
        if key == "name" and not str(value).strip():
            raise ValidationFailed("Class name is required")
        setattr(classroom, key, value)
    db.commit()
    db.refresh(classroom)
    return classroom


def class_file_records(db: Session, class_id: int) -> List:
    """Every file metadata row that cascades away with a class."""
    records = list(db.query(StudyMaterial).filter(StudyMaterial.class_id == class_id).all())
    records += (
        db.query(AssignmentAttachment)
        .join(Assignment, Assignment.id == AssignmentAttachment.assignment_id)
        .filter(Assignment.class_id == class_id)
        .all()
    )
    records += (
        db.query(SubmissionFile)
        .join(Submission, Submission.id == SubmissionFile.submission_id)
        .join(Assignment, Assignment.id == Submission.assignment_id)
        .filter(Assignment.class_id == class_id)
        .all()
    )
    return records


def remove_class(db: Session, storage: ObjectStorage, classroom: Classroom) -> None:
    """Stored objects first, then the class row and everything cascading from it."""
    removed = purge_objects(storage, class_file_records(db, classroom.id))
    db.delete(classroom)
    db.commit()
    logger.info(f"Deleted class {classroom.id} and {removed} stored objects")


def delete_class(db: Session, storage: ObjectStorage, viewer: Viewer, class_id: int) -> Classroom:
    classroom = get_class(db, class_id)
    if classroom is None:
        raise NotFound("Class not found")
    require(viewer.can_delete_class(classroom), "You are not authorized to delete this class")
    remove_class(db, storage, classroom)
    return classroom


def upload_study_materials(
    db: Session,
    storage: ObjectStorage,
    viewer: Viewer,
    class_id: int,
    title: str,
    description: Optional[str],
    files: List[IncomingFile],
    policy: UploadPolicy = UploadPolicy.BEST_EFFORT,
) -> List[FileUploadResult]:
    classroom = get_class(db, class_id)
    if classroom is None:
        raise NotFound("Class not found")
    require(viewer.can_edit_class(classroom), "Only the class teacher can upload study materials")
    if not title or not title.strip():
        raise ValidationFailed("Title is required")
    if not files:
        raise ValidationFailed("At least one file is required")
    validate_batch(files)

    return upload_batch(
        db,
        storage,
        files,
        bucket=STUDY_MATERIALS_BUCKET,
        prefix=str(classroom.id),
        make_record=functools.partial(
            StudyMaterial,
            class_id=classroom.id,
            title=title.strip(),
            description=description or None,
            uploaded_by=viewer.profile_id,
        ),
        policy=policy,
    )


def delete_study_material(db: Session, storage: ObjectStorage, viewer: Viewer, material_id: int) -> None:
    material = get_study_material(db, material_id)
    if material is None:
        raise NotFound("Study material not found")
    if not viewer.can_edit_class(material.classroom):
        raise NotAuthorized("Only the class teacher can delete study materials")
    delete_file_record(db, storage, material)
