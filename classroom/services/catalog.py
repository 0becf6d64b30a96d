"""Assignment catalog: class-scoped work items and their attachments."""
import functools
import logging
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from classroom.core.exceptions import NotFound, ValidationFailed
from classroom.crud.assignments import get_assignment, get_attachment
from classroom.crud.classes import get_class, is_enrolled
from classroom.models.assignment import Assignment
from classroom.models.files import ATTACHMENTS_BUCKET, AssignmentAttachment, SubmissionFile
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
from classroom.utils.helpers import ensure_utc

logger = logging.getLogger(__name__)


def _validate_fields(title: Optional[str], points: Optional[int]) -> None:
    if title is not None and not title.strip():
        raise ValidationFailed("Title is required")
    if points is not None and points <= 0:
        raise ValidationFailed("Points must be a positive integer")


def get_visible_assignment(db: Session, viewer: Viewer, assignment_id: int) -> Tuple[Assignment, bool]:
    """The assignment plus whether the viewer is enrolled in its class."""
    assignment = get_assignment(db, assignment_id)
    if assignment is None:
        raise NotFound("Assignment not found")
    enrolled = viewer.is_student and is_enrolled(db, assignment.class_id, viewer.profile_id)
    require(viewer.can_view_class(assignment.classroom, enrolled), "You do not have access to this assignment")
    return assignment, enrolled


def create_assignment(
    db: Session,
    storage: ObjectStorage,
    viewer: Viewer,
    class_id: int,
    title: str,
    description: Optional[str] = None,
    due_date: Optional[datetime] = None,
    points: int = 100,
    files: Optional[List[IncomingFile]] = None,
    policy: UploadPolicy = UploadPolicy.BEST_EFFORT,
) -> Tuple[Assignment, List[FileUploadResult]]:
    files = files or []
    classroom = get_class(db, class_id)
    if classroom is None:
        raise NotFound("Class not found")
    require(viewer.can_manage_assignment(classroom), "Only the class teacher can create assignments")
    if title is None:
        raise ValidationFailed("Title is required")
    _validate_fields(title, points)
    validate_batch(files)

    assignment = Assignment(
        class_id=classroom.id,
        title=title.strip(),
        description=description,
        due_date=ensure_utc(due_date),
        points=points,
    )
    db.add(assignment)
    db.commit()
    db.refresh(assignment)
    logger.info(f"Created assignment {assignment.id} in class {classroom.id}")

    results = add_attachments(db, storage, assignment, files, policy) if files else []
    return assignment, results


def add_attachments(
    db: Session,
    storage: ObjectStorage,
    assignment: Assignment,
    files: List[IncomingFile],
    policy: UploadPolicy = UploadPolicy.BEST_EFFORT,
) -> List[FileUploadResult]:
    return upload_batch(
        db,
        storage,
        files,
        bucket=ATTACHMENTS_BUCKET,
        prefix=str(assignment.id),
        make_record=functools.partial(AssignmentAttachment, assignment_id=assignment.id),
        policy=policy,
    )


def upload_attachments(
    db: Session,
    storage: ObjectStorage,
    viewer: Viewer,
    assignment_id: int,
    files: List[IncomingFile],
    policy: UploadPolicy = UploadPolicy.BEST_EFFORT,
) -> List[FileUploadResult]:
    assignment = get_assignment(db, assignment_id)
    if assignment is None:
        raise NotFound("Assignment not found")
    require(viewer.can_manage_assignment(assignment.classroom), "Only the class teacher can add attachments")
    if not files:
        raise ValidationFailed("At least one file is required")
    validate_batch(files)
    return add_attachments(db, storage, assignment, files, policy)


def update_assignment(db: Session, viewer: Viewer, assignment_id: int, fields: dict) -> Assignment:
    """
    Apply a partial update. Keys present in fields are written, including an
    explicit None for description or due_date.
    """
    assignment = get_assignment(db, assignment_id)
    if assignment is None:
        raise NotFound("Assignment not found")
    require(viewer.can_manage_assignment(assignment.classroom), "Only the class teacher can edit assignments")
    _validate_fields(fields.get("title"), fields.get("points"))
    if "title" in fields and fields["title"] is None:
        raise ValidationFailed("Title is required")
    if "points" in fields and fields["points"] is None:
        raise ValidationFailed("Points must be a positive integer")
    if "points" in fields and fields["points"] < assignment.points:
        highest = (
            db.query(func.max(Submission.grade))
            .filter(Submission.assignment_id == assignment.id, Submission.grade.isnot(None))
            .scalar()
        )
        if highest is not None and highest > fields["points"]:
            raise ValidationFailed(f"Points cannot be lower than an existing grade ({highest})")

    for key in ("title", "description", "due_date", "points"):
        if key not in fields:
            continue
        value = fields[key]
        if key == "due_date":
            value = ensure_utc(value)
        elif key == "title":
            value = value.strip()
        setattr(assignment, key, value)
    db.commit()
    db.refresh(assignment)
    return assignment


def delete_assignment(db: Session, storage: ObjectStorage, viewer: Viewer, assignment_id: int) -> None:
    assignment = get_assignment(db, assignment_id)
    if assignment is None:
        raise NotFound("Assignment not found")
    require(viewer.can_manage_assignment(assignment.classroom), "Only the class teacher can delete assignments")

    records = list(assignment.attachments)
    records += (
        db.query(SubmissionFile)
        .join(Submission, Submission.id == SubmissionFile.submission_id)
        .filter(Submission.assignment_id == assignment.id)
        .all()
    )
    removed = purge_objects(storage, records)
    db.delete(assignment)
    db.commit()
    logger.info(f"Deleted assignment {assignment_id} and {removed} stored objects")


def delete_attachment(db: Session, storage: ObjectStorage, viewer: Viewer, attachment_id: int) -> None:
    attachment = get_attachment(db, attachment_id)
    if attachment is None:
        raise NotFound("Attachment not found")
    require(
        viewer.can_manage_assignment(attachment.assignment.classroom),
        "Only the class teacher can delete attachments",
    )
    delete_file_record(db, storage, attachment)
