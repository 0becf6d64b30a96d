from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.orm import Session

from classroom.core.exceptions import NotAuthorized
from classroom.crud.assignments import get_attachments, get_student_assignments, get_teacher_assignments
from classroom.crud.submissions import get_assignment_submissions, get_student_submission
from classroom.db.session import get_db
from classroom.dependencies.auth import SessionContext, get_clock, get_object_storage, get_session_context
from classroom.dependencies.uploads import read_uploads
from classroom.models.submission import Submission
from classroom.schemas.assignment import (
    AssignmentCreatedResponse,
    AssignmentDetailResponse,
    AssignmentListItem,
    AssignmentResponse,
    AssignmentUpdateRequest,
)
from classroom.schemas.files import FileRecordResponse
from classroom.services import catalog
from classroom.services.attachments import UploadPolicy
from classroom.services.file_storage import ObjectStorage
from classroom.services.reporting import score_display
from classroom.services.submissions import compute_is_late, effective_deadline, submission_state

router = APIRouter(prefix="/assignments", tags=["assignments"])


def _list_item(assignment, now: datetime, submission: Optional[Submission] = None, with_status: bool = False):
    item = AssignmentResponse.model_validate(assignment).model_dump()
    item["class_name"] = assignment.classroom.name
    item["is_overdue"] = compute_is_late(assignment.due_date, now)
    item["submission_status"] = submission_state(submission) if with_status else None
    return item


@router.get("", response_model=List[AssignmentListItem])
def list_assignments(
    context: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_clock)
):
    """Assignments across the caller's classes, newest first"""
    viewer = context.viewer
    if viewer.is_teacher:
        return [_list_item(a, now) for a in get_teacher_assignments(db, viewer.profile_id)]
    if viewer.is_student:
        submissions = {
            s.assignment_id: s
            for s in db.query(Submission).filter(Submission.student_id == viewer.profile_id).all()
        }
        return [
            _list_item(a, now, submissions.get(a.id), with_status=True)
            for a in get_student_assignments(db, viewer.profile_id)
        ]
    raise NotAuthorized("Only teachers and students have assignment lists")


@router.post("", response_model=AssignmentCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_new_assignment(
    class_id: int = Form(...),
    title: str = Form(...),
    description: Optional[str] = Form(None),
    due_date: Optional[datetime] = Form(None),
    points: int = Form(100),
    files: Optional[List[UploadFile]] = File(None),
    policy: UploadPolicy = UploadPolicy.BEST_EFFORT,
    context: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_object_storage)
):
    incoming = await read_uploads(files)
    assignment, results = catalog.create_assignment(
        db,
        storage,
        context.viewer,
        class_id=class_id,
        title=title,
        description=description or None,
        due_date=due_date,
        points=points,
        files=incoming,
        policy=policy,
    )
    return {"assignment": assignment, "files": [r.as_dict() for r in results]}


@router.get("/{assignment_id}", response_model=AssignmentDetailResponse)
def get_assignment_detail(
    assignment_id: int,
    context: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_clock)
):
    viewer = context.viewer
    assignment, enrolled = catalog.get_visible_assignment(db, viewer, assignment_id)
    classroom = assignment.classroom

    own_submission = None
    if viewer.is_student:
        own_submission = get_student_submission(db, assignment.id, viewer.profile_id)

    submission_data = None
    if own_submission is not None:
        deadline = effective_deadline(assignment.due_date, own_submission.deadline_override)
        submission_data = {
            "id": own_submission.id,
            "content": own_submission.content,
            "status": submission_state(own_submission),
            "submitted_at": own_submission.submitted_at,
            "is_late": own_submission.is_late,
            "deadline": deadline,
            "grade": own_submission.grade,
            "feedback": own_submission.feedback,
            "score": score_display(own_submission.grade, assignment.points),
        }

    submissions_data = None
    if viewer.can_grade(classroom):
        submissions_data = [
            {
                "id": s.id,
                "student_id": s.student_id,
                "student_name": s.student.full_name,
                "student_email": s.student.email,
                "status": submission_state(s),
                "submitted_at": s.submitted_at,
                "is_late": s.is_late,
                "grade": s.grade,
                "score": score_display(s.grade, assignment.points),
            }
            for s in get_assignment_submissions(db, assignment.id)
        ]

    return {
        "assignment": assignment,
        "class_name": classroom.name,
        "allow_late_submissions": classroom.allow_late_submissions,
        "is_overdue": compute_is_late(assignment.due_date, now),
        "attachments": [FileRecordResponse.model_validate(a) for a in get_attachments(db, assignment.id)],
        "capabilities": viewer.assignment_capabilities(classroom, enrolled, own_submission),
        "submission": submission_data,
        "submissions": submissions_data,
    }


@router.patch("/{assignment_id}", response_model=AssignmentResponse)
def edit_assignment(
    assignment_id: int,
    request: AssignmentUpdateRequest,
    context: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db)
):
    return catalog.update_assignment(db, context.viewer, assignment_id, request.model_dump(exclude_unset=True))


@router.delete("/{assignment_id}")
def remove_assignment(
    assignment_id: int,
    context: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_object_storage)
):
    catalog.delete_assignment(db, storage, context.viewer, assignment_id)
    return {"message": "Assignment deleted successfully"}


@router.post("/{assignment_id}/attachments", status_code=status.HTTP_201_CREATED)
async def upload_assignment_attachments(
    assignment_id: int,
    files: List[UploadFile] = File(...),
    policy: UploadPolicy = UploadPolicy.BEST_EFFORT,
    context: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_object_storage)
):
    incoming = await read_uploads(files)
    results = catalog.upload_attachments(db, storage, context.viewer, assignment_id, incoming, policy)
    return {
        "message": f"Uploaded {sum(1 for r in results if r.ok)} of {len(results)} files",
        "files": [r.as_dict() for r in results],
    }


@router.delete("/attachments/{attachment_id}")
def remove_attachment(
    attachment_id: int,
    context: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_object_storage)
):
    catalog.delete_attachment(db, storage, context.viewer, attachment_id)
    return {"message": "Attachment deleted successfully"}
