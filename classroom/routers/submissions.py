from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from classroom.core.exceptions import NotAuthorized, NotFound
from classroom.crud.submissions import (
    get_student_submissions,
    get_submission,
    get_submission_files,
    get_teacher_submissions,
)
from classroom.db.session import get_db
from classroom.dependencies.auth import SessionContext, get_clock, get_object_storage, get_session_context
from classroom.dependencies.uploads import read_uploads
from classroom.schemas.files import FileRecordResponse
from classroom.schemas.submission import (
    DeadlineOverrideRequest,
    GradeRequest,
    SubmissionDetailResponse,
    SubmissionListItem,
    SubmissionResponse,
    SubmitResponse,
)
from classroom.services import submissions as lifecycle
from classroom.services.attachments import UploadPolicy
from classroom.services.capabilities import require
from classroom.services.file_storage import ObjectStorage
from classroom.services.reporting import score_display

router = APIRouter(prefix="/submissions", tags=["submissions"])

LIST_FILTERS = ("all", "pending", "graded")


def _list_item(submission, with_student: bool):
    assignment = submission.assignment
    item = SubmissionResponse.model_validate(submission).model_dump()
    item["assignment_title"] = assignment.title
    item["points"] = assignment.points
    item["class_name"] = assignment.classroom.name
    item["score"] = score_display(submission.grade, assignment.points)
    if with_student:
        item["student_name"] = submission.student.full_name
        item["student_email"] = submission.student.email
    return item


@router.post("", response_model=SubmitResponse)
async def submit_assignment(
    assignment_id: int = Form(...),
    content: str = Form(""),
    files: Optional[List[UploadFile]] = File(None),
    policy: UploadPolicy = UploadPolicy.BEST_EFFORT,
    context: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_object_storage),
    now: datetime = Depends(get_clock)
):
    incoming = await read_uploads(files)
    result = lifecycle.submit(
        db,
        storage,
        context.viewer,
        assignment_id,
        content,
        files=incoming,
        policy=policy,
        now=now,
    )
    return {
        "message": "Assignment submitted successfully" if result.created else "Submission updated successfully",
        "created": result.created,
        "submission": result.submission,
        "files": [r.as_dict() for r in result.files],
    }


@router.get("", response_model=List[SubmissionListItem])
def list_submissions(
    status_filter: str = "all",
    context: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db)
):
    """
    Teachers see submissions across their classes, filterable by pending or graded.
    Students see their own submissions.
    """
    if status_filter not in LIST_FILTERS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"status_filter must be one of {', '.join(LIST_FILTERS)}"
        )
    viewer = context.viewer
    if viewer.is_teacher:
        rows = get_teacher_submissions(db, viewer.profile_id)
        with_student = True
    elif viewer.is_student:
        rows = get_student_submissions(db, viewer.profile_id)
        with_student = False
    else:
        raise NotAuthorized("Only teachers and students have submission lists")

    if status_filter == "pending":
        rows = [s for s in rows if s.grade is None]
    elif status_filter == "graded":
        rows = [s for s in rows if s.grade is not None]
    return [_list_item(s, with_student) for s in rows]


@router.get("/{submission_id}", response_model=SubmissionDetailResponse)
def get_submission_detail(
    submission_id: int,
    context: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db)
):
    submission = get_submission(db, submission_id)
    if submission is None:
        raise NotFound("Submission not found")
    viewer = context.viewer
    assignment = submission.assignment
    classroom = assignment.classroom
    require(viewer.can_view_submission(submission, classroom), "You do not have access to this submission")

    return {
        "submission": submission,
        "assignment_title": assignment.title,
        "assignment_description": assignment.description,
        "points": assignment.points,
        "class_name": classroom.name,
        "student_name": submission.student.full_name,
        "student_email": submission.student.email,
        "files": [FileRecordResponse.model_validate(f) for f in get_submission_files(db, submission.id)],
        "capabilities": viewer.submission_capabilities(submission, classroom),
        "score": score_display(submission.grade, assignment.points),
    }


@router.post("/{submission_id}/grade", response_model=SubmissionResponse)
def grade_submission(
    submission_id: int,
    request: GradeRequest,
    context: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_clock)
):
    return lifecycle.grade(
        db,
        context.viewer,
        submission_id,
        request.grade,
        feedback=request.feedback,
        deadline_override=request.deadline_override,
        now=now,
    )


@router.put("/{submission_id}/deadline", response_model=SubmissionResponse)
def set_submission_deadline(
    submission_id: int,
    request: DeadlineOverrideRequest,
    context: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db)
):
    return lifecycle.set_deadline_override(db, context.viewer, submission_id, request.deadline_override)


@router.delete("/files/{file_id}")
def remove_submission_file(
    file_id: int,
    context: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_object_storage)
):
    lifecycle.delete_submission_file(db, storage, context.viewer, file_id)
    return {"message": "File deleted successfully"}
