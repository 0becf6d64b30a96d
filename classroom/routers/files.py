from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from classroom.core.exceptions import NotFound
from classroom.crud.assignments import get_attachment
from classroom.crud.classes import get_study_material, is_enrolled
from classroom.crud.submissions import get_submission_file
from classroom.db.session import get_db
from classroom.dependencies.auth import SessionContext, get_object_storage, get_session_context
from classroom.schemas.files import DownloadResponse
from classroom.services.attachments import get_download_url
from classroom.services.capabilities import require
from classroom.services.file_storage import ObjectStorage

router = APIRouter(prefix="/files", tags=["files"])

FILE_KINDS = ("submission", "attachment", "material")


@router.get("/{kind}/{file_id}/download", response_model=DownloadResponse)
def download_file(
    kind: str,
    file_id: int,
    context: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_object_storage)
):
    """Public URL for a stored file, for viewers allowed to see its owner"""
    if kind not in FILE_KINDS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"kind must be one of {', '.join(FILE_KINDS)}"
        )
    viewer = context.viewer

    if kind == "submission":
        record = get_submission_file(db, file_id)
        if record is None:
            raise NotFound("File not found")
        submission = record.submission
        require(
            viewer.can_view_submission(submission, submission.assignment.classroom),
            "You do not have access to this file",
        )
    else:
        record = get_attachment(db, file_id) if kind == "attachment" else get_study_material(db, file_id)
        if record is None:
            raise NotFound("File not found")
        classroom = record.assignment.classroom if kind == "attachment" else record.classroom
        enrolled = viewer.is_student and is_enrolled(db, classroom.id, viewer.profile_id)
        require(viewer.can_view_class(classroom, enrolled), "You do not have access to this file")

    return {"file_name": record.file_name, "url": get_download_url(storage, record)}
