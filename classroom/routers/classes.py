from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.orm import Session

from classroom.crud.classes import (
    enrollment_counts,
    get_class_assignments,
    get_class_students,
    get_study_materials,
    get_teacher_roster,
)
from classroom.crud.trusted import create_class, list_my_classes
from classroom.db.session import get_db
from classroom.dependencies.auth import (
    SessionContext,
    get_object_storage,
    get_session_context,
    teacher_required,
)
from classroom.dependencies.uploads import read_uploads
from classroom.schemas.classroom import (
    ClassCreateRequest,
    ClassResponse,
    ClassUpdateRequest,
    JoinClassRequest,
    RosterEntry,
    StudentSummary,
)
from classroom.schemas.files import StudyMaterialResponse
from classroom.services import registry
from classroom.services.attachments import UploadPolicy
from classroom.services.file_storage import ObjectStorage

router = APIRouter(prefix="/classes", tags=["classes"])


@router.get("", response_model=List[ClassResponse])
def list_classes(context: SessionContext = Depends(get_session_context), db: Session = Depends(get_db)):
    return list_my_classes(db, context.viewer)


@router.post("", response_model=ClassResponse, status_code=status.HTTP_201_CREATED)
def create_new_class(
    request: ClassCreateRequest,
    context: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db)
):
    classroom = create_class(
        db,
        context.viewer,
        name=request.name,
        subject=request.subject,
        description=request.description,
        allow_late_submissions=request.allow_late_submissions,
    )
    return ClassResponse.model_validate(classroom).model_copy(update={"enrollment_count": 0})


@router.post("/join", response_model=ClassResponse)
def join(
    request: JoinClassRequest,
    context: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db)
):
    classroom = registry.join_class(db, context.viewer, request.class_code)
    return classroom


@router.get("/roster", response_model=List[RosterEntry])
def roster(context: SessionContext = Depends(teacher_required), db: Session = Depends(get_db)):
    """Every student enrolled in any of the caller's classes"""
    return get_teacher_roster(db, context.viewer.profile_id)


@router.get("/{class_id}")
def get_class_detail(
    class_id: int,
    context: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db)
):
    viewer = context.viewer
    classroom = registry.get_visible_class(db, viewer, class_id)
    enrolled = viewer.is_student

    students = []
    if viewer.is_admin or viewer.owns_class(classroom):
        students = [StudentSummary.model_validate(s) for s in get_class_students(db, classroom.id)]

    class_data = ClassResponse.model_validate(classroom).model_dump()
    class_data["enrollment_count"] = enrollment_counts(db, [classroom.id]).get(classroom.id, 0)
    return {
        "class": class_data,
        "teacher_name": classroom.teacher.full_name if classroom.teacher else None,
        "students": students,
        "assignments": [
            {
                "id": a.id,
                "title": a.title,
                "due_date": a.due_date,
                "points": a.points,
                "created_at": a.created_at,
            }
            for a in get_class_assignments(db, classroom.id)
        ],
        "study_materials": [StudyMaterialResponse.model_validate(m) for m in get_study_materials(db, classroom.id)],
        "capabilities": {
            "can_edit_class": viewer.can_edit_class(classroom),
            "can_delete_class": viewer.can_delete_class(classroom),
            "can_manage_assignments": viewer.can_manage_assignment(classroom),
            "can_view_class": viewer.can_view_class(classroom, enrolled),
        },
    }


@router.patch("/{class_id}", response_model=ClassResponse)
def edit_class(
    class_id: int,
    request: ClassUpdateRequest,
    context: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db)
):
    return registry.update_class(db, context.viewer, class_id, **request.model_dump(exclude_unset=True))


@router.delete("/{class_id}")
def remove_class(
    class_id: int,
    context: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_object_storage)
):
    registry.delete_class(db, storage, context.viewer, class_id)
    return {"message": "Class deleted successfully"}


@router.post("/{class_id}/materials", status_code=status.HTTP_201_CREATED)
async def upload_materials(
    class_id: int,
    title: str = Form(...),
    description: Optional[str] = Form(None),
    files: List[UploadFile] = File(...),
    policy: UploadPolicy = UploadPolicy.BEST_EFFORT,
    context: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_object_storage)
):
    incoming = await read_uploads(files)
    results = registry.upload_study_materials(
        db, storage, context.viewer, class_id, title, description, incoming, policy
    )
    return {
        "message": f"Uploaded {sum(1 for r in results if r.ok)} of {len(results)} files",
        "files": [r.as_dict() for r in results],
    }


@router.delete("/materials/{material_id}")
def remove_material(
    material_id: int,
    context: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_object_storage)
):
    registry.delete_study_material(db, storage, context.viewer, material_id)
    return {"message": "Study material deleted successfully"}
