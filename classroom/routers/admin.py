from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from classroom.core.config.settings import get_settings
from classroom.crud.audit_logs import list_audit_filters, list_audit_logs
from classroom.crud.classes import enrollment_counts, get_all_classes
from classroom.crud.profiles import list_profiles
from classroom.db.session import get_db
from classroom.dependencies.auth import SessionContext, admin_required, get_object_storage
from classroom.models.profile import RoleType
from classroom.schemas.admin import AnalyticsResponse, AuditLogListResponse, OverviewResponse
from classroom.schemas.classroom import AdminClassUpdateRequest, ClassResponse
from classroom.schemas.profile import AdminCreateUserRequest, AdminUpdateUserRequest, ProfileResponse
from classroom.services import admin as admin_service
from classroom.services import dashboards
from classroom.services.file_storage import ObjectStorage

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/overview", response_model=OverviewResponse)
def overview(context: SessionContext = Depends(admin_required), db: Session = Depends(get_db)):
    return dashboards.admin_overview(db)


@router.get("/analytics", response_model=AnalyticsResponse)
def analytics(context: SessionContext = Depends(admin_required), db: Session = Depends(get_db)):
    return dashboards.admin_analytics(db)


@router.get("/users", response_model=List[ProfileResponse])
def list_users(
    role: Optional[RoleType] = None,
    search: Optional[str] = None,
    context: SessionContext = Depends(admin_required),
    db: Session = Depends(get_db)
):
    return list_profiles(db, role=role, search=search)


@router.post("/users", response_model=ProfileResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    request: AdminCreateUserRequest,
    context: SessionContext = Depends(admin_required),
    db: Session = Depends(get_db)
):
    return admin_service.create_user(
        db,
        context.viewer,
        email=request.email,
        full_name=request.full_name.strip(),
        password=request.password,
        role=request.role,
    )


@router.patch("/users/{user_id}", response_model=ProfileResponse)
def update_user(
    user_id: int,
    request: AdminUpdateUserRequest,
    context: SessionContext = Depends(admin_required),
    db: Session = Depends(get_db)
):
    return admin_service.update_user(db, context.viewer, user_id, full_name=request.full_name, role=request.role)


@router.delete("/users/{user_id}")
def delete_user(
    user_id: int,
    context: SessionContext = Depends(admin_required),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_object_storage)
):
    admin_service.delete_user(db, storage, context.viewer, user_id)
    return {"message": "User deleted successfully"}


@router.get("/teachers")
def list_teachers(context: SessionContext = Depends(admin_required), db: Session = Depends(get_db)):
    return dashboards.teacher_stats(db)


@router.get("/students")
def list_students(context: SessionContext = Depends(admin_required), db: Session = Depends(get_db)):
    return dashboards.student_stats(db)


@router.get("/classes")
def list_classes(context: SessionContext = Depends(admin_required), db: Session = Depends(get_db)):
    classes = get_all_classes(db)
    counts = enrollment_counts(db, [c.id for c in classes])
    result = []
    for classroom in classes:
        item = ClassResponse.model_validate(classroom).model_dump()
        item["enrollment_count"] = counts.get(classroom.id, 0)
        item["teacher_name"] = classroom.teacher.full_name if classroom.teacher else None
        item["teacher_email"] = classroom.teacher.email if classroom.teacher else None
        result.append(item)
    return result


@router.patch("/classes/{class_id}", response_model=ClassResponse)
def update_class(
    class_id: int,
    request: AdminClassUpdateRequest,
    context: SessionContext = Depends(admin_required),
    db: Session = Depends(get_db)
):
    return admin_service.update_class(db, context.viewer, class_id, **request.model_dump(exclude_unset=True))


@router.delete("/classes/{class_id}")
def delete_class(
    class_id: int,
    context: SessionContext = Depends(admin_required),
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_object_storage)
):
    admin_service.delete_class(db, storage, context.viewer, class_id)
    return {"message": "Class deleted successfully"}


@router.get("/audit-logs", response_model=AuditLogListResponse)
def audit_logs(
    action: Optional[str] = None,
    resource_type: Optional[str] = None,
    search: Optional[str] = None,
    limit: Optional[int] = None,
    context: SessionContext = Depends(admin_required),
    db: Session = Depends(get_db)
):
    entries = list_audit_logs(
        db,
        limit=limit or get_settings().AUDIT_LOG_LIMIT,
        action=action,
        resource_type=resource_type,
        search=search,
    )
    logs = [
        {
            "id": entry.id,
            "admin_id": entry.admin_id,
            "admin_name": entry.admin.full_name if entry.admin else None,
            "admin_email": entry.admin.email if entry.admin else None,
            "action": entry.action,
            "resource_type": entry.resource_type,
            "resource_id": entry.resource_id,
            "details": entry.details,
            "created_at": entry.created_at,
        }
        for entry in entries
    ]
    return {"logs": logs, **list_audit_filters(db)}
