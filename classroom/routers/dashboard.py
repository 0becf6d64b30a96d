from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from classroom.core.exceptions import NotAuthorized
from classroom.db.session import get_db
from classroom.dependencies.auth import SessionContext, get_session_context, teacher_required
from classroom.services import dashboards

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats")
def get_dashboard_stats(context: SessionContext = Depends(get_session_context), db: Session = Depends(get_db)):
    viewer = context.viewer
    if viewer.is_teacher:
        return dashboards.teacher_dashboard(db, viewer)
    if viewer.is_student:
        return dashboards.student_dashboard(db, viewer)
    raise NotAuthorized("Admins use the admin overview")


@router.get("/at-risk")
def get_at_risk_students(
    threshold: Optional[int] = None,
    context: SessionContext = Depends(teacher_required),
    db: Session = Depends(get_db)
):
    """Students in the caller's classes with at least `threshold` missing submissions"""
    return dashboards.teacher_at_risk(db, context.viewer, threshold)
