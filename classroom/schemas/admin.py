from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class AuditLogResponse(BaseModel):
    id: int
    admin_id: Optional[int] = None
    admin_name: Optional[str] = None
    admin_email: Optional[str] = None
    action: str
    resource_type: str
    resource_id: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    created_at: datetime


class AuditLogListResponse(BaseModel):
    logs: List[AuditLogResponse]
    actions: List[str]
    resource_types: List[str]


class GradeBin(BaseModel):
    range: str
    count: int


class TopTeacher(BaseModel):
    teacher_id: int
    name: str
    class_count: int
    student_count: int


class AnalyticsResponse(BaseModel):
    total_users: int
    total_classes: int
    total_assignments: int
    total_submissions: int
    grade_distribution: List[GradeBin]
    top_teachers: List[TopTeacher]
    avg_submissions_per_class: float
    avg_submissions_per_assignment: float
    avg_assignments_per_class: float


class OverviewResponse(BaseModel):
    total_users: int
    total_students: int
    total_teachers: int
    total_admins: int
    total_classes: int
    total_assignments: int
    total_submissions: int
    graded_submissions: int
    avg_submissions_per_assignment: float
    grading_rate_percent: float
    avg_students_per_class: float
