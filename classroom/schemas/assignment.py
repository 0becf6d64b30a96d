from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from classroom.schemas.files import FileRecordResponse, FileUploadResultResponse


class AssignmentUpdateRequest(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    points: Optional[int] = Field(None, gt=0)


class AssignmentResponse(BaseModel):
    id: int
    class_id: int
    title: str
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    points: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AssignmentListItem(AssignmentResponse):
    class_name: str
    is_overdue: bool
    submission_status: Optional[str] = None


class AssignmentCreatedResponse(BaseModel):
    assignment: AssignmentResponse
    files: List[FileUploadResultResponse] = []


class AssignmentDetailResponse(BaseModel):
    assignment: AssignmentResponse
    class_name: str
    allow_late_submissions: bool
    is_overdue: bool
    attachments: List[FileRecordResponse]
    capabilities: Dict[str, bool]
    submission: Optional[dict] = None
    submissions: Optional[List[dict]] = None
