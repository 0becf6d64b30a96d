from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from classroom.models.submission import SubmissionStatus
from classroom.schemas.files import FileRecordResponse, FileUploadResultResponse


class GradeRequest(BaseModel):
    grade: int = Field(..., ge=0)
    feedback: Optional[str] = None
    deadline_override: Optional[datetime] = None


class DeadlineOverrideRequest(BaseModel):
    deadline_override: Optional[datetime] = None


class SubmissionResponse(BaseModel):
    id: int
    assignment_id: int
    student_id: int
    content: str
    status: SubmissionStatus
    submitted_at: datetime
    is_late: bool
    deadline_override: Optional[datetime] = None
    grade: Optional[int] = None
    feedback: Optional[str] = None
    graded_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SubmitResponse(BaseModel):
    message: str
    created: bool
    submission: SubmissionResponse
    files: List[FileUploadResultResponse] = []


class SubmissionListItem(SubmissionResponse):
    assignment_title: str
    points: int
    class_name: str
    student_name: Optional[str] = None
    student_email: Optional[str] = None
    score: Optional[Dict] = None


class SubmissionDetailResponse(BaseModel):
    submission: SubmissionResponse
    assignment_title: str
    assignment_description: Optional[str] = None
    points: int
    class_name: str
    student_name: str
    student_email: str
    files: List[FileRecordResponse]
    capabilities: Dict[str, bool]
    score: Optional[Dict] = None
