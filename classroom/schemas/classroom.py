from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class ClassCreateRequest(BaseModel):
    name: str = Field(..., min_length=1)
    subject: Optional[str] = ""
    description: Optional[str] = None
    allow_late_submissions: bool = False


class ClassUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    subject: Optional[str] = None
    description: Optional[str] = None
    allow_late_submissions: Optional[bool] = None


class AdminClassUpdateRequest(ClassUpdateRequest):
    teacher_id: Optional[int] = None


class JoinClassRequest(BaseModel):
    class_code: str


class ClassResponse(BaseModel):
    id: int
    name: str
    subject: Optional[str] = None
    description: Optional[str] = None
    teacher_id: int
    class_code: str
    allow_late_submissions: bool
    created_at: Optional[datetime] = None
    enrollment_count: Optional[int] = None

    class Config:
        from_attributes = True


class StudentSummary(BaseModel):
    id: int
    email: str
    full_name: str

    class Config:
        from_attributes = True


class RosterEntry(StudentSummary):
    classes: List[str]
