from datetime import datetime
from typing import Optional

from pydantic import BaseModel, computed_field

from classroom.utils.helpers import format_file_size


class FileRecordResponse(BaseModel):
    id: int
    file_name: str
    file_path: str
    file_size: int
    file_type: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @computed_field
    @property
    def size_display(self) -> str:
        return format_file_size(self.file_size)


class StudyMaterialResponse(FileRecordResponse):
    class_id: int
    title: str
    description: Optional[str] = None
    uploaded_by: Optional[int] = None


class FileUploadResultResponse(BaseModel):
    file_name: str
    ok: bool
    file_id: Optional[int] = None
    file_path: Optional[str] = None
    error: Optional[str] = None


class DownloadResponse(BaseModel):
    file_name: str
    url: str
