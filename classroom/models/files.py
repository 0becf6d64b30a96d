from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from classroom.db.base import Base

SUBMISSIONS_BUCKET = "assignment-submissions"
ATTACHMENTS_BUCKET = "assignment-attachments"
STUDY_MATERIALS_BUCKET = "study-materials"


class FileRecordMixin:
    """Metadata pointing at an object stored as "<bucket>/<relative-path>"."""

    id = Column(Integer, primary_key=True)
    file_name = Column(String, nullable=False)
    file_path = Column(String, nullable=False)
    file_size = Column(Integer, nullable=False, default=0)
    file_type = Column(String, nullable=False, default="application/octet-stream")
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))


class SubmissionFile(FileRecordMixin, Base):
    __tablename__ = "submission_files"
    bucket = SUBMISSIONS_BUCKET
    submission_id = Column(Integer, ForeignKey("submissions.id", ondelete="CASCADE"), nullable=False, index=True)

    submission = relationship("Submission", back_populates="files")


class AssignmentAttachment(FileRecordMixin, Base):
    __tablename__ = "assignment_attachments"
    bucket = ATTACHMENTS_BUCKET
    assignment_id = Column(Integer, ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False, index=True)

    assignment = relationship("Assignment", back_populates="attachments")


class StudyMaterial(FileRecordMixin, Base):
    __tablename__ = "study_materials"
    bucket = STUDY_MATERIALS_BUCKET
    class_id = Column(Integer, ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    uploaded_by = Column(Integer, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)

    classroom = relationship("Classroom", back_populates="study_materials")
