import enum

from sqlalchemy import Column, Integer, Text, Boolean, DateTime, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import relationship

from classroom.db.base import Base


class SubmissionStatus(enum.Enum):
    SUBMITTED = "submitted"
    GRADED = "graded"


class Submission(Base):
    __tablename__ = "submissions"
    id = Column(Integer, primary_key=True)
    assignment_id = Column(Integer, ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False, default="")
    status = Column(Enum(SubmissionStatus), nullable=False, default=SubmissionStatus.SUBMITTED)
    submitted_at = Column(DateTime(timezone=True), nullable=False)
    is_late = Column(Boolean, nullable=False, default=False)
    deadline_override = Column(DateTime(timezone=True), nullable=True)

    # Grading fields (nullable until graded)
    grade = Column(Integer, nullable=True)
    feedback = Column(Text, nullable=True)
    graded_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("assignment_id", "student_id", name="uq_submission_assignment_student"),
    )

    assignment = relationship("Assignment", back_populates="submissions")
    student = relationship("Profile", back_populates="submissions")
    files = relationship(
        "SubmissionFile", back_populates="submission", cascade="all, delete-orphan", passive_deletes=True
    )

    @property
    def is_graded(self) -> bool:
        return self.grade is not None
