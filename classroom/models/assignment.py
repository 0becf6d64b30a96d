from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship

from classroom.db.base import Base


class Assignment(Base):
    __tablename__ = "assignments"
    id = Column(Integer, primary_key=True)
    class_id = Column(Integer, ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    due_date = Column(DateTime(timezone=True), nullable=True)  # advisory unless the class disallows late work
    points = Column(Integer, nullable=False, default=100)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        CheckConstraint("points > 0", name="ck_assignment_points_positive"),
    )

    classroom = relationship("Classroom", back_populates="assignments")
    submissions = relationship(
        "Submission", back_populates="assignment", cascade="all, delete-orphan", passive_deletes=True
    )
    attachments = relationship(
        "AssignmentAttachment", back_populates="assignment", cascade="all, delete-orphan", passive_deletes=True
    )
