from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from classroom.db.base import Base


class Classroom(Base):
    __tablename__ = "classes"
    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    subject = Column(String, nullable=False, default="")
    description = Column(Text, nullable=True)
    teacher_id = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    class_code = Column(String(16), nullable=False, unique=True, index=True)
    allow_late_submissions = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    teacher = relationship("Profile", back_populates="classes_taught")
    enrollments = relationship(
        "Enrollment", back_populates="classroom", cascade="all, delete-orphan", passive_deletes=True
    )
    assignments = relationship(
        "Assignment", back_populates="classroom", cascade="all, delete-orphan", passive_deletes=True
    )
    study_materials = relationship(
        "StudyMaterial", back_populates="classroom", cascade="all, delete-orphan", passive_deletes=True
    )


class Enrollment(Base):
    __tablename__ = "class_enrollments"
    id = Column(Integer, primary_key=True)
    class_id = Column(Integer, ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("class_id", "student_id", name="uq_enrollment_class_student"),
    )

    classroom = relationship("Classroom", back_populates="enrollments")
    student = relationship("Profile", back_populates="enrollments")
