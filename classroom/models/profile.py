import enum
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, Enum
from sqlalchemy.orm import relationship

from classroom.db.base import Base


class RoleType(enum.Enum):
    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"


class Profile(Base):
    __tablename__ = "profiles"
    id = Column(Integer, primary_key=True)
    email = Column(String, nullable=False, unique=True, index=True)
    full_name = Column(String, nullable=False)
    role = Column(Enum(RoleType), nullable=False, default=RoleType.STUDENT)
    hashed_password = Column(String, nullable=False)
    avatar_url = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    classes_taught = relationship(
        "Classroom", back_populates="teacher", cascade="all, delete-orphan", passive_deletes=True
    )
    enrollments = relationship(
        "Enrollment", back_populates="student", cascade="all, delete-orphan", passive_deletes=True
    )
    submissions = relationship(
        "Submission", back_populates="student", cascade="all, delete-orphan", passive_deletes=True
    )
