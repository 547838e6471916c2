"""Task, attempt and submission models."""

import enum
import uuid
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    LargeBinary,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship

from ..core.database import Base
from ..utils.datetime import utcnow


class SubmissionStatus(str, enum.Enum):
    """Grading lifecycle of a submission."""

    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class Task(Base):
    """Academic task published by a teacher."""

    __tablename__ = "tasks"
    __table_args__ = (
        CheckConstraint("points > 0", name="tasks_points_positive"),
        CheckConstraint("max_score > 0", name="tasks_max_score_positive"),
        CheckConstraint("grade BETWEEN 9 AND 12", name="tasks_grade_range"),
    )

    task_id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    teacher_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"))
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    subject = Column(String, nullable=False)
    grade = Column(Integer, nullable=False)
    class_id = Column(String, ForeignKey("classes.id", ondelete="SET NULL"))
    points = Column(Integer, nullable=False)
    max_score = Column(Integer, nullable=False, default=10)
    deadline = Column(DateTime)
    time_limit_minutes = Column(Integer)
    attachment_name = Column(String)
    attachment_data = Column(LargeBinary)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    teacher = relationship("Teacher", back_populates="tasks")
    submissions = relationship("TaskSubmission", back_populates="task", cascade="all, delete-orphan")
    attempts = relationship("TaskAttempt", back_populates="task", cascade="all, delete-orphan")


class TaskSubmission(Base):
    """A student's hand-in for a task; graded exactly once."""

    __tablename__ = "task_submissions"
    __table_args__ = (
        UniqueConstraint("task_id", "student_id", name="task_submissions_unique"),
    )

    submission_id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    task_id = Column(Uuid(as_uuid=True), ForeignKey("tasks.task_id", ondelete="CASCADE"), nullable=False)
    student_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    status = Column(
        Enum(SubmissionStatus, name="submission_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=SubmissionStatus.PENDING,
    )
    answer_text = Column(Text)
    attachment_name = Column(String)
    attachment_data = Column(LargeBinary)
    ai_flagged = Column(Boolean, nullable=False, default=False)
    actual_score = Column(Integer)
    awarded_points = Column(Integer)
    teacher_comment = Column(Text)
    graded_by = Column(String)
    graded_at = Column(DateTime)
    submitted_at = Column(DateTime, default=utcnow, nullable=False)

    task = relationship("Task", back_populates="submissions")
    student = relationship("Student", back_populates="submissions")

    @property
    def max_score(self) -> int:
        return self.task.max_score

    @property
    def points(self) -> int:
        return self.task.points


class TaskAttempt(Base):
    """When a student opened a task; timed tasks count down from here."""

    __tablename__ = "task_attempts"
    __table_args__ = (
        UniqueConstraint("task_id", "student_id", name="task_attempts_unique"),
    )

    attempt_id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    task_id = Column(Uuid(as_uuid=True), ForeignKey("tasks.task_id", ondelete="CASCADE"), nullable=False)
    student_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    started_at = Column(DateTime, default=utcnow, nullable=False)

    task = relationship("Task", back_populates="attempts")

    @property
    def expires_at(self) -> Optional[datetime]:
        if not self.task.time_limit_minutes:
            return None
        return self.started_at + timedelta(minutes=self.task.time_limit_minutes)
