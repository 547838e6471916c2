"""Pydantic schemas for tasks and submissions."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ..models import SubmissionStatus


class TaskCreate(BaseModel):
    """Request body for publishing a task."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    subject: str = Field(..., min_length=1)
    grade: int = Field(..., ge=9, le=12)
    class_id: Optional[str] = None
    points: int = Field(..., gt=0, description="Points for a full-marks submission.")
    max_score: int = Field(10, gt=0)
    deadline: Optional[datetime] = None
    time_limit_minutes: Optional[int] = Field(None, gt=0)
    attachment_name: Optional[str] = None
    attachment: Optional[str] = Field(None, description="Base64-encoded file, at most 5 MB decoded.")


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    subject: Optional[str] = None
    grade: Optional[int] = Field(None, ge=9, le=12)
    class_id: Optional[str] = None
    points: Optional[int] = Field(None, gt=0)
    max_score: Optional[int] = Field(None, gt=0)
    deadline: Optional[datetime] = None
    time_limit_minutes: Optional[int] = Field(None, gt=0)


class TaskRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    task_id: UUID
    teacher_id: Optional[UUID]
    title: str
    description: str
    subject: str
    grade: int
    class_id: Optional[str]
    points: int
    max_score: int
    deadline: Optional[datetime]
    time_limit_minutes: Optional[int]
    attachment_name: Optional[str]
    created_at: datetime


class TaskAttemptRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    attempt_id: UUID
    task_id: UUID
    student_id: UUID
    started_at: datetime
    expires_at: Optional[datetime] = Field(None, description="Null for tasks without a time limit.")


class SubmissionCreate(BaseModel):
    answer_text: Optional[str] = None
    attachment_name: Optional[str] = None
    attachment: Optional[str] = Field(None, description="Base64-encoded file, at most 5 MB decoded.")


class SubmissionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    submission_id: UUID
    task_id: UUID
    student_id: UUID
    status: SubmissionStatus
    answer_text: Optional[str]
    attachment_name: Optional[str]
    ai_flagged: bool
    actual_score: Optional[int]
    max_score: int
    points: int
    awarded_points: Optional[int]
    teacher_comment: Optional[str]
    graded_by: Optional[str]
    graded_at: Optional[datetime]
    submitted_at: datetime


class GradeRequest(BaseModel):
    score: int = Field(..., ge=0, description="Mark out of the task's max score.")
    comment: Optional[str] = Field(None, max_length=1000)


class RejectRequest(BaseModel):
    comment: Optional[str] = Field(None, max_length=1000)


class AttachmentRead(BaseModel):
    attachment_name: str
    attachment: str = Field(..., description="Base64-encoded file content.")
