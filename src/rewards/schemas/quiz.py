"""Pydantic schemas for the innovator assessment."""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from ..assessment import FocusSurface, GuardState


class QuestionPrompt(BaseModel):
    """The question currently shown to the student."""

    step: int = Field(..., description="0-based index of the question.")
    total_steps: int
    prompt: str
    difficulty: str
    time_limit: int = Field(..., description="Countdown budget in seconds.")
    time_remaining: int = Field(..., description="Advisory seconds left; answers after zero still count.")


class AnswerSubmit(BaseModel):
    answer: str


class AnswerResult(BaseModel):
    question_index: int
    score: int
    ai_detected: bool
    completed: bool
    total_points: Optional[int] = None
    speed_bonus: Optional[int] = None
    next_question: Optional[QuestionPrompt] = None


class FocusEvent(BaseModel):
    surface: FocusSurface = FocusSurface.OTHER


class FocusResult(BaseModel):
    state: GuardState
    locked_now: bool = False


class LockedStudent(BaseModel):
    student_id: UUID
    name: str
    email: str
    class_id: Optional[str]
    reason: str = "Tab Switching / External Resource Access"
