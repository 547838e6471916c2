"""Innovator assessment engine: question draw, scoring, focus lockout."""

from .anticheat import FocusGuard, FocusSurface, GuardState
from .questions import QUESTION_POOL, Difficulty, Question, draw_questions
from .registry import AssessmentRegistry
from .scoring import detect_ai, score_answer, speed_bonus
from .session import AnswerOutcome, AssessmentSession, AssessmentViolation

__all__ = [
    "AnswerOutcome",
    "AssessmentRegistry",
    "AssessmentSession",
    "AssessmentViolation",
    "Difficulty",
    "FocusGuard",
    "FocusSurface",
    "GuardState",
    "QUESTION_POOL",
    "Question",
    "detect_ai",
    "draw_questions",
    "score_answer",
    "speed_bonus",
]
