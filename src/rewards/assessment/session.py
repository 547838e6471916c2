"""Timed multi-question assessment session."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from ..core.errors import RuleViolation
from .questions import Question
from .scoring import detect_ai, score_answer, speed_bonus

logger = logging.getLogger(__name__)

MIN_ANSWER_CHARS = 15


class AssessmentViolation(RuleViolation):
    """Raised when an answer cannot be accepted."""


@dataclass(frozen=True)
class AnswerOutcome:
    question_index: int
    score: int
    ai_detected: bool
    completed: bool
    total_points: Optional[int] = None
    speed_bonus: Optional[int] = None


class AssessmentSession:
    """Administers a fixed list of questions and reports one total.

    ``on_complete`` is invoked exactly once with the total points after the
    final answer is accepted. If it raises, the session stays open on the
    final question and nothing counts as completed. The countdown is advisory: answers given after
    a question's budget has run out are still accepted and scored.
    """

    def __init__(
        self,
        questions: Sequence[Question],
        *,
        on_complete: Optional[Callable[[int], None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if not questions:
            raise ValueError("An assessment needs at least one question")
        self.questions = list(questions)
        self.on_complete = on_complete
        self._clock = clock
        self.started_at = clock()
        self._question_started_at = self.started_at
        self.scores: list[int] = []
        self.total_points: Optional[int] = None
        self.aborted = False

    @property
    def step(self) -> int:
        return len(self.scores)

    @property
    def completed(self) -> bool:
        return self.total_points is not None

    @property
    def is_open(self) -> bool:
        return not (self.completed or self.aborted)

    @property
    def current_question(self) -> Optional[Question]:
        if not self.is_open:
            return None
        return self.questions[self.step]

    def time_remaining(self) -> int:
        """Seconds left on the current question's countdown, floored at zero."""

        question = self.current_question
        if question is None:
            return 0
        elapsed = self._clock() - self._question_started_at
        return max(0, question.time_limit - int(elapsed))

    def elapsed(self) -> float:
        return self._clock() - self.started_at

    def submit_answer(self, text: str) -> AnswerOutcome:
        if self.aborted:
            raise AssessmentViolation("This assessment was cancelled.", status_code=409)
        if self.completed:
            raise AssessmentViolation("This assessment is already complete.", status_code=409)

        trimmed = (text or "").strip()
        if len(trimmed) < MIN_ANSWER_CHARS:
            raise AssessmentViolation(
                "Please provide a more detailed response "
                f"(at least {MIN_ANSWER_CHARS} characters) to demonstrate your innovative thinking.",
                status_code=422,
            )

        index = self.step
        question = self.questions[index]
        points = score_answer(trimmed, question)
        ai_detected = detect_ai(trimmed)
        question_started_at = self._question_started_at
        self.scores.append(points)
        self._question_started_at = self._clock()

        if self.step < len(self.questions):
            return AnswerOutcome(index, points, ai_detected, completed=False)

        bonus = speed_bonus(self.elapsed())
        total = sum(self.scores) + bonus
        if self.on_complete is not None:
            try:
                self.on_complete(total)
            except Exception:
                # the final answer stays unanswered so it can be resubmitted
                self.scores.pop()
                self._question_started_at = question_started_at
                raise
        self.total_points = total
        logger.debug("assessment finished with %s points (speed bonus %s)", total, bonus)
        return AnswerOutcome(
            index,
            points,
            ai_detected,
            completed=True,
            total_points=self.total_points,
            speed_bonus=bonus,
        )

    def abort(self) -> None:
        """Discard the session; no completion is ever reported afterwards."""

        if self.is_open:
            self.aborted = True
            self.scores.clear()
