"""Per-application registry of live assessment contexts."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional
from uuid import UUID

from .anticheat import FocusGuard
from .session import AssessmentSession


@dataclass
class StudentContext:
    guard: FocusGuard
    assessment: Optional[AssessmentSession] = None
    opened_at: float = field(default_factory=time.monotonic)


class AssessmentRegistry:
    """Holds focus guards and in-progress assessments keyed by student.

    Nothing here is persisted; dropping a context loses the unanswered
    questions, which is the intended behaviour for an abandoned quiz.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._contexts: Dict[UUID, StudentContext] = {}
        self._lock = threading.RLock()

    def context_for(self, student_id: UUID, *, locked: bool) -> StudentContext:
        """Return the student's context, syncing the guard with the stored lock flag."""

        with self._lock:
            context = self._contexts.get(student_id)
            if context is None:
                context = StudentContext(guard=FocusGuard(locked=locked), opened_at=self._clock())
                self._contexts[student_id] = context
            elif not locked and context.guard.locked:
                # unlocked elsewhere (admin action from another worker)
                context.guard.reset()
            elif locked and not context.guard.locked:
                context.guard = FocusGuard(locked=True)
            return context

    def begin(self, student_id: UUID, assessment: AssessmentSession) -> None:
        with self._lock:
            context = self.context_for(student_id, locked=False)
            if context.assessment is not None:
                context.assessment.abort()
            context.assessment = assessment
            context.opened_at = self._clock()

    def active_assessment(self, student_id: UUID) -> Optional[AssessmentSession]:
        with self._lock:
            context = self._contexts.get(student_id)
            if context is None or context.assessment is None or not context.assessment.is_open:
                return None
            return context.assessment

    def finish(self, student_id: UUID) -> None:
        with self._lock:
            context = self._contexts.get(student_id)
            if context is not None:
                context.assessment = None

    def abort(self, student_id: UUID) -> bool:
        """Abort the student's open assessment, if any."""

        with self._lock:
            context = self._contexts.get(student_id)
            if context is None or context.assessment is None:
                return False
            was_open = context.assessment.is_open
            context.assessment.abort()
            context.assessment = None
            return was_open

    def release(self, student_id: UUID) -> None:
        """Reset the guard after a privileged unlock."""

        with self._lock:
            context = self._contexts.get(student_id)
            if context is not None:
                context.guard.reset()

    def purge_abandoned(self, max_age_seconds: float) -> int:
        """Drop assessments opened more than ``max_age_seconds`` ago."""

        now = self._clock()
        purged = 0
        with self._lock:
            for context in self._contexts.values():
                if context.assessment is not None and now - context.opened_at > max_age_seconds:
                    context.assessment.abort()
                    context.assessment = None
                    purged += 1
        return purged

    def __len__(self) -> int:
        with self._lock:
            return sum(1 for c in self._contexts.values() if c.assessment is not None)
