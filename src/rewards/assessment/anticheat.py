"""Focus-loss lockout state machine.

The guard reacts to abstract focus events so it can be driven by any client
signal (a browser visibility change, a desktop window blur, a test).

    ACTIVE --focus lost, unguarded surface--> SUSPECTED
    SUSPECTED --focus regained--> ACTIVE
    ACTIVE|SUSPECTED --focus lost, guarded surface--> LOCKED
    LOCKED --reset (privileged unlock)--> ACTIVE
"""

from __future__ import annotations

import enum
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class GuardState(str, enum.Enum):
    ACTIVE = "Active"
    SUSPECTED = "Suspected"
    LOCKED = "Locked"


class FocusSurface(str, enum.Enum):
    """What the student was looking at when focus changed."""

    QUIZ = "quiz"
    TASKS = "tasks"
    OTHER = "other"


GUARDED_SURFACES = frozenset({FocusSurface.QUIZ, FocusSurface.TASKS})


class FocusGuard:
    """Tracks one student's focus state.

    ``on_lock`` performs the lock side effects. The guard only enters
    ``LOCKED`` once the callback returns, and never calls it again until
    :meth:`reset`.
    """

    def __init__(
        self,
        *,
        locked: bool = False,
        on_lock: Optional[Callable[[FocusSurface], None]] = None,
    ) -> None:
        self.state = GuardState.LOCKED if locked else GuardState.ACTIVE
        self.on_lock = on_lock

    @property
    def locked(self) -> bool:
        return self.state is GuardState.LOCKED

    def focus_lost(self, surface: FocusSurface) -> bool:
        """Handle a focus loss. Returns True only for the event that locked."""

        if self.locked:
            return False
        if surface not in GUARDED_SURFACES:
            self.state = GuardState.SUSPECTED
            return False
        if self.on_lock is not None:
            self.on_lock(surface)
        self.state = GuardState.LOCKED
        logger.info("focus guard locked on %s surface", surface.value)
        return True

    def focus_regained(self) -> None:
        if self.state is GuardState.SUSPECTED:
            self.state = GuardState.ACTIVE

    def reset(self) -> None:
        self.state = GuardState.ACTIVE
