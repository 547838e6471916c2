"""Innovator assessment question pool."""

from __future__ import annotations

import enum
import random
from dataclasses import dataclass
from typing import Sequence, Tuple


class Difficulty(str, enum.Enum):
    """Question difficulty, which fixes the time budget."""

    ENTRY = "Entry"
    MEDIUM = "Medium"
    ADVANCED = "Advanced"


TIME_BUDGETS = {
    Difficulty.ENTRY: 45,
    Difficulty.MEDIUM: 90,
    Difficulty.ADVANCED: 120,
}


@dataclass(frozen=True)
class Question:
    prompt: str
    difficulty: Difficulty
    keywords: Tuple[str, ...]

    @property
    def time_limit(self) -> int:
        """Countdown budget in seconds."""
        return TIME_BUDGETS[self.difficulty]


QUESTION_POOL: Tuple[Question, ...] = (
    Question(
        "What is your primary goal as an ATS Innovator?",
        Difficulty.ENTRY,
        ("impact", "community", "growth", "excellence", "efficiency"),
    ),
    Question(
        "Propose a sustainable initiative for the campus.",
        Difficulty.MEDIUM,
        ("green", "recycle", "solar", "energy", "sustainability", "waste"),
    ),
    Question(
        "Explain how technology can enhance institutional excellence.",
        Difficulty.ADVANCED,
        ("automation", "data", "digital", "optimization", "security", "ai"),
    ),
    Question(
        "How would you improve student engagement using digital tools?",
        Difficulty.MEDIUM,
        ("interactive", "collaboration", "gamification", "feedback", "platform"),
    ),
    Question(
        "Describe a process you would automate to save time on campus.",
        Difficulty.ADVANCED,
        ("registration", "scheduling", "workflow", "efficiency", "system"),
    ),
)


def draw_questions(
    count: int,
    *,
    pool: Sequence[Question] = QUESTION_POOL,
    rng: random.Random | None = None,
) -> list[Question]:
    """Shuffle the whole pool and take the first ``count`` questions."""

    if count < 1 or count > len(pool):
        raise ValueError(f"Cannot draw {count} questions from a pool of {len(pool)}")
    shuffled = list(pool)
    (rng or random.Random()).shuffle(shuffled)
    return shuffled[:count]
