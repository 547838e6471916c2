"""Heuristic answer scoring for the innovator assessment.

All functions here are pure: the same text, question and elapsed time always
produce the same points.
"""

from __future__ import annotations

from .questions import Question

AI_PHRASES = (
    "as an ai",
    "as a language model",
    "furthermore",
    "moreover",
    "in conclusion",
    "it is important to note",
)

MIN_SCORABLE_CHARS = 10
LENGTH_BONUS_CAP = 500
WORD_BONUS_CAP = 500
KEYWORD_BONUS = 200
SPEED_BONUS_CEILING = 500


def detect_ai(text: str) -> bool:
    """Return True when the text contains a phrase typical of generated prose."""

    lowered = text.lower()
    return any(phrase in lowered for phrase in AI_PHRASES)


def count_words(text: str) -> int:
    return len(text.split())


def matched_keywords(text: str, keywords) -> set[str]:
    lowered = text.lower()
    return {kw.lower() for kw in keywords if kw.lower() in lowered}


def score_answer(text: str, question: Question) -> int:
    """Score one answer against its question."""

    trimmed = text.strip()
    char_count = len(trimmed)
    if char_count < MIN_SCORABLE_CHARS:
        return 0
    if detect_ai(trimmed):
        return 0

    points = min(LENGTH_BONUS_CAP, char_count * 2)
    points += min(WORD_BONUS_CAP, count_words(trimmed) * 10)
    points += KEYWORD_BONUS * len(matched_keywords(trimmed, question.keywords))
    return points


def speed_bonus(elapsed_seconds: float) -> int:
    """Bonus for finishing quickly; never negative."""

    return max(0, SPEED_BONUS_CEILING - int(elapsed_seconds))
