"""Student achievements derived from activity."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..models import Student, SubmissionStatus, TaskSubmission
from . import ranking_service


@dataclass(frozen=True)
class Achievement:
    achievement_id: str
    title: str
    description: str
    icon: str


@dataclass(frozen=True)
class AchievementProgress:
    achievement: Achievement
    progress: int
    is_unlocked: bool


FIRST_STEP = Achievement("1", "First Step", "Submit your first task", "star")
TASK_MASTER = Achievement("2", "Task Master", "Complete 5 tasks", "award")
ON_FIRE = Achievement("3", "On Fire", "Earn 1000 points", "flame")
HIGH_FLYER = Achievement("4", "High Flyer", "Reach Campus Top 5", "target")

ACHIEVEMENTS = (FIRST_STEP, TASK_MASTER, ON_FIRE, HIGH_FLYER)


def _percent(value: int, target: int) -> int:
    return min(100, int(value * 100 / target))


def evaluate(session: Session, student: Student) -> list[AchievementProgress]:
    """Compute progress and persist newly unlocked achievement ids.

    Unlocked ids are never removed, even if the underlying figure drops later.
    """

    submitted = session.execute(
        select(func.count(TaskSubmission.submission_id)).where(TaskSubmission.student_id == student.id)
    ).scalar_one()
    approved = session.execute(
        select(func.count(TaskSubmission.submission_id)).where(
            TaskSubmission.student_id == student.id,
            TaskSubmission.status == SubmissionStatus.APPROVED,
        )
    ).scalar_one()
    points = student.points or 0
    rank = ranking_service.campus_rank(session, student)
    in_top_five = rank is not None and rank <= 5

    unlocked = set(student.achievements or [])

    def progress(achievement: Achievement, percent: int, reached: bool) -> AchievementProgress:
        if achievement.achievement_id in unlocked:
            return AchievementProgress(achievement, 100, True)
        return AchievementProgress(achievement, percent, reached)

    results = [
        progress(FIRST_STEP, _percent(submitted, 1), submitted >= 1),
        progress(TASK_MASTER, _percent(approved, 5), approved >= 5),
        progress(ON_FIRE, _percent(points, 1000), points >= 1000),
        progress(HIGH_FLYER, 100 if in_top_five else 0, in_top_five),
    ]

    newly = {r.achievement.achievement_id for r in results if r.is_unlocked} - unlocked
    if newly:
        student.achievements = sorted(unlocked | newly)
        session.flush()
    return results
