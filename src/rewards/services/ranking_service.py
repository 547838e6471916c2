"""Leaderboard and rank derivation services.

Only innovator-verified students take part in rankings. A cheat-locked
student is shown :data:`UNKNOWN_RANK` instead of a position.
"""

from __future__ import annotations

from typing import Optional, Sequence, Union
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..models import Student

UNKNOWN_RANK = "?"

DisplayedRank = Union[int, str]


def _ranked_students(session: Session, *, class_id: Optional[str] = None) -> Sequence[Student]:
    stmt = (
        select(Student)
        .where(Student.is_innovator_verified.is_(True))
        .order_by(Student.points.desc(), Student.id.asc())
    )
    if class_id is not None:
        stmt = stmt.where(Student.class_id == class_id)
    return session.execute(stmt).scalars().all()


def position_of(students: Sequence[Student], student_id: UUID) -> Optional[int]:
    """1-based position of ``student_id`` in an already sorted pool."""

    for index, student in enumerate(students, start=1):
        if student.id == student_id:
            return index
    return None


def campus_rank(session: Session, student: Student) -> Optional[int]:
    return position_of(_ranked_students(session), student.id)


def class_rank(session: Session, student: Student) -> Optional[int]:
    if student.class_id is None:
        return None
    return position_of(_ranked_students(session, class_id=student.class_id), student.id)


def displayed_ranks(session: Session, student: Student) -> dict[str, DisplayedRank]:
    """Ranks as the student sees them on their dashboard."""

    if student.is_quiz_locked:
        return {"campus_rank": UNKNOWN_RANK, "class_rank": UNKNOWN_RANK}
    campus = campus_rank(session, student)
    klass = class_rank(session, student)
    return {
        "campus_rank": campus if campus is not None else UNKNOWN_RANK,
        "class_rank": klass if klass is not None else UNKNOWN_RANK,
    }


def top_students(session: Session, *, limit: int = 10) -> Sequence[Student]:
    """Return verified students ordered by points and student id."""

    limit = max(1, min(limit, 100))
    return _ranked_students(session)[:limit]


def class_standings(session: Session) -> Sequence[tuple]:
    """Return ``(class_id, total_points, student_count)`` ordered by average points."""

    total_points = func.coalesce(func.sum(Student.points), 0).label("total_points")
    student_count = func.count(Student.id).label("student_count")

    stmt = (
        select(Student.class_id, total_points, student_count)
        .where(Student.is_innovator_verified.is_(True), Student.class_id.is_not(None))
        .group_by(Student.class_id)
        .order_by((total_points * 1.0 / student_count).desc(), Student.class_id.asc())
    )
    return session.execute(stmt).all()
