"""Point balance changes and their history.

Every change to ``Student.points`` goes through :func:`record_delta`, which
appends the matching :class:`PointHistory` row in the same unit of work. That
keeps ``points == initial_points + sum(history.amount)`` for every student.
"""

from __future__ import annotations

import logging
import math
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session, joinedload

from ..core.errors import RuleViolation
from ..models import PointEventType, PointHistory, Student, SubmissionStatus, TaskSubmission
from ..utils.datetime import utcnow

logger = logging.getLogger(__name__)


class LedgerRuleViolation(RuleViolation):
    """Raised when a balance change is refused."""


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positive values."""

    return int(math.floor(value + 0.5))


def ensure_student(session: Session, student_id: UUID, *, for_update: bool = False) -> Student:
    stmt = select(Student).where(Student.id == student_id)
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    student = session.execute(stmt).scalar_one_or_none()
    if student is None:
        raise LedgerRuleViolation(f"Student {student_id} not found", status_code=404)
    return student


def record_delta(
    session: Session,
    student: Student,
    amount: int,
    reason: str,
    *,
    related_redemption: Optional[UUID] = None,
    related_submission: Optional[UUID] = None,
) -> Optional[PointHistory]:
    """Apply ``amount`` to the balance and append the history entry.

    A zero amount changes nothing and records nothing.
    """

    if amount == 0:
        return None
    balance = (student.points or 0) + amount
    if balance < 0:
        raise LedgerRuleViolation(
            f"Insufficient points: balance is {student.points or 0}, change is {amount}."
        )
    student.points = balance
    entry = PointHistory(
        student_id=student.id,
        event_type=PointEventType.AWARDED if amount > 0 else PointEventType.REDEEMED,
        amount=amount,
        reason=reason,
        related_redemption=related_redemption,
        related_submission=related_submission,
    )
    session.add(entry)
    return entry


def _ensure_pending_submission(session: Session, submission_id: UUID) -> TaskSubmission:
    stmt = (
        select(TaskSubmission)
        .options(joinedload(TaskSubmission.task))
        .where(TaskSubmission.submission_id == submission_id)
        .with_for_update(of=TaskSubmission)
        .execution_options(populate_existing=True)
    )
    submission = session.execute(stmt).scalar_one_or_none()
    if submission is None:
        raise LedgerRuleViolation(f"Submission {submission_id} not found", status_code=404)
    if submission.status is not SubmissionStatus.PENDING:
        raise LedgerRuleViolation(
            f"Submission has already been graded ({submission.status.value}).",
            status_code=409,
        )
    return submission


def award_from_grading(
    session: Session,
    *,
    submission_id: UUID,
    score: int,
    graded_by: str,
    comment: Optional[str] = None,
) -> TaskSubmission:
    """Approve a pending submission and credit the scaled task points."""

    submission = _ensure_pending_submission(session, submission_id)
    max_score = submission.max_score
    if score < 0 or score > max_score:
        raise LedgerRuleViolation(f"Score must be between 0 and {max_score}.", status_code=422)

    final_points = round_half_up(score / max_score * submission.points)
    student = ensure_student(session, submission.student_id, for_update=True)
    record_delta(
        session,
        student,
        final_points,
        f"Task graded: {submission.task.title} ({score}/{max_score})",
        related_submission=submission.submission_id,
    )

    submission.status = SubmissionStatus.APPROVED
    submission.actual_score = score
    submission.awarded_points = final_points
    submission.teacher_comment = comment
    submission.graded_by = graded_by
    submission.graded_at = utcnow()
    session.flush()
    logger.info(
        "submission %s approved by %s: %s/%s -> %s points",
        submission.submission_id,
        graded_by,
        score,
        max_score,
        final_points,
    )
    return submission


def reject_submission(
    session: Session,
    *,
    submission_id: UUID,
    graded_by: str,
    comment: Optional[str] = None,
) -> TaskSubmission:
    """Reject a pending submission without touching the balance."""

    submission = _ensure_pending_submission(session, submission_id)
    submission.status = SubmissionStatus.REJECTED
    submission.awarded_points = 0
    submission.teacher_comment = comment
    submission.graded_by = graded_by
    submission.graded_at = utcnow()
    session.flush()
    logger.info("submission %s rejected by %s", submission.submission_id, graded_by)
    return submission


def award_from_quiz(session: Session, *, student_id: UUID, total_points: int) -> Student:
    """Credit a completed assessment and mark the student verified."""

    if total_points < 0:
        raise LedgerRuleViolation("Assessment points cannot be negative.", status_code=422)
    student = ensure_student(session, student_id, for_update=True)
    if student.is_innovator_verified:
        raise LedgerRuleViolation("Student is already innovator-verified.", status_code=409)

    record_delta(session, student, total_points, "Innovator assessment completed")
    student.is_innovator_verified = True
    student.quiz_attempts = (student.quiz_attempts or 0) + 1
    session.flush()
    logger.info("student %s verified with %s assessment points", student.id, total_points)
    return student


def adjust_manual(
    session: Session,
    *,
    student_id: UUID,
    delta: int,
    reason: str,
    actor: str,
) -> PointHistory:
    """Apply a staff-initiated adjustment of either sign."""

    if delta == 0:
        raise LedgerRuleViolation("Adjustment amount must be non-zero.", status_code=422)
    student = ensure_student(session, student_id, for_update=True)
    entry = record_delta(session, student, delta, reason or f"Manual adjustment by {actor}")
    session.flush()
    logger.info("manual adjustment of %+d for student %s by %s", delta, student.id, actor)
    return entry


def reset_all_points(session: Session, *, actor: str) -> int:
    """Zero every student balance, writing one history entry per student."""

    students = session.execute(
        select(Student).where(Student.points > 0).with_for_update()
    ).scalars().all()
    for student in students:
        record_delta(session, student, -student.points, f"Season reset by {actor}")
    session.flush()
    logger.warning("points reset to zero for %s students by %s", len(students), actor)
    return len(students)


def list_history(
    session: Session,
    *,
    student_id: UUID,
    limit: int = 50,
    offset: int = 0,
) -> Sequence[PointHistory]:
    ensure_student(session, student_id)
    stmt = (
        select(PointHistory)
        .where(PointHistory.student_id == student_id)
        .order_by(PointHistory.created_at.desc(), PointHistory.history_id.desc())
        .offset(offset)
        .limit(limit)
    )
    return session.execute(stmt).scalars().all()


def reconcile(session: Session, *, student_id: UUID) -> dict[str, int]:
    """Compare the stored balance against initial balance plus history."""

    student = ensure_student(session, student_id)
    history_total = session.execute(
        select(func.coalesce(func.sum(PointHistory.amount), 0)).where(PointHistory.student_id == student_id)
    ).scalar_one()
    expected = (student.initial_points or 0) + history_total
    return {
        "balance": student.points or 0,
        "initial_points": student.initial_points or 0,
        "history_total": history_total,
        "drift": (student.points or 0) - expected,
    }
