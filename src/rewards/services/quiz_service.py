"""Innovator assessment workflow: start, answer, focus lockout, unlock."""

from __future__ import annotations

import logging
import random
import time
from typing import Callable, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ..assessment import (
    AnswerOutcome,
    AssessmentRegistry,
    AssessmentSession,
    FocusSurface,
    draw_questions,
)
from ..core.config import get_settings
from ..core.errors import RuleViolation
from ..models import NotificationKind, Student
from . import ledger_service, notification_service

logger = logging.getLogger(__name__)


class QuizRuleViolation(RuleViolation):
    """Raised when the assessment workflow refuses an action."""


def _ensure_student(session: Session, student_id: UUID) -> Student:
    student = session.execute(select(Student).where(Student.id == student_id)).scalar_one_or_none()
    if student is None:
        raise QuizRuleViolation(f"Student {student_id} not found", status_code=404)
    return student


def start_assessment(
    session: Session,
    registry: AssessmentRegistry,
    *,
    student_id: UUID,
    rng: Optional[random.Random] = None,
    clock: Callable[[], float] = time.monotonic,
) -> AssessmentSession:
    """Draw questions and open a new assessment for the student.

    Verified students cannot retake the assessment until an administrator
    resets it; locked students cannot start at all.
    """

    student = _ensure_student(session, student_id)
    if student.is_quiz_locked:
        raise QuizRuleViolation("Assessment locked after a security violation. Ask staff to unlock.", status_code=403)
    if student.is_innovator_verified:
        raise QuizRuleViolation("You are already innovator-verified.", status_code=409)

    questions = draw_questions(get_settings().quiz_question_count, rng=rng)
    assessment = AssessmentSession(questions, clock=clock)
    registry.begin(student.id, assessment)
    logger.info("assessment started for student %s", student.id)
    return assessment


def current_assessment(registry: AssessmentRegistry, *, student_id: UUID) -> AssessmentSession:
    assessment = registry.active_assessment(student_id)
    if assessment is None:
        raise QuizRuleViolation("No assessment in progress.", status_code=404)
    return assessment


def submit_answer(
    session: Session,
    registry: AssessmentRegistry,
    *,
    student_id: UUID,
    answer: str,
) -> AnswerOutcome:
    """Score one answer; the last one credits the total through the ledger."""

    assessment = current_assessment(registry, student_id=student_id)
    student = _ensure_student(session, student_id)
    if student.is_quiz_locked:
        registry.abort(student_id)
        raise QuizRuleViolation("Assessment locked after a security violation.", status_code=403)

    def credit(total: int) -> None:
        ledger_service.award_from_quiz(session, student_id=student_id, total_points=total)

    assessment.on_complete = credit
    try:
        outcome = assessment.submit_answer(answer)
    finally:
        if assessment.completed:
            registry.finish(student_id)
    if outcome.completed:
        logger.info("assessment completed for student %s: %s points", student_id, outcome.total_points)
    return outcome


def _lock(session: Session, registry: AssessmentRegistry, student: Student, surface: FocusSurface) -> bool:
    """Apply the lock side effects. Returns False when another request already locked."""

    discarded = registry.abort(student.id)
    try:
        student = ledger_service.ensure_student(session, student.id, for_update=True)
    except ledger_service.LedgerRuleViolation as exc:
        raise QuizRuleViolation(exc.detail, status_code=exc.status_code) from exc
    if student.is_quiz_locked:
        logger.info("student %s already locked; no further violation recorded", student.id)
        return False

    student.is_quiz_locked = True
    notification_service.notify(
        session,
        audience=notification_service.SUPERVISORS,
        kind=NotificationKind.QUIZ_VIOLATION,
        message=(
            f"{student.name} ({student.class_id or 'no class'}) left the {surface.value} view; "
            "account locked for tab switching / external resource access."
        ),
        student_id=student.id,
    )
    try:
        session.flush()
    except StaleDataError as exc:
        raise QuizRuleViolation("Account changed while locking, please retry.", status_code=409) from exc
    logger.warning(
        "student %s locked after leaving %s view (assessment discarded: %s)",
        student.id,
        surface.value,
        discarded,
    )
    return True


def focus_lost(
    session: Session,
    registry: AssessmentRegistry,
    *,
    student_id: UUID,
    surface: FocusSurface,
) -> bool:
    """Feed a focus-loss event to the student's guard. Returns True if it locked."""

    student = _ensure_student(session, student_id)
    if registry.active_assessment(student_id) is not None:
        surface = FocusSurface.QUIZ
    elif surface is FocusSurface.QUIZ:
        surface = FocusSurface.OTHER

    locked_now = False

    def lock(where: FocusSurface) -> None:
        nonlocal locked_now
        locked_now = _lock(session, registry, student, where)

    context = registry.context_for(student_id, locked=bool(student.is_quiz_locked))
    context.guard.on_lock = lock
    context.guard.focus_lost(surface)
    return locked_now


def focus_regained(session: Session, registry: AssessmentRegistry, *, student_id: UUID) -> Student:
    student = _ensure_student(session, student_id)
    registry.context_for(student_id, locked=bool(student.is_quiz_locked)).guard.focus_regained()
    return student


def guard_state(session: Session, registry: AssessmentRegistry, *, student_id: UUID):
    student = _ensure_student(session, student_id)
    return registry.context_for(student_id, locked=bool(student.is_quiz_locked)).guard.state


def list_locked_students(session: Session):
    return session.execute(
        select(Student).where(Student.is_quiz_locked.is_(True)).order_by(Student.name.asc())
    ).scalars().all()


def unlock_student(session: Session, registry: AssessmentRegistry, *, student_id: UUID, actor: str) -> Student:
    """Clear the lock flag so the student may use tasks and the assessment again."""

    student = _ensure_student(session, student_id)
    if not student.is_quiz_locked:
        raise QuizRuleViolation("Student is not locked.", status_code=409)
    student.is_quiz_locked = False
    session.flush()
    registry.release(student_id)
    logger.info("student %s unlocked by %s", student_id, actor)
    return student


def reset_assessment(session: Session, registry: AssessmentRegistry, *, student_id: UUID, actor: str) -> Student:
    """Remove verification so the student can retake the assessment; points are kept."""

    student = _ensure_student(session, student_id)
    registry.abort(student_id)
    student.is_innovator_verified = False
    student.quiz_attempts = 0
    session.flush()
    logger.info("assessment reset for student %s by %s", student_id, actor)
    return student
