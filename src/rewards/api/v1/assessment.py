"""Innovator assessment and focus-lock endpoints."""

from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ...assessment import AssessmentRegistry, AssessmentSession
from ...core.database import get_db
from ...core.errors import RuleViolation
from ...models import ADMIN_ROLES, SUPERVISORY_ROLES, Student, User, UserRole
from ...schemas import (
    AnswerResult,
    AnswerSubmit,
    FocusEvent,
    FocusResult,
    LockedStudent,
    QuestionPrompt,
    StudentRead,
    serialize_user,
)
from ...services import quiz_service
from ..deps import get_registry, require_roles

router = APIRouter(prefix="/assessment", tags=["assessment"])

_student = require_roles(UserRole.STUDENT)
_supervisor = require_roles(*SUPERVISORY_ROLES)
_admin = require_roles(*ADMIN_ROLES)


def _prompt(assessment: AssessmentSession) -> QuestionPrompt:
    question = assessment.current_question
    return QuestionPrompt(
        step=assessment.step,
        total_steps=len(assessment.questions),
        prompt=question.prompt,
        difficulty=question.difficulty.value,
        time_limit=question.time_limit,
        time_remaining=assessment.time_remaining(),
    )


@router.post(
    "/start",
    response_model=QuestionPrompt,
    summary="Start the innovator assessment",
    responses={
        200: {
            "description": "First question of a freshly drawn assessment",
            "content": {
                "application/json": {
                    "example": {
                        "step": 0,
                        "total_steps": 3,
                        "prompt": "What is your primary goal as an ATS Innovator?",
                        "difficulty": "Entry",
                        "time_limit": 45,
                        "time_remaining": 45,
                    }
                }
            },
        },
        403: {"description": "Student is locked after a focus violation"},
        409: {"description": "Student is already verified"},
    },
)
def start_assessment(
    db: Session = Depends(get_db),
    student: Student = Depends(_student),
    registry: AssessmentRegistry = Depends(get_registry),
) -> QuestionPrompt:
    """Draw a new set of questions; any unfinished attempt is discarded."""

    try:
        assessment = quiz_service.start_assessment(db, registry, student_id=student.id)
    except RuleViolation as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return _prompt(assessment)


@router.get("/current", response_model=QuestionPrompt, summary="Current question")
def current_question(
    student: Student = Depends(_student),
    registry: AssessmentRegistry = Depends(get_registry),
) -> QuestionPrompt:
    try:
        assessment = quiz_service.current_assessment(registry, student_id=student.id)
    except RuleViolation as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return _prompt(assessment)


@router.post(
    "/answers",
    response_model=AnswerResult,
    summary="Answer the current question",
    responses={
        200: {
            "description": "Answer scored; the final answer credits the total",
            "content": {
                "application/json": {
                    "example": {
                        "question_index": 2,
                        "score": 1140,
                        "ai_detected": False,
                        "completed": True,
                        "total_points": 2610,
                        "speed_bonus": 310,
                        "next_question": None,
                    }
                }
            },
        },
        422: {"description": "Answer shorter than 15 characters"},
    },
)
def submit_answer(
    payload: AnswerSubmit,
    db: Session = Depends(get_db),
    student: Student = Depends(_student),
    registry: AssessmentRegistry = Depends(get_registry),
) -> AnswerResult:
    try:
        outcome = quiz_service.submit_answer(db, registry, student_id=student.id, answer=payload.answer)
        db.commit()
    except RuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc

    next_question = None
    if not outcome.completed:
        assessment = registry.active_assessment(student.id)
        if assessment is not None:
            next_question = _prompt(assessment)
    return AnswerResult(
        question_index=outcome.question_index,
        score=outcome.score,
        ai_detected=outcome.ai_detected,
        completed=outcome.completed,
        total_points=outcome.total_points,
        speed_bonus=outcome.speed_bonus,
        next_question=next_question,
    )


@router.post(
    "/focus-lost",
    response_model=FocusResult,
    summary="Report a loss of focus",
    responses={409: {"description": "Account changed concurrently; retry the event"}},
)
def focus_lost(
    payload: FocusEvent,
    db: Session = Depends(get_db),
    student: Student = Depends(_student),
    registry: AssessmentRegistry = Depends(get_registry),
) -> FocusResult:
    """Leaving the assessment or tasks view locks the account; anything else is only noted."""

    try:
        locked_now = quiz_service.focus_lost(db, registry, student_id=student.id, surface=payload.surface)
        db.commit()
        state = quiz_service.guard_state(db, registry, student_id=student.id)
    except RuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return FocusResult(state=state, locked_now=locked_now)


@router.post("/focus-regained", response_model=FocusResult, summary="Report focus returning")
def focus_regained(
    db: Session = Depends(get_db),
    student: Student = Depends(_student),
    registry: AssessmentRegistry = Depends(get_registry),
) -> FocusResult:
    try:
        quiz_service.focus_regained(db, registry, student_id=student.id)
        state = quiz_service.guard_state(db, registry, student_id=student.id)
    except RuleViolation as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return FocusResult(state=state)


@router.get("/lockouts", response_model=List[LockedStudent], summary="Locked students")
def list_lockouts(db: Session = Depends(get_db), actor: User = Depends(_supervisor)) -> List[LockedStudent]:
    return [
        LockedStudent(student_id=s.id, name=s.name, email=s.email, class_id=s.class_id)
        for s in quiz_service.list_locked_students(db)
    ]


@router.post(
    "/lockouts/{student_id}/unlock",
    response_model=StudentRead,
    summary="Unlock a student",
    responses={409: {"description": "Student is not locked"}},
)
def unlock_student(
    student_id: UUID,
    db: Session = Depends(get_db),
    actor: User = Depends(_supervisor),
    registry: AssessmentRegistry = Depends(get_registry),
):
    try:
        student = quiz_service.unlock_student(db, registry, student_id=student_id, actor=actor.email)
        db.commit()
        db.refresh(student)
    except RuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return serialize_user(student)


@router.post("/students/{student_id}/reset", response_model=StudentRead, summary="Allow a retake")
def reset_assessment(
    student_id: UUID,
    db: Session = Depends(get_db),
    actor: User = Depends(_admin),
    registry: AssessmentRegistry = Depends(get_registry),
):
    """Clear verification so the student can sit the assessment again. Points are kept."""

    try:
        student = quiz_service.reset_assessment(db, registry, student_id=student_id, actor=actor.email)
        db.commit()
        db.refresh(student)
    except RuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return serialize_user(student)
