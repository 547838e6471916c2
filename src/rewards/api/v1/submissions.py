"""Grading endpoints for task submissions."""

from __future__ import annotations

import base64
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.errors import RuleViolation
from ...models import ADMIN_ROLES, SUPERVISORY_ROLES, SubmissionStatus, User, UserRole
from ...schemas import AttachmentRead, GradeRequest, RejectRequest, SubmissionRead
from ...services import ledger_service, task_service
from ..deps import get_current_user, require_roles

router = APIRouter(prefix="/submissions", tags=["submissions"])

_supervisor = require_roles(*SUPERVISORY_ROLES)


@router.get("", response_model=List[SubmissionRead], summary="List submissions")
def list_submissions(
    submission_status: Optional[SubmissionStatus] = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Students see their own hand-ins, teachers those for their tasks, administrators all."""

    teacher_id = student_id = None
    if user.role is UserRole.STUDENT:
        student_id = user.id
    elif user.role is UserRole.TEACHER:
        teacher_id = user.id
    elif user.role not in ADMIN_ROLES:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Permission denied")
    return task_service.list_submissions(
        db,
        status=submission_status,
        teacher_id=teacher_id,
        student_id=student_id,
        limit=limit,
        offset=offset,
    )


@router.get("/{submission_id}/attachment", response_model=AttachmentRead, summary="Download a hand-in")
def read_submission_attachment(
    submission_id: UUID,
    db: Session = Depends(get_db),
    actor: User = Depends(_supervisor),
):
    try:
        submission = task_service.ensure_grader(db, submission_id=submission_id, actor=actor)
    except RuleViolation as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    if submission.attachment_data is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="This submission has no attachment")
    return AttachmentRead(
        attachment_name=submission.attachment_name,
        attachment=base64.b64encode(submission.attachment_data).decode("ascii"),
    )


@router.post(
    "/{submission_id}/approve",
    response_model=SubmissionRead,
    summary="Grade and approve a submission",
    responses={
        200: {
            "description": "Submission approved and points credited",
            "content": {
                "application/json": {
                    "example": {
                        "submission_id": "55555555-5555-5555-5555-555555555555",
                        "task_id": "44444444-4444-4444-4444-444444444444",
                        "student_id": "bbbbbbbb-bbbb-bbbb-bbbb-bbbbbbbbbbbb",
                        "status": "Approved",
                        "answer_text": "A foldable panel feeding a USB buck converter...",
                        "attachment_name": None,
                        "ai_flagged": False,
                        "actual_score": 8,
                        "max_score": 10,
                        "points": 100,
                        "awarded_points": 80,
                        "teacher_comment": "Good sizing calculation.",
                        "graded_by": "teacher@actvet.gov.ae",
                        "graded_at": "2025-11-13T10:00:00",
                        "submitted_at": "2025-11-12T15:00:00",
                    }
                }
            },
        },
        409: {"description": "Submission already graded"},
        422: {"description": "Score outside 0..max_score"},
    },
)
def approve_submission(
    submission_id: UUID,
    payload: GradeRequest,
    db: Session = Depends(get_db),
    actor: User = Depends(_supervisor),
):
    """Credit ``round(score / max_score * points)`` and mark the submission approved."""

    try:
        task_service.ensure_grader(db, submission_id=submission_id, actor=actor)
        submission = ledger_service.award_from_grading(
            db,
            submission_id=submission_id,
            score=payload.score,
            graded_by=actor.email,
            comment=payload.comment,
        )
        db.commit()
        db.refresh(submission)
    except RuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return submission


@router.post(
    "/{submission_id}/reject",
    response_model=SubmissionRead,
    summary="Reject a submission",
    responses={409: {"description": "Submission already graded"}},
)
def reject_submission(
    submission_id: UUID,
    payload: RejectRequest,
    db: Session = Depends(get_db),
    actor: User = Depends(_supervisor),
):
    try:
        task_service.ensure_grader(db, submission_id=submission_id, actor=actor)
        submission = ledger_service.reject_submission(
            db,
            submission_id=submission_id,
            graded_by=actor.email,
            comment=payload.comment,
        )
        db.commit()
        db.refresh(submission)
    except RuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return submission
