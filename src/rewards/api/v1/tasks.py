"""Task publishing and hand-in endpoints."""

from __future__ import annotations

import base64
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.errors import RuleViolation
from ...models import ADMIN_ROLES, SUPERVISORY_ROLES, Student, User, UserRole
from ...schemas import (
    AttachmentRead,
    SubmissionCreate,
    SubmissionRead,
    TaskAttemptRead,
    TaskCreate,
    TaskRead,
    TaskUpdate,
)
from ...services import task_service
from ..deps import get_current_user, require_roles

router = APIRouter(prefix="/tasks", tags=["tasks"])

_supervisor = require_roles(*SUPERVISORY_ROLES)
_student = require_roles(UserRole.STUDENT)


@router.post(
    "",
    response_model=TaskRead,
    status_code=status.HTTP_201_CREATED,
    summary="Publish a task",
    responses={
        201: {
            "description": "Task created",
            "content": {
                "application/json": {
                    "example": {
                        "task_id": "44444444-4444-4444-4444-444444444444",
                        "teacher_id": "cccccccc-cccc-cccc-cccc-cccccccccccc",
                        "title": "Solar charger prototype",
                        "description": "Sketch and justify a low-cost solar phone charger.",
                        "subject": "Physics",
                        "grade": 10,
                        "class_id": "10-A",
                        "points": 100,
                        "max_score": 10,
                        "deadline": "2025-11-20T12:00:00",
                        "time_limit_minutes": None,
                        "attachment_name": None,
                        "created_at": "2025-11-12T08:00:00",
                    }
                }
            },
        },
        413: {"description": "Attachment larger than 5 MB"},
    },
)
def create_task(payload: TaskCreate, db: Session = Depends(get_db), teacher: User = Depends(_supervisor)):
    try:
        task = task_service.create_task(db, teacher=teacher, **payload.model_dump())
        db.commit()
        db.refresh(task)
    except RuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return task


@router.get("", response_model=List[TaskRead], summary="List tasks")
def list_tasks(
    grade: Optional[int] = Query(None, ge=9, le=12),
    db: Session = Depends(get_db),
    actor: User = Depends(_supervisor),
):
    """Teachers see their own tasks; administrators see every task."""

    teacher_id = None if actor.role in ADMIN_ROLES else actor.id
    return task_service.list_tasks(db, teacher_id=teacher_id, grade=grade)


@router.get("/mine", response_model=List[TaskRead], summary="Tasks assigned to me")
def my_tasks(db: Session = Depends(get_db), student: Student = Depends(_student)):
    return task_service.tasks_for_student(db, student)


@router.get("/{task_id}", response_model=TaskRead, summary="Read a task")
def read_task(task_id: UUID, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    try:
        return task_service.get_task(db, task_id)
    except RuleViolation as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc


@router.get("/{task_id}/attachment", response_model=AttachmentRead, summary="Download the task attachment")
def read_task_attachment(task_id: UUID, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    try:
        task = task_service.get_task(db, task_id)
    except RuleViolation as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    if task.attachment_data is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="This task has no attachment")
    return AttachmentRead(
        attachment_name=task.attachment_name,
        attachment=base64.b64encode(task.attachment_data).decode("ascii"),
    )


@router.patch(
    "/{task_id}",
    response_model=TaskRead,
    summary="Edit a task",
    responses={409: {"description": "Task already has submissions"}},
)
def update_task(
    task_id: UUID,
    payload: TaskUpdate,
    db: Session = Depends(get_db),
    actor: User = Depends(_supervisor),
):
    try:
        task = task_service.update_task(
            db, task_id=task_id, actor=actor, changes=payload.model_dump(exclude_unset=True)
        )
        db.commit()
        db.refresh(task)
    except RuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return task


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a task")
def delete_task(task_id: UUID, db: Session = Depends(get_db), actor: User = Depends(_supervisor)) -> Response:
    try:
        task_service.delete_task(db, task_id=task_id, actor=actor)
        db.commit()
    except RuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{task_id}/start",
    response_model=TaskAttemptRead,
    summary="Start a task",
    responses={
        400: {"description": "Deadline has passed"},
        403: {"description": "Task not assigned to the student, or student locked"},
        409: {"description": "Already submitted"},
    },
)
def start_task(task_id: UUID, db: Session = Depends(get_db), student: Student = Depends(_student)):
    """Start the countdown of a timed task. Repeated calls return the original start."""

    try:
        attempt = task_service.start_task(db, student=student, task_id=task_id)
        db.commit()
        db.refresh(attempt)
    except RuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return attempt


@router.post(
    "/{task_id}/submissions",
    response_model=SubmissionRead,
    status_code=status.HTTP_201_CREATED,
    summary="Hand in a task",
    responses={
        400: {"description": "Deadline or time limit has passed, or timed task not started"},
        403: {"description": "Task not assigned to the student, or student locked"},
        409: {"description": "Already submitted"},
    },
)
def submit_task(
    task_id: UUID,
    payload: SubmissionCreate,
    db: Session = Depends(get_db),
    student: Student = Depends(_student),
):
    """Submit an answer and/or attachment. Each task accepts one hand-in per student.

    Example request body::

        {
            "answer_text": "A foldable panel feeding a USB buck converter...",
            "attachment_name": "sketch.png",
            "attachment": "iVBORw0KGgoAAAANSUhEUgAA..."
        }
    """

    try:
        submission = task_service.submit_task(db, student=student, task_id=task_id, **payload.model_dump())
        db.commit()
        db.refresh(submission)
    except RuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return submission
