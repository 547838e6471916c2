"""Domain logic for tasks, timed attempts and student submissions."""

from __future__ import annotations

import base64
import binascii
import logging
from datetime import datetime
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from ..core.config import get_settings
from ..core.errors import RuleViolation
from ..models import ADMIN_ROLES, CampusClass, Student, SubmissionStatus, Task, TaskAttempt, TaskSubmission, User
from ..assessment import detect_ai
from ..utils.datetime import to_naive_utc, utcnow

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "title",
    "description",
    "subject",
    "grade",
    "class_id",
    "points",
    "max_score",
    "deadline",
    "time_limit_minutes",
)


class TaskRuleViolation(RuleViolation):
    """Raised when task or submission rules are not met."""


def decode_attachment(encoded: Optional[str]) -> Optional[bytes]:
    """Decode an inline base64 attachment, enforcing the size cap."""

    if not encoded:
        return None
    try:
        data = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise TaskRuleViolation("Attachment is not valid base64 data.", status_code=422) from exc
    limit = get_settings().attachment_max_bytes
    if len(data) > limit:
        raise TaskRuleViolation(
            f"Attachment exceeds the {limit // (1024 * 1024)} MB limit.",
            status_code=413,
        )
    return data


def _ensure_task(session: Session, task_id: UUID) -> Task:
    task = session.get(Task, task_id)
    if task is None:
        raise TaskRuleViolation(f"Task {task_id} not found", status_code=404)
    return task


def _ensure_class(session: Session, class_id: Optional[str], grade: int) -> None:
    if class_id is None:
        return
    campus_class = session.get(CampusClass, class_id)
    if campus_class is None:
        raise TaskRuleViolation(f"Class {class_id} not found", status_code=404)
    if campus_class.grade != grade:
        raise TaskRuleViolation(f"Class {class_id} is not in grade {grade}.")


def _ensure_can_manage(task: Task, actor: User) -> None:
    if actor.role in ADMIN_ROLES or task.teacher_id == actor.id:
        return
    raise TaskRuleViolation("Only the task owner or an administrator can change this task.", status_code=403)


def create_task(
    session: Session,
    *,
    teacher: User,
    title: str,
    subject: str,
    grade: int,
    points: int,
    description: str = "",
    class_id: Optional[str] = None,
    max_score: int = 10,
    deadline: Optional[datetime] = None,
    time_limit_minutes: Optional[int] = None,
    attachment_name: Optional[str] = None,
    attachment: Optional[str] = None,
) -> Task:
    """Publish a task for a grade, optionally narrowed to one class."""

    _ensure_class(session, class_id, grade)
    data = decode_attachment(attachment)
    task = Task(
        teacher_id=teacher.id,
        title=title,
        description=description,
        subject=subject,
        grade=grade,
        class_id=class_id,
        points=points,
        max_score=max_score,
        deadline=to_naive_utc(deadline) if deadline else None,
        time_limit_minutes=time_limit_minutes,
        attachment_name=(attachment_name or "attachment") if data is not None else None,
        attachment_data=data,
    )
    session.add(task)
    session.flush()
    logger.info("task %s created by %s for grade %s", task.task_id, teacher.email, grade)
    return task


def update_task(session: Session, *, task_id: UUID, actor: User, changes: dict) -> Task:
    """Edit a task that nobody has submitted to yet."""

    task = _ensure_task(session, task_id)
    _ensure_can_manage(task, actor)
    has_submissions = session.execute(
        select(TaskSubmission.submission_id).where(TaskSubmission.task_id == task.task_id).limit(1)
    ).first()
    if has_submissions is not None:
        raise TaskRuleViolation("Tasks cannot be edited once submissions exist.", status_code=409)

    for field in EDITABLE_FIELDS:
        if field in changes:
            value = changes[field]
            if field == "deadline" and value is not None:
                value = to_naive_utc(value)
            setattr(task, field, value)
    _ensure_class(session, task.class_id, task.grade)
    session.flush()
    return task


def delete_task(session: Session, *, task_id: UUID, actor: User) -> None:
    task = _ensure_task(session, task_id)
    _ensure_can_manage(task, actor)
    session.delete(task)
    session.flush()
    logger.info("task %s deleted by %s", task_id, actor.email)


def get_task(session: Session, task_id: UUID) -> Task:
    return _ensure_task(session, task_id)


def list_tasks(
    session: Session,
    *,
    teacher_id: Optional[UUID] = None,
    grade: Optional[int] = None,
) -> Sequence[Task]:
    stmt = select(Task).order_by(Task.created_at.desc())
    if teacher_id is not None:
        stmt = stmt.where(Task.teacher_id == teacher_id)
    if grade is not None:
        stmt = stmt.where(Task.grade == grade)
    return session.execute(stmt).scalars().all()


def tasks_for_student(session: Session, student: Student) -> Sequence[Task]:
    """Tasks for the student's grade that target no class or the student's class."""

    stmt = (
        select(Task)
        .where(Task.grade == student.grade)
        .where(or_(Task.class_id.is_(None), Task.class_id == student.class_id))
        .order_by(Task.deadline.is_(None), Task.deadline.asc(), Task.created_at.desc())
    )
    return session.execute(stmt).scalars().all()


def _ensure_open_to(session: Session, task_id: UUID, student: Student, current: datetime) -> Task:
    if student.is_quiz_locked:
        raise TaskRuleViolation("Your account is locked pending staff review.", status_code=403)
    task = _ensure_task(session, task_id)
    if task.grade != student.grade or (task.class_id is not None and task.class_id != student.class_id):
        raise TaskRuleViolation("This task is not assigned to you.", status_code=403)
    if task.deadline is not None and current > task.deadline:
        raise TaskRuleViolation("The deadline for this task has passed.")
    return task


def _attempt_for(session: Session, task: Task, student: Student) -> Optional[TaskAttempt]:
    return session.execute(
        select(TaskAttempt).where(TaskAttempt.task_id == task.task_id, TaskAttempt.student_id == student.id)
    ).scalar_one_or_none()


def start_task(
    session: Session,
    *,
    student: Student,
    task_id: UUID,
    now: Optional[datetime] = None,
) -> TaskAttempt:
    """Open a task for the student and start its countdown.

    Starting again returns the first attempt; the countdown never restarts.
    """

    current = to_naive_utc(now) if now else utcnow()
    task = _ensure_open_to(session, task_id, student, current)
    attempt = _attempt_for(session, task, student)
    if attempt is not None:
        return attempt

    submitted = session.execute(
        select(TaskSubmission.submission_id).where(
            TaskSubmission.task_id == task.task_id,
            TaskSubmission.student_id == student.id,
        )
    ).first()
    if submitted is not None:
        raise TaskRuleViolation("You have already submitted this task.", status_code=409)

    attempt = TaskAttempt(task_id=task.task_id, student_id=student.id, started_at=current)
    session.add(attempt)
    try:
        session.flush()
    except IntegrityError as exc:
        raise TaskRuleViolation("This task was already started.", status_code=409) from exc
    logger.info("student %s started task %s", student.id, task.task_id)
    return attempt


def submit_task(
    session: Session,
    *,
    student: Student,
    task_id: UUID,
    answer_text: Optional[str] = None,
    attachment_name: Optional[str] = None,
    attachment: Optional[str] = None,
    now: Optional[datetime] = None,
) -> TaskSubmission:
    """Hand in a task. One submission per student and task.

    Timed tasks must have been started, and are refused once their time
    limit has run out.
    """

    current = to_naive_utc(now) if now else utcnow()
    task = _ensure_open_to(session, task_id, student, current)

    if task.time_limit_minutes:
        attempt = _attempt_for(session, task, student)
        if attempt is None:
            raise TaskRuleViolation("Start this timed task before submitting.")
        if current > attempt.expires_at:
            logger.warning("late submission refused for student %s on task %s", student.id, task.task_id)
            raise TaskRuleViolation("The time limit for this task has passed.")

    if not (answer_text and answer_text.strip()) and not attachment:
        raise TaskRuleViolation("A submission needs an answer or an attachment.", status_code=422)

    existing = session.execute(
        select(TaskSubmission.submission_id).where(
            TaskSubmission.task_id == task.task_id,
            TaskSubmission.student_id == student.id,
        )
    ).first()
    if existing is not None:
        raise TaskRuleViolation("You have already submitted this task.", status_code=409)

    data = decode_attachment(attachment)
    submission = TaskSubmission(
        task_id=task.task_id,
        student_id=student.id,
        status=SubmissionStatus.PENDING,
        answer_text=answer_text,
        attachment_name=(attachment_name or "hand-in") if data is not None else None,
        attachment_data=data,
        ai_flagged=bool(answer_text) and detect_ai(answer_text),
        submitted_at=current,
    )
    session.add(submission)
    try:
        session.flush()
    except IntegrityError as exc:
        raise TaskRuleViolation("You have already submitted this task.", status_code=409) from exc
    if submission.ai_flagged:
        logger.warning("submission %s flagged for generated-text phrases", submission.submission_id)
    return submission


def list_submissions(
    session: Session,
    *,
    status: Optional[SubmissionStatus] = None,
    teacher_id: Optional[UUID] = None,
    student_id: Optional[UUID] = None,
    limit: int = 50,
    offset: int = 0,
) -> Sequence[TaskSubmission]:
    stmt = (
        select(TaskSubmission)
        .join(Task, Task.task_id == TaskSubmission.task_id)
        .options(joinedload(TaskSubmission.task), joinedload(TaskSubmission.student))
        .order_by(TaskSubmission.submitted_at.asc())
        .offset(offset)
        .limit(limit)
    )
    if status is not None:
        stmt = stmt.where(TaskSubmission.status == status)
    if teacher_id is not None:
        stmt = stmt.where(Task.teacher_id == teacher_id)
    if student_id is not None:
        stmt = stmt.where(TaskSubmission.student_id == student_id)
    return session.execute(stmt).scalars().all()


def ensure_grader(session: Session, *, submission_id: UUID, actor: User) -> TaskSubmission:
    """Check that ``actor`` may grade the submission."""

    submission = session.get(TaskSubmission, submission_id)
    if submission is None:
        raise TaskRuleViolation(f"Submission {submission_id} not found", status_code=404)
    _ensure_can_manage(submission.task, actor)
    return submission
