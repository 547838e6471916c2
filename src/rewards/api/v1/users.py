"""Account provisioning, classes and student dashboards."""

from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.errors import RuleViolation
from ...models import ADMIN_ROLES, SUPERVISORY_ROLES, Student, User, UserRole
from ...schemas import (
    AchievementRead,
    ClassCreate,
    ClassRead,
    ClassUpdate,
    StudentRanks,
    UserCreate,
    UserRead,
    UserUpdate,
    serialize_user,
)
from ...services import achievement_service, directory_service, ranking_service
from ..deps import require_roles

router = APIRouter(tags=["users"])

_admin = require_roles(*ADMIN_ROLES)
_supervisor = require_roles(*SUPERVISORY_ROLES)
_student = require_roles(UserRole.STUDENT)


@router.post(
    "/users",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    summary="Provision an account",
    responses={
        201: {
            "description": "Account created",
            "content": {
                "application/json": {
                    "example": {
                        "id": "bbbbbbbb-bbbb-bbbb-bbbb-bbbbbbbbbbbb",
                        "name": "Omar Al Mansoori",
                        "email": "omar.m@actvet.gov.ae",
                        "status": "Active",
                        "created_at": "2025-09-01T07:30:00",
                        "role": "Student",
                        "grade": 10,
                        "class_id": "10-A",
                        "points": 0,
                        "is_innovator_verified": False,
                        "is_quiz_locked": False,
                        "quiz_attempts": 0,
                        "achievements": [],
                    }
                }
            },
        },
        400: {"description": "Email outside the institutional domain or class/grade mismatch"},
        409: {"description": "Account already exists"},
    },
)
def provision_user(
    payload: UserCreate = Body(...),
    db: Session = Depends(get_db),
    actor: User = Depends(_admin),
):
    """Create a student, teacher, admin or staff account.

    The ``role`` field selects the payload shape; only students carry a grade,
    class and opening balance, and only teachers carry a subject and classes.
    """

    fields = payload.model_dump(exclude={"role"})
    try:
        user = directory_service.provision_user(db, role=UserRole(payload.role), **fields)
        db.commit()
        db.refresh(user)
    except RuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return serialize_user(user)


@router.get("/users", response_model=List[UserRead], summary="List accounts")
def list_users(
    role: Optional[UserRole] = Query(None),
    search: Optional[str] = Query(None, description="Case-insensitive match on name or email"),
    db: Session = Depends(get_db),
    actor: User = Depends(_supervisor),
):
    return [serialize_user(user) for user in directory_service.list_users(db, role=role, search=search)]


@router.patch(
    "/users/{user_id}",
    response_model=UserRead,
    summary="Edit an account",
    responses={
        400: {"description": "Email outside the institutional domain or class/grade mismatch"},
        404: {"description": "Account or class not found"},
        409: {"description": "Email already in use, or payload role differs from the account's role"},
    },
)
def update_user(
    user_id: UUID,
    payload: UserUpdate = Body(...),
    db: Session = Depends(get_db),
    actor: User = Depends(_admin),
):
    """Edit name, email, password and the fields of the account's role.

    Example request body::

        {
            "role": "Student",
            "name": "Omar Al Mansoori",
            "class_id": "10-B"
        }
    """

    changes = payload.model_dump(exclude_unset=True, exclude={"role"})
    try:
        user = directory_service.update_user(
            db, user_id=user_id, role=UserRole(payload.role), changes=changes, actor=actor
        )
        db.commit()
        db.refresh(user)
    except RuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return serialize_user(user)


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Remove an account")
def remove_user(user_id: UUID, db: Session = Depends(get_db), actor: User = Depends(_admin)) -> Response:
    try:
        directory_service.remove_user(db, user_id=user_id, actor=actor)
        db.commit()
    except RuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/students/me/ranks", response_model=StudentRanks, summary="My campus and class rank")
def my_ranks(db: Session = Depends(get_db), student: Student = Depends(_student)) -> StudentRanks:
    """Ranks shown on the student dashboard; ``"?"`` while locked or unverified."""

    return StudentRanks(**ranking_service.displayed_ranks(db, student))


def _achievements(db: Session, student: Student) -> List[AchievementRead]:
    results = achievement_service.evaluate(db, student)
    db.commit()
    return [
        AchievementRead(
            achievement_id=r.achievement.achievement_id,
            title=r.achievement.title,
            description=r.achievement.description,
            icon=r.achievement.icon,
            progress=r.progress,
            is_unlocked=r.is_unlocked,
        )
        for r in results
    ]


@router.get("/students/me/achievements", response_model=List[AchievementRead], summary="My achievements")
def my_achievements(db: Session = Depends(get_db), student: Student = Depends(_student)):
    return _achievements(db, student)


@router.get(
    "/students/{student_id}/achievements",
    response_model=List[AchievementRead],
    summary="A student's achievements",
)
def student_achievements(
    student_id: UUID,
    db: Session = Depends(get_db),
    actor: User = Depends(_supervisor),
):
    try:
        student = directory_service.get_student(db, student_id)
    except RuleViolation as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return _achievements(db, student)


@router.get("/classes", response_model=List[ClassRead], summary="List classes")
def list_classes(db: Session = Depends(get_db), actor: User = Depends(_supervisor)):
    return directory_service.list_classes(db)


@router.post(
    "/classes",
    response_model=ClassRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a class",
    responses={409: {"description": "Class already exists"}},
)
def create_class(payload: ClassCreate, db: Session = Depends(get_db), actor: User = Depends(_admin)):
    """Create a class whose id is derived as ``<grade>-<name>``, e.g. ``10-A``."""

    try:
        campus_class = directory_service.create_class(db, grade=payload.grade, name=payload.name)
        db.commit()
    except RuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return campus_class


@router.patch(
    "/classes/{class_id}",
    response_model=ClassRead,
    summary="Rename a class or change its grade",
    responses={
        404: {"description": "Class not found"},
        409: {"description": "Target class exists, or grade change while students or tasks refer to it"},
    },
)
def update_class(
    class_id: str,
    payload: ClassUpdate,
    db: Session = Depends(get_db),
    actor: User = Depends(_admin),
):
    """The class id follows the new grade and name; members move with it."""

    try:
        campus_class = directory_service.update_class(
            db, class_id=class_id, grade=payload.grade, name=payload.name
        )
        db.commit()
    except RuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return campus_class


@router.delete("/classes/{class_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a class")
def delete_class(class_id: str, db: Session = Depends(get_db), actor: User = Depends(_admin)) -> Response:
    try:
        directory_service.delete_class(db, class_id=class_id)
        db.commit()
    except RuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/classes/{class_id}/teachers/{teacher_id}",
    response_model=UserRead,
    summary="Assign or unassign a teacher",
)
def toggle_teacher_class(
    class_id: str,
    teacher_id: UUID,
    db: Session = Depends(get_db),
    actor: User = Depends(_admin),
):
    """Toggle the class in the teacher's assignments."""

    try:
        teacher = directory_service.toggle_teacher_class(db, teacher_id=teacher_id, class_id=class_id)
        db.commit()
        db.refresh(teacher)
    except RuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return serialize_user(teacher)
