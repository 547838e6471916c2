"""User provisioning and class management."""

from __future__ import annotations

import logging
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.config import get_settings
from ..core.errors import RuleViolation
from ..core.security import hash_password
from ..models import ROLE_MODELS, CampusClass, Student, Task, Teacher, User, UserRole

logger = logging.getLogger(__name__)


class DirectoryRuleViolation(RuleViolation):
    """Raised when a directory change is refused."""


def email_allowed(email: str) -> bool:
    """Institutional addresses and the master-admin identity may hold accounts."""

    settings = get_settings()
    normalised = email.strip().lower()
    if normalised == settings.master_admin_email.lower():
        return True
    return normalised.endswith("@" + settings.institutional_domain.lower())


def get_user(session: Session, user_id: UUID) -> User:
    user = session.get(User, user_id)
    if user is None:
        raise DirectoryRuleViolation(f"User {user_id} not found", status_code=404)
    return user


def get_student(session: Session, student_id: UUID) -> Student:
    student = session.execute(select(Student).where(Student.id == student_id)).scalar_one_or_none()
    if student is None:
        raise DirectoryRuleViolation(f"Student {student_id} not found", status_code=404)
    return student


def _ensure_class(session: Session, class_id: str) -> CampusClass:
    campus_class = session.get(CampusClass, class_id)
    if campus_class is None:
        raise DirectoryRuleViolation(f"Class {class_id} not found", status_code=404)
    return campus_class


def provision_user(
    session: Session,
    *,
    role: UserRole,
    name: str,
    email: str,
    password: str,
    grade: Optional[int] = None,
    class_id: Optional[str] = None,
    points: int = 0,
    subject: Optional[str] = None,
    assigned_classes: Optional[list[str]] = None,
) -> User:
    """Create an account of the given role."""

    email = email.strip().lower()
    if not email_allowed(email):
        raise DirectoryRuleViolation(
            f"Only @{get_settings().institutional_domain} accounts can be provisioned."
        )
    exists = session.execute(select(User.id).where(func.lower(User.email) == email)).first()
    if exists is not None:
        raise DirectoryRuleViolation(f"An account for {email} already exists.", status_code=409)

    fields = {"name": name, "email": email, "password_hash": hash_password(password)}
    if role is UserRole.STUDENT:
        if class_id is not None:
            campus_class = _ensure_class(session, class_id)
            if grade is None:
                grade = campus_class.grade
            elif campus_class.grade != grade:
                raise DirectoryRuleViolation(f"Class {class_id} is not in grade {grade}.")
        if grade is None:
            raise DirectoryRuleViolation("Students need a grade.", status_code=422)
        if points < 0:
            raise DirectoryRuleViolation("Opening balance cannot be negative.", status_code=422)
        fields.update(grade=grade, class_id=class_id, points=points, initial_points=points, achievements=[])
    elif role is UserRole.TEACHER:
        for assigned in assigned_classes or []:
            _ensure_class(session, assigned)
        fields.update(subject=subject, assigned_classes=list(assigned_classes or []))

    user = ROLE_MODELS[role](**fields)
    session.add(user)
    session.flush()
    logger.info("provisioned %s account %s", role.value, email)
    return user


def _student_placement(session: Session, student: Student, changes: dict) -> tuple[int, Optional[str]]:
    grade = changes.get("grade", student.grade)
    class_id = changes.get("class_id", student.class_id)
    if grade is None:
        raise DirectoryRuleViolation("Students need a grade.", status_code=422)
    if class_id is not None:
        campus_class = _ensure_class(session, class_id)
        if "grade" not in changes:
            grade = campus_class.grade
        elif campus_class.grade != grade:
            raise DirectoryRuleViolation(f"Class {class_id} is not in grade {grade}.")
    return grade, class_id


def update_user(session: Session, *, user_id: UUID, role: UserRole, changes: dict, actor: User) -> User:
    """Edit an account's profile and role-specific fields.

    The role itself is fixed; ``role`` must name the account's current role.
    Fields left out of ``changes`` are untouched. For students an explicit
    ``class_id`` of ``None`` removes them from their class.
    """

    user = get_user(session, user_id)
    if user.role is not role:
        raise DirectoryRuleViolation(
            f"{user.email} is a {user.role.value} account; roles cannot be changed.", status_code=409
        )

    if changes.get("name") is not None:
        user.name = changes["name"].strip()
    if changes.get("email") is not None:
        email = changes["email"].strip().lower()
        if not email_allowed(email):
            raise DirectoryRuleViolation(
                f"Only @{get_settings().institutional_domain} accounts can be provisioned."
            )
        taken = session.execute(
            select(User.id).where(func.lower(User.email) == email, User.id != user.id)
        ).first()
        if taken is not None:
            raise DirectoryRuleViolation(f"An account for {email} already exists.", status_code=409)
        user.email = email
    if changes.get("password") is not None:
        user.password_hash = hash_password(changes["password"])

    if isinstance(user, Student):
        user.grade, user.class_id = _student_placement(session, user, changes)
    elif isinstance(user, Teacher):
        if "subject" in changes:
            user.subject = changes["subject"]
        if changes.get("assigned_classes") is not None:
            for assigned in changes["assigned_classes"]:
                _ensure_class(session, assigned)
            user.assigned_classes = list(dict.fromkeys(changes["assigned_classes"]))

    session.flush()
    logger.info("account %s updated by %s", user.email, actor.email)
    return user


def list_users(session: Session, *, role: Optional[UserRole] = None, search: Optional[str] = None) -> Sequence[User]:
    stmt = select(User).order_by(User.name.asc())
    if role is not None:
        stmt = stmt.where(User.role == role)
    if search:
        pattern = f"%{search.lower()}%"
        stmt = stmt.where(func.lower(User.name).like(pattern) | func.lower(User.email).like(pattern))
    return session.execute(stmt).scalars().all()


def remove_user(session: Session, *, user_id: UUID, actor: User) -> None:
    user = get_user(session, user_id)
    if user.id == actor.id:
        raise DirectoryRuleViolation("You cannot remove your own account.")
    session.delete(user)
    session.flush()
    logger.warning("account %s removed by %s", user.email, actor.email)


def list_classes(session: Session) -> Sequence[CampusClass]:
    return session.execute(select(CampusClass).order_by(CampusClass.grade, CampusClass.name)).scalars().all()


def create_class(session: Session, *, grade: int, name: str) -> CampusClass:
    """Create a class; its id is derived as ``<grade>-<name>``."""

    name = name.strip().upper()
    class_id = f"{grade}-{name}"
    if session.get(CampusClass, class_id) is not None:
        raise DirectoryRuleViolation(f"Class {class_id} already exists.", status_code=409)
    campus_class = CampusClass(id=class_id, grade=grade, name=name)
    session.add(campus_class)
    try:
        session.flush()
    except IntegrityError as exc:
        raise DirectoryRuleViolation(
            f"Class {class_id} could not be created. It may already exist or the grade may be "
            "out of range; refresh the class list and try again.",
            status_code=409,
        ) from exc
    return campus_class


def update_class(
    session: Session,
    *,
    class_id: str,
    grade: Optional[int] = None,
    name: Optional[str] = None,
) -> CampusClass:
    """Rename a class or move it to another grade.

    The id follows ``<grade>-<name>``, so a change re-keys the class and
    carries its students, targeted tasks and teacher assignments over. The
    grade can only change while no student or task refers to the class.
    """

    campus_class = _ensure_class(session, class_id)
    new_grade = campus_class.grade if grade is None else grade
    new_name = campus_class.name if name is None else name.strip().upper()
    new_id = f"{new_grade}-{new_name}"
    if new_id == class_id:
        return campus_class
    if session.get(CampusClass, new_id) is not None:
        raise DirectoryRuleViolation(f"Class {new_id} already exists.", status_code=409)

    students = session.execute(select(Student).where(Student.class_id == class_id)).scalars().all()
    tasks = session.execute(select(Task).where(Task.class_id == class_id)).scalars().all()
    if new_grade != campus_class.grade and (students or tasks):
        raise DirectoryRuleViolation(
            f"Class {class_id} still has students or tasks; move them before changing its grade.",
            status_code=409,
        )

    renamed = CampusClass(id=new_id, grade=new_grade, name=new_name, created_at=campus_class.created_at)
    session.add(renamed)
    session.flush()
    for student in students:
        student.campus_class = renamed
    for task in tasks:
        task.class_id = new_id
    for teacher in session.execute(select(Teacher)).scalars():
        if class_id in (teacher.assigned_classes or []):
            teacher.assigned_classes = [new_id if c == class_id else c for c in teacher.assigned_classes]
    session.flush()
    session.delete(campus_class)
    session.flush()
    logger.info("class %s renamed to %s", class_id, new_id)
    return renamed


def delete_class(session: Session, *, class_id: str) -> None:
    campus_class = _ensure_class(session, class_id)
    for teacher in session.execute(select(Teacher)).scalars():
        if class_id in (teacher.assigned_classes or []):
            teacher.assigned_classes = [c for c in teacher.assigned_classes if c != class_id]
    session.delete(campus_class)
    session.flush()


def toggle_teacher_class(session: Session, *, teacher_id: UUID, class_id: str) -> Teacher:
    """Assign the class to the teacher, or unassign it if already assigned."""

    teacher = session.execute(select(Teacher).where(Teacher.id == teacher_id)).scalar_one_or_none()
    if teacher is None:
        raise DirectoryRuleViolation(f"Teacher {teacher_id} not found", status_code=404)
    _ensure_class(session, class_id)
    current = list(teacher.assigned_classes or [])
    if class_id in current:
        current.remove(class_id)
    else:
        current.append(class_id)
    teacher.assigned_classes = current
    session.flush()
    return teacher
