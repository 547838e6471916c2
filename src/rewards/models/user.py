"""Role-polymorphic user models.

Every account lives in the ``users`` table; the ``role`` column selects the
mapped class, so role-specific attributes only exist on the matching subclass.
"""

import enum
import uuid

from sqlalchemy import JSON, Boolean, CheckConstraint, Column, DateTime, Enum, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import relationship

from ..core.database import Base
from ..utils.datetime import utcnow


class UserRole(str, enum.Enum):
    """Account roles."""

    STUDENT = "Student"
    TEACHER = "Teacher"
    ADMIN = "Admin"
    SUPER_ADMIN = "Super Admin"
    STAFF = "Staff"


SUPERVISORY_ROLES = (UserRole.TEACHER, UserRole.ADMIN, UserRole.SUPER_ADMIN)
ADMIN_ROLES = (UserRole.ADMIN, UserRole.SUPER_ADMIN)


class User(Base):
    """Base account shared by every role."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("points IS NULL OR points >= 0", name="users_points_non_negative"),
        CheckConstraint("grade IS NULL OR grade BETWEEN 9 AND 12", name="users_grade_range"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True, index=True)
    password_hash = Column(String, nullable=False)
    role = Column(Enum(UserRole, name="user_role", values_callable=lambda e: [m.value for m in e]), nullable=False)
    status = Column(String, nullable=False, default="Active")
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    __mapper_args__ = {
        "polymorphic_on": role,
        "version_id_col": version,
    }


class Student(User):
    """Learner who earns and spends points."""

    points = Column(Integer, default=0)
    initial_points = Column(Integer, default=0)
    grade = Column(Integer)
    class_id = Column(String, ForeignKey("classes.id", ondelete="SET NULL"))
    is_innovator_verified = Column(Boolean, default=False)
    is_quiz_locked = Column(Boolean, default=False)
    quiz_attempts = Column(Integer, default=0)
    achievements = Column(JSON, default=list)

    campus_class = relationship("CampusClass", back_populates="students")
    history = relationship(
        "PointHistory",
        back_populates="student",
        order_by="PointHistory.history_id",
        cascade="all, delete-orphan",
    )
    redemptions = relationship("Redemption", back_populates="student", cascade="all, delete-orphan")
    submissions = relationship("TaskSubmission", back_populates="student", cascade="all, delete-orphan")

    __mapper_args__ = {"polymorphic_identity": UserRole.STUDENT}


class Teacher(User):
    """Staff member who sets and grades tasks."""

    subject = Column(String)
    assigned_classes = Column(JSON, default=list)

    tasks = relationship("Task", back_populates="teacher")

    __mapper_args__ = {"polymorphic_identity": UserRole.TEACHER}


class Admin(User):
    __mapper_args__ = {"polymorphic_identity": UserRole.ADMIN}


class SuperAdmin(User):
    __mapper_args__ = {"polymorphic_identity": UserRole.SUPER_ADMIN}


class Staff(User):
    """Front-desk personnel who fulfil voucher codes."""

    __mapper_args__ = {"polymorphic_identity": UserRole.STAFF}


ROLE_MODELS = {
    UserRole.STUDENT: Student,
    UserRole.TEACHER: Teacher,
    UserRole.ADMIN: Admin,
    UserRole.SUPER_ADMIN: SuperAdmin,
    UserRole.STAFF: Staff,
}
