"""SQLAlchemy models for the rewards service."""

from .campus_class import CampusClass
from .notification import Notification, NotificationKind
from .point_history import PointEventType, PointHistory
from .redemption import Redemption, RedemptionStatus
from .task import SubmissionStatus, Task, TaskAttempt, TaskSubmission
from .user import (
    ADMIN_ROLES,
    ROLE_MODELS,
    SUPERVISORY_ROLES,
    Admin,
    Staff,
    Student,
    SuperAdmin,
    Teacher,
    User,
    UserRole,
)
from .voucher import VoucherLevel

__all__ = [
    "ADMIN_ROLES",
    "Admin",
    "CampusClass",
    "Notification",
    "NotificationKind",
    "PointEventType",
    "PointHistory",
    "ROLE_MODELS",
    "Redemption",
    "RedemptionStatus",
    "SUPERVISORY_ROLES",
    "Staff",
    "Student",
    "SubmissionStatus",
    "SuperAdmin",
    "Task",
    "TaskAttempt",
    "TaskSubmission",
    "Teacher",
    "User",
    "UserRole",
    "VoucherLevel",
]
