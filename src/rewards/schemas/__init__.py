"""Public schema exports."""

from .auth import PasswordChange, SignInRequest, TokenResponse
from .leaderboard import ClassStanding, LeaderboardStudent, StudentRanks
from .notifications import NotificationRead
from .points import PointAdjustment, PointHistoryRead, PointsResetResult, ReconciliationRead
from .quiz import AnswerResult, AnswerSubmit, FocusEvent, FocusResult, LockedStudent, QuestionPrompt
from .redemption import RedemptionCreate, RedemptionProcess, RedemptionRead, RedemptionReceipt
from .tasks import (
	AttachmentRead,
	GradeRequest,
	RejectRequest,
	SubmissionCreate,
	SubmissionRead,
	TaskAttemptRead,
	TaskCreate,
	TaskRead,
	TaskUpdate,
)
from .users import (
	AchievementRead,
	ClassCreate,
	ClassRead,
	ClassUpdate,
	StudentRead,
	TeacherRead,
	UserCreate,
	UserRead,
	UserUpdate,
	serialize_user,
)
from .vouchers import VoucherCreate, VoucherRead, VoucherUpdate

__all__ = [
	"AchievementRead",
	"AnswerResult",
	"AnswerSubmit",
	"AttachmentRead",
	"ClassCreate",
	"ClassRead",
	"ClassUpdate",
	"ClassStanding",
	"FocusEvent",
	"FocusResult",
	"GradeRequest",
	"LeaderboardStudent",
	"LockedStudent",
	"NotificationRead",
	"PasswordChange",
	"PointAdjustment",
	"PointHistoryRead",
	"PointsResetResult",
	"QuestionPrompt",
	"ReconciliationRead",
	"RedemptionCreate",
	"RedemptionProcess",
	"RedemptionRead",
	"RedemptionReceipt",
	"RejectRequest",
	"SignInRequest",
	"StudentRanks",
	"StudentRead",
	"SubmissionCreate",
	"SubmissionRead",
	"TaskAttemptRead",
	"TaskCreate",
	"TaskRead",
	"TaskUpdate",
	"TeacherRead",
	"TokenResponse",
	"UserCreate",
	"UserRead",
	"UserUpdate",
	"VoucherCreate",
	"VoucherRead",
	"VoucherUpdate",
	"serialize_user",
]
