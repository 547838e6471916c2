"""Service layer exports."""

from . import (
	achievement_service,
	auth_service,
	catalog_service,
	directory_service,
	ledger_service,
	notification_service,
	quiz_service,
	ranking_service,
	redemption_service,
	task_service,
)

__all__ = [
	"achievement_service",
	"auth_service",
	"catalog_service",
	"directory_service",
	"ledger_service",
	"notification_service",
	"quiz_service",
	"ranking_service",
	"redemption_service",
	"task_service",
]
