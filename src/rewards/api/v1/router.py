"""Primary API router definition."""

from fastapi import APIRouter

from . import (
	assessment,
	auth,
	leaderboard,
	notifications,
	points,
	redemptions,
	submissions,
	tasks,
	users,
	vouchers,
)

api_router = APIRouter()

api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(assessment.router)
api_router.include_router(tasks.router)
api_router.include_router(submissions.router)
api_router.include_router(points.router)
api_router.include_router(vouchers.router)
api_router.include_router(redemptions.router)
api_router.include_router(leaderboard.router)
api_router.include_router(notifications.router)


@api_router.get("/health", tags=["health"])
async def healthcheck() -> dict[str, str]:
    """Basic health check endpoint."""
    return {"status": "ok"}
