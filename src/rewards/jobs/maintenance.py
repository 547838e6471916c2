"""Background scheduler for assessment cleanup and voucher expiry digests."""

from __future__ import annotations

import logging
from datetime import datetime

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI

from ..assessment import AssessmentRegistry
from ..core.config import get_settings
from ..core.database import SessionLocal
from ..services.redemption_service import post_expiry_digest

logger = logging.getLogger(__name__)

_scheduler = AsyncIOScheduler(timezone="UTC")


async def _sweep_abandoned_assessments(registry: AssessmentRegistry) -> None:
    purged = run_sweep_once(registry)
    if purged:
        logger.info("discarded %s abandoned assessments", purged)


async def _post_expiry_digest() -> None:
    try:
        expired = run_expiry_digest_once()
        logger.info("voucher expiry digest completed: %s expired pending", expired)
    except Exception:  # pragma: no cover - safeguard for background job
        logger.exception("voucher expiry digest job failed")
        raise


def register_scheduler(app: FastAPI) -> None:
    """Attach APScheduler lifecycle hooks to the FastAPI app."""

    settings = get_settings()
    if not settings.scheduler_enabled:
        logger.info("background scheduler disabled by configuration")
        return

    @app.on_event("startup")
    async def start_scheduler() -> None:
        registry = app.state.assessment_registry
        _scheduler.add_job(
            _sweep_abandoned_assessments,
            "interval",
            minutes=5,
            args=[registry],
            id="assessment_sweep",
            replace_existing=True,
        )
        _scheduler.add_job(
            _post_expiry_digest,
            "cron",
            hour=6,
            minute=0,
            id="voucher_expiry_digest",
            misfire_grace_time=3600,
            replace_existing=True,
        )
        if not _scheduler.running:
            _scheduler.start()
            logger.info("maintenance scheduler started")

    @app.on_event("shutdown")
    async def shutdown_scheduler() -> None:
        if _scheduler.running:
            _scheduler.shutdown(wait=False)
            logger.info("maintenance scheduler stopped")


def run_sweep_once(registry: AssessmentRegistry) -> int:
    """Discard assessments left open longer than the configured lifetime."""

    return registry.purge_abandoned(get_settings().quiz_session_ttl_minutes * 60)


def run_expiry_digest_once(current_time: datetime | None = None) -> int:
    """Convenience helper to post the digest synchronously for manual testing."""

    session = SessionLocal()
    try:
        expired = post_expiry_digest(session, now=current_time)
        session.commit()
        return expired
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
