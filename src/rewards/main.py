"""FastAPI application entrypoint for the campus rewards service."""

import logging

from fastapi import FastAPI

from .api.v1.router import api_router
from .assessment import AssessmentRegistry
from .core.config import get_settings
from .jobs import register_scheduler


def create_app() -> FastAPI:
    """Instantiate and configure the FastAPI application."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = FastAPI(title="Campus Rewards API", version="0.1.0")
    app.state.assessment_registry = AssessmentRegistry()
    app.include_router(api_router, prefix="/api/v1")
    register_scheduler(app)
    return app


app = create_app()
