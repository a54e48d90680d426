"""
FastAPI application exposing the widget control router for one host page.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI

from feedback_widget.config import settings
from feedback_widget.core.errors.registry import error_registry
from feedback_widget.core.structured_logging import APP_VERSION, SERVICE_NAME, setup_logging
from feedback_widget.host import HostPage
from feedback_widget.routers import widget as widget_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the error registry on startup; tear the page down on shutdown."""
    if not len(error_registry):
        error_registry.load()
    logger.info("control_api_started", extra={"service": SERVICE_NAME})

    yield

    app.state.page.unload()
    logger.info("control_api_stopped")


def create_app(page: Optional[HostPage] = None, configure_logging: bool = True) -> FastAPI:
    if configure_logging:
        setup_logging(
            log_dir=settings.log_dir,
            log_level=settings.log_level,
            log_to_file=settings.log_to_file,
        )

    app = FastAPI(title="Feedback Widget Control API", version=APP_VERSION, lifespan=lifespan)
    app.state.page = page or HostPage()

    app.include_router(widget_router.router, prefix="/widget", tags=["widget"])

    @app.get("/health")
    async def health_check():
        return {
            "status": "ok",
            "service": SERVICE_NAME,
            "version": APP_VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    return app
