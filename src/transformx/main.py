"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

import uvicorn
from fastapi import FastAPI

from transformx.api.errors import register_exception_handlers
from transformx.api.middleware import UploadLimitMiddleware
from transformx.api.routes import router
from transformx.config import get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: load settings and configure logging."""
    settings = get_settings()
    app.state.settings = settings

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    logger.info(
        "Starting TransformX (max_upload_size=%s, max_image_pixels=%s, jpeg_quality=%s)",
        settings.max_upload_size,
        settings.max_image_pixels,
        settings.jpeg_quality,
    )
    yield
    logger.info("TransformX shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    application = FastAPI(
        title="TransformX",
        description="Image inspection and transformation API: resize, blur and rotate uploads",
        version="0.1.0",
        lifespan=lifespan,
    )

    application.add_middleware(UploadLimitMiddleware)
    register_exception_handlers(application)
    application.include_router(router)
    return application


app = create_app()


def run() -> None:
    """Serve the application with uvicorn on the configured host and port."""
    settings = get_settings()
    uvicorn.run(
        "transformx.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
