"""
recordfiles application entrypoint.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from recordfiles.api.v1.router import api_router
from recordfiles.core.config import settings
from recordfiles.core.dependencies import get_attachment_field
from recordfiles.core.exceptions import register_exception_handlers
from recordfiles.core.limiter import limiter
from recordfiles.core.logging_config import configure_logging
from recordfiles.db.session import engine

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Resolve the attachment field before serving, so a process without
    storage settings fails at boot. On shutdown, let scheduled storage
    deletions settle before the engine goes away.
    """
    logger.info("Starting %s v%s", settings.APP_NAME, settings.APP_VERSION)
    build_field = app.dependency_overrides.get(get_attachment_field, get_attachment_field)
    field = build_field()
    logger.info(
        "Attachment field '%s' uses bucket '%s'", field.path, field.config.storage.bucket
    )

    yield

    logger.info("Shutting down %s", settings.APP_NAME)
    await field.wait_pending()
    await engine.dispose()


def _install_rate_limiting(app: FastAPI) -> None:
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]


def create_application() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Records with ordered, multi-file attachments stored in an S3-compatible bucket.",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _install_rate_limiting(app)
    register_exception_handlers(app)
    app.include_router(api_router, prefix=settings.API_V1_STR)

    @app.get("/health", tags=["Health"], include_in_schema=False)
    async def health_check() -> dict[str, str]:
        return {"status": "ok", "service": settings.APP_NAME}

    return app


app = create_application()
