"""Main application entrypoint for the FURIPS admin service."""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from furips.api.deps import get_upload_manager
from furips.api.errors import register_exception_handlers
from furips.api.middleware import HTTPErrorLoggingMiddleware
from furips.api.v1 import routes_health
from furips.api.v1.routes_auth import router as auth_router
from furips.api.v1.routes_envios import router as envios_router
from furips.api.v1.routes_lotes import router as lotes_router
from furips.api.v1.routes_upload import router as upload_router
from furips.core.config import settings
from furips.core.logging import setup_logging
from furips.db.session import init_db

logger = logging.getLogger(__name__)


async def sweep_abandoned_uploads(interval_seconds: float) -> None:
    """Periodically drop chunked uploads that outlived the retention window."""
    manager = get_upload_manager()
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await asyncio.to_thread(manager.sweep_expired)
        except Exception as e:
            logger.error(f"Upload sweep failed: {e}", exc_info=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    sweeper = asyncio.create_task(
        sweep_abandoned_uploads(settings.UPLOAD_SWEEP_INTERVAL_SECONDS)
    )
    logger.info(
        f"{settings.SERVICE_NAME} {settings.SERVICE_VERSION} started",
        extra={"env": settings.ENV, "storage_backend": settings.STORAGE_BACKEND},
    )
    try:
        yield
    finally:
        sweeper.cancel()
        try:
            await sweeper
        except asyncio.CancelledError:
            pass


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    # Initialize logging first
    setup_logging()

    app = FastAPI(
        title=settings.SERVICE_NAME,
        version=settings.SERVICE_VERSION,
        lifespan=lifespan,
    )

    register_exception_handlers(app)
    app.add_middleware(HTTPErrorLoggingMiddleware)

    # Register routers
    app.include_router(routes_health.router, tags=["health"])
    app.include_router(auth_router)
    app.include_router(upload_router)
    app.include_router(envios_router)
    app.include_router(lotes_router)

    return app


# Export app instance for ASGI servers
app = create_app()
