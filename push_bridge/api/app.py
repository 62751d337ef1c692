"""
FastAPI application factory.
"""

import time
import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from push_bridge import __version__
from push_bridge.api.dependencies import cleanup_dependencies, create_poller
from push_bridge.api.routes import health, tokens
from push_bridge.config.settings import get_settings
from push_bridge.observability.logging import bind_context, clear_context

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    settings = get_settings()
    logger.info(
        "Push bridge starting up",
        port=settings.api_port,
        feed_url=settings.ads_api_url,
        interval=settings.polling_interval_label,
    )

    if settings.poller_enabled:
        poller = create_poller()
        poller.start_background()

    yield

    logger.info("Push bridge shutting down")
    await cleanup_dependencies()


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application
    """
    settings = get_settings()

    app = FastAPI(
        title="Ads Push Bridge",
        description="""
Polls the ads feed and sends Expo push notifications for new
"Notification" ads to every registered device.
        """,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
        openapi_tags=[
            {"name": "health", "description": "Service health checks"},
            {"name": "tokens", "description": "Device push token registration"},
        ],
    )

    # Request logging and correlation ID middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = (
            request.headers.get("X-Request-ID")
            or request.headers.get("X-Correlation-ID")
            or str(uuid.uuid4())
        )
        bind_context(request_id=request_id)

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
            duration = time.perf_counter() - start_time

            response.headers["X-Request-ID"] = request_id

            logger.info(
                "HTTP request",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round(duration * 1000, 2),
            )
            return response
        finally:
            clear_context()

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error", "error_type": "internal"},
        )

    app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
    app.include_router(tokens.router, prefix=settings.api_prefix, tags=["tokens"])

    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "service": "Ads Push Bridge",
            "version": __version__,
            "docs": "/docs",
        }

    return app
