"""
FastAPI application factory.
"""

import time
import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.api.dependencies import (
    cleanup_dependencies,
    get_notification_service,
    get_orchestrator,
    set_scheduler,
)
from src.api.routes import crawl, health, items, notifications, sources
from src.config.settings import get_settings
from src.scheduling.scheduler import CrawlScheduler

logger = structlog.get_logger(__name__)


def create_app(start_scheduler: bool = False) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        start_scheduler: Run the periodic crawl/notify jobs in this process.

    Returns:
        Configured FastAPI application
    """
    settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Article tracker API starting up", scheduler=start_scheduler)
        if start_scheduler:
            scheduler = CrawlScheduler(
                await get_orchestrator(),
                await get_notification_service(),
            )
            await scheduler.start()
            set_scheduler(scheduler)

        yield

        logger.info("Article tracker API shutting down")
        await cleanup_dependencies()

    openapi_tags = [
        {"name": "health", "description": "Service health checks"},
        {"name": "crawl", "description": "On-demand crawl passes"},
        {"name": "sources", "description": "Source subscriptions"},
        {"name": "items", "description": "Collected items"},
        {"name": "notifications", "description": "Digest webhook settings"},
    ]

    app = FastAPI(
        title="Article Tracker API",
        description="""
Tracks published items of subscribed remote sources through an
authenticated browser session.

## Authentication

Requires `X-API-KEY` header for all requests except `/health` when
`API_KEYS` is set.
        """,
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
        openapi_tags=openapi_tags,
    )

    cors_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    # Request logging with correlation ID
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = (
            request.headers.get("X-Request-ID")
            or request.headers.get("X-Correlation-ID")
            or str(uuid.uuid4())
        )
        structlog.contextvars.bind_contextvars(request_id=request_id)
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
            structlog.contextvars.clear_contextvars()

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error", "error_type": "internal"},
        )

    app.include_router(health.router, tags=["health"])
    app.include_router(crawl.router, tags=["crawl"])
    app.include_router(sources.router, tags=["sources"])
    app.include_router(items.router, tags=["items"])
    app.include_router(notifications.router, tags=["notifications"])

    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "service": "Article Tracker API",
            "version": "0.1.0",
            "docs": "/docs",
        }

    return app
