"""
fxsync - Main Application Entry Point
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from loguru import logger

import fxsync.utils.logger  # noqa: F401  configures loguru sinks
from fxsync.config import settings
from fxsync.api.v1.router import api_router
from fxsync.db.database import engine, init_db
from fxsync.scheduler import get_rate_scheduler, scheduled_rate_refresh
from fxsync.services.backfill_queue import get_backfill_queue
from fxsync.startup import get_startup_coordinator
from fxsync.utils.exceptions import FxSyncException, CurrencyResolutionError


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events handler."""
    # Startup
    logger.info(f"Starting {settings.APP_NAME}...")

    try:
        await init_db()
        logger.info("Database initialized")
    except Exception as e:
        logger.error(f"Database initialization error (non-fatal): {e}")

    if settings.ENABLE_STARTUP_SYNC:
        report = await get_startup_coordinator().run()
        logger.info(
            f"Startup sync: refreshed={report.refreshed}, "
            f"backfills queued={len(report.backfill_users)}, errors={len(report.errors)}"
        )

    if settings.ENABLE_SCHEDULER:
        try:
            scheduler = get_rate_scheduler()
            scheduler.add_daily_refresh_job(scheduled_rate_refresh)
            scheduler.start()
        except Exception as e:
            logger.error(f"Scheduler start error (non-fatal): {e}")

    logger.info(f"{settings.APP_NAME} started")

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.APP_NAME}...")

    try:
        get_rate_scheduler().stop()
    except Exception as e:
        logger.warning(f"Scheduler shutdown error: {e}")

    await get_backfill_queue().stop()
    await engine.dispose()
    logger.info("Shutdown complete")


def create_application() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.APP_NAME,
        description="Exchange rate synchronization and historical backfill",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    @app.exception_handler(FxSyncException)
    async def fxsync_exception_handler(request: Request, exc: FxSyncException):
        status_code = (
            status.HTTP_503_SERVICE_UNAVAILABLE
            if isinstance(exc, CurrencyResolutionError)
            else status.HTTP_500_INTERNAL_SERVER_ERROR
        )
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(
            status_code=status_code,
            content={"error": exc.code, "message": exc.message, "details": exc.details},
        )

    # Include API router
    app.include_router(api_router, prefix=settings.API_V1_PREFIX)

    # Health check endpoint
    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint for load balancers."""
        return {
            "status": "healthy",
            "app": settings.APP_NAME,
            "version": "1.0.0",
            "scheduler": get_rate_scheduler().get_jobs_status(),
        }

    return app


# Create the application instance
app = create_application()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "fxsync.main:app",
        host=settings.BACKEND_HOST,
        port=settings.BACKEND_PORT,
        reload=settings.DEBUG,
        log_level="info"
    )
