"""
QR Photoshare API - FastAPI Application

Main entry point for the FastAPI application.
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from loguru import logger

from photoshare.api import router as api_router
from photoshare.core.config import get_settings
from photoshare.db import models_registry  # noqa: F401 - Import to register models
from photoshare.db.base import Base
from photoshare.db.session import async_session_maker, engine
from photoshare.services.presence import get_presence_store
from photoshare.services.user_service import UserService
from photoshare.workers.event_scheduler import EventSchedulerWorker
from photoshare.workers.file_cleanup import get_file_cleanup

settings = get_settings()

# Global instances
scheduler: AsyncIOScheduler | None = None
cleanup_task: asyncio.Task | None = None


async def init_database() -> None:
    """Initialize database tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database initialized")


async def init_root_user() -> None:
    """Create the configured root account if it does not exist."""
    async with async_session_maker() as db:
        user = await UserService(db).ensure_root_user(settings.admin_user, settings.admin_pass)
        logger.info(f"Root account ready: {user.username}")


async def start_background_services() -> None:
    """Start background services."""
    global scheduler, cleanup_task

    cleanup_worker = get_file_cleanup()
    cleanup_task = asyncio.create_task(cleanup_worker.run())

    if not settings.enable_scheduler:
        logger.info("Event scheduler disabled")
        return

    event_scheduler = EventSchedulerWorker(presence=get_presence_store())
    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        event_scheduler.run,
        "interval",
        seconds=settings.event_scheduler_interval_ms / 1000,
        id="event_scheduler",
        next_run_time=datetime.now(),
        max_instances=1,
        coalesce=True,
    )
    scheduler.start()
    logger.info(
        f"Event scheduler started (every {settings.event_scheduler_interval_ms} ms, "
        f"auto end after {settings.event_auto_end_duration_ms} ms)"
    )


async def stop_background_services() -> None:
    """Stop background services."""
    global scheduler, cleanup_task

    if scheduler:
        scheduler.shutdown(wait=False)
        scheduler = None
        logger.info("Scheduler stopped")

    if cleanup_task:
        get_file_cleanup().stop()
        try:
            await asyncio.wait_for(cleanup_task, timeout=5.0)
        except asyncio.TimeoutError:
            cleanup_task.cancel()
        cleanup_task = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("Starting QR Photoshare API...")

    await init_database()
    await init_root_user()
    await start_background_services()

    logger.info(f"QR Photoshare API started on port {settings.port}")

    yield

    logger.info("Shutting down QR Photoshare API...")
    await stop_background_services()
    logger.info("QR Photoshare API stopped")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="QR code event photo sharing API",
    lifespan=lifespan,
    docs_url="/swagger" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
    expose_headers=["Content-Disposition", "Content-Length"],
)


# Exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler."""
    logger.exception(f"Unhandled exception on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}


# Include API router
app.include_router(api_router)


# Stored media
uploads_path = Path(settings.uploads_dir)
uploads_path.mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=str(uploads_path)), name="uploads")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "photoshare.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        workers=settings.workers,
    )
