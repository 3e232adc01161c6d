"""FastAPI host for the transcription job scheduler."""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI

from config.settings import get_settings
from jobs.job_registry import JobRegistry
from services.scheduler_service import SchedulerService

# Console handler for docker logs, file handler for persistent logs
log_dir = Path(__file__).parent / "logs"
log_dir.mkdir(exist_ok=True)

formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

console_handler = logging.StreamHandler(sys.stdout)
console_handler.setLevel(logging.INFO)
console_handler.setFormatter(formatter)

file_handler = logging.FileHandler(log_dir / "tasks.log")
file_handler.setLevel(logging.INFO)
file_handler.setFormatter(formatter)

root_logger = logging.getLogger()
root_logger.setLevel(logging.INFO)
root_logger.addHandler(console_handler)
root_logger.addHandler(file_handler)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the scheduler with the transcription schedules, stop it on exit."""
    settings = get_settings()

    scheduler_service = SchedulerService(settings)
    job_registry = JobRegistry(settings, scheduler_service)

    app.state.scheduler_service = scheduler_service
    app.state.job_registry = job_registry

    scheduler_service.start()
    job_registry.schedule_transcription_jobs()
    logger.info(
        f"Transcription jobs scheduled: submission daily at "
        f"{settings.transcription_submission_hour:02d}:"
        f"{settings.transcription_submission_minute:02d}, status poll every "
        f"{settings.transcription_status_poll_minutes} minutes"
    )
    if not settings.transcription_enabled:
        logger.warning("TRANSCRIPTION_API_URL not set, scheduled runs will be skipped")

    yield

    try:
        scheduler_service.shutdown()
        logger.info("Scheduler service shut down successfully")
    except Exception as e:
        logger.error(f"Error shutting down scheduler: {e}")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Transcription Tasks Service",
        description="Scheduled submission and status polling of lesson transcriptions",
        version="1.0.0",
        lifespan=lifespan,
    )
    register_routers(app)
    return app


def register_routers(app: FastAPI) -> None:
    from api.health import router as health_router

    app.include_router(health_router)


app = create_app()


def main() -> None:
    """Main entry point."""
    import uvicorn

    settings = get_settings()
    logger.info(f"Starting transcription tasks service on {settings.host}:{settings.port}")

    uvicorn.run(
        "app:app",
        host=settings.host,
        port=settings.port,
        reload=(settings.environment == "development"),
        log_level="info",
    )


if __name__ == "__main__":
    main()
