"""Job registry for managing the scheduled transcription jobs."""

import asyncio
import logging
from pathlib import Path
from typing import Any

from apscheduler.job import Job

from config.settings import TasksSettings
from services.scheduler_service import SchedulerService
from task_types import JobExecutionResult, JobSchedule, JobTypeInfo

from .transcription_status_poller import TranscriptionStatusPollerJob
from .transcription_submission import TranscriptionSubmissionJob

logger = logging.getLogger(__name__)

JOB_CLASSES: dict[str, type] = {
    "transcription_submission": TranscriptionSubmissionJob,
    "transcription_status_poller": TranscriptionStatusPollerJob,
}

SUBMISSION_SCHEDULE_ID = "transcription_submission_daily"
STATUS_POLL_SCHEDULE_ID = "transcription_status_poller_interval"


def configure_job_logging() -> None:
    """Add the tasks.log file handler to the root logger once per process."""
    log_dir = Path(__file__).parent.parent / "logs"
    log_dir.mkdir(exist_ok=True)

    root_logger = logging.getLogger()
    has_file_handler = any(
        isinstance(h, logging.FileHandler) for h in root_logger.handlers
    )

    if not has_file_handler:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        file_handler = logging.FileHandler(log_dir / "tasks.log")
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
        root_logger.setLevel(logging.INFO)
        logger.info("📝 File logging enabled for scheduled jobs")


async def run_with_timeout(job: Any, timeout_seconds: float) -> JobExecutionResult:
    """Run a job, abandoning it once the timeout elapses."""
    try:
        return await asyncio.wait_for(job.execute(), timeout=timeout_seconds)
    except TimeoutError:
        logger.error(f"Job {job.JOB_NAME} ({job.get_job_id()}) timed out after {timeout_seconds}s")
        return {
            "status": "error",
            "job_id": job.get_job_id(),
            "job_name": job.JOB_NAME,
            "error": f"timed out after {timeout_seconds}s",
            "error_type": "TimeoutError",
        }


def execute_job_by_type(
    job_type: str, job_params: dict[str, Any], triggered_by: str = "scheduler"
) -> JobExecutionResult:
    """Global executor function that creates and runs jobs by type.

    Called by APScheduler with serializable arguments only; each run gets
    fresh settings and its own event loop.
    """
    configure_job_logging()

    job_class = JOB_CLASSES.get(job_type)
    if not job_class:
        raise ValueError(f"Unknown job type: {job_type}")

    settings = TasksSettings()
    job_instance = job_class(settings, **job_params)

    logger.info(f"Running {job_type} (triggered by {triggered_by})")
    result = asyncio.run(run_with_timeout(job_instance, settings.job_run_timeout_seconds))

    if result.get("status") == "success":
        logger.info(
            f"{job_type} finished: {result.get('result', {}).get('message', 'ok')}",
            extra={"job_type": job_type, "triggered_by": triggered_by},
        )
    else:
        logger.error(
            f"{job_type} failed: {result.get('error')}",
            extra={"job_type": job_type, "triggered_by": triggered_by},
        )
    return result


class JobRegistry:
    """Registry for managing different types of scheduled jobs."""

    def __init__(self, settings: TasksSettings, scheduler_service: SchedulerService):
        """Initialize the job registry."""
        self.settings = settings
        self.scheduler_service = scheduler_service
        self.job_types = dict(JOB_CLASSES)

    def register_job_type(self, job_type: str, job_class: type) -> None:
        """
        Register a new job type.

        Args:
            job_type: Unique identifier for the job type
            job_class: Job class (must extend BaseJob)
        """
        if job_type in self.job_types:
            logger.warning(f"Job type '{job_type}' already registered, overwriting")

        self.job_types[job_type] = job_class
        logger.info(f"Registered job type: {job_type} ({job_class.JOB_NAME})")

    def get_available_job_types(self) -> list[JobTypeInfo]:
        """Get available job types with their descriptions."""
        return [
            {
                "type": job_type,
                "name": getattr(job_class, "JOB_NAME", job_type),
                "description": getattr(job_class, "JOB_DESCRIPTION", ""),
                "required_params": getattr(job_class, "REQUIRED_PARAMS", []),
                "optional_params": getattr(job_class, "OPTIONAL_PARAMS", []),
            }
            for job_type, job_class in self.job_types.items()
        ]

    def create_job(
        self,
        job_type: str,
        job_id: str | None = None,
        schedule: JobSchedule | None = None,
        **kwargs: Any,
    ) -> Job:
        """Create a new scheduled job of the specified type."""
        if job_type not in self.job_types:
            raise ValueError(f"Unknown job type: {job_type}")

        job_class = self.job_types[job_type]

        if not schedule:
            schedule = {"trigger": "interval", "hours": 1}

        trigger = schedule.get("trigger", "interval")
        schedule_params = {k: v for k, v in schedule.items() if k != "trigger"}

        final_job_id = job_id or f"{job_type}_{job_class.__name__.lower()}"
        triggered_by = "manual" if "_manual_" in final_job_id else "scheduler"

        # Only serializable data goes to the job store
        job = self.scheduler_service.add_job(
            func=execute_job_by_type,
            trigger=trigger,
            job_id=final_job_id,
            name=job_class.JOB_NAME,
            args=[job_type, kwargs, triggered_by],
            replace_existing=True,
            **schedule_params,
        )

        logger.info(f"Created {job_type} job: {job.id}")
        return job

    def get_job_class(self, job_type: str) -> type | None:
        """Get job class for a given job type."""
        return self.job_types.get(job_type)

    def schedule_transcription_jobs(self) -> list[Job]:
        """Install the default schedules for both transcription jobs."""
        submission = self.create_job(
            "transcription_submission",
            job_id=SUBMISSION_SCHEDULE_ID,
            schedule={
                "trigger": "cron",
                "hour": self.settings.transcription_submission_hour,
                "minute": self.settings.transcription_submission_minute,
            },
        )
        status_poller = self.create_job(
            "transcription_status_poller",
            job_id=STATUS_POLL_SCHEDULE_ID,
            schedule={
                "trigger": "interval",
                "minutes": self.settings.transcription_status_poll_minutes,
            },
        )
        return [submission, status_poller]
