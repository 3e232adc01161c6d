"""APScheduler host for the transcription jobs."""

import logging
from typing import Any

from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.job import Job
from apscheduler.jobstores.sqlalchemy import SQLAlchemyJobStore
from apscheduler.schedulers.background import BackgroundScheduler
from pytz import timezone as pytz_timezone

from config.settings import TasksSettings

logger = logging.getLogger(__name__)

SERIALIZABLE_TYPES = (str, int, float, bool, list, dict, type(None))


class SchedulerService:
    """Background scheduler with a persistent job store.

    Jobs run on a thread pool; max_instances keeps a slow run of a job from
    overlapping with its next firing.
    """

    def __init__(self, settings: TasksSettings):
        self.settings = settings
        self.scheduler: BackgroundScheduler | None = None
        self._setup_scheduler()

    def _setup_scheduler(self) -> None:
        jobstores = {
            "default": SQLAlchemyJobStore(url=self.settings.task_database_url),
        }
        executors = {
            "default": ThreadPoolExecutor(
                self.settings.scheduler_executors_thread_pool_max_workers
            ),
        }
        job_defaults = {
            "coalesce": self.settings.scheduler_job_defaults_coalesce,
            "max_instances": self.settings.scheduler_job_defaults_max_instances,
        }

        self.scheduler = BackgroundScheduler(
            jobstores=jobstores,
            executors=executors,
            job_defaults=job_defaults,
            timezone=pytz_timezone(self.settings.scheduler_timezone),
        )

    @property
    def running(self) -> bool:
        return bool(self.scheduler and self.scheduler.running)

    def _require_running(self) -> BackgroundScheduler:
        if not self.running:
            raise RuntimeError("Scheduler not initialized or not running")
        return self.scheduler

    def start(self) -> None:
        """Start the scheduler."""
        if self.scheduler and not self.scheduler.running:
            self.scheduler.start()
            logger.info(f"Scheduler started (timezone {self.settings.scheduler_timezone})")

    def shutdown(self, wait: bool = True) -> None:
        """Shutdown the scheduler."""
        if self.running:
            self.scheduler.shutdown(wait=wait)
            logger.info("Scheduler shut down")

    def add_job(self, func: Any, trigger: str, job_id: str | None = None, **kwargs: Any) -> Job:
        """Add a job to the scheduler."""
        job = self._require_running().add_job(func=func, trigger=trigger, id=job_id, **kwargs)
        logger.info(f"Added job: {job.id} ({job.trigger})")
        return job

    def remove_job(self, job_id: str) -> None:
        self._require_running().remove_job(job_id)
        logger.info(f"Removed job: {job_id}")

    def get_jobs(self) -> list[Job]:
        if not self.running:
            return []
        return self.scheduler.get_jobs()

    def get_job(self, job_id: str) -> Job | None:
        if not self.scheduler:
            return None
        return self.scheduler.get_job(job_id)

    def pause_job(self, job_id: str) -> None:
        self._require_running().pause_job(job_id)
        logger.info(f"Paused job: {job_id}")

    def resume_job(self, job_id: str) -> None:
        self._require_running().resume_job(job_id)
        logger.info(f"Resumed job: {job_id}")

    def get_job_info(self, job_id: str) -> dict[str, Any] | None:
        """Describe a scheduled job using only JSON-friendly values."""
        job = self.get_job(job_id)
        if not job:
            return None

        return {
            "id": job.id,
            "name": job.name,
            "trigger": str(job.trigger),
            "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None,
            "args": [a if isinstance(a, SERIALIZABLE_TYPES) else str(a) for a in job.args or ()],
        }

    def get_scheduler_info(self) -> dict[str, Any]:
        if not self.scheduler:
            return {"running": False, "jobs_count": 0, "job_ids": []}

        jobs = self.get_jobs()
        return {
            "running": self.scheduler.running,
            "jobs_count": len(jobs),
            "job_ids": [job.id for job in jobs],
            "timezone": str(self.scheduler.timezone),
        }
