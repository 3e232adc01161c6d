"""Base class for all scheduled jobs."""

import logging
import time
import traceback
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from typing import Any

from config.settings import TasksSettings
from task_types import JobExecutionResult

logger = logging.getLogger(__name__)


class BaseJob(ABC):
    """Base class for all scheduled jobs."""

    JOB_NAME: str = "Base Job"
    JOB_DESCRIPTION: str = "Base job class"
    REQUIRED_PARAMS: list = []
    OPTIONAL_PARAMS: list = []

    def __init__(self, settings: TasksSettings, **kwargs: Any):
        self.settings = settings
        self.params = kwargs
        self.job_id = self._generate_job_id()

    def _generate_job_id(self) -> str:
        """Run ID from the class name and start time."""
        timestamp = datetime.now(UTC).strftime("%Y%m%d_%H%M%S")
        return f"{self.__class__.__name__.lower()}_{timestamp}"

    def get_job_id(self) -> str:
        return self.job_id

    @abstractmethod
    async def _execute_job(self) -> dict[str, Any]:
        """Run one pass of the job and return its stats."""

    async def cleanup(self) -> None:
        """Release clients opened by the job. Called after every run."""

    async def execute(self) -> JobExecutionResult:
        """
        Run the job once and wrap its stats in a result envelope.

        Failures are reported in the envelope instead of raised. cleanup()
        runs after every run, successful or not.
        """
        envelope: JobExecutionResult = {
            "job_id": self.job_id,
            "job_name": self.JOB_NAME,
            "start_time": datetime.now(UTC).isoformat(),
        }
        started = time.monotonic()
        logger.info(f"▶️ {self.JOB_NAME} run {self.job_id} started")

        try:
            envelope["result"] = await self._execute_job()
            envelope["status"] = "success"
        except Exception as e:
            envelope["status"] = "error"
            envelope["error"] = str(e)
            envelope["error_type"] = type(e).__name__
            envelope["traceback"] = traceback.format_exc()
            logger.error(f"❌ {self.JOB_NAME} run {self.job_id} failed: {e}", exc_info=True)
        finally:
            await self._cleanup_quietly()

        envelope["execution_time_seconds"] = time.monotonic() - started
        if envelope["status"] == "success":
            logger.info(
                f"✅ {self.JOB_NAME} run {self.job_id} finished "
                f"in {envelope['execution_time_seconds']:.2f}s"
            )
        return envelope

    async def _cleanup_quietly(self) -> None:
        try:
            await self.cleanup()
        except Exception as e:
            logger.warning(f"Cleanup failed for {self.JOB_NAME} ({self.job_id}): {e}")

    def validate_params(self) -> bool:
        """Validate required parameters are present."""
        for param in self.REQUIRED_PARAMS:
            if param not in self.params:
                raise ValueError(f"Required parameter missing: {param}")
        return True
