"""Periodic reconciliation of registered transcription jobs."""

import logging
from datetime import UTC, datetime
from typing import NamedTuple

from models.transcription import JobResolution, LessonStatus, TranscriptionJobRecord
from services.exceptions import CacheError, TranscriptionError, TranscriptionJobError
from task_types import StatusPollRunStats

from .transcription_base import TranscriptionJob

logger = logging.getLogger(__name__)

# Share of the record TTL after which a still-active job is reported as stuck
STUCK_JOB_TTL_RATIO = 0.75


class JobCheckOutcome(NamedTuple):
    resolution: JobResolution
    lessons_completed: int = 0
    lessons_failed: int = 0


class TranscriptionStatusPollerJob(TranscriptionJob):
    """
    Poll the transcription service for every registered job.

    Completed lessons are flagged in the lesson catalog, fully resolved jobs
    are deleted and the job index is pruned of jobs whose record is gone.
    """

    JOB_NAME = "Transcription Status Poller"
    JOB_DESCRIPTION = (
        "Check registered transcription jobs, mark completed lessons and "
        "remove resolved jobs"
    )
    REQUIRED_PARAMS: list = []
    OPTIONAL_PARAMS: list = []

    async def _execute_job(self) -> StatusPollRunStats:
        stats: StatusPollRunStats = {
            "jobs_checked": 0,
            "jobs_resolved": 0,
            "jobs_active": 0,
            "lessons_completed": 0,
            "lessons_failed": 0,
            "errors": 0,
            "records_processed": 0,
            "records_success": 0,
            "records_failed": 0,
        }

        if not self.settings.transcription_enabled:
            return {**stats, **self.skipped_result()}

        try:
            job_ids = await self.registry.list_job_ids()
        except CacheError as e:
            raise TranscriptionJobError("error fetching job list", e) from e

        if not job_ids:
            logger.info("No pending jobs to check")
            return {**stats, "message": "No pending jobs to check"}

        logger.info(f"Checking status of {len(job_ids)} jobs")

        active_job_ids: list[str] = []
        for job_id in job_ids:
            stats["jobs_checked"] += 1
            try:
                outcome = await self.check_job_status(job_id)
            except TranscriptionJobError as e:
                logger.error(
                    f"Error checking job {job_id}: {e}",
                    extra={"job_id": job_id, "step": e.step},
                )
                stats["errors"] += 1
                active_job_ids.append(job_id)
                continue

            stats["lessons_completed"] += outcome.lessons_completed
            stats["lessons_failed"] += outcome.lessons_failed
            if await self.is_still_registered(job_id):
                active_job_ids.append(job_id)

        resolved_ids = set(job_ids) - set(active_job_ids)
        if resolved_ids:
            await self.prune_job_index(resolved_ids)

        stats.update(
            {
                "message": f"Checked {len(job_ids)} jobs, {len(resolved_ids)} resolved",
                "jobs_resolved": len(resolved_ids),
                "jobs_active": len(active_job_ids),
                "records_processed": len(job_ids),
                "records_success": len(job_ids) - stats["errors"],
                "records_failed": stats["errors"],
            }
        )
        return stats

    async def check_job_status(self, job_id: str) -> JobCheckOutcome:
        """
        Reconcile one job against the transcription service.

        A missing record means the job expired or was already resolved.

        Raises:
            TranscriptionJobError: When the record or the remote status
                cannot be read
        """
        try:
            record = await self.registry.get_record(job_id)
        except CacheError as e:
            raise TranscriptionJobError("error fetching job data", e) from e

        if record is None:
            logger.info(f"Job {job_id} no longer in cache, nothing to check")
            return JobCheckOutcome(JobResolution.RESOLVED)

        try:
            status = await self.client.get_job_status(job_id)
        except TranscriptionError as e:
            raise TranscriptionJobError("error fetching status from API", e) from e

        already_applied = await self._applied_lessons(job_id)
        newly_applied: list[str] = []
        failed = 0

        for lesson in status.lessons:
            if lesson.status is LessonStatus.COMPLETED:
                if lesson.lesson_id in already_applied:
                    continue
                try:
                    self.catalog.update_transcription_status(lesson.lesson_id, True)
                except Exception as e:
                    logger.error(f"Error updating lesson {lesson.lesson_id}: {e}")
                    continue
                newly_applied.append(lesson.lesson_id)
                logger.info(f"Lesson {lesson.lesson_id} marked as transcriptionCompleted=true")
            elif lesson.status is LessonStatus.FAILED:
                failed += 1
                logger.error(
                    f"Lesson {lesson.lesson_id} failed transcription: "
                    f"{lesson.error_message or 'unknown error'}",
                    extra={"job_id": job_id, "lesson_id": lesson.lesson_id},
                )

        resolution = status.resolution
        if resolution is JobResolution.RESOLVED:
            try:
                await self.registry.delete_record(job_id)
                logger.info(f"Job {job_id} removed from cache (all lessons terminal)")
            except CacheError as e:
                logger.error(f"Error deleting job {job_id} from cache: {e}")
        else:
            if newly_applied:
                await self._remember_applied(job_id, newly_applied)
            self._warn_if_stuck(record)

        return JobCheckOutcome(resolution, len(newly_applied), failed)

    async def is_still_registered(self, job_id: str) -> bool:
        """Whether the job's record survived the check. Unknown counts as yes."""
        try:
            return await self.registry.record_exists(job_id)
        except CacheError as e:
            logger.warning(f"Could not check whether job {job_id} still exists: {e}")
            return True

    async def prune_job_index(self, resolved_ids: set[str]) -> None:
        try:
            remaining = await self.registry.remove_job_ids(resolved_ids)
        except CacheError as e:
            logger.error(f"Error updating job list: {e}")
            return

        if remaining:
            logger.info(f"Job list updated, {len(remaining)} jobs still pending")
        else:
            logger.info("Job list emptied and removed from cache")

    async def _applied_lessons(self, job_id: str) -> set[str]:
        try:
            return await self.registry.get_applied_lessons(job_id)
        except CacheError as e:
            logger.warning(f"Could not read applied lessons of job {job_id}: {e}")
            return set()

    async def _remember_applied(self, job_id: str, lesson_ids: list[str]) -> None:
        try:
            await self.registry.mark_lessons_applied(job_id, lesson_ids)
        except CacheError as e:
            logger.warning(f"Could not record applied lessons of job {job_id}: {e}")

    def _warn_if_stuck(self, record: TranscriptionJobRecord) -> None:
        try:
            created_at = datetime.strptime(record.created_at, "%Y-%m-%dT%H:%M:%SZ")
        except ValueError:
            return

        age_seconds = (datetime.now(UTC) - created_at.replace(tzinfo=UTC)).total_seconds()
        if age_seconds >= self.settings.transcription_job_ttl_seconds * STUCK_JOB_TTL_RATIO:
            logger.warning(
                f"⚠️ Job {record.job_id} of tenant {record.tenant_id} still has lessons "
                f"in progress after {age_seconds / 3600:.1f}h and will expire with its "
                "cache TTL",
                extra={"job_id": record.job_id, "tenant_id": record.tenant_id},
            )
