"""Nightly submission of untranscribed lessons to the transcription service."""

import logging

from models.lessons import AITenant
from models.transcription import TranscriptionJobRecord
from services.exceptions import CacheError, TranscriptionError, TranscriptionJobError
from task_types import SubmissionRunStats

from .transcription_base import TranscriptionJob

logger = logging.getLogger(__name__)


class TranscriptionSubmissionJob(TranscriptionJob):
    """
    Submit each AI-enabled tenant's unprocessed lessons as one transcription job.

    Tenants that already have a job in the registry are skipped so a tenant
    has at most one outstanding job. The check is best effort: two runs
    racing each other can still both submit.
    """

    JOB_NAME = "Transcription Submission"
    JOB_DESCRIPTION = (
        "Send unprocessed lessons of AI-enabled tenants to the transcription "
        "service and register the resulting jobs"
    )
    REQUIRED_PARAMS: list = []
    OPTIONAL_PARAMS: list = []

    async def _execute_job(self) -> SubmissionRunStats:
        if not self.settings.transcription_enabled:
            return {
                **self.skipped_result(),
                "tenants_processed": 0,
                "jobs_submitted": 0,
                "tenants_skipped": 0,
                "tenants_failed": 0,
            }

        try:
            tenants = self.catalog.list_tenants_with_ai_enabled()
        except Exception as e:
            raise TranscriptionJobError("error fetching tenants with AI enabled", e) from e

        logger.info(f"Found {tenants.total} tenants with AI enabled")

        submitted = skipped = failed = 0
        for tenant in tenants.tenants:
            try:
                job_id = await self.process_tenant(tenant)
            except TranscriptionJobError as e:
                logger.error(
                    f"Error processing tenant {tenant.id}: {e}",
                    extra={"tenant_id": tenant.id, "step": e.step},
                )
                failed += 1
                continue

            if job_id:
                submitted += 1
            else:
                skipped += 1

        logger.info(
            f"✅ Transcription submission finished: {submitted} submitted, "
            f"{skipped} skipped, {failed} failed"
        )

        return {
            "message": f"Submitted {submitted} transcription jobs",
            "tenants_processed": len(tenants.tenants),
            "jobs_submitted": submitted,
            "tenants_skipped": skipped,
            "tenants_failed": failed,
            "records_processed": len(tenants.tenants),
            "records_success": submitted + skipped,
            "records_failed": failed,
        }

    async def process_tenant(self, tenant: AITenant) -> str | None:
        """
        Submit one tenant's unprocessed lessons.

        Returns:
            The new job ID, or None when the tenant was skipped

        Raises:
            TranscriptionJobError: Naming the step that failed
        """
        if await self.has_pending_job_for_tenant(tenant.id):
            logger.info(f"Tenant {tenant.id} already has a pending transcription job, skipping")
            return None

        try:
            lesson_list = self.catalog.list_lessons(tenant.id, only_unprocessed=True)
        except Exception as e:
            raise TranscriptionJobError("error fetching lessons", e) from e

        if not lesson_list.lessons:
            logger.info(f"No lessons to process for tenant {tenant.id}")
            return None

        logger.info(
            f"Sending {len(lesson_list.lessons)} lessons of tenant {tenant.id} "
            "for transcription"
        )

        try:
            response = await self.client.submit_lessons(tenant.id, lesson_list.lessons)
        except TranscriptionError as e:
            raise TranscriptionJobError("error sending to API", e) from e

        record = TranscriptionJobRecord(
            job_id=response.job_id,
            tenant_id=tenant.id,
            lesson_ids=tuple(lesson.id for lesson in lesson_list.lessons),
        )
        try:
            await self.save_job(record)
        except CacheError as e:
            raise TranscriptionJobError("error saving job to cache", e) from e

        logger.info(
            f"Transcription job {record.job_id} registered for tenant {tenant.id}",
            extra={
                "tenant_id": tenant.id,
                "job_id": record.job_id,
                "lesson_count": len(record.lesson_ids),
            },
        )
        return record.job_id

    async def has_pending_job_for_tenant(self, tenant_id: str) -> bool:
        """Whether a registered job belongs to the tenant. Cache errors count as no."""
        try:
            job_id = await self.registry.find_job_for_tenant(tenant_id)
        except CacheError as e:
            logger.warning(f"Could not check pending jobs for tenant {tenant_id}: {e}")
            return False
        return job_id is not None

    async def save_job(self, record: TranscriptionJobRecord) -> None:
        """Store the job record, then add its ID to the index."""
        await self.registry.save_record(record)
        await self.registry.add_job_id(record.job_id)
