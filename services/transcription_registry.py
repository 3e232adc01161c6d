"""Cache-resident registry of outstanding transcription jobs.

Layout:
    transcription:jobs:list      JSON array of job IDs (the index)
    transcription:job:{job_id}   JSON job record
    transcription:job:{job_id}:applied
                                 JSON array of lesson IDs already marked complete

All keys carry the same TTL, which doubles as the timeout for jobs the
transcription service never resolves.
"""

import json
import logging
from collections.abc import Iterable

from pydantic import ValidationError

from models.transcription import TranscriptionJobRecord
from services.exceptions import CacheError, JobRegistryError
from services.redis_cache import Cache

logger = logging.getLogger(__name__)

JOB_LIST_KEY = "transcription:jobs:list"
JOB_KEY_PREFIX = "transcription:job:"
DEFAULT_TTL_SECONDS = 24 * 60 * 60


def job_key(job_id: str) -> str:
    """Cache key of a job record."""
    return f"{JOB_KEY_PREFIX}{job_id}"


def applied_lessons_key(job_id: str) -> str:
    return f"{job_key(job_id)}:applied"


def decode_job_ids(raw: str) -> list[str]:
    """Decode the index value into a list of job IDs."""
    try:
        job_ids = json.loads(raw)
    except json.JSONDecodeError as e:
        raise JobRegistryError(f"error decoding job list: {e}") from e

    if not isinstance(job_ids, list) or not all(isinstance(j, str) for j in job_ids):
        raise JobRegistryError("error decoding job list: expected an array of strings")
    return job_ids


class TranscriptionJobRegistry:
    """Reads and writes job records and the job index."""

    def __init__(self, cache: Cache, ttl_seconds: int = DEFAULT_TTL_SECONDS):
        self.cache = cache
        self.ttl_seconds = ttl_seconds

    async def list_job_ids(self) -> list[str] | None:
        """
        Read the job index.

        Returns:
            Job IDs in submission order, or None when the index key is missing

        Raises:
            CacheError: On cache failure
            JobRegistryError: When the index cannot be decoded
        """
        raw = await self.cache.get(JOB_LIST_KEY)
        if raw is None:
            return None
        if raw == "":
            return []
        return decode_job_ids(raw)

    async def get_record(self, job_id: str) -> TranscriptionJobRecord | None:
        """Load a job record, or None when it is missing or expired."""
        raw = await self.cache.get(job_key(job_id))
        if raw is None:
            return None
        try:
            return TranscriptionJobRecord.from_json(raw)
        except ValidationError as e:
            raise JobRegistryError(f"error decoding job data for {job_id}: {e}") from e

    async def save_record(self, record: TranscriptionJobRecord) -> None:
        await self.cache.set(job_key(record.job_id), record.to_json(), self.ttl_seconds)

    async def record_exists(self, job_id: str) -> bool:
        return await self.cache.exists(job_key(job_id))

    async def delete_record(self, job_id: str) -> None:
        """Delete a job record along with its applied-lessons marker."""
        await self.cache.delete(job_key(job_id))
        await self.cache.delete(applied_lessons_key(job_id))

    async def get_applied_lessons(self, job_id: str) -> set[str]:
        """Lesson IDs of the job already marked transcriptionCompleted."""
        raw = await self.cache.get(applied_lessons_key(job_id))
        if not raw:
            return set()
        return set(decode_job_ids(raw))

    async def mark_lessons_applied(self, job_id: str, lesson_ids: Iterable[str]) -> None:
        """Remember lessons whose completion has been written to the catalog."""
        new_ids = set(lesson_ids)

        def merge(current: str | None) -> str:
            applied: set[str] = set()
            if current:
                try:
                    applied = set(decode_job_ids(current))
                except JobRegistryError as e:
                    logger.warning(f"{e}, resetting applied lessons of {job_id}")
            return json.dumps(sorted(applied | new_ids))

        await self.cache.update(applied_lessons_key(job_id), merge, self.ttl_seconds)

    async def add_job_id(self, job_id: str) -> None:
        """Append a job ID to the index and refresh its TTL."""

        def append(current: str | None) -> str:
            job_ids: list[str] = []
            if current:
                try:
                    job_ids = decode_job_ids(current)
                except JobRegistryError as e:
                    logger.error(f"{e}, resetting job list")
                    job_ids = []
            if job_id not in job_ids:
                job_ids.append(job_id)
            return json.dumps(job_ids)

        await self.cache.update(JOB_LIST_KEY, append, self.ttl_seconds)

    async def remove_job_ids(self, resolved_ids: set[str]) -> list[str]:
        """
        Drop resolved job IDs from the index.

        IDs appended by other writers since the index was read are kept. The
        index key is deleted once nothing is left in it.

        Returns:
            The job IDs remaining in the index
        """
        remaining: list[str] = []

        def prune(current: str | None) -> str | None:
            nonlocal remaining
            if not current:
                remaining = []
                return None
            remaining = [j for j in decode_job_ids(current) if j not in resolved_ids]
            if not remaining:
                return None
            return json.dumps(remaining)

        await self.cache.update(JOB_LIST_KEY, prune, self.ttl_seconds)
        return remaining

    async def find_job_for_tenant(self, tenant_id: str) -> str | None:
        """
        Return the ID of a registered job belonging to the tenant, if any.

        Records that are missing or cannot be read count as "not this
        tenant". Submissions apply the same fail-open rule to the index by
        treating the CacheError below as no pending job.

        Raises:
            CacheError: When the index itself cannot be read
        """
        job_ids = await self.list_job_ids()
        if not job_ids:
            return None

        for job_id in job_ids:
            try:
                record = await self.get_record(job_id)
            except CacheError as e:
                logger.warning(f"Skipping unreadable job record {job_id}: {e}")
                continue
            if record is not None and record.tenant_id == tenant_id:
                return job_id
        return None
