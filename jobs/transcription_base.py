"""Shared wiring for the transcription jobs."""

import logging
from typing import Any

from config.settings import TasksSettings
from services.lesson_catalog import LessonCatalog, SQLLessonCatalog
from services.redis_cache import Cache, RedisCache
from services.transcription_client import TranscriptionClient
from services.transcription_registry import TranscriptionJobRegistry

from .base_job import BaseJob

logger = logging.getLogger(__name__)


class TranscriptionJob(BaseJob):
    """
    Base for jobs talking to the transcription service.

    Collaborators may be injected; anything not injected is built from
    settings on first use and released by cleanup().
    """

    def __init__(
        self,
        settings: TasksSettings,
        cache: Cache | None = None,
        catalog: LessonCatalog | None = None,
        client: TranscriptionClient | None = None,
        **kwargs: Any,
    ):
        super().__init__(settings, **kwargs)
        self.validate_params()

        self._cache = cache
        self._catalog = catalog
        self._client = client
        self._registry: TranscriptionJobRegistry | None = None
        self._owns_cache = cache is None
        self._owns_catalog = catalog is None

        if not settings.transcription_enabled:
            logger.error(f"TRANSCRIPTION_API_URL not configured, {self.JOB_NAME} is disabled")

    @property
    def cache(self) -> Cache:
        if self._cache is None:
            self._cache = RedisCache(self.settings.cache_redis_url)
        return self._cache

    @property
    def registry(self) -> TranscriptionJobRegistry:
        if self._registry is None:
            self._registry = TranscriptionJobRegistry(
                self.cache, self.settings.transcription_job_ttl_seconds
            )
        return self._registry

    @property
    def catalog(self) -> LessonCatalog:
        if self._catalog is None:
            self._catalog = SQLLessonCatalog(self.settings.data_database_url)
        return self._catalog

    @property
    def client(self) -> TranscriptionClient:
        if self._client is None:
            self._client = TranscriptionClient(
                self.settings.transcription_api_url,
                timeout=self.settings.transcription_api_timeout,
            )
        return self._client

    def skipped_result(self) -> dict[str, Any]:
        logger.error(f"TRANSCRIPTION_API_URL not configured, skipping {self.JOB_NAME} run")
        return {
            "skipped": True,
            "message": "Transcription service not configured",
            "records_processed": 0,
            "records_success": 0,
            "records_failed": 0,
        }

    async def cleanup(self) -> None:
        if self._owns_cache and self._cache is not None:
            await self._cache.close()
            self._cache = None
            self._registry = None
        if self._owns_catalog and isinstance(self._catalog, SQLLessonCatalog):
            self._catalog.dispose()
            self._catalog = None
