"""HTTP client for the external transcription service."""

import logging

import httpx
from pydantic import ValidationError

from models.lessons import AILesson
from models.transcription import (
    TranscriptionJobRequest,
    TranscriptionJobResponse,
    TranscriptionJobStatusResponse,
)
from services.exceptions import (
    TranscriptionAPIError,
    TranscriptionConnectionError,
    TranscriptionResponseError,
    TranscriptionTimeoutError,
)

logger = logging.getLogger(__name__)

SUBMIT_PATH = "/api/v2/extract-and-embed"
STATUS_PATH = "/api/jobs/{job_id}/status"


class TranscriptionClient:
    """Submits lesson batches and reads job status from the transcription service."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Service base URL without trailing slash
            timeout: Per-request timeout in seconds
            http_client: Shared client to use instead of one per request
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._http_client = http_client

    async def submit_lessons(
        self, tenant_id: str, lessons: list[AILesson]
    ) -> TranscriptionJobResponse:
        """
        Queue a batch of lessons for extraction and embedding.

        Raises:
            TranscriptionAPIError: Service did not answer 202 Accepted
            TranscriptionTimeoutError: Request timed out
            TranscriptionConnectionError: Service unreachable
            TranscriptionResponseError: Body could not be decoded
        """
        payload = TranscriptionJobRequest(lessons=lessons, tenant_id=tenant_id)
        response = await self._request(
            "POST",
            SUBMIT_PATH,
            json=payload.model_dump(mode="json", by_alias=True),
        )

        if response.status_code != httpx.codes.ACCEPTED:
            raise TranscriptionAPIError(response.status_code, response.text)

        try:
            job = TranscriptionJobResponse.model_validate_json(response.content)
        except ValidationError as e:
            raise TranscriptionResponseError(str(e)) from e

        logger.info(
            f"Submitted {len(lessons)} lessons for tenant {tenant_id}: job {job.job_id}",
            extra={"tenant_id": tenant_id, "job_id": job.job_id, "trace_id": job.trace_id},
        )
        return job

    async def get_job_status(self, job_id: str) -> TranscriptionJobStatusResponse:
        """
        Fetch the status of a submitted job and its lessons.

        Raises:
            TranscriptionAPIError: Service did not answer 200 OK
            TranscriptionTimeoutError: Request timed out
            TranscriptionConnectionError: Service unreachable
            TranscriptionResponseError: Body could not be decoded
        """
        response = await self._request("GET", STATUS_PATH.format(job_id=job_id))

        if response.status_code != httpx.codes.OK:
            raise TranscriptionAPIError(response.status_code, response.text)

        try:
            return TranscriptionJobStatusResponse.model_validate_json(response.content)
        except ValidationError as e:
            raise TranscriptionResponseError(str(e)) from e

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        url = f"{self.base_url}{path}"
        logger.debug(f"Making {method} request to {url}")

        try:
            if self._http_client is not None:
                return await self._http_client.request(
                    method, url, timeout=self.timeout, **kwargs
                )
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                return await client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise TranscriptionTimeoutError(self.timeout) from e
        except httpx.TransportError as e:
            raise TranscriptionConnectionError(self.base_url, e) from e
