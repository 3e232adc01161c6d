"""Pydantic models for the transcription service wire format and job registry."""

import logging
from collections.abc import Iterable
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .lessons import AILesson

logger = logging.getLogger(__name__)


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class WireModel(CamelModel):
    """Body sent by the transcription service. A JSON null reads as an absent field."""

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class LessonStatus(str, Enum):
    """Per-lesson status reported by the transcription service."""

    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (LessonStatus.COMPLETED, LessonStatus.FAILED)


class JobResolution(str, Enum):
    """Whether a submitted job still has work outstanding."""

    ACTIVE = "ACTIVE"
    RESOLVED = "RESOLVED"


def fold_lesson_statuses(statuses: Iterable[LessonStatus]) -> JobResolution:
    """Reduce lesson statuses to a job resolution.

    A job is resolved once every lesson is terminal (COMPLETED or FAILED).
    A job reporting no lessons has nothing outstanding and is resolved.
    """
    for status in statuses:
        if not status.is_terminal:
            return JobResolution.ACTIVE
    return JobResolution.RESOLVED


class TranscriptionJobRequest(CamelModel):
    """Body of POST /api/v2/extract-and-embed."""

    lessons: list[AILesson]
    tenant_id: str


class TranscriptionJobResponse(WireModel):
    """202 Accepted body returned for a submitted batch."""

    job_id: str = Field(..., min_length=1)
    status: str = ""
    video_ids: list[str] = Field(default_factory=list)
    queued_jobs: int = 0
    trace_id: str = ""


class LessonTranscriptionStatus(WireModel):
    """Status of one lesson inside a transcription job."""

    id: str = ""
    lesson_id: str = ""
    lesson_name: str = ""
    status: LessonStatus = LessonStatus.PENDING
    chunks_created: int | None = None
    processing_time_ms: int | None = None
    error_message: str | None = None

    @field_validator("status", mode="before")
    @classmethod
    def coerce_unknown_status(cls, value: object) -> object:
        # Unrecognised statuses are treated as still in flight
        if isinstance(value, str) and value not in {s.value for s in LessonStatus}:
            logger.warning(f"Unknown lesson transcription status '{value}', treating as PENDING")
            return LessonStatus.PENDING
        return value


class TranscriptionJobStatusResponse(WireModel):
    """200 OK body of GET /api/jobs/{jobId}/status."""

    job_id: str = ""
    status: str = ""
    progress: int = 0
    completed: int = 0
    failed: int = 0
    total: int = 0
    started_at: str | None = None
    completed_at: str | None = None
    lessons: list[LessonTranscriptionStatus] = Field(default_factory=list)

    @property
    def resolution(self) -> JobResolution:
        return fold_lesson_statuses(lesson.status for lesson in self.lessons)


def utc_timestamp() -> str:
    """Current time as an RFC 3339 UTC timestamp with second precision."""
    return datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


class TranscriptionJobRecord(CamelModel):
    """Cache record for one submitted job. Written once, never modified."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    job_id: str
    tenant_id: str
    lesson_ids: tuple[str, ...]
    created_at: str = Field(default_factory=utc_timestamp)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, raw: str) -> "TranscriptionJobRecord":
        return cls.model_validate_json(raw)
