"""Data models for the transcription tasks service."""

from .lessons import (
    AILesson,
    AITenant,
    LessonList,
    LessonTranscriptionUpdate,
    TenantList,
)
from .transcription import (
    JobResolution,
    LessonStatus,
    LessonTranscriptionStatus,
    TranscriptionJobRecord,
    TranscriptionJobRequest,
    TranscriptionJobResponse,
    TranscriptionJobStatusResponse,
    fold_lesson_statuses,
)

__all__ = [
    "AILesson",
    "AITenant",
    "JobResolution",
    "LessonList",
    "LessonStatus",
    "LessonTranscriptionStatus",
    "LessonTranscriptionUpdate",
    "TenantList",
    "TranscriptionJobRecord",
    "TranscriptionJobRequest",
    "TranscriptionJobResponse",
    "TranscriptionJobStatusResponse",
    "fold_lesson_statuses",
]
