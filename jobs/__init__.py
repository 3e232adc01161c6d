"""Scheduled transcription jobs and the registry that schedules them."""

from .base_job import BaseJob
from .job_registry import JobRegistry, execute_job_by_type
from .transcription_status_poller import TranscriptionStatusPollerJob
from .transcription_submission import TranscriptionSubmissionJob

__all__ = [
    "BaseJob",
    "JobRegistry",
    "TranscriptionStatusPollerJob",
    "TranscriptionSubmissionJob",
    "execute_job_by_type",
]
