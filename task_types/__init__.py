"""Type definitions for the transcription tasks service.

TypedDict classes describing the dictionaries passed between jobs, the job
registry and the scheduler.
"""

from typing import Any, TypedDict


class JobTypeInfo(TypedDict):
    """Information about a registered job type.

    Used by job registry to describe available job types.
    """

    type: str  # Job type identifier (e.g., "transcription_submission")
    name: str  # Human-readable job name
    description: str  # Job description
    required_params: list[str]  # Required parameter names
    optional_params: list[str]  # Optional parameter names


class JobSchedule(TypedDict, total=False):
    """Job schedule configuration passed to APScheduler."""

    trigger: str  # Trigger type: "cron", "interval", "date"
    hour: int  # Hour (0-23) for cron trigger
    minute: int  # Minute (0-59) for cron trigger
    day_of_week: str  # Day of week for cron trigger
    seconds: int  # Seconds for interval trigger
    minutes: int  # Minutes for interval trigger
    hours: int  # Hours for interval trigger
    run_date: str  # ISO datetime for date trigger
    timezone: str  # Timezone for schedule


class JobExecutionResult(TypedDict, total=False):
    """Envelope returned by BaseJob.execute()."""

    status: str  # "success" or "error"
    job_id: str  # Run ID
    job_name: str
    start_time: str  # ISO datetime when the run started
    execution_time_seconds: float
    result: Any  # Stats returned by _execute_job()
    error: str  # Error message if failed
    error_type: str  # Exception class name
    traceback: str  # Formatted stack trace if failed


class SubmissionRunStats(TypedDict, total=False):
    """Stats returned by one transcription submission run."""

    skipped: bool  # True when the transcription service is not configured
    message: str
    tenants_processed: int  # Tenants with the AI feature enabled
    jobs_submitted: int
    tenants_skipped: int  # Pending job or nothing to transcribe
    tenants_failed: int
    records_processed: int
    records_success: int
    records_failed: int


class StatusPollRunStats(TypedDict, total=False):
    """Stats returned by one transcription status poll run."""

    skipped: bool
    message: str
    jobs_checked: int
    jobs_resolved: int  # Removed from the job index this run
    jobs_active: int
    lessons_completed: int  # Lessons marked transcriptionCompleted
    lessons_failed: int  # Lessons the service reported as FAILED
    errors: int  # Jobs whose status check failed
    records_processed: int
    records_success: int
    records_failed: int


__all__ = [
    "JobTypeInfo",
    "JobSchedule",
    "JobExecutionResult",
    "SubmissionRunStats",
    "StatusPollRunStats",
]
