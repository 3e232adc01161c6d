"""Custom exceptions for the transcription jobs and their collaborators."""


class TranscriptionError(Exception):
    """Base exception for transcription orchestration errors."""

    pass


class TranscriptionAPIError(TranscriptionError):
    """Transcription service answered with an unexpected status code."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"API error: status {status_code}, body: {body}")


class TranscriptionConnectionError(TranscriptionError):
    """Cannot reach the transcription service."""

    def __init__(self, base_url: str, original_error: Exception):
        self.base_url = base_url
        self.original_error = original_error
        super().__init__(f"Cannot connect to {base_url}: {original_error}")


class TranscriptionTimeoutError(TranscriptionError):
    """Request to the transcription service timed out."""

    def __init__(self, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        super().__init__(f"Request timed out after {timeout_seconds}s")


class TranscriptionResponseError(TranscriptionError):
    """Transcription service returned a body that could not be decoded."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"error decoding response: {message}")


class TranscriptionJobError(TranscriptionError):
    """A step of a transcription job failed.

    The message names the failing step; the original exception is chained
    as ``__cause__``.
    """

    def __init__(self, step: str, cause: Exception):
        self.step = step
        self.cause = cause
        super().__init__(f"{step}: {cause}")


class CacheError(Exception):
    """Cache transport or driver failure. A missing key is not an error."""

    pass


class JobRegistryError(CacheError):
    """The job index or a job record holds data that cannot be decoded."""

    pass


class LessonCatalogError(Exception):
    """Base exception for tenant and lesson lookups."""

    pass


class LessonNotFoundError(LessonCatalogError):
    """Lesson does not exist."""

    def __init__(self, lesson_id: str):
        self.lesson_id = lesson_id
        super().__init__(f"Lesson not found: {lesson_id}")


class AIFeatureDisabledError(LessonCatalogError):
    """The lesson's tenant does not have the AI feature enabled."""

    def __init__(self, tenant_id: str):
        self.tenant_id = tenant_id
        super().__init__(f"AI is not enabled for tenant {tenant_id}")
