"""Pydantic models for the tenant and lesson data the transcription jobs consume."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class AITenant(BaseModel):
    """Tenant with the AI/transcription feature flag."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str = ""
    ai_enabled: bool = Field(default=True, alias="aiEnabled")


class TenantList(BaseModel):
    """Tenants returned by the AI-enabled tenant listing."""

    tenants: list[AITenant] = Field(default_factory=list)
    total: int = 0


class AILesson(BaseModel):
    """Lesson plus its course hierarchy, as sent to the transcription service."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str = ""
    slug: str = ""
    type: str | None = None
    media_url: str | None = None
    thumbnail: str | None = None
    content: str | None = None
    transcription_completed: bool = False
    module_id: str = ""
    module_name: str = ""
    section_id: str = ""
    section_name: str = ""
    course_id: str = ""
    course_name: str = ""
    vitrine_id: str = ""
    vitrine_name: str = ""


class LessonList(BaseModel):
    """Lessons of one tenant."""

    lessons: list[AILesson] = Field(default_factory=list)
    total: int = 0
    tenant_id: str = ""
    only_unprocessed: bool = False


class LessonTranscriptionUpdate(BaseModel):
    """Acknowledgement of a transcription flag update."""

    lesson_id: str
    name: str = ""
    slug: str = ""
    transcription_completed: bool
