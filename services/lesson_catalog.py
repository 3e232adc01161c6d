"""Tenant and lesson lookups backing the transcription jobs."""

import logging
from datetime import UTC, datetime
from typing import Protocol

from sqlalchemy import DateTime, bindparam, create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from models.lessons import (
    AILesson,
    AITenant,
    LessonList,
    LessonTranscriptionUpdate,
    TenantList,
)
from services.exceptions import (
    AIFeatureDisabledError,
    LessonCatalogError,
    LessonNotFoundError,
)

logger = logging.getLogger(__name__)


class LessonCatalog(Protocol):
    """Tenant/lesson operations the transcription jobs depend on."""

    def list_tenants_with_ai_enabled(self) -> TenantList: ...

    def list_lessons(self, tenant_id: str, only_unprocessed: bool = True) -> LessonList: ...

    def update_transcription_status(
        self, lesson_id: str, completed: bool
    ) -> LessonTranscriptionUpdate: ...


TENANTS_WITH_AI_QUERY = """
    SELECT id, name, "aiEnabled"
    FROM "Tenant"
    WHERE "aiEnabled" = true
    ORDER BY name
"""

LESSONS_WITH_HIERARCHY_QUERY = """
    SELECT
        l.id, l.name, l.slug, l.type, l."mediaUrl", l.thumbnail, l.content,
        l."transcriptionCompleted",
        m.id AS module_id, m.name AS module_name,
        s.id AS section_id, s.name AS section_name,
        c.id AS course_id, c.name AS course_name,
        v.id AS vitrine_id, v.name AS vitrine_name
    FROM "Lesson" l
    JOIN "Module" m ON l."moduleId" = m.id
    JOIN "Section" s ON m."sectionId" = s.id
    JOIN "Course" c ON s."courseId" = c.id
    JOIN "Vitrine" v ON c."vitrineId" = v.id
    WHERE v."tenantId" = :tenant_id
        AND l.published = true
        AND (:only_unprocessed = false OR COALESCE(l."transcriptionCompleted", false) = false)
    ORDER BY
        COALESCE(v."order", 0), COALESCE(c."order", 0), COALESCE(s."order", 0),
        COALESCE(m."order", 0), COALESCE(l."order", 0)
"""

LESSON_WITH_TENANT_QUERY = """
    SELECT l.id, l.name, l.slug, t.id AS tenant_id, t."aiEnabled"
    FROM "Lesson" l
    JOIN "Module" m ON l."moduleId" = m.id
    JOIN "Section" s ON m."sectionId" = s.id
    JOIN "Course" c ON s."courseId" = c.id
    JOIN "Vitrine" v ON c."vitrineId" = v.id
    JOIN "Tenant" t ON v."tenantId" = t.id
    WHERE l.id = :lesson_id
"""

UPDATE_TRANSCRIPTION_QUERY = """
    UPDATE "Lesson"
    SET "transcriptionCompleted" = :completed, "updatedAt" = :now
    WHERE id = :lesson_id
"""


class SQLLessonCatalog:
    """LessonCatalog over the platform's relational schema."""

    def __init__(self, database_url: str, engine: Engine | None = None):
        self.database_url = database_url
        self.engine = engine or create_engine(database_url, pool_pre_ping=True)

    def dispose(self) -> None:
        """Close pooled database connections."""
        self.engine.dispose()

    def list_tenants_with_ai_enabled(self) -> TenantList:
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(text(TENANTS_WITH_AI_QUERY)).mappings().all()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching tenants with AI enabled: {e}")
            raise LessonCatalogError(f"error fetching tenants: {e}") from e

        tenants = [
            AITenant(id=row["id"], name=row["name"] or "", ai_enabled=bool(row["aiEnabled"]))
            for row in rows
        ]
        return TenantList(tenants=tenants, total=len(tenants))

    def list_lessons(self, tenant_id: str, only_unprocessed: bool = True) -> LessonList:
        try:
            with self.engine.connect() as conn:
                rows = (
                    conn.execute(
                        text(LESSONS_WITH_HIERARCHY_QUERY),
                        {"tenant_id": tenant_id, "only_unprocessed": only_unprocessed},
                    )
                    .mappings()
                    .all()
                )
        except SQLAlchemyError as e:
            logger.error(f"Error querying lessons for tenant {tenant_id}: {e}")
            raise LessonCatalogError(f"error querying lessons: {e}") from e

        lessons = [
            AILesson(
                id=row["id"],
                name=row["name"] or "",
                slug=row["slug"] or "",
                type=row["type"],
                media_url=row["mediaUrl"],
                thumbnail=row["thumbnail"],
                content=row["content"],
                transcription_completed=bool(row["transcriptionCompleted"]),
                module_id=row["module_id"],
                module_name=row["module_name"] or "",
                section_id=row["section_id"],
                section_name=row["section_name"] or "",
                course_id=row["course_id"],
                course_name=row["course_name"] or "",
                vitrine_id=row["vitrine_id"],
                vitrine_name=row["vitrine_name"] or "",
            )
            for row in rows
        ]
        return LessonList(
            lessons=lessons,
            total=len(lessons),
            tenant_id=tenant_id,
            only_unprocessed=only_unprocessed,
        )

    def update_transcription_status(
        self, lesson_id: str, completed: bool
    ) -> LessonTranscriptionUpdate:
        """
        Set a lesson's transcriptionCompleted flag.

        Raises:
            ValueError: Empty lesson ID
            LessonNotFoundError: Unknown lesson
            AIFeatureDisabledError: Lesson's tenant has AI disabled
            LessonCatalogError: Database failure
        """
        if not lesson_id:
            raise ValueError("lesson_id is required")

        try:
            with self.engine.begin() as conn:
                row = (
                    conn.execute(text(LESSON_WITH_TENANT_QUERY), {"lesson_id": lesson_id})
                    .mappings()
                    .first()
                )
                if row is None:
                    raise LessonNotFoundError(lesson_id)
                if not row["aiEnabled"]:
                    raise AIFeatureDisabledError(row["tenant_id"])

                conn.execute(
                    text(UPDATE_TRANSCRIPTION_QUERY).bindparams(
                        bindparam("now", type_=DateTime(timezone=True))
                    ),
                    {"completed": completed, "now": datetime.now(UTC), "lesson_id": lesson_id},
                )
        except SQLAlchemyError as e:
            logger.error(f"Error updating transcription status for {lesson_id}: {e}")
            raise LessonCatalogError(f"error updating transcription status: {e}") from e

        return LessonTranscriptionUpdate(
            lesson_id=row["id"],
            name=row["name"] or "",
            slug=row["slug"] or "",
            transcription_completed=completed,
        )
