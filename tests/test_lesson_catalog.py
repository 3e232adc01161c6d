"""Tests for the SQL lesson catalog against a SQLite copy of the schema."""

import pytest
from sqlalchemy import create_engine, text

from services.exceptions import (
    AIFeatureDisabledError,
    LessonCatalogError,
    LessonNotFoundError,
)
from services.lesson_catalog import SQLLessonCatalog

SCHEMA = [
    'CREATE TABLE "Tenant" (id TEXT PRIMARY KEY, name TEXT, "aiEnabled" BOOLEAN)',
    'CREATE TABLE "Vitrine" (id TEXT PRIMARY KEY, name TEXT, "tenantId" TEXT, "order" INTEGER)',
    'CREATE TABLE "Course" (id TEXT PRIMARY KEY, name TEXT, "vitrineId" TEXT, "order" INTEGER)',
    'CREATE TABLE "Section" (id TEXT PRIMARY KEY, name TEXT, "courseId" TEXT, "order" INTEGER)',
    'CREATE TABLE "Module" (id TEXT PRIMARY KEY, name TEXT, "sectionId" TEXT, "order" INTEGER)',
    """CREATE TABLE "Lesson" (
        id TEXT PRIMARY KEY, name TEXT, slug TEXT, type TEXT, "mediaUrl" TEXT,
        thumbnail TEXT, content TEXT, "transcriptionCompleted" BOOLEAN,
        published BOOLEAN, "moduleId" TEXT, "order" INTEGER, "updatedAt" TIMESTAMP
    )""",
]

ROWS = [
    """INSERT INTO "Tenant" VALUES ('t1', 'Acme', 1), ('t2', 'Globex', 0), ('t3', 'Initech', 1)""",
    """INSERT INTO "Vitrine" VALUES ('v1', 'Main', 't1', 1), ('v2', 'Other', 't2', 1)""",
    """INSERT INTO "Course" VALUES ('c1', 'Python', 'v1', 1), ('c2', 'Go', 'v2', 1)""",
    """INSERT INTO "Section" VALUES ('s1', 'Basics', 'c1', 1), ('s2', 'Basics', 'c2', 1)""",
    """INSERT INTO "Module" VALUES ('m1', 'Intro', 's1', 1), ('m2', 'Intro', 's2', 1)""",
    """INSERT INTO "Lesson" VALUES
        ('l2', 'Second', 'second', 'video', 'https://cdn/l2.mp4', NULL, NULL, 0, 1, 'm1', 2, NULL),
        ('l1', 'First', 'first', 'video', 'https://cdn/l1.mp4', NULL, NULL, 0, 1, 'm1', 1, NULL),
        ('l3', 'Done', 'done', 'video', 'https://cdn/l3.mp4', NULL, NULL, 1, 1, 'm1', 3, NULL),
        ('l4', 'Draft', 'draft', 'video', NULL, NULL, NULL, 0, 0, 'm1', 4, NULL),
        ('l5', 'Other', 'other', 'video', NULL, NULL, NULL, 0, 1, 'm2', 1, NULL)
    """,
]


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'data.db'}")
    with engine.begin() as conn:
        for statement in SCHEMA + ROWS:
            conn.execute(text(statement))
    yield engine
    engine.dispose()


@pytest.fixture
def lesson_catalog(engine):
    return SQLLessonCatalog("sqlite://", engine=engine)


def lesson_flag(engine, lesson_id):
    with engine.connect() as conn:
        return conn.execute(
            text('SELECT "transcriptionCompleted", "updatedAt" FROM "Lesson" WHERE id = :id'),
            {"id": lesson_id},
        ).one()


class TestListTenants:
    def test_only_ai_enabled_tenants(self, lesson_catalog):
        result = lesson_catalog.list_tenants_with_ai_enabled()

        assert result.total == 2
        assert [t.id for t in result.tenants] == ["t1", "t3"]
        assert all(t.ai_enabled for t in result.tenants)

    def test_database_error_is_wrapped(self):
        catalog = SQLLessonCatalog("sqlite://")

        with pytest.raises(LessonCatalogError):
            catalog.list_tenants_with_ai_enabled()


class TestListLessons:
    def test_unprocessed_published_lessons_in_order(self, lesson_catalog):
        result = lesson_catalog.list_lessons("t1", only_unprocessed=True)

        assert [lesson.id for lesson in result.lessons] == ["l1", "l2"]
        assert result.total == 2
        assert result.tenant_id == "t1"
        first = result.lessons[0]
        assert first.media_url == "https://cdn/l1.mp4"
        assert first.module_name == "Intro"
        assert first.course_name == "Python"
        assert first.vitrine_id == "v1"

    def test_all_published_lessons(self, lesson_catalog):
        result = lesson_catalog.list_lessons("t1", only_unprocessed=False)

        assert [lesson.id for lesson in result.lessons] == ["l1", "l2", "l3"]
        assert result.lessons[2].transcription_completed is True

    def test_tenant_without_lessons(self, lesson_catalog):
        assert lesson_catalog.list_lessons("t3").lessons == []


class TestUpdateTranscriptionStatus:
    def test_marks_lesson_completed(self, engine, lesson_catalog):
        update = lesson_catalog.update_transcription_status("l1", True)

        assert update.lesson_id == "l1"
        assert update.slug == "first"
        assert update.transcription_completed is True
        completed, updated_at = lesson_flag(engine, "l1")
        assert completed
        assert updated_at is not None

    def test_empty_lesson_id_is_rejected(self, lesson_catalog):
        with pytest.raises(ValueError):
            lesson_catalog.update_transcription_status("", True)

    def test_unknown_lesson(self, lesson_catalog):
        with pytest.raises(LessonNotFoundError):
            lesson_catalog.update_transcription_status("missing", True)

    def test_tenant_without_ai_is_rejected(self, engine, lesson_catalog):
        with pytest.raises(AIFeatureDisabledError) as exc_info:
            lesson_catalog.update_transcription_status("l5", True)

        assert exc_info.value.tenant_id == "t2"
        completed, _ = lesson_flag(engine, "l5")
        assert not completed
