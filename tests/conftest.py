"""Test configuration and fixtures."""

import contextlib
import os
import tempfile

import pytest

from tests.factories import (
    FakeTranscriptionService,
    InMemoryCache,
    LessonFactory,
    RecordingLessonCatalog,
    make_settings,
)


@pytest.fixture
def test_settings():
    """Settings pointing at the fake transcription service."""
    return make_settings()


@pytest.fixture
def unconfigured_settings():
    """Settings without a transcription service URL."""
    return make_settings(TRANSCRIPTION_API_URL=None)


@pytest.fixture
def task_db_url():
    """Temporary SQLite database URL for the scheduler job store."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = f.name

    yield f"sqlite:///{db_path}"

    with contextlib.suppress(OSError):
        os.unlink(db_path)


@pytest.fixture
def cache():
    return InMemoryCache()


@pytest.fixture
def catalog():
    """Catalog with tenant t1 owning three unprocessed lessons."""
    return RecordingLessonCatalog(
        tenants=[LessonFactory.tenant("t1")],
        lessons={"t1": LessonFactory.create_many("l1", "l2", "l3")},
    )


@pytest.fixture
def transcription_service():
    return FakeTranscriptionService()
