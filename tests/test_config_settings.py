"""Tests for configuration settings (config/settings.py)."""

import pytest
from pydantic import ValidationError

from config.settings import TasksSettings, get_settings


class TestTasksSettingsDefaults:
    """Test default configuration values."""

    def test_transcription_disabled_without_url(self, monkeypatch):
        """Jobs are disabled when TRANSCRIPTION_API_URL is unset."""
        monkeypatch.delenv("TRANSCRIPTION_API_URL", raising=False)
        settings = TasksSettings()
        assert settings.transcription_api_url is None
        assert settings.transcription_enabled is False

    def test_empty_url_counts_as_unset(self, monkeypatch):
        monkeypatch.setenv("TRANSCRIPTION_API_URL", "")
        settings = TasksSettings()
        assert settings.transcription_enabled is False

    def test_default_timeouts_and_ttl(self, monkeypatch):
        for name in (
            "TRANSCRIPTION_API_TIMEOUT",
            "TRANSCRIPTION_JOB_TTL_SECONDS",
            "JOB_RUN_TIMEOUT_SECONDS",
        ):
            monkeypatch.delenv(name, raising=False)
        settings = TasksSettings()
        assert settings.transcription_api_timeout == 30.0
        assert settings.transcription_job_ttl_seconds == 86400
        assert settings.job_run_timeout_seconds == 1800

    def test_default_schedules(self, monkeypatch):
        """Submission runs nightly at 22:00, polling every 10 minutes."""
        for name in (
            "TRANSCRIPTION_SUBMISSION_HOUR",
            "TRANSCRIPTION_SUBMISSION_MINUTE",
            "TRANSCRIPTION_STATUS_POLL_MINUTES",
        ):
            monkeypatch.delenv(name, raising=False)
        settings = TasksSettings()
        assert settings.transcription_submission_hour == 22
        assert settings.transcription_submission_minute == 0
        assert settings.transcription_status_poll_minutes == 10

    def test_default_scheduler_settings(self, monkeypatch):
        monkeypatch.delenv("SCHEDULER_TIMEZONE", raising=False)
        monkeypatch.delenv("SCHEDULER_JOB_DEFAULTS_MAX_INSTANCES", raising=False)
        settings = TasksSettings()
        assert settings.scheduler_timezone == "UTC"
        assert settings.scheduler_job_defaults_max_instances == 1
        assert settings.scheduler_job_defaults_coalesce is True

    def test_default_port(self, monkeypatch):
        monkeypatch.delenv("TASKS_PORT", raising=False)
        assert TasksSettings().port == 8081


class TestTasksSettingsFromEnvironment:
    """Test values read from environment variables."""

    def test_reads_transcription_url(self, monkeypatch):
        monkeypatch.setenv("TRANSCRIPTION_API_URL", "https://transcribe.example.com/")
        settings = TasksSettings()
        assert settings.transcription_api_url == "https://transcribe.example.com"
        assert settings.transcription_enabled is True

    def test_reads_cache_and_database_urls(self, monkeypatch):
        monkeypatch.setenv("CACHE_REDIS_URL", "redis://cache:6380/1")
        monkeypatch.setenv("DATA_DATABASE_URL", "sqlite:///data.db")
        settings = TasksSettings()
        assert settings.cache_redis_url == "redis://cache:6380/1"
        assert settings.data_database_url == "sqlite:///data.db"

    def test_reads_poll_interval(self, monkeypatch):
        monkeypatch.setenv("TRANSCRIPTION_STATUS_POLL_MINUTES", "5")
        assert TasksSettings().transcription_status_poll_minutes == 5

    def test_get_settings_returns_fresh_instance(self):
        assert isinstance(get_settings(), TasksSettings)
        assert get_settings() is not get_settings()


class TestTasksSettingsValidation:
    """Test rejected configuration."""

    def test_url_without_scheme_is_rejected(self, monkeypatch):
        monkeypatch.setenv("TRANSCRIPTION_API_URL", "transcribe.example.com")
        with pytest.raises(ValidationError):
            TasksSettings()

    @pytest.mark.parametrize(
        "name",
        ["TRANSCRIPTION_API_TIMEOUT", "TRANSCRIPTION_JOB_TTL_SECONDS", "JOB_RUN_TIMEOUT_SECONDS"],
    )
    def test_non_positive_values_are_rejected(self, monkeypatch, name):
        monkeypatch.setenv(name, "0")
        with pytest.raises(ValidationError):
            TasksSettings()

    def test_submission_hour_out_of_range(self, monkeypatch):
        monkeypatch.setenv("TRANSCRIPTION_SUBMISSION_HOUR", "24")
        with pytest.raises(ValidationError):
            TasksSettings()
