"""Tests for the job registry and the scheduler entry point."""

import asyncio
from unittest.mock import AsyncMock, Mock, patch

import pytest
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from jobs.job_registry import (
    STATUS_POLL_SCHEDULE_ID,
    SUBMISSION_SCHEDULE_ID,
    JobRegistry,
    execute_job_by_type,
    run_with_timeout,
)
from jobs.transcription_status_poller import TranscriptionStatusPollerJob
from jobs.transcription_submission import TranscriptionSubmissionJob
from services.scheduler_service import SchedulerService
from tests.factories import make_settings


@pytest.fixture
def scheduler_service(task_db_url):
    service = SchedulerService(make_settings(TASK_DATABASE_URL=task_db_url))
    service.start()
    yield service
    service.shutdown(wait=False)


class TestJobRegistry:
    """Test the job registry."""

    def test_registers_transcription_jobs(self, test_settings):
        registry = JobRegistry(test_settings, Mock())

        assert registry.get_job_class("transcription_submission") is TranscriptionSubmissionJob
        assert registry.get_job_class("transcription_status_poller") is TranscriptionStatusPollerJob
        assert registry.get_job_class("unknown") is None

    def test_get_available_job_types(self, test_settings):
        registry = JobRegistry(test_settings, Mock())

        job_types = registry.get_available_job_types()

        assert {jt["type"] for jt in job_types} == {
            "transcription_submission",
            "transcription_status_poller",
        }
        for job_type in job_types:
            assert job_type["name"]
            assert job_type["description"]
            assert job_type["required_params"] == []

    def test_register_job_type(self, test_settings):
        registry = JobRegistry(test_settings, Mock())
        custom = type("CustomJob", (), {"JOB_NAME": "Custom"})

        registry.register_job_type("custom", custom)

        assert registry.get_job_class("custom") is custom

    def test_create_unknown_job_type(self, test_settings):
        registry = JobRegistry(test_settings, Mock())

        with pytest.raises(ValueError, match="Unknown job type"):
            registry.create_job("unknown")

    def test_create_job_passes_serializable_args(self, test_settings):
        scheduler_service = Mock()
        registry = JobRegistry(test_settings, scheduler_service)

        registry.create_job(
            "transcription_status_poller",
            job_id="poller_manual_1",
            schedule={"trigger": "date"},
        )

        kwargs = scheduler_service.add_job.call_args.kwargs
        assert kwargs["func"] is execute_job_by_type
        assert kwargs["trigger"] == "date"
        assert kwargs["args"] == ["transcription_status_poller", {}, "manual"]
        assert kwargs["name"] == "Transcription Status Poller"
        assert kwargs["replace_existing"] is True

    def test_schedule_transcription_jobs(self, test_settings, scheduler_service):
        registry = JobRegistry(test_settings, scheduler_service)

        registry.schedule_transcription_jobs()

        submission = scheduler_service.get_job(SUBMISSION_SCHEDULE_ID)
        poller = scheduler_service.get_job(STATUS_POLL_SCHEDULE_ID)
        assert isinstance(submission.trigger, CronTrigger)
        assert "hour='22'" in str(submission.trigger)
        assert "minute='0'" in str(submission.trigger)
        assert isinstance(poller.trigger, IntervalTrigger)
        assert poller.trigger.interval.total_seconds() == 600

    def test_scheduling_twice_replaces_jobs(self, test_settings, scheduler_service):
        registry = JobRegistry(test_settings, scheduler_service)

        registry.schedule_transcription_jobs()
        registry.schedule_transcription_jobs()

        assert len(scheduler_service.get_jobs()) == 2


class TestExecuteJobByType:
    """The function APScheduler invokes."""

    def test_unknown_job_type(self):
        with patch("jobs.job_registry.configure_job_logging"):
            with pytest.raises(ValueError, match="Unknown job type"):
                execute_job_by_type("unknown", {})

    def test_runs_job_with_fresh_settings(self):
        mock_job = Mock()
        mock_job.execute = AsyncMock(
            return_value={"status": "success", "result": {"message": "done"}}
        )
        mock_job_class = Mock(return_value=mock_job)

        with (
            patch("jobs.job_registry.configure_job_logging"),
            patch("jobs.job_registry.TasksSettings", return_value=make_settings()),
            patch.dict("jobs.job_registry.JOB_CLASSES", {"transcription_submission": mock_job_class}),
        ):
            result = execute_job_by_type("transcription_submission", {})

        assert result["status"] == "success"
        mock_job.execute.assert_awaited_once()

    def test_error_result_is_returned(self):
        mock_job = Mock()
        mock_job.execute = AsyncMock(return_value={"status": "error", "error": "boom"})

        with (
            patch("jobs.job_registry.configure_job_logging"),
            patch("jobs.job_registry.TasksSettings", return_value=make_settings()),
            patch.dict(
                "jobs.job_registry.JOB_CLASSES",
                {"transcription_status_poller": Mock(return_value=mock_job)},
            ),
        ):
            result = execute_job_by_type("transcription_status_poller", {})

        assert result == {"status": "error", "error": "boom"}


class TestRunWithTimeout:
    @pytest.mark.asyncio
    async def test_timeout_returns_error_result(self):
        async def hang():
            await asyncio.sleep(10)

        job = Mock()
        job.JOB_NAME = "Slow Job"
        job.get_job_id.return_value = "slow_1"
        job.execute = hang

        result = await run_with_timeout(job, 0.01)

        assert result["status"] == "error"
        assert result["error_type"] == "TimeoutError"
        assert result["job_id"] == "slow_1"
