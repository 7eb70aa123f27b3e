"""Tests for the Celery reminder tasks."""

import os

# Set required environment variables before importing Celery modules
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/0")

import unittest
from unittest.mock import MagicMock, patch

from src.database.schedule_cache import CacheSyncResult
from src.orchestration.tasks import (
    REMINDER_TICK_EXPIRES_SECONDS,
    send_reminders_task,
    setup_periodic_tasks,
    sync_schedule_cache_task,
)
from src.reminders.models import CronRunResult


def _patch_session(test: unittest.TestCase) -> MagicMock:
    patcher = patch("src.orchestration.tasks.get_session")
    mock_get_session = patcher.start()
    test.addCleanup(patcher.stop)
    mock_session = MagicMock()
    mock_get_session.return_value.__enter__ = MagicMock(return_value=mock_session)
    mock_get_session.return_value.__exit__ = MagicMock(return_value=False)
    return mock_session


class TestSendRemindersTask(unittest.TestCase):
    """Tests for send_reminders_task."""

    def setUp(self) -> None:
        """Patch the database session."""
        self.mock_session = _patch_session(self)

    @patch("src.orchestration.tasks.build_dispatch_service")
    def test_returns_run_counters(self, mock_build: MagicMock) -> None:
        """Test that the task runs one check and returns its counters."""
        mock_build.return_value.run.return_value = CronRunResult(
            checked=3, sent=2, skipped=1, cleaned_up=4
        )

        stats = send_reminders_task.run()

        mock_build.assert_called_once_with(self.mock_session)
        self.assertEqual(stats["checked"], 3)
        self.assertEqual(stats["sent"], 2)
        self.assertEqual(stats["cleaned_up"], 4)
        self.assertFalse(stats["needs_sync"])

    @patch("src.orchestration.tasks.build_dispatch_service")
    def test_failure_propagates(self, mock_build: MagicMock) -> None:
        """Test that a failed check fails the task."""
        mock_build.return_value.run.side_effect = RuntimeError("boom")

        with self.assertRaises(RuntimeError):
            send_reminders_task.run()


class TestSyncScheduleCacheTask(unittest.TestCase):
    """Tests for sync_schedule_cache_task."""

    def setUp(self) -> None:
        """Patch the database session."""
        self.mock_session = _patch_session(self)

    @patch("src.orchestration.tasks.DatabaseScheduleSource")
    @patch("src.orchestration.tasks.sync_schedule_cache")
    def test_returns_count(self, mock_sync: MagicMock, mock_source: MagicMock) -> None:
        """Test a successful rebuild."""
        mock_sync.return_value = CacheSyncResult(success=True, count=5)

        result = sync_schedule_cache_task.run()

        self.assertEqual(result, {"count": 5})
        mock_source.assert_called_once_with(self.mock_session)

    @patch("src.orchestration.tasks.DatabaseScheduleSource")
    @patch("src.orchestration.tasks.sync_schedule_cache")
    def test_failure_raises_for_retry(self, mock_sync: MagicMock, mock_source: MagicMock) -> None:
        """Test that a failed rebuild raises so Celery retries it."""
        mock_sync.return_value = CacheSyncResult(success=False, count=0, error="db down")

        with self.assertRaises(RuntimeError) as context:
            sync_schedule_cache_task.run()
        self.assertIn("db down", str(context.exception))


class TestSetupPeriodicTasks(unittest.TestCase):
    """Tests for the beat schedule."""

    def test_registers_minute_tick(self) -> None:
        """Test that the reminder check is scheduled every minute and expires."""
        sender = MagicMock()

        setup_periodic_tasks(sender)

        sender.add_periodic_task.assert_called_once()
        schedule, signature = sender.add_periodic_task.call_args.args
        self.assertEqual(signature.task, "src.orchestration.tasks.send_reminders_task")
        self.assertEqual(
            sender.add_periodic_task.call_args.kwargs["expires"],
            REMINDER_TICK_EXPIRES_SECONDS,
        )


if __name__ == "__main__":
    unittest.main()
