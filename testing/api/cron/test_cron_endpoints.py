"""Tests for the scheduler trigger endpoint."""

import os

# Set required environment variables before importing API modules
os.environ.setdefault("API_AUTH_TOKEN", "test-auth-token")
os.environ.setdefault("CRON_SECRET", "test-cron-secret")

import unittest
from unittest.mock import MagicMock, patch

from fastapi.testclient import TestClient

from src.api.app import app
from src.enums import OutcomeStatus
from src.reminders.models import CronRunResult


def _result() -> CronRunResult:
    result = CronRunResult(cache_hit=True, total_cached=4, duration_ms=37, cleaned_up=2)
    result.add_outcome("sched-1", "Rent", OutcomeStatus.SENT, "Sent to sam@example.com")
    result.add_outcome("sched-2", "Backups", OutcomeStatus.SKIPPED, "Already sent")
    result.checked = 2
    result.message = "Processed 2 schedules"
    return result


class TestSendRemindersEndpoint(unittest.TestCase):
    """Tests for GET/POST /cron/send-reminders."""

    def setUp(self) -> None:
        """Set up test client."""
        self.client = TestClient(app)

        session_patcher = patch("src.api.cron.endpoints.get_session")
        mock_get_session = session_patcher.start()
        self.addCleanup(session_patcher.stop)
        self.mock_session = MagicMock()
        mock_get_session.return_value.__enter__ = MagicMock(return_value=self.mock_session)
        mock_get_session.return_value.__exit__ = MagicMock(return_value=False)

        service_patcher = patch("src.api.cron.endpoints.build_dispatch_service")
        self.mock_build = service_patcher.start()
        self.addCleanup(service_patcher.stop)

    def test_post_with_bearer_secret(self) -> None:
        """Test a scheduler call authenticated with a Bearer header."""
        self.mock_build.return_value.run.return_value = _result()

        response = self.client.post(
            "/cron/send-reminders",
            headers={"Authorization": "Bearer test-cron-secret"},
        )

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["checked"], 2)
        self.assertEqual(data["sent"], 1)
        self.assertEqual(data["skipped"], 1)
        self.assertEqual(data["cleanedUp"], 2)
        self.assertTrue(data["cacheHit"])
        self.assertEqual(data["totalCached"], 4)
        self.assertEqual(data["durationMs"], 37)
        self.assertFalse(data["needsSync"])
        self.assertEqual(data["details"][0]["scheduleId"], "sched-1")
        self.assertEqual(data["details"][0]["status"], "sent")
        self.mock_build.assert_called_once_with(self.mock_session)

    def test_get_with_query_secret(self) -> None:
        """Test a scheduler call authenticated with the query parameter."""
        self.mock_build.return_value.run.return_value = CronRunResult(needs_sync=True)

        response = self.client.get("/cron/send-reminders?secret=test-cron-secret")

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["needsSync"])

    def test_wrong_secret_returns_401(self) -> None:
        """Test that a wrong secret is rejected before any work."""
        response = self.client.post("/cron/send-reminders?secret=nope")

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["detail"], "Unauthorized")
        self.mock_build.assert_not_called()

    def test_non_ascii_secret_returns_401(self) -> None:
        """Test that a non-ASCII secret is rejected rather than erroring."""
        response = self.client.get("/cron/send-reminders", params={"secret": "\u00e9"})

        self.assertEqual(response.status_code, 401)
        self.mock_build.assert_not_called()

    def test_non_ascii_bearer_secret_returns_401(self) -> None:
        """Test that a non-ASCII Bearer secret is rejected rather than erroring."""
        response = self.client.post(
            "/cron/send-reminders",
            headers={"Authorization": "Bearer caf\u00e9".encode()},
        )

        self.assertEqual(response.status_code, 401)
        self.mock_build.assert_not_called()

    def test_missing_secret_returns_401(self) -> None:
        """Test that an unauthenticated call is rejected."""
        response = self.client.post("/cron/send-reminders")

        self.assertEqual(response.status_code, 401)

    def test_api_token_is_not_the_cron_secret(self) -> None:
        """Test that the API token does not authorise the scheduler endpoint."""
        response = self.client.post(
            "/cron/send-reminders",
            headers={"Authorization": "Bearer test-auth-token"},
        )

        self.assertEqual(response.status_code, 401)

    @patch.dict(os.environ, {"CRON_SECRET": ""})
    def test_unconfigured_secret_returns_500(self) -> None:
        """Test that a missing CRON_SECRET is reported as a server error."""
        response = self.client.post("/cron/send-reminders?secret=test-cron-secret")

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["detail"], "Cron authentication not configured")

    def test_unexpected_failure_returns_500(self) -> None:
        """Test that a failure of the whole check is reported."""
        self.mock_build.return_value.run.side_effect = RuntimeError("database unavailable")

        response = self.client.post("/cron/send-reminders?secret=test-cron-secret")

        self.assertEqual(response.status_code, 500)
        data = response.json()
        self.assertEqual(data["errors"], 1)
        self.assertEqual(data["sent"], 0)
        self.assertFalse(data["cacheHit"])
        self.assertEqual(data["details"], [])
        self.assertIn("database unavailable", data["message"])
        self.assertNotIn("detail", data)

    def test_session_failure_returns_summary_body(self) -> None:
        """Test that a failure opening the session still returns a summary."""
        with patch("src.api.cron.endpoints.get_session") as mock_get_session:
            mock_get_session.side_effect = RuntimeError("pool exhausted")

            response = self.client.get("/cron/send-reminders?secret=test-cron-secret")

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["errors"], 1)
        self.assertIn("pool exhausted", response.json()["message"])
        self.mock_build.assert_not_called()


if __name__ == "__main__":
    unittest.main()
