"""Tests for schedule API endpoints."""

import os

# Set required environment variables before importing API modules
os.environ.setdefault("API_AUTH_TOKEN", "test-auth-token")
os.environ.setdefault("CRON_SECRET", "test-cron-secret")

import unittest
from datetime import UTC, datetime
from unittest.mock import MagicMock, patch
from uuid import uuid4

from fastapi.testclient import TestClient

from src.api.app import app
from src.database.schedule_cache import CacheStatus, CacheSyncResult
from src.database.schedules.models import Schedule
from src.engine.models import DailyRule
from src.reminders.exceptions import StoreError

CREATED_AT = datetime(2025, 1, 1, tzinfo=UTC)

CREATE_BODY = {
    "title": "Pay rent",
    "deadline": {"type": "monthly", "dayOfMonth": 1, "time": "10:00"},
    "reminderDate": {"type": "relative", "daysBefore": 2, "time": "09:00"},
    "personAssigned": "Sam",
    "personEmail": "sam@example.com",
}


def _schedule(**overrides: object) -> Schedule:
    fields: dict[str, object] = {
        "id": uuid4(),
        "title": "Pay rent",
        "description": "",
        "deadline": {"type": "monthly", "dayOfMonth": 1, "time": "10:00"},
        "reminder_date": {"type": "relative", "daysBefore": 2, "time": "09:00"},
        "person_assigned": "Sam",
        "person_email": "sam@example.com",
        "status": "active",
        "created_at": CREATED_AT,
        "updated_at": CREATED_AT,
    }
    fields.update(overrides)
    return Schedule(**fields)


class SchedulesEndpointTestCase(unittest.TestCase):
    """Shared setup for schedule endpoint tests."""

    def setUp(self) -> None:
        """Set up test client and a mocked session."""
        self.client = TestClient(app)
        self.auth_headers = {"Authorization": "Bearer test-auth-token"}

        session_patcher = patch("src.api.schedules.endpoints.get_session")
        mock_get_session = session_patcher.start()
        self.addCleanup(session_patcher.stop)
        self.mock_session = MagicMock()
        mock_get_session.return_value.__enter__ = MagicMock(return_value=self.mock_session)
        mock_get_session.return_value.__exit__ = MagicMock(return_value=False)

        changed_patcher = patch("src.api.schedules.endpoints.handle_schedule_changed")
        self.mock_changed = changed_patcher.start()
        self.addCleanup(changed_patcher.stop)


class TestScheduleAuth(SchedulesEndpointTestCase):
    """Tests for authentication on schedule endpoints."""

    def test_missing_token_rejected(self) -> None:
        """Test that requests without a token are rejected."""
        response = self.client.get("/schedules/cache-status")

        self.assertIn(response.status_code, (401, 403))

    def test_cron_secret_is_not_an_api_token(self) -> None:
        """Test that the scheduler secret cannot manage schedules."""
        response = self.client.get(
            "/schedules/cache-status",
            headers={"Authorization": "Bearer test-cron-secret"},
        )

        self.assertEqual(response.status_code, 401)


class TestCreateScheduleEndpoint(SchedulesEndpointTestCase):
    """Tests for POST /schedules."""

    @patch("src.api.schedules.endpoints.create_schedule")
    def test_create_success(self, mock_create: MagicMock) -> None:
        """Test creating a schedule refreshes the cache and returns the next reminder."""
        schedule = _schedule()
        mock_create.return_value = schedule

        response = self.client.post("/schedules", headers=self.auth_headers, json=CREATE_BODY)

        self.assertEqual(response.status_code, 201)
        data = response.json()
        self.assertEqual(data["id"], str(schedule.id))
        self.assertEqual(data["deadline"]["dayOfMonth"], 1)
        self.assertIsNotNone(data["nextDeadline"])
        self.assertIsNotNone(data["nextReminder"])
        self.assertEqual(mock_create.call_args.kwargs["deadline"].day_of_month, 1)
        self.mock_changed.assert_called_once_with(self.mock_session, str(schedule.id))

    @patch("src.api.schedules.endpoints.create_schedule")
    def test_create_survives_failed_cache_sync(self, mock_create: MagicMock) -> None:
        """Test that a failed cache rebuild does not undo the created schedule."""
        schedule = _schedule()
        mock_create.return_value = schedule
        self.mock_changed.return_value = CacheSyncResult(
            success=False, count=0, error="connection refused"
        )

        response = self.client.post("/schedules", headers=self.auth_headers, json=CREATE_BODY)

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["id"], str(schedule.id))
        self.mock_session.rollback.assert_not_called()

    def test_invalid_time_rejected(self) -> None:
        """Test that a malformed wall-clock time is rejected."""
        body = {**CREATE_BODY, "deadline": {"type": "daily", "time": "24:00"}}

        response = self.client.post("/schedules", headers=self.auth_headers, json=body)

        self.assertEqual(response.status_code, 422)

    def test_unknown_rule_type_rejected(self) -> None:
        """Test that an unknown recurrence type is rejected."""
        body = {**CREATE_BODY, "deadline": {"type": "fortnightly"}}

        response = self.client.post("/schedules", headers=self.auth_headers, json=body)

        self.assertEqual(response.status_code, 422)


class TestGetScheduleEndpoint(SchedulesEndpointTestCase):
    """Tests for GET /schedules/{id}."""

    @patch("src.api.schedules.endpoints.get_schedule_by_id")
    def test_get_inactive_has_no_next_deadline(self, mock_get: MagicMock) -> None:
        """Test that inactive schedules report no upcoming deadline."""
        schedule = _schedule(status="inactive")
        mock_get.return_value = schedule

        response = self.client.get(f"/schedules/{schedule.id}", headers=self.auth_headers)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "inactive")
        self.assertIsNone(response.json()["nextDeadline"])

    @patch("src.api.schedules.endpoints.get_schedule_by_id")
    def test_get_custom_rule_has_no_next_deadline(self, mock_get: MagicMock) -> None:
        """Test that an unevaluated custom rule reports no upcoming deadline or reminder."""
        schedule = _schedule(deadline={"type": "custom", "cronExpression": "0 9 * * 1"})
        mock_get.return_value = schedule

        response = self.client.get(f"/schedules/{schedule.id}", headers=self.auth_headers)

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["status"], "active")
        self.assertEqual(data["deadline"]["cronExpression"], "0 9 * * 1")
        self.assertIsNone(data["nextDeadline"])
        self.assertIsNone(data["nextReminder"])

    @patch("src.api.schedules.endpoints.get_schedule_by_id")
    def test_get_active_rule_has_next_deadline(self, mock_get: MagicMock) -> None:
        """Test that a regular rule reports its next deadline and reminder."""
        schedule = _schedule(deadline={"type": "daily", "time": "17:00"})
        mock_get.return_value = schedule

        response = self.client.get(f"/schedules/{schedule.id}", headers=self.auth_headers)

        self.assertEqual(response.status_code, 200)
        self.assertIsNotNone(response.json()["nextDeadline"])
        self.assertIsNotNone(response.json()["nextReminder"])

    @patch("src.api.schedules.endpoints.get_schedule_by_id")
    def test_get_not_found(self, mock_get: MagicMock) -> None:
        """Test getting a schedule that does not exist."""
        mock_get.return_value = None

        response = self.client.get(f"/schedules/{uuid4()}", headers=self.auth_headers)

        self.assertEqual(response.status_code, 404)


class TestUpdateScheduleEndpoint(SchedulesEndpointTestCase):
    """Tests for PATCH /schedules/{id}."""

    @patch("src.api.schedules.endpoints.update_schedule")
    def test_update_passes_only_sent_fields(self, mock_update: MagicMock) -> None:
        """Test that omitted fields are not changed and the cache is refreshed."""
        schedule = _schedule(deadline={"type": "daily", "time": "17:00"})
        mock_update.return_value = schedule

        response = self.client.patch(
            f"/schedules/{schedule.id}",
            headers=self.auth_headers,
            json={"deadline": {"type": "daily", "time": "17:00"}},
        )

        self.assertEqual(response.status_code, 200)
        changes = mock_update.call_args.kwargs
        self.assertEqual(list(changes), ["deadline"])
        self.assertIsInstance(changes["deadline"], DailyRule)
        self.assertEqual(changes["deadline"].time, "17:00")
        self.mock_changed.assert_called_once_with(self.mock_session, str(schedule.id))

    @patch("src.api.schedules.endpoints.update_schedule")
    def test_update_not_found(self, mock_update: MagicMock) -> None:
        """Test updating a schedule that does not exist."""
        mock_update.return_value = None

        response = self.client.patch(
            f"/schedules/{uuid4()}",
            headers=self.auth_headers,
            json={"title": "New title"},
        )

        self.assertEqual(response.status_code, 404)
        self.mock_changed.assert_not_called()


class TestDeactivateScheduleEndpoint(SchedulesEndpointTestCase):
    """Tests for DELETE /schedules/{id}."""

    @patch("src.api.schedules.endpoints.deactivate_schedule")
    def test_deactivate_success(self, mock_deactivate: MagicMock) -> None:
        """Test deactivating a schedule refreshes the cache."""
        schedule = _schedule(status="inactive")
        mock_deactivate.return_value = schedule

        response = self.client.delete(f"/schedules/{schedule.id}", headers=self.auth_headers)

        self.assertEqual(response.status_code, 204)
        self.mock_changed.assert_called_once_with(self.mock_session, str(schedule.id))

    @patch("src.api.schedules.endpoints.deactivate_schedule")
    def test_deactivate_not_found(self, mock_deactivate: MagicMock) -> None:
        """Test deactivating a schedule that does not exist."""
        mock_deactivate.return_value = None

        response = self.client.delete(f"/schedules/{uuid4()}", headers=self.auth_headers)

        self.assertEqual(response.status_code, 404)


class TestCacheEndpoints(SchedulesEndpointTestCase):
    """Tests for the cache sync and status endpoints."""

    @patch("src.api.schedules.endpoints.sync_schedule_cache")
    def test_sync_cache_success(self, mock_sync: MagicMock) -> None:
        """Test a successful cache rebuild."""
        mock_sync.return_value = CacheSyncResult(success=True, count=7)

        response = self.client.post("/schedules/sync-cache", headers=self.auth_headers)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"success": True, "count": 7, "error": None})

    @patch("src.api.schedules.endpoints.sync_schedule_cache")
    def test_sync_cache_failure(self, mock_sync: MagicMock) -> None:
        """Test that a failed rebuild returns 500 with the error."""
        mock_sync.return_value = CacheSyncResult(success=False, count=0, error="db down")

        response = self.client.post("/schedules/sync-cache", headers=self.auth_headers)

        self.assertEqual(response.status_code, 500)
        self.assertIn("db down", response.json()["detail"])

    @patch("src.api.schedules.endpoints.get_cache_status")
    def test_cache_status(self, mock_status: MagicMock) -> None:
        """Test reporting the cache status."""
        synced = datetime(2025, 1, 6, 1, 0, tzinfo=UTC)
        mock_status.return_value = CacheStatus(exists=True, last_synced=synced, schedule_count=3)

        response = self.client.get("/schedules/cache-status", headers=self.auth_headers)

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertTrue(data["exists"])
        self.assertEqual(data["scheduleCount"], 3)
        self.assertIsNotNone(data["lastSynced"])


class TestSentTodayEndpoint(SchedulesEndpointTestCase):
    """Tests for GET /schedules/sent-today."""

    @patch("src.api.schedules.endpoints.ReminderTracker")
    @patch("src.api.schedules.endpoints.DatabaseMarkerStore")
    @patch("src.api.schedules.endpoints.list_schedule_ids")
    def test_sent_today(
        self,
        mock_ids: MagicMock,
        mock_store_class: MagicMock,
        mock_tracker_class: MagicMock,
    ) -> None:
        """Test listing schedules whose reminder went out today."""
        schedule_id = uuid4()
        sent_at = datetime(2025, 1, 6, 1, 0, tzinfo=UTC)
        mock_ids.return_value = [schedule_id, uuid4()]
        mock_tracker_class.return_value.get_sent_today.return_value = {str(schedule_id): sent_at}

        response = self.client.get("/schedules/sent-today", headers=self.auth_headers)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(list(response.json()["sentToday"]), [str(schedule_id)])
        requested_ids = mock_tracker_class.return_value.get_sent_today.call_args.args[0]
        self.assertEqual(len(requested_ids), 2)

    @patch("src.api.schedules.endpoints.list_schedule_ids")
    def test_no_schedules(self, mock_ids: MagicMock) -> None:
        """Test the empty case without touching the marker store."""
        mock_ids.return_value = []

        response = self.client.get("/schedules/sent-today", headers=self.auth_headers)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"sentToday": {}})

    @patch("src.api.schedules.endpoints.ReminderTracker")
    @patch("src.api.schedules.endpoints.DatabaseMarkerStore")
    @patch("src.api.schedules.endpoints.list_schedule_ids")
    def test_store_failure_returns_500(
        self,
        mock_ids: MagicMock,
        mock_store_class: MagicMock,
        mock_tracker_class: MagicMock,
    ) -> None:
        """Test that an unavailable marker store is reported."""
        mock_ids.return_value = [uuid4()]
        mock_tracker_class.return_value.get_sent_today.side_effect = StoreError("down")

        response = self.client.get("/schedules/sent-today", headers=self.auth_headers)

        self.assertEqual(response.status_code, 500)


if __name__ == "__main__":
    unittest.main()
