"""Tests for sent-reminder marker database operations."""

import unittest
from datetime import UTC, datetime
from unittest.mock import MagicMock

from sqlalchemy.dialects import postgresql

from src.database.sent_reminders.models import SentReminder
from src.database.sent_reminders.operations import (
    delete_sent_reminder,
    delete_sent_reminders_before,
    get_sent_reminders_by_keys,
    insert_sent_reminder_if_absent,
    sent_reminder_exists,
    upsert_sent_reminder,
)

SENT_AT = datetime(2025, 1, 6, 1, 0, tzinfo=UTC)

VALUES = {
    "key": "sched-1_2025-01-06",
    "schedule_id": "sched-1",
    "bucket_date": "2025-01-06",
    "granularity": "day",
    "sent_at": SENT_AT,
    "person_email": "sam@example.com",
    "schedule_title": "Water the plants",
    "message_id": None,
}


def _compiled(statement: object) -> str:
    return str(statement.compile(dialect=postgresql.dialect()))


class TestSentReminderExists(unittest.TestCase):
    """Tests for sent_reminder_exists operation."""

    def test_exists(self) -> None:
        """Test lookup by primary key."""
        mock_session = MagicMock()
        mock_session.get.return_value = SentReminder(**VALUES)

        self.assertTrue(sent_reminder_exists(mock_session, VALUES["key"]))
        mock_session.get.assert_called_once_with(SentReminder, VALUES["key"])

    def test_missing(self) -> None:
        """Test lookup of an absent key."""
        mock_session = MagicMock()
        mock_session.get.return_value = None

        self.assertFalse(sent_reminder_exists(mock_session, "nope"))


class TestUpsertSentReminder(unittest.TestCase):
    """Tests for upsert_sent_reminder operation."""

    def test_issues_insert_on_conflict_update(self) -> None:
        """Test that the upsert overwrites on key conflict."""
        mock_session = MagicMock()

        upsert_sent_reminder(mock_session, VALUES)

        sql = _compiled(mock_session.execute.call_args.args[0])
        self.assertIn("INSERT INTO sent_reminders", sql)
        self.assertIn("ON CONFLICT", sql)
        self.assertIn("DO UPDATE SET", sql)
        mock_session.flush.assert_called_once()


class TestInsertSentReminderIfAbsent(unittest.TestCase):
    """Tests for insert_sent_reminder_if_absent operation."""

    def test_claimed_when_inserted(self) -> None:
        """Test that an inserted row grants the claim."""
        mock_session = MagicMock()
        mock_session.execute.return_value.scalar_one_or_none.return_value = VALUES["key"]

        self.assertTrue(insert_sent_reminder_if_absent(mock_session, VALUES))
        sql = _compiled(mock_session.execute.call_args.args[0])
        self.assertIn("DO NOTHING", sql)

    def test_not_claimed_on_conflict(self) -> None:
        """Test that an existing row refuses the claim."""
        mock_session = MagicMock()
        mock_session.execute.return_value.scalar_one_or_none.return_value = None

        self.assertFalse(insert_sent_reminder_if_absent(mock_session, VALUES))


class TestDeleteSentReminder(unittest.TestCase):
    """Tests for delete_sent_reminder operation."""

    def test_deletes_existing(self) -> None:
        """Test deleting an existing marker."""
        marker = SentReminder(**VALUES)
        mock_session = MagicMock()
        mock_session.get.return_value = marker

        self.assertTrue(delete_sent_reminder(mock_session, VALUES["key"]))
        mock_session.delete.assert_called_once_with(marker)

    def test_missing_marker(self) -> None:
        """Test deleting a marker that does not exist."""
        mock_session = MagicMock()
        mock_session.get.return_value = None

        self.assertFalse(delete_sent_reminder(mock_session, "nope"))
        mock_session.delete.assert_not_called()


class TestDeleteSentRemindersBefore(unittest.TestCase):
    """Tests for delete_sent_reminders_before operation."""

    def test_deletes_one_batch(self) -> None:
        """Test that the selected batch of keys is deleted."""
        mock_session = MagicMock()
        mock_session.scalars.return_value = iter(["a_2025-01-05", "b_2025-01-05"])

        deleted = delete_sent_reminders_before(mock_session, SENT_AT, limit=2)

        self.assertEqual(deleted, 2)
        sql = _compiled(mock_session.execute.call_args.args[0])
        self.assertIn("DELETE FROM sent_reminders", sql)
        mock_session.flush.assert_called_once()

    def test_nothing_to_delete(self) -> None:
        """Test that no delete is issued when nothing is old enough."""
        mock_session = MagicMock()
        mock_session.scalars.return_value = iter([])

        self.assertEqual(delete_sent_reminders_before(mock_session, SENT_AT, limit=100), 0)
        mock_session.execute.assert_not_called()


class TestGetSentRemindersByKeys(unittest.TestCase):
    """Tests for get_sent_reminders_by_keys operation."""

    def test_empty_keys_skip_query(self) -> None:
        """Test that no query runs for an empty key list."""
        mock_session = MagicMock()

        self.assertEqual(get_sent_reminders_by_keys(mock_session, []), [])
        mock_session.scalars.assert_not_called()

    def test_returns_found_markers(self) -> None:
        """Test fetching markers in one query."""
        marker = SentReminder(**VALUES)
        mock_session = MagicMock()
        mock_session.scalars.return_value = iter([marker])

        result = get_sent_reminders_by_keys(mock_session, [VALUES["key"], "other"])

        self.assertEqual(result, [marker])
        mock_session.scalars.assert_called_once()


if __name__ == "__main__":
    unittest.main()
