"""Marker stores backing the idempotency tracker.

The store is injected into the tracker. ``InMemoryMarkerStore`` serves a
single process (and tests); ``DatabaseMarkerStore`` is shared by every
worker and API instance through the ``sent_reminders`` table.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from contextlib import AbstractContextManager
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Protocol

from sqlalchemy.exc import SQLAlchemyError

from src.database.connection import get_session
from src.database.sent_reminders import (
    delete_sent_reminder,
    delete_sent_reminders_before,
    get_sent_reminders_by_keys,
    insert_sent_reminder_if_absent,
    upsert_sent_reminder,
)
from src.database.sent_reminders.models import SentReminder
from src.enums import Granularity
from src.reminders.exceptions import StoreError

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

SessionFactory = Callable[[], AbstractContextManager["Session"]]


@dataclass(frozen=True)
class SentMarker:
    """Record that a reminder was delivered for one schedule in one time bucket."""

    key: str
    schedule_id: str
    bucket_date: str
    granularity: Granularity
    sent_at: datetime
    person_email: str
    schedule_title: str
    message_id: str | None = None


class MarkerStore(Protocol):
    """Protocol for keyed sent-marker storage.

    Implementations raise ``StoreError`` when the backing store is unavailable.
    """

    def get(self, key: str) -> SentMarker | None:
        """Get the marker for a key, or None if absent."""
        ...

    def get_many(self, keys: list[str]) -> list[SentMarker]:
        """Get the markers that exist among ``keys``."""
        ...

    def upsert(self, marker: SentMarker) -> None:
        """Write a marker, overwriting any existing one with the same key."""
        ...

    def insert_if_absent(self, marker: SentMarker) -> bool:
        """Write a marker only if its key is free. Returns True if written."""
        ...

    def delete(self, key: str) -> bool:
        """Delete a marker. Returns True if one existed."""
        ...

    def delete_older_than(self, cutoff: datetime, limit: int) -> int:
        """Delete up to ``limit`` markers sent before ``cutoff``. Returns the count."""
        ...


class InMemoryMarkerStore:
    """Thread-safe marker store held in a single process."""

    def __init__(self) -> None:
        """Initialise an empty store."""
        self._markers: dict[str, SentMarker] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        """Return the number of stored markers."""
        return len(self._markers)

    def get(self, key: str) -> SentMarker | None:
        """Get the marker for a key, or None if absent."""
        with self._lock:
            return self._markers.get(key)

    def get_many(self, keys: list[str]) -> list[SentMarker]:
        """Get the markers that exist among ``keys``."""
        with self._lock:
            return [self._markers[key] for key in keys if key in self._markers]

    def upsert(self, marker: SentMarker) -> None:
        """Write a marker, overwriting any existing one with the same key."""
        with self._lock:
            self._markers[marker.key] = marker

    def insert_if_absent(self, marker: SentMarker) -> bool:
        """Write a marker only if its key is free. Returns True if written."""
        with self._lock:
            if marker.key in self._markers:
                return False
            self._markers[marker.key] = marker
            return True

    def delete(self, key: str) -> bool:
        """Delete a marker. Returns True if one existed."""
        with self._lock:
            return self._markers.pop(key, None) is not None

    def delete_older_than(self, cutoff: datetime, limit: int) -> int:
        """Delete up to ``limit`` markers sent before ``cutoff``. Returns the count."""
        with self._lock:
            expired = [key for key, marker in self._markers.items() if marker.sent_at < cutoff]
            for key in expired[:limit]:
                del self._markers[key]
            return len(expired[:limit])


class DatabaseMarkerStore:
    """Marker store backed by the ``sent_reminders`` table.

    Every call runs in its own short session so a marker is committed as soon
    as it is written, independent of any session held by the caller.
    """

    def __init__(self, session_factory: SessionFactory = get_session) -> None:
        """Initialise the store.

        :param session_factory: Context manager yielding a session that
            commits on success and rolls back on error.
        """
        self._session_factory = session_factory

    def get(self, key: str) -> SentMarker | None:
        """Get the marker for a key, or None if absent."""
        markers = self.get_many([key])
        return markers[0] if markers else None

    def get_many(self, keys: list[str]) -> list[SentMarker]:
        """Get the markers that exist among ``keys``."""
        try:
            with self._session_factory() as session:
                return [_to_marker(row) for row in get_sent_reminders_by_keys(session, keys)]
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to read sent reminder markers: {e}") from e

    def upsert(self, marker: SentMarker) -> None:
        """Write a marker, overwriting any existing one with the same key."""
        try:
            with self._session_factory() as session:
                upsert_sent_reminder(session, _to_values(marker))
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to write sent reminder marker {marker.key}: {e}") from e

    def insert_if_absent(self, marker: SentMarker) -> bool:
        """Write a marker only if its key is free. Returns True if written."""
        try:
            with self._session_factory() as session:
                return insert_sent_reminder_if_absent(session, _to_values(marker))
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to claim sent reminder marker {marker.key}: {e}") from e

    def delete(self, key: str) -> bool:
        """Delete a marker. Returns True if one existed."""
        try:
            with self._session_factory() as session:
                return delete_sent_reminder(session, key)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to delete sent reminder marker {key}: {e}") from e

    def delete_older_than(self, cutoff: datetime, limit: int) -> int:
        """Delete up to ``limit`` markers sent before ``cutoff``. Returns the count."""
        try:
            with self._session_factory() as session:
                return delete_sent_reminders_before(session, cutoff, limit)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to clean up sent reminder markers: {e}") from e


def _to_values(marker: SentMarker) -> dict:
    values = asdict(marker)
    values["granularity"] = marker.granularity.value
    return values


def _to_marker(row: SentReminder) -> SentMarker:
    return SentMarker(
        key=row.key,
        schedule_id=row.schedule_id,
        bucket_date=row.bucket_date,
        granularity=Granularity(row.granularity),
        sent_at=row.sent_at,
        person_email=row.person_email,
        schedule_title=row.schedule_title,
        message_id=row.message_id,
    )
