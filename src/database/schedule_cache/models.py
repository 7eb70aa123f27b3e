"""SQLAlchemy ORM model for the schedule cache snapshot."""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from src.database.core import Base


class ScheduleCacheSnapshot(Base):
    """ORM model for a materialised snapshot of active schedules.

    Each row is one named snapshot stored as a single JSON blob. Rows are
    only ever overwritten wholesale by a sync.
    """

    __tablename__ = "schedule_cache"

    cache_key: Mapped[str] = mapped_column(
        String(100),
        primary_key=True,
    )
    schedules: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONB,
        nullable=False,
        default=list,
    )
    schedule_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )
    last_synced: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )

    def __repr__(self) -> str:
        """Return string representation of the snapshot."""
        return (
            f"<ScheduleCacheSnapshot(cache_key={self.cache_key!r}, "
            f"schedule_count={self.schedule_count}, last_synced={self.last_synced})>"
        )
