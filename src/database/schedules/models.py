"""SQLAlchemy ORM models for schedules."""

import uuid as uuid_module
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.database.core import Base
from src.enums import ScheduleStatus

# Maximum length of title to show in repr
REPR_TITLE_MAX_LENGTH = 50


class Schedule(Base):
    """ORM model for schedules, the source of truth for reminders.

    ``deadline`` and ``reminder_date`` hold the recurrence and reminder rule
    documents in their stored (camelCase) form.
    """

    __tablename__ = "schedules"

    id: Mapped[uuid_module.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid_module.uuid4,
    )
    user_id: Mapped[str | None] = mapped_column(
        String(128),
        nullable=True,
    )
    title: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )
    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
    )
    deadline: Mapped[dict[str, Any]] = mapped_column(
        JSONB,
        nullable=False,
    )
    reminder_date: Mapped[dict[str, Any]] = mapped_column(
        JSONB,
        nullable=False,
    )
    person_assigned: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )
    person_email: Mapped[str] = mapped_column(
        String(320),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ScheduleStatus.ACTIVE.value,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    __table_args__ = (Index("idx_schedules_status", "status"),)

    @property
    def is_active(self) -> bool:
        """Check if this schedule participates in reminder dispatch."""
        return self.status == ScheduleStatus.ACTIVE.value

    def __repr__(self) -> str:
        """Return string representation of the schedule."""
        if len(self.title) > REPR_TITLE_MAX_LENGTH:
            title_preview = self.title[:REPR_TITLE_MAX_LENGTH] + "..."
        else:
            title_preview = self.title
        deadline_type = (self.deadline or {}).get("type")
        return f"<Schedule(id={self.id}, title={title_preview!r}, deadline={deadline_type})>"
