"""SQLAlchemy ORM models for sent-reminder idempotency markers."""

from datetime import UTC, datetime

from sqlalchemy import DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from src.database.core import Base
from src.enums import Granularity


class SentReminder(Base):
    """ORM model for sent-reminder markers.

    One row per schedule per time bucket. The primary key is the idempotency
    key (``<schedule_id>_<bucket>``), so a second insert for the same bucket
    conflicts instead of duplicating.
    """

    __tablename__ = "sent_reminders"

    key: Mapped[str] = mapped_column(
        String(255),
        primary_key=True,
    )
    schedule_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )
    bucket_date: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
    )
    granularity: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        default=Granularity.DAY.value,
    )
    sent_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )
    person_email: Mapped[str] = mapped_column(
        String(320),
        nullable=False,
    )
    schedule_title: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )
    message_id: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )

    __table_args__ = (
        Index("idx_sent_reminders_sent_at", "sent_at"),
        Index("idx_sent_reminders_schedule_id", "schedule_id"),
    )

    def __repr__(self) -> str:
        """Return string representation of the marker."""
        return f"<SentReminder(key={self.key!r}, sent_at={self.sent_at})>"
