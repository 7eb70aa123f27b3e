"""SQLAlchemy ORM model for reminder check audit records."""

import uuid as uuid_module
from datetime import UTC, datetime

from sqlalchemy import BigInteger, DateTime, Index, Integer
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.database.core import Base


class CronRunLog(Base):
    """ORM model for one execution of the reminder check.

    ``interval_ms`` is the time since the previous recorded run, or None for
    the first run.
    """

    __tablename__ = "cron_run_logs"

    id: Mapped[uuid_module.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid_module.uuid4,
    )
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    interval_ms: Mapped[int | None] = mapped_column(
        BigInteger,
        nullable=True,
    )
    checked: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    sent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    skipped: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    errors: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )

    __table_args__ = (Index("idx_cron_run_logs_timestamp", "timestamp"),)

    def __repr__(self) -> str:
        """Return string representation of the run."""
        return (
            f"<CronRunLog(timestamp={self.timestamp}, checked={self.checked}, "
            f"sent={self.sent}, errors={self.errors})>"
        )
