"""Database model and operations for reminder check audit records."""

from src.database.cron_logs.models import CronRunLog
from src.database.cron_logs.operations import get_last_cron_run, record_cron_run

__all__ = [
    # Models
    "CronRunLog",
    # Operations
    "get_last_cron_run",
    "record_cron_run",
]
