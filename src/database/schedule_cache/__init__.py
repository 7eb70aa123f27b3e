"""Database model and operations for the schedule cache snapshot."""

from src.database.schedule_cache.models import ScheduleCacheSnapshot
from src.database.schedule_cache.operations import (
    UPCOMING_REMINDERS_KEY,
    CacheStatus,
    CacheSyncResult,
    get_cache_status,
    get_cached_schedules,
    sync_schedule_cache,
)

__all__ = [
    "UPCOMING_REMINDERS_KEY",
    "CacheStatus",
    "CacheSyncResult",
    # Models
    "ScheduleCacheSnapshot",
    # Operations
    "get_cache_status",
    "get_cached_schedules",
    "sync_schedule_cache",
]
