"""Scheduler trigger endpoints."""

from src.api.cron.endpoints import router

__all__ = ["router"]
