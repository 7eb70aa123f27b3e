"""Schedule management and cache endpoints."""

from src.api.schedules.endpoints import router

__all__ = ["router"]
