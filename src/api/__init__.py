"""HTTP API for schedule management and the reminder trigger."""

from src.api.app import app

__all__ = ["app"]
