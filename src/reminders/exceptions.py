"""Custom exceptions for reminder dispatch."""

from src.engine.exceptions import ReminderEngineError


class DispatchError(ReminderEngineError):
    """Raised when a reminder could not be delivered."""

    def __init__(self, message: str, schedule_id: str | None = None) -> None:
        """Initialise DispatchError.

        :param message: Description of the failure.
        :param schedule_id: Schedule whose reminder failed, if known.
        """
        self.schedule_id = schedule_id
        super().__init__(message)


class NotifierError(DispatchError):
    """Raised when the notification transport rejects or fails a send."""


class DispatchTimeoutError(DispatchError):
    """Raised when a notification send exceeds its time limit."""

    def __init__(self, timeout_seconds: float, schedule_id: str | None = None) -> None:
        """Initialise DispatchTimeoutError.

        :param timeout_seconds: The limit that was exceeded.
        :param schedule_id: Schedule whose reminder timed out, if known.
        """
        self.timeout_seconds = timeout_seconds
        super().__init__(f"Notification send timed out after {timeout_seconds}s", schedule_id)


class StoreError(ReminderEngineError):
    """Raised when the marker store or schedule cache is unavailable."""


class ConfigurationError(ReminderEngineError):
    """Raised when required configuration is missing."""
