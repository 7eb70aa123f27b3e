"""Custom exceptions for the reminder engine."""


class ReminderEngineError(Exception):
    """Base exception for reminder engine errors."""


class ComputationError(ReminderEngineError):
    """Raised when a schedule's recurrence or reminder data cannot be evaluated."""

    def __init__(self, message: str, schedule_id: str | None = None) -> None:
        """Initialise ComputationError.

        :param message: Description of the problem.
        :param schedule_id: Schedule the data belongs to, if known.
        """
        self.schedule_id = schedule_id
        super().__init__(message)
