"""
Domain errors raised by the gift engine.

The HTTP layer maps each class to a status code (see ``gifttracker.main``);
the engine itself never retries and never swallows a failure.
"""
from typing import Any


class GiftTrackerError(Exception):
    """Base class for engine failures."""

    status_code = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(GiftTrackerError):
    """Input rejected before any write happened."""

    status_code = 422


class NotFoundError(GiftTrackerError):
    """The targeted record does not exist."""

    status_code = 404


class WriteError(GiftTrackerError):
    """The database rejected or failed a write."""

    status_code = 500


class PartialBatchError(WriteError):
    """
    Some steps of a multi-step or bulk operation were applied and others failed.

    Nothing is rolled back; ``details`` lists what was applied and what failed so
    callers can re-fetch and inspect.
    """

    def __init__(
        self,
        message: str,
        *,
        completed: list[Any] | None = None,
        failures: list[dict[str, Any]] | None = None,
        subject_id: str | None = None,
    ) -> None:
        self.completed = list(completed or [])
        self.failures = list(failures or [])
        self.subject_id = subject_id
        details: dict[str, Any] = {"completed": self.completed, "failures": self.failures}
        if subject_id is not None:
            details["subject_id"] = subject_id
        super().__init__(message, details=details)
