from __future__ import annotations

from typing import Any


class AssignmentEngineError(Exception):
    """Base class for errors raised by the assignment engine."""


class EngineNotLoadedError(AssignmentEngineError):
    def __init__(self) -> None:
        super().__init__("Assignment engine state has not been loaded yet")


class PersistenceError(AssignmentEngineError):
    """A durable write failed after all retries.

    The in-memory state was already updated before the write was attempted and
    is not rolled back; ``value`` carries that applied snapshot when the failing
    operation returns one.
    """

    def __init__(self, message: str, *, value: Any = None, attempts: int = 1) -> None:
        super().__init__(message)
        self.value = value
        self.attempts = attempts


class RosterSyncError(AssignmentEngineError):
    pass
