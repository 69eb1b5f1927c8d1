from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

import structlog
from tenacity import AsyncRetrying, RetryError, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..metrics import ASSIGNMENT_PERSISTENCE_FAILURES_TOTAL
from ..schemas import Assignment, CoachAvailability, CoachProfile, StateSnapshot
from .errors import PersistenceError

logger = structlog.get_logger(__name__)


@runtime_checkable
class PersistenceAdapter(Protocol):
    """Durable storage for the three engine collections.

    ``save_state`` upserts the items it is given and must leave every collection
    (and every item) it is not given untouched. No atomicity across the three
    collections is assumed.
    """

    async def load_state(self) -> StateSnapshot: ...

    async def save_state(
        self,
        *,
        assignments: Mapping[str, Assignment] | None = None,
        availability: Mapping[str, CoachAvailability] | None = None,
        coaches: Mapping[str, CoachProfile] | None = None,
    ) -> None: ...


class InMemoryPersistenceAdapter:
    """Process-local adapter, used for tests and for running without a database."""

    def __init__(self, initial: StateSnapshot | None = None) -> None:
        self._state = initial.model_copy(deep=True) if initial else StateSnapshot()
        self.save_calls = 0

    async def load_state(self) -> StateSnapshot:
        return self._state.model_copy(deep=True)

    async def save_state(
        self,
        *,
        assignments: Mapping[str, Assignment] | None = None,
        availability: Mapping[str, CoachAvailability] | None = None,
        coaches: Mapping[str, CoachProfile] | None = None,
    ) -> None:
        self.save_calls += 1
        for key, value in (assignments or {}).items():
            self._state.assignments[key] = value.model_copy(deep=True)
        for key, value in (availability or {}).items():
            self._state.availability[key] = value.model_copy(deep=True)
        for key, value in (coaches or {}).items():
            self._state.coaches[key] = value.model_copy(deep=True)

    @property
    def state(self) -> StateSnapshot:
        return self._state


class StateWriter:
    """Issues durable writes through an adapter, retrying with exponential backoff."""

    def __init__(
        self,
        adapter: PersistenceAdapter,
        *,
        attempts: int = 3,
        wait: float = 0.5,
        max_wait: float = 5.0,
    ) -> None:
        self.adapter = adapter
        self._attempts = max(1, attempts)
        self._wait = wait
        self._max_wait = max_wait

    async def save(
        self,
        *,
        applied: Any = None,
        assignments: Mapping[str, Assignment] | None = None,
        availability: Mapping[str, CoachAvailability] | None = None,
        coaches: Mapping[str, CoachProfile] | None = None,
    ) -> None:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._attempts),
            wait=wait_exponential(multiplier=self._wait, max=self._max_wait),
            retry=retry_if_exception_type(Exception),
        )
        try:
            async for attempt in retrying:
                with attempt:
                    await self.adapter.save_state(
                        assignments=assignments,
                        availability=availability,
                        coaches=coaches,
                    )
        except RetryError as exc:
            cause = exc.last_attempt.exception()
            ASSIGNMENT_PERSISTENCE_FAILURES_TOTAL.inc()
            logger.error(
                "assignment_state_save_failed",
                attempts=self._attempts,
                assignments=sorted(assignments or {}),
                availability=sorted(availability or {}),
                coaches=sorted(coaches or {}),
                error=str(cause),
            )
            raise PersistenceError(
                f"Failed to persist state after {self._attempts} attempt(s): {cause}",
                value=applied,
                attempts=self._attempts,
            ) from cause
