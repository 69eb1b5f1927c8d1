from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

import structlog

from ..schemas import (
    Assignment,
    AvailabilityUpdate,
    CoachAthletes,
    CoachAvailability,
    CoachProfile,
    CoachStatus,
    CoachWorkload,
    FailoverResult,
    FailoverSummary,
    StatusChange,
    SystemStats,
)
from .availability import AvailabilityTracker
from .directory import CoachDirectory
from .errors import EngineNotLoadedError
from .failover import FailoverCoordinator
from .ledger import AssignmentLedger, Clock, utcnow
from .persistence import PersistenceAdapter, StateWriter
from .reporting import WorkloadReporter

logger = structlog.get_logger(__name__)


class AssignmentEngine:
    """Coach-athlete assignment state for one application instance.

    Built once at startup, hydrated with :meth:`load`, and passed to whoever
    needs it. Reads return copies, so callers always work on snapshots.
    """

    def __init__(
        self,
        adapter: PersistenceAdapter,
        *,
        default_max_capacity: int = 15,
        retry_attempts: int = 3,
        retry_wait: float = 0.5,
        retry_max_wait: float = 5.0,
        clock: Clock = utcnow,
    ) -> None:
        self.adapter = adapter
        self.writer = StateWriter(adapter, attempts=retry_attempts, wait=retry_wait, max_wait=retry_max_wait)
        self.directory = CoachDirectory()
        self.ledger = AssignmentLedger(self.writer, clock=clock)
        self.availability = AvailabilityTracker(
            self.directory,
            self.ledger,
            self.writer,
            default_max_capacity=default_max_capacity,
            clock=clock,
        )
        self.failover = FailoverCoordinator(self.ledger)
        self.reporter = WorkloadReporter(self.directory, self.availability, self.ledger)
        self._loaded = False

    @property
    def loaded(self) -> bool:
        return self._loaded

    def _require_loaded(self) -> None:
        if not self._loaded:
            raise EngineNotLoadedError()

    async def load(self) -> None:
        snapshot = await self.adapter.load_state()
        self.directory.clear()
        self.directory.merge(snapshot.coaches.values())
        self.ledger.load(snapshot.assignments)
        self.availability.load(snapshot.availability)
        self._loaded = True
        logger.info(
            "assignment_engine_loaded",
            coaches=len(snapshot.coaches),
            availability=len(snapshot.availability),
            assignments=len(snapshot.assignments),
        )

    async def reset(self) -> None:
        """Drop cached state and reload it from the persistence adapter."""
        self._loaded = False
        self.directory.clear()
        self.ledger.clear()
        self.availability.clear()
        await self.load()

    async def sync_roster(self, coaches: Iterable[CoachProfile]) -> list[CoachProfile]:
        """Merge a roster batch into the directory and seed availability for new coaches."""
        self._require_loaded()
        batch = list(coaches)
        added = self.directory.merge(batch)
        seeded = self.availability.seed(coach.id for coach in batch)
        logger.info("roster_merged", received=len(batch), added=added, seeded=sorted(seeded))
        await self.writer.save(
            applied=batch,
            coaches={coach.id: coach for coach in batch},
            availability=seeded or None,
        )
        return self.directory.list()

    def list_coaches(self) -> list[CoachProfile]:
        self._require_loaded()
        return self.directory.list()

    def get_coach(self, coach_id: str) -> CoachProfile | None:
        self._require_loaded()
        return self.directory.get(coach_id)

    def get_assignment(self, athlete_id: str) -> Assignment | None:
        self._require_loaded()
        return self.ledger.get(athlete_id)

    def get_coach_athletes(self, coach_id: str) -> CoachAthletes:
        self._require_loaded()
        return self.ledger.coach_athletes(coach_id)

    async def ensure_assignment(self, athlete_id: str, athlete_name: str) -> Assignment:
        self._require_loaded()
        return await self.ledger.ensure_assignment(athlete_id, athlete_name)

    async def assign_primary_coach(self, athlete_id: str, athlete_name: str, coach_id: str) -> Assignment:
        self._require_loaded()
        # Soft constraint: an unavailable or full coach is still assigned so that
        # administrators can override; only get_available_coaches filters them.
        if not self.availability.is_assignable(coach_id):
            logger.warning(
                "assignment_outside_advisory_capacity",
                athlete_id=athlete_id,
                coach_id=coach_id,
                status=self.availability.status_of(coach_id),
                current_load=self.ledger.primary_count(coach_id),
            )
        return await self.ledger.assign_primary_coach(athlete_id, athlete_name, coach_id)

    async def add_secondary_coach(self, athlete_id: str, coach_id: str, priority: int = 1) -> Assignment | None:
        self._require_loaded()
        return await self.ledger.add_secondary_coach(athlete_id, coach_id, priority)

    async def remove_coach(self, athlete_id: str, coach_id: str, is_secondary: bool = False) -> Assignment | None:
        self._require_loaded()
        return await self.ledger.remove_coach(athlete_id, coach_id, is_secondary)

    def get_availability(self, coach_id: str) -> CoachAvailability | None:
        self._require_loaded()
        return self.availability.get_availability(coach_id)

    async def update_availability(
        self,
        coach_id: str,
        fields: AvailabilityUpdate | Mapping[str, Any],
    ) -> CoachAvailability:
        self._require_loaded()
        return await self.availability.update_availability(coach_id, fields)

    async def handle_coach_failover(self, coach_id: str, reason: str = "unavailable") -> list[FailoverResult]:
        self._require_loaded()
        return await self.failover.handle_coach_failover(coach_id, reason)

    async def set_coach_status(
        self,
        coach_id: str,
        status: CoachStatus,
        reason: str = "marked unavailable",
    ) -> StatusChange:
        """Toggle a coach's availability; going unavailable re-homes their athletes."""
        self._require_loaded()
        availability = await self.availability.update_availability(coach_id, AvailabilityUpdate(status=status))
        if status != CoachStatus.unavailable:
            return StatusChange(availability=availability)
        results = await self.failover.handle_coach_failover(coach_id, reason)
        availability = self.availability.get_availability(coach_id) or availability
        return StatusChange(availability=availability, failover=FailoverSummary.from_results(coach_id, results))

    def get_available_coaches(self, exclude_ids: Iterable[str] = ()) -> list[CoachProfile]:
        self._require_loaded()
        return self.availability.get_available_coaches(exclude_ids)

    def get_coach_workload(self, coach_id: str) -> CoachWorkload:
        self._require_loaded()
        return self.reporter.get_coach_workload(coach_id)

    def get_system_stats(self) -> SystemStats:
        self._require_loaded()
        return self.reporter.get_system_stats()
