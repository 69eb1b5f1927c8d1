from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date
from typing import Any

import structlog

from ..schemas import AvailabilityUpdate, CoachAvailability, CoachProfile, CoachStatus
from .directory import CoachDirectory
from .ledger import AssignmentLedger, Clock, utcnow
from .persistence import StateWriter

logger = structlog.get_logger(__name__)


class AvailabilityTracker:
    """Per-coach status, schedule and capacity.

    ``current_load`` is never trusted from storage: every read recomputes it
    from the ledger's primary assignments. Marking a coach unavailable here does
    not start a failover; the engine does that as a separate step.
    """

    def __init__(
        self,
        directory: CoachDirectory,
        ledger: AssignmentLedger,
        writer: StateWriter,
        *,
        default_max_capacity: int = 15,
        clock: Clock = utcnow,
    ) -> None:
        self._directory = directory
        self._ledger = ledger
        self._writer = writer
        self._default_max_capacity = default_max_capacity
        self._clock = clock
        self._records: dict[str, CoachAvailability] = {}

    def load(self, records: Mapping[str, CoachAvailability]) -> None:
        self._records = {coach_id: record.model_copy(deep=True) for coach_id, record in records.items()}

    def clear(self) -> None:
        self._records = {}

    def default_availability(self, coach_id: str) -> CoachAvailability:
        return CoachAvailability(
            coach_id=coach_id,
            max_capacity=self._default_max_capacity,
            last_updated=self._clock(),
        )

    def seed(self, coach_ids: Iterable[str]) -> dict[str, CoachAvailability]:
        """Create default records for coaches that have none; returns the new records."""
        seeded: dict[str, CoachAvailability] = {}
        for coach_id in coach_ids:
            if coach_id in self._records:
                continue
            self._records[coach_id] = self.default_availability(coach_id)
            seeded[coach_id] = self.get_availability(coach_id)
        return seeded

    def get_availability(self, coach_id: str) -> CoachAvailability | None:
        record = self._records.get(coach_id)
        if record is None:
            return None
        return record.model_copy(update={"current_load": self._ledger.primary_count(coach_id)}, deep=True)

    def status_of(self, coach_id: str) -> CoachStatus | None:
        record = self._records.get(coach_id)
        return record.status if record else None

    def is_assignable(self, coach_id: str) -> bool:
        record = self._records.get(coach_id)
        if record is None or record.status != CoachStatus.available:
            return False
        return self._ledger.primary_count(coach_id) < record.max_capacity

    async def update_availability(
        self,
        coach_id: str,
        fields: AvailabilityUpdate | Mapping[str, Any],
    ) -> CoachAvailability:
        update = fields if isinstance(fields, AvailabilityUpdate) else AvailabilityUpdate.model_validate(fields)
        changes = update.model_dump(exclude_unset=True, exclude_none=True)
        current = self._records.get(coach_id) or self.default_availability(coach_id)
        merged = current.model_dump()
        if "schedule" in changes:
            changes["schedule"] = {**merged["schedule"], **changes["schedule"]}
        merged.update(changes)
        merged["last_updated"] = self._clock()
        merged["current_load"] = self._ledger.primary_count(coach_id)
        record = CoachAvailability.model_validate(merged)
        self._records[coach_id] = record
        logger.info(
            "availability_updated",
            coach_id=coach_id,
            fields=sorted(changes),
            status=record.status,
        )
        await self._writer.save(applied=record, availability={coach_id: record})
        return record.model_copy(deep=True)

    async def mark_unavailable_date(self, coach_id: str, day: date) -> CoachAvailability:
        current = self._records.get(coach_id) or self.default_availability(coach_id)
        return await self.update_availability(
            coach_id, AvailabilityUpdate(unavailable_dates={*current.unavailable_dates, day})
        )

    async def clear_unavailable_date(self, coach_id: str, day: date) -> CoachAvailability:
        current = self._records.get(coach_id) or self.default_availability(coach_id)
        return await self.update_availability(
            coach_id, AvailabilityUpdate(unavailable_dates=current.unavailable_dates - {day})
        )

    def get_available_coaches(self, exclude_ids: Iterable[str] = ()) -> list[CoachProfile]:
        """Coaches that are available and under capacity, in roster order.

        Advisory only: nothing stops a write from assigning beyond capacity.
        """
        excluded = set(exclude_ids)
        candidates = [coach for coach in self._directory if coach.id not in excluded and self.is_assignable(coach.id)]
        logger.debug(
            "availability_candidates_listed",
            candidates=[coach.id for coach in candidates],
            excluded=sorted(excluded),
        )
        return [coach.model_copy(deep=True) for coach in candidates]
