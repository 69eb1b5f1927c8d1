from __future__ import annotations

from ..schemas import CoachStatus, CoachWorkload, SystemStats
from .availability import AvailabilityTracker
from .directory import CoachDirectory
from .ledger import AssignmentLedger

# Used for coaches that have no availability record yet.
FALLBACK_MAX_CAPACITY = 10


def _percent(part: int, whole: int) -> float:
    if whole <= 0:
        return 0.0
    return round(part / whole * 100, 1)


class WorkloadReporter:
    """Read-only utilization and coverage figures."""

    def __init__(self, directory: CoachDirectory, availability: AvailabilityTracker, ledger: AssignmentLedger) -> None:
        self._directory = directory
        self._availability = availability
        self._ledger = ledger

    def get_coach_workload(self, coach_id: str) -> CoachWorkload:
        current_load = self._ledger.primary_count(coach_id)
        record = self._availability.get_availability(coach_id)
        max_capacity = record.max_capacity if record else FALLBACK_MAX_CAPACITY
        return CoachWorkload(
            coach_id=coach_id,
            current_load=current_load,
            max_capacity=max_capacity,
            utilization_rate=_percent(current_load, max_capacity),
            status=record.status.value if record else "unknown",
            secondary_assignments=self._ledger.secondary_count(coach_id),
        )

    def get_system_stats(self) -> SystemStats:
        assignments = self._ledger.all()
        total_athletes = len(assignments)
        with_primary = sum(1 for a in assignments if a.primary_coach is not None)
        with_secondary = sum(1 for a in assignments if a.secondary_coaches)
        total_coaches = len(self._directory)
        available = sum(1 for coach in self._directory if self._availability.status_of(coach.id) == CoachStatus.available)
        return SystemStats(
            total_athletes=total_athletes,
            athletes_with_primary=with_primary,
            athletes_with_secondary=with_secondary,
            athletes_without_primary=total_athletes - with_primary,
            total_coaches=total_coaches,
            available_coaches=available,
            busy_coaches=total_coaches - available,
            coverage_rate=_percent(with_primary, total_athletes),
        )
