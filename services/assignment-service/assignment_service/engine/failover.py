from __future__ import annotations

import structlog

from ..metrics import ASSIGNMENT_FAILOVERS_TOTAL
from ..schemas import Assignment, FailoverResult
from .ledger import AssignmentLedger

logger = structlog.get_logger(__name__)


class FailoverCoordinator:
    """Re-homes athletes whose primary coach has become unavailable.

    Each affected athlete is handled independently: the best-ranked backup is
    promoted, or a failed result is reported when there is none. All modified
    records go to the persistence adapter in one batch. Running it again for
    the same coach only touches athletes that still have that coach as primary.
    """

    def __init__(self, ledger: AssignmentLedger) -> None:
        self._ledger = ledger

    async def handle_coach_failover(self, coach_id: str, reason: str = "unavailable") -> list[FailoverResult]:
        affected = self._ledger.primary_athlete_ids(coach_id)
        if not affected:
            logger.info("failover_no_affected_athletes", coach_id=coach_id, reason=reason)
            return []

        results: list[FailoverResult] = []
        changed: dict[str, Assignment] = {}
        async with self._ledger.hold(*affected):
            for athlete_id in affected:
                updated, result = self._ledger.apply_failover(athlete_id, coach_id, reason)
                if result is None:
                    continue
                results.append(result)
                if updated is not None:
                    changed[athlete_id] = updated
                ASSIGNMENT_FAILOVERS_TOTAL.labels(outcome="promoted" if result.success else "unresolved").inc()
                if not result.success:
                    logger.warning(
                        "failover_no_secondary_coach",
                        coach_id=coach_id,
                        athlete_id=athlete_id,
                    )
            if changed:
                await self._ledger.persist(changed, applied=results)

        logger.info(
            "failover_completed",
            coach_id=coach_id,
            reason=reason,
            affected=len(results),
            reassigned=len(changed),
            unresolved=len(results) - len(changed),
        )
        return results
