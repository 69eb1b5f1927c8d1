from __future__ import annotations

from collections.abc import Callable, Mapping
from contextlib import AbstractAsyncContextManager
from datetime import datetime, timezone
from typing import Any

import structlog

from ..schemas import (
    Assignment,
    CoachAthletes,
    FailoverResult,
    HistoryAction,
    HistoryEntry,
    PrimaryCoachSlot,
    SecondaryCoachSlot,
)
from .locks import KeyedLock
from .persistence import StateWriter

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]

NO_SECONDARY_COACHES = "No secondary coaches available"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AssignmentLedger:
    """Per-athlete primary slot, ranked backups and append-only history.

    Records are never edited in place: every transition builds a new
    ``Assignment`` and swaps it in, so a snapshot handed out earlier keeps its
    history untouched. Mutations of one athlete are serialised by a keyed lock
    held across the in-memory update and the durable write.
    """

    def __init__(self, writer: StateWriter, *, clock: Clock = utcnow) -> None:
        self._writer = writer
        self._clock = clock
        self._records: dict[str, Assignment] = {}
        self._locks = KeyedLock()

    def load(self, assignments: Mapping[str, Assignment]) -> None:
        self._records = {}
        for athlete_id, assignment in assignments.items():
            backups = sorted(assignment.secondary_coaches, key=lambda slot: slot.priority)
            self._records[athlete_id] = assignment.model_copy(update={"secondary_coaches": backups}, deep=True)

    def clear(self) -> None:
        self._records = {}

    def get(self, athlete_id: str) -> Assignment | None:
        assignment = self._records.get(athlete_id)
        return assignment.model_copy(deep=True) if assignment else None

    def all(self) -> list[Assignment]:
        return [assignment.model_copy(deep=True) for assignment in self._records.values()]

    def primary_athlete_ids(self, coach_id: str) -> list[str]:
        return [
            athlete_id
            for athlete_id, assignment in self._records.items()
            if assignment.primary_coach is not None and assignment.primary_coach.coach_id == coach_id
        ]

    def primary_count(self, coach_id: str) -> int:
        return len(self.primary_athlete_ids(coach_id))

    def secondary_count(self, coach_id: str) -> int:
        return sum(
            1
            for assignment in self._records.values()
            if any(slot.coach_id == coach_id for slot in assignment.secondary_coaches)
        )

    def coach_athletes(self, coach_id: str) -> CoachAthletes:
        primary = [self._records[athlete_id].model_copy(deep=True) for athlete_id in self.primary_athlete_ids(coach_id)]
        secondary = [
            assignment.model_copy(deep=True)
            for assignment in self._records.values()
            if any(slot.coach_id == coach_id for slot in assignment.secondary_coaches)
        ]
        return CoachAthletes(coach_id=coach_id, primary=primary, secondary=secondary, total=len(primary) + len(secondary))

    def hold(self, *athlete_ids: str) -> AbstractAsyncContextManager[None]:
        return self._locks.hold(*athlete_ids)

    async def persist(self, changed: Mapping[str, Assignment], *, applied: Any = None) -> None:
        await self._writer.save(applied=applied, assignments=dict(changed))

    async def ensure_assignment(self, athlete_id: str, athlete_name: str) -> Assignment:
        """Create an empty record for an athlete awaiting assignment.

        An existing record is returned as-is (its name is refreshed when it changed).
        """
        async with self._locks.hold(athlete_id):
            current = self._records.get(athlete_id)
            if current is not None and current.athlete_name == athlete_name:
                return current.model_copy(deep=True)
            if current is None:
                updated = Assignment(athlete_id=athlete_id, athlete_name=athlete_name)
            else:
                updated = current.model_copy(update={"athlete_name": athlete_name})
            self._records[athlete_id] = updated
            logger.info("assignment_record_ensured", athlete_id=athlete_id, created=current is None)
            await self.persist({athlete_id: updated}, applied=updated)
        return updated.model_copy(deep=True)

    async def assign_primary_coach(self, athlete_id: str, athlete_name: str, coach_id: str) -> Assignment:
        # Capacity and availability are not checked here; the admin override
        # relies on writes being accepted for any coach.
        async with self._locks.hold(athlete_id):
            now = self._clock()
            current = self._records.get(athlete_id)
            previous_coach_id = current.primary_coach.coach_id if current and current.primary_coach else None
            updated = Assignment(
                athlete_id=athlete_id,
                athlete_name=athlete_name,
                primary_coach=PrimaryCoachSlot(coach_id=coach_id, assigned_at=now),
                secondary_coaches=list(current.secondary_coaches) if current else [],
                history=[
                    *(current.history if current else []),
                    HistoryEntry(
                        action=HistoryAction.primary_assigned,
                        coach_id=coach_id,
                        timestamp=now,
                        reason="manual assignment",
                    ),
                ],
            )
            self._records[athlete_id] = updated
            logger.info(
                "assignment_primary_assigned",
                athlete_id=athlete_id,
                coach_id=coach_id,
                previous_coach_id=previous_coach_id,
            )
            await self.persist({athlete_id: updated}, applied=updated)
        return updated.model_copy(deep=True)

    async def add_secondary_coach(self, athlete_id: str, coach_id: str, priority: int = 1) -> Assignment | None:
        async with self._locks.hold(athlete_id):
            current = self._records.get(athlete_id)
            if current is None:
                logger.info("assignment_secondary_add_skipped", athlete_id=athlete_id, coach_id=coach_id)
                return None
            now = self._clock()
            backups = [slot for slot in current.secondary_coaches if slot.coach_id != coach_id]
            backups.append(SecondaryCoachSlot(coach_id=coach_id, assigned_at=now, priority=priority))
            backups.sort(key=lambda slot: slot.priority)
            updated = current.model_copy(
                update={
                    "secondary_coaches": backups,
                    "history": [
                        *current.history,
                        HistoryEntry(
                            action=HistoryAction.secondary_added,
                            coach_id=coach_id,
                            priority=priority,
                            timestamp=now,
                            reason="backup coach assignment",
                        ),
                    ],
                }
            )
            self._records[athlete_id] = updated
            logger.info("assignment_secondary_added", athlete_id=athlete_id, coach_id=coach_id, priority=priority)
            await self.persist({athlete_id: updated}, applied=updated)
        return updated.model_copy(deep=True)

    async def remove_coach(self, athlete_id: str, coach_id: str, is_secondary: bool = False) -> Assignment | None:
        async with self._locks.hold(athlete_id):
            current = self._records.get(athlete_id)
            if current is None:
                logger.info("assignment_remove_skipped", athlete_id=athlete_id, coach_id=coach_id)
                return None
            if is_secondary:
                updated = self._without_secondary(current, coach_id)
            else:
                updated = self._without_primary(current, coach_id)
            if updated is current:
                logger.warning(
                    "assignment_remove_coach_not_assigned",
                    athlete_id=athlete_id,
                    coach_id=coach_id,
                    is_secondary=is_secondary,
                )
                return current.model_copy(deep=True)
            self._records[athlete_id] = updated
            await self.persist({athlete_id: updated}, applied=updated)
        return updated.model_copy(deep=True)

    def _without_secondary(self, current: Assignment, coach_id: str) -> Assignment:
        backups = [slot for slot in current.secondary_coaches if slot.coach_id != coach_id]
        if len(backups) == len(current.secondary_coaches):
            return current
        logger.info("assignment_secondary_removed", athlete_id=current.athlete_id, coach_id=coach_id)
        return current.model_copy(
            update={
                "secondary_coaches": backups,
                "history": [
                    *current.history,
                    HistoryEntry(
                        action=HistoryAction.secondary_removed,
                        coach_id=coach_id,
                        timestamp=self._clock(),
                        reason="manual removal",
                    ),
                ],
            }
        )

    def _without_primary(self, current: Assignment, coach_id: str) -> Assignment:
        if current.primary_coach is None or current.primary_coach.coach_id != coach_id:
            return current
        now = self._clock()
        history = [
            *current.history,
            HistoryEntry(
                action=HistoryAction.primary_removed,
                coach_id=coach_id,
                timestamp=now,
                reason="manual removal",
            ),
        ]
        primary: PrimaryCoachSlot | None = None
        # The removed coach may also sit in the backup list; it is never re-promoted.
        backups = [slot for slot in current.secondary_coaches if slot.coach_id != coach_id]
        if backups:
            promoted = backups.pop(0)
            primary = PrimaryCoachSlot(coach_id=promoted.coach_id, assigned_at=now)
            history.append(
                HistoryEntry(
                    action=HistoryAction.primary_promoted,
                    coach_id=promoted.coach_id,
                    timestamp=now,
                    reason="automatic promotion from secondary",
                )
            )
        logger.info(
            "assignment_primary_removed",
            athlete_id=current.athlete_id,
            coach_id=coach_id,
            promoted_coach_id=primary.coach_id if primary else None,
        )
        return current.model_copy(update={"primary_coach": primary, "secondary_coaches": backups, "history": history})

    def apply_failover(self, athlete_id: str, coach_id: str, reason: str) -> tuple[Assignment | None, FailoverResult | None]:
        """Promote the best-ranked backup of one athlete whose primary is ``coach_id``.

        Must be called while holding the athlete's lock. Returns ``(None, None)``
        when the athlete no longer has ``coach_id`` as primary, and
        ``(None, result)`` when there is no backup to promote; in that case the
        primary slot keeps pointing at the unavailable coach.
        """
        current = self._records.get(athlete_id)
        if current is None or current.primary_coach is None or current.primary_coach.coach_id != coach_id:
            return None, None
        backups = [slot for slot in current.secondary_coaches if slot.coach_id != coach_id]
        if not backups:
            return None, FailoverResult(
                athlete_id=athlete_id,
                athlete_name=current.athlete_name,
                new_primary_coach_id=None,
                success=False,
                error_reason=NO_SECONDARY_COACHES,
            )
        now = self._clock()
        promoted, *remaining = backups
        detail = f"Primary coach {reason}"
        updated = current.model_copy(
            update={
                "primary_coach": PrimaryCoachSlot(coach_id=promoted.coach_id, assigned_at=now),
                "secondary_coaches": remaining,
                "history": [
                    *current.history,
                    HistoryEntry(
                        action=HistoryAction.primary_removed,
                        coach_id=coach_id,
                        timestamp=now,
                        reason=detail,
                    ),
                    HistoryEntry(
                        action=HistoryAction.automatic_failover,
                        coach_id=promoted.coach_id,
                        from_coach_id=coach_id,
                        to_coach_id=promoted.coach_id,
                        timestamp=now,
                        reason=detail,
                    ),
                ],
            }
        )
        self._records[athlete_id] = updated
        return updated, FailoverResult(
            athlete_id=athlete_id,
            athlete_name=current.athlete_name,
            new_primary_coach_id=promoted.coach_id,
            success=True,
        )
