from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..models import AthleteAssignmentRecord, CoachAvailabilityRecord, CoachProfileRecord
from ..schemas import (
    Assignment,
    CoachAvailability,
    CoachContact,
    CoachProfile,
    StateSnapshot,
)

logger = structlog.get_logger(__name__)


def _aware(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _coach_from_row(row: CoachProfileRecord) -> CoachProfile:
    return CoachProfile(
        id=row.id,
        name=row.name,
        specialization=row.specialization,
        experience=row.experience,
        rating=row.rating,
        languages=list(row.languages or []),
        certifications=list(row.certifications or []),
        contact=CoachContact(phone=row.phone or "Not provided", email=row.email or "No email"),
        joined_at=_aware(row.joined_at),
    )


def _coach_to_row(coach: CoachProfile) -> CoachProfileRecord:
    return CoachProfileRecord(
        id=coach.id,
        name=coach.name,
        specialization=coach.specialization,
        experience=coach.experience,
        rating=coach.rating,
        languages=list(coach.languages),
        certifications=list(coach.certifications),
        phone=coach.contact.phone,
        email=coach.contact.email,
        joined_at=coach.joined_at,
    )


def _availability_from_row(row: CoachAvailabilityRecord) -> CoachAvailability:
    return CoachAvailability.model_validate(
        {
            "coach_id": row.coach_id,
            "status": row.status,
            "schedule": row.schedule or {},
            "current_load": row.current_load or 0,
            "max_capacity": row.max_capacity,
            "unavailable_dates": row.unavailable_dates or [],
            "last_updated": _aware(row.last_updated),
        }
    )


def _availability_to_row(record: CoachAvailability) -> CoachAvailabilityRecord:
    return CoachAvailabilityRecord(
        coach_id=record.coach_id,
        status=record.status.value,
        schedule={day: hours.model_dump(mode="json") for day, hours in record.schedule.items()},
        current_load=record.current_load,
        max_capacity=record.max_capacity,
        unavailable_dates=sorted(day.isoformat() for day in record.unavailable_dates),
        last_updated=record.last_updated,
    )


def _assignment_from_row(row: AthleteAssignmentRecord) -> Assignment:
    return Assignment.model_validate(
        {
            "athlete_id": row.athlete_id,
            "athlete_name": row.athlete_name or "",
            "primary_coach": row.primary_coach,
            "secondary_coaches": row.secondary_coaches or [],
            "history": row.history or [],
        }
    )


def _assignment_to_row(assignment: Assignment) -> AthleteAssignmentRecord:
    primary = assignment.primary_coach
    return AthleteAssignmentRecord(
        athlete_id=assignment.athlete_id,
        athlete_name=assignment.athlete_name,
        primary_coach_id=primary.coach_id if primary else None,
        primary_coach=primary.model_dump(mode="json") if primary else None,
        secondary_coaches=[slot.model_dump(mode="json") for slot in assignment.secondary_coaches],
        history=[entry.model_dump(mode="json") for entry in assignment.history],
    )


class SqlAlchemyStateRepository:
    """Persistence adapter backed by the service database.

    Every ``save_state`` call runs in its own session and commits once; rows not
    mentioned in the call are left as they are.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def load_state(self) -> StateSnapshot:
        async with self._session_factory() as session:
            coaches = (await session.execute(select(CoachProfileRecord).order_by(CoachProfileRecord.id))).scalars().all()
            availability = (await session.execute(select(CoachAvailabilityRecord))).scalars().all()
            assignments = (
                (await session.execute(select(AthleteAssignmentRecord).order_by(AthleteAssignmentRecord.athlete_id)))
                .scalars()
                .all()
            )
        return StateSnapshot(
            coaches={row.id: _coach_from_row(row) for row in coaches},
            availability={row.coach_id: _availability_from_row(row) for row in availability},
            assignments={row.athlete_id: _assignment_from_row(row) for row in assignments},
        )

    async def save_state(
        self,
        *,
        assignments: Mapping[str, Assignment] | None = None,
        availability: Mapping[str, CoachAvailability] | None = None,
        coaches: Mapping[str, CoachProfile] | None = None,
    ) -> None:
        async with self._session_factory() as session:
            for coach in (coaches or {}).values():
                await session.merge(_coach_to_row(coach))
            for record in (availability or {}).values():
                await session.merge(_availability_to_row(record))
            for assignment in (assignments or {}).values():
                await session.merge(_assignment_to_row(assignment))
            await session.commit()
        logger.debug(
            "state_saved",
            coaches=len(coaches or {}),
            availability=len(availability or {}),
            assignments=len(assignments or {}),
        )
