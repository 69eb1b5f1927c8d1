from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..dependencies import get_engine
from ..engine import AssignmentEngine
from ..metrics import (
    ASSIGNMENT_COACH_REMOVED_TOTAL,
    ASSIGNMENT_PRIMARY_ASSIGNED_TOTAL,
    ASSIGNMENT_SECONDARY_ADDED_TOTAL,
)
from ..schemas.assignments import (
    Assignment,
    AthleteRegistration,
    PrimaryAssignmentRequest,
    SecondaryCoachRequest,
)

router = APIRouter(prefix="/assignments/athletes", tags=["assignments-athletes"])


def _or_404(assignment: Assignment | None) -> Assignment:
    if assignment is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assignment not found")
    return assignment


@router.get("/{athlete_id}", response_model=Assignment)
async def get_athlete_assignment(
    athlete_id: str,
    engine: AssignmentEngine = Depends(get_engine),
) -> Assignment:
    return _or_404(engine.get_assignment(athlete_id))


@router.put("/{athlete_id}", response_model=Assignment)
async def register_athlete(
    athlete_id: str,
    payload: AthleteRegistration,
    engine: AssignmentEngine = Depends(get_engine),
) -> Assignment:
    return await engine.ensure_assignment(athlete_id, payload.athlete_name)


@router.put("/{athlete_id}/primary", response_model=Assignment)
async def assign_primary(
    athlete_id: str,
    payload: PrimaryAssignmentRequest,
    engine: AssignmentEngine = Depends(get_engine),
) -> Assignment:
    assignment = await engine.assign_primary_coach(athlete_id, payload.athlete_name, payload.coach_id)
    ASSIGNMENT_PRIMARY_ASSIGNED_TOTAL.inc()
    return assignment


@router.post("/{athlete_id}/secondary", response_model=Assignment)
async def add_secondary(
    athlete_id: str,
    payload: SecondaryCoachRequest,
    engine: AssignmentEngine = Depends(get_engine),
) -> Assignment:
    assignment = _or_404(await engine.add_secondary_coach(athlete_id, payload.coach_id, payload.priority))
    ASSIGNMENT_SECONDARY_ADDED_TOTAL.inc()
    return assignment


@router.delete("/{athlete_id}/coaches/{coach_id}", response_model=Assignment)
async def remove_coach(
    athlete_id: str,
    coach_id: str,
    secondary: bool = Query(False, description="Remove from the backup list instead of the primary slot"),
    engine: AssignmentEngine = Depends(get_engine),
) -> Assignment:
    assignment = _or_404(await engine.remove_coach(athlete_id, coach_id, is_secondary=secondary))
    ASSIGNMENT_COACH_REMOVED_TOTAL.labels(slot="secondary" if secondary else "primary").inc()
    return assignment
