from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..dependencies import get_engine, get_roster_client
from ..engine import AssignmentEngine
from ..metrics import ASSIGNMENT_AVAILABILITY_UPDATES_TOTAL, ASSIGNMENT_ROSTER_SYNCS_TOTAL
from ..roster_client import RosterSyncClient
from ..schemas.assignments import CoachAthletes, FailoverRequest, FailoverSummary, StatusChange
from ..schemas.coaches import AvailabilityUpdate, CoachAvailability, CoachProfile, CoachStatusUpdate, RosterUpdate
from ..schemas.stats import CoachWorkload, SystemStats

router = APIRouter(prefix="/assignments", tags=["assignments-coaches"])


@router.get("/coaches", response_model=List[CoachProfile])
async def list_coaches(engine: AssignmentEngine = Depends(get_engine)) -> List[CoachProfile]:
    return engine.list_coaches()


@router.get("/coaches/available", response_model=List[CoachProfile])
async def list_available_coaches(
    exclude: Optional[List[str]] = Query(None, description="Coach ids to leave out, e.g. current coaches"),
    engine: AssignmentEngine = Depends(get_engine),
) -> List[CoachProfile]:
    return engine.get_available_coaches(exclude or [])


@router.get("/coaches/{coach_id}/availability", response_model=CoachAvailability)
async def get_coach_availability(
    coach_id: str,
    engine: AssignmentEngine = Depends(get_engine),
) -> CoachAvailability:
    availability = engine.get_availability(coach_id)
    if availability is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Availability not found")
    return availability


@router.patch("/coaches/{coach_id}/availability", response_model=CoachAvailability)
async def patch_coach_availability(
    coach_id: str,
    payload: AvailabilityUpdate,
    engine: AssignmentEngine = Depends(get_engine),
) -> CoachAvailability:
    availability = await engine.update_availability(coach_id, payload)
    ASSIGNMENT_AVAILABILITY_UPDATES_TOTAL.inc()
    return availability


@router.post("/coaches/{coach_id}/status", response_model=StatusChange)
async def set_coach_status(
    coach_id: str,
    payload: CoachStatusUpdate,
    engine: AssignmentEngine = Depends(get_engine),
) -> StatusChange:
    change = await engine.set_coach_status(coach_id, payload.status, payload.reason)
    ASSIGNMENT_AVAILABILITY_UPDATES_TOTAL.inc()
    return change


@router.post("/coaches/{coach_id}/failover", response_model=FailoverSummary)
async def run_failover(
    coach_id: str,
    payload: FailoverRequest,
    engine: AssignmentEngine = Depends(get_engine),
) -> FailoverSummary:
    results = await engine.handle_coach_failover(coach_id, payload.reason)
    return FailoverSummary.from_results(coach_id, results)


@router.get("/coaches/{coach_id}/workload", response_model=CoachWorkload)
async def get_coach_workload(
    coach_id: str,
    engine: AssignmentEngine = Depends(get_engine),
) -> CoachWorkload:
    return engine.get_coach_workload(coach_id)


@router.get("/coaches/{coach_id}/athletes", response_model=CoachAthletes)
async def get_coach_athletes(
    coach_id: str,
    engine: AssignmentEngine = Depends(get_engine),
) -> CoachAthletes:
    return engine.get_coach_athletes(coach_id)


@router.get("/stats", response_model=SystemStats)
async def get_system_stats(engine: AssignmentEngine = Depends(get_engine)) -> SystemStats:
    return engine.get_system_stats()


@router.put("/roster", response_model=List[CoachProfile])
async def merge_roster(
    payload: RosterUpdate,
    engine: AssignmentEngine = Depends(get_engine),
) -> List[CoachProfile]:
    coaches = await engine.sync_roster(payload.coaches)
    ASSIGNMENT_ROSTER_SYNCS_TOTAL.inc()
    return coaches


@router.post("/roster/sync", response_model=List[CoachProfile])
async def pull_roster(
    engine: AssignmentEngine = Depends(get_engine),
    roster: RosterSyncClient = Depends(get_roster_client),
) -> List[CoachProfile]:
    fetched = await roster.fetch_coaches()
    coaches = await engine.sync_roster(fetched)
    ASSIGNMENT_ROSTER_SYNCS_TOTAL.inc()
    return coaches
