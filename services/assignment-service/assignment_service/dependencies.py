from fastapi import HTTPException, Request, status

from .engine import AssignmentEngine
from .roster_client import RosterSyncClient


def get_engine(request: Request) -> AssignmentEngine:
    engine: AssignmentEngine | None = getattr(request.app.state, "assignment_engine", None)
    if engine is None or not engine.loaded:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Assignment engine not ready")
    return engine


def get_roster_client(request: Request) -> RosterSyncClient:
    client: RosterSyncClient | None = getattr(request.app.state, "roster_client", None)
    if client is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Roster sync not configured")
    return client
