from datetime import date

import pytest
import pytest_asyncio

from assignment_service.database import create_engine_and_session, create_tables, ensure_async_url
from assignment_service.engine import AssignmentEngine
from assignment_service.repositories import SqlAlchemyStateRepository
from assignment_service.schemas import CoachStatus, HistoryAction


@pytest_asyncio.fixture()
async def repository(test_db_url: str):
    db_engine, session_factory = create_engine_and_session(test_db_url)
    await create_tables(db_engine)
    try:
        yield SqlAlchemyStateRepository(session_factory)
    finally:
        await db_engine.dispose()


def test_ensure_async_url():
    assert ensure_async_url("postgresql://u:p@db/app") == "postgresql+asyncpg://u:p@db/app"
    assert ensure_async_url("postgres://u:p@db/app") == "postgresql+asyncpg://u:p@db/app"
    assert ensure_async_url("sqlite:///./x.db") == "sqlite+aiosqlite:///./x.db"
    assert ensure_async_url("sqlite+aiosqlite:///./x.db") == "sqlite+aiosqlite:///./x.db"


@pytest.mark.asyncio
async def test_empty_database_loads_empty_state(repository: SqlAlchemyStateRepository):
    state = await repository.load_state()

    assert state.assignments == {}
    assert state.availability == {}
    assert state.coaches == {}


@pytest.mark.asyncio
async def test_engine_state_round_trips_through_database(repository: SqlAlchemyStateRepository, clock, roster):
    engine = AssignmentEngine(repository, retry_attempts=1, retry_wait=0, clock=clock)
    await engine.load()
    await engine.sync_roster(roster)
    await engine.assign_primary_coach("ritika", "Ritika", "shubham")
    await engine.add_secondary_coach("ritika", "yash", 2)
    await engine.add_secondary_coach("ritika", "arjun", 1)
    await engine.update_availability("abhin", {"status": "unavailable", "unavailable_dates": [date(2026, 2, 14)]})

    restarted = AssignmentEngine(repository, clock=clock)
    await restarted.load()

    ritika = restarted.get_assignment("ritika")
    assert ritika == engine.get_assignment("ritika")
    assert [s.coach_id for s in ritika.secondary_coaches] == ["arjun", "yash"]
    assert [e.action for e in ritika.history] == [
        HistoryAction.primary_assigned,
        HistoryAction.secondary_added,
        HistoryAction.secondary_added,
    ]
    abhin = restarted.get_availability("abhin")
    assert abhin.status == CoachStatus.unavailable
    assert abhin.unavailable_dates == {date(2026, 2, 14)}
    assert restarted.get_availability("shubham").current_load == 1
    assert {c.id for c in restarted.list_coaches()} == {c.id for c in roster}
    assert restarted.get_coach("shubham").contact.email == "shubham@coach.com"


@pytest.mark.asyncio
async def test_partial_save_leaves_other_rows(repository: SqlAlchemyStateRepository, clock, roster):
    engine = AssignmentEngine(repository, retry_attempts=1, retry_wait=0, clock=clock)
    await engine.load()
    await engine.sync_roster(roster)
    await engine.assign_primary_coach("ritika", "Ritika", "shubham")
    await engine.assign_primary_coach("kabir", "Kabir", "arjun")

    ritika = engine.get_assignment("ritika").model_copy(update={"athlete_name": "Ritika S"})
    await repository.save_state(assignments={"ritika": ritika})

    state = await repository.load_state()
    assert state.assignments["ritika"].athlete_name == "Ritika S"
    assert state.assignments["kabir"] == engine.get_assignment("kabir")
    assert set(state.availability) == {c.id for c in roster}
    assert set(state.coaches) == {c.id for c in roster}


@pytest.mark.asyncio
async def test_failover_persists_batch(repository: SqlAlchemyStateRepository, clock, roster):
    engine = AssignmentEngine(repository, retry_attempts=1, retry_wait=0, clock=clock)
    await engine.load()
    await engine.sync_roster(roster)
    await engine.assign_primary_coach("ritika", "Ritika", "shubham")
    await engine.add_secondary_coach("ritika", "arjun", 1)
    await engine.assign_primary_coach("kabir", "Kabir", "shubham")

    await engine.set_coach_status("shubham", CoachStatus.unavailable, "unavailable: travelling")

    state = await repository.load_state()
    assert state.assignments["ritika"].primary_coach.coach_id == "arjun"
    assert state.assignments["ritika"].history[-1].to_coach_id == "arjun"
    assert state.assignments["kabir"].primary_coach.coach_id == "shubham"
    assert state.availability["shubham"].status == CoachStatus.unavailable
