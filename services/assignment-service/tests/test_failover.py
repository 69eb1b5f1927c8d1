import pytest

from assignment_service.engine import AssignmentEngine
from assignment_service.schemas import CoachStatus, HistoryAction, SlotStatus


async def _athlete_with_backups(engine: AssignmentEngine, athlete_id: str, primary: str, *backups: tuple[str, int]):
    await engine.assign_primary_coach(athlete_id, athlete_id.title(), primary)
    for coach_id, priority in backups:
        await engine.add_secondary_coach(athlete_id, coach_id, priority)
    return engine.get_assignment(athlete_id)


@pytest.mark.asyncio
async def test_scheduling_conflict_promotes_backup(engine: AssignmentEngine):
    before = await _athlete_with_backups(engine, "ritika", "shubham", ("arjun", 1))

    change = await engine.set_coach_status("shubham", CoachStatus.unavailable, "unavailable: scheduling conflict")

    ritika = engine.get_assignment("ritika")
    assert ritika.primary_coach.coach_id == "arjun"
    assert ritika.primary_coach.status == SlotStatus.active
    assert ritika.secondary_coaches == []
    assert len(ritika.history) == len(before.history) + 2
    assert ritika.history[: len(before.history)] == before.history

    failover_entry = ritika.history[-1]
    assert failover_entry.action == HistoryAction.automatic_failover
    assert failover_entry.from_coach_id == "shubham"
    assert failover_entry.to_coach_id == "arjun"
    assert failover_entry.reason == "Primary coach unavailable: scheduling conflict"

    assert change.availability.status == CoachStatus.unavailable
    assert change.failover.reassigned == 1
    assert change.failover.needs_manual_assignment == 0
    [result] = change.failover.results
    assert result.athlete_id == "ritika"
    assert result.success is True
    assert result.new_primary_coach_id == "arjun"


@pytest.mark.asyncio
async def test_promotes_lowest_priority_number(engine: AssignmentEngine):
    await _athlete_with_backups(engine, "ritika", "shubham", ("abhin", 2), ("yash", 1))

    results = await engine.handle_coach_failover("shubham", "unavailable")

    ritika = engine.get_assignment("ritika")
    assert ritika.primary_coach.coach_id == "yash"
    assert [(s.coach_id, s.priority) for s in ritika.secondary_coaches] == [("abhin", 2)]
    assert [e.action for e in ritika.history[-2:]] == [
        HistoryAction.primary_removed,
        HistoryAction.automatic_failover,
    ]
    assert results[0].new_primary_coach_id == "yash"


@pytest.mark.asyncio
async def test_gap_reported_without_backups(engine: AssignmentEngine):
    before = await _athlete_with_backups(engine, "arjun-athlete", "shubham")

    results = await engine.handle_coach_failover("shubham", "unavailable")

    assert len(results) == 1
    assert results[0].success is False
    assert results[0].new_primary_coach_id is None
    assert results[0].error_reason == "No secondary coaches available"
    after = engine.get_assignment("arjun-athlete")
    assert after.primary_coach.coach_id == "shubham"
    assert after.history == before.history


@pytest.mark.asyncio
async def test_repeated_failover_is_noop_for_migrated_athletes(engine: AssignmentEngine):
    await _athlete_with_backups(engine, "ritika", "shubham", ("arjun", 1))
    await _athlete_with_backups(engine, "kabir", "shubham")

    first = await engine.handle_coach_failover("shubham", "unavailable")
    ritika_after_first = engine.get_assignment("ritika")
    second = await engine.handle_coach_failover("shubham", "unavailable")

    assert {r.athlete_id for r in first} == {"ritika", "kabir"}
    assert [r.athlete_id for r in second] == ["kabir"]
    assert second[0].success is False
    assert engine.get_assignment("ritika") == ritika_after_first


@pytest.mark.asyncio
async def test_failover_writes_one_batch(engine: AssignmentEngine, adapter):
    await _athlete_with_backups(engine, "ritika", "shubham", ("arjun", 1))
    await _athlete_with_backups(engine, "kabir", "shubham", ("yash", 1))
    await _athlete_with_backups(engine, "meera", "abhin", ("arjun", 1))
    saves_before = adapter.save_calls

    results = await engine.handle_coach_failover("shubham", "unavailable")

    assert adapter.save_calls == saves_before + 1
    assert all(r.success for r in results)
    assert adapter.state.assignments["ritika"].primary_coach.coach_id == "arjun"
    assert adapter.state.assignments["kabir"].primary_coach.coach_id == "yash"
    assert adapter.state.assignments["meera"].primary_coach.coach_id == "abhin"


@pytest.mark.asyncio
async def test_no_write_when_nothing_changes(engine: AssignmentEngine, adapter):
    await _athlete_with_backups(engine, "kabir", "shubham")
    saves_before = adapter.save_calls

    assert await engine.handle_coach_failover("yash", "unavailable") == []
    results = await engine.handle_coach_failover("shubham", "unavailable")

    assert [r.success for r in results] == [False]
    assert adapter.save_calls == saves_before


@pytest.mark.asyncio
async def test_marking_available_does_not_failover(engine: AssignmentEngine):
    await _athlete_with_backups(engine, "ritika", "shubham", ("arjun", 1))

    change = await engine.set_coach_status("shubham", CoachStatus.available)

    assert change.failover is None
    assert engine.get_assignment("ritika").primary_coach.coach_id == "shubham"


@pytest.mark.asyncio
async def test_availability_update_alone_does_not_failover(engine: AssignmentEngine):
    await _athlete_with_backups(engine, "ritika", "shubham", ("arjun", 1))

    availability = await engine.update_availability("shubham", {"status": "unavailable"})

    assert availability.status == CoachStatus.unavailable
    assert engine.get_assignment("ritika").primary_coach.coach_id == "shubham"


@pytest.mark.asyncio
async def test_unavailable_coach_listed_as_backup_is_skipped(engine: AssignmentEngine):
    await _athlete_with_backups(engine, "ritika", "shubham", ("shubham", 1), ("arjun", 2))

    change = await engine.set_coach_status("shubham", CoachStatus.unavailable, "unavailable: injury")

    ritika = engine.get_assignment("ritika")
    assert ritika.primary_coach.coach_id == "arjun"
    assert ritika.secondary_coaches == []
    assert ritika.history[-1].from_coach_id == "shubham"
    assert ritika.history[-1].to_coach_id == "arjun"
    [result] = change.failover.results
    assert result.success is True
    assert result.new_primary_coach_id == "arjun"
    assert await engine.handle_coach_failover("shubham", "unavailable") == []


@pytest.mark.asyncio
async def test_only_backup_being_the_unavailable_coach_is_a_gap(engine: AssignmentEngine, adapter):
    before = await _athlete_with_backups(engine, "ritika", "shubham", ("shubham", 1))
    saves_before = adapter.save_calls

    [result] = await engine.handle_coach_failover("shubham", "unavailable")

    assert result.success is False
    assert result.new_primary_coach_id is None
    assert result.error_reason == "No secondary coaches available"
    assert engine.get_assignment("ritika") == before
    assert adapter.save_calls == saves_before
