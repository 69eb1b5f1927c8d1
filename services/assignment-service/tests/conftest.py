import asyncio
import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
import pytest_asyncio
from alembic import command
from alembic.config import Config
from fastapi.testclient import TestClient

# Ensure the service package is importable
SERVICE_ROOT = Path(__file__).resolve().parents[1]
if str(SERVICE_ROOT) not in sys.path:
    sys.path.insert(0, str(SERVICE_ROOT))

os.environ.setdefault("APP_ENV", "test")

from assignment_service.engine import AssignmentEngine, InMemoryPersistenceAdapter  # noqa: E402
from assignment_service.schemas import CoachContact, CoachProfile  # noqa: E402

ROSTER = [
    CoachProfile(
        id="shubham",
        name="Shubham",
        specialization="Track & Field",
        experience="10 years",
        rating=4.9,
        languages=["English", "Hindi"],
        certifications=["Level 4 Athletics Coach", "Sports Performance"],
        contact=CoachContact(phone="+91 98765 11111", email="shubham@coach.com"),
    ),
    CoachProfile(
        id="arjun",
        name="Arjun",
        specialization="Sprinting",
        experience="7 years",
        rating=4.6,
        languages=["English"],
        contact=CoachContact(email="arjun@coach.com"),
    ),
    CoachProfile(
        id="abhin",
        name="Abhin",
        specialization="Swimming",
        experience="8 years",
        rating=4.8,
        languages=["English", "Malayalam"],
        certifications=["Swimming Coach Level 3", "Aquatic Safety"],
    ),
    CoachProfile(
        id="yash",
        name="Yash",
        specialization="Fitness Training",
        experience="6 years",
        rating=4.7,
        languages=["English", "Hindi"],
        certifications=["Fitness Trainer", "Strength & Conditioning"],
    ),
]


class TickingClock:
    """Deterministic clock that advances one second per reading."""

    def __init__(self) -> None:
        self.current = datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


class SlowAdapter(InMemoryPersistenceAdapter):
    """Adapter whose writes take a configurable time, one delay per call."""

    def __init__(self) -> None:
        super().__init__()
        self.delays: list[float] = []

    async def save_state(self, **partial) -> None:
        delay = self.delays.pop(0) if self.delays else 0
        if delay:
            await asyncio.sleep(delay)
        await super().save_state(**partial)


class FailingAdapter(InMemoryPersistenceAdapter):
    """Adapter that starts rejecting writes once ``failing`` is set."""

    def __init__(self) -> None:
        super().__init__()
        self.failing = False
        self.attempts = 0

    async def save_state(self, **partial) -> None:
        if self.failing:
            self.attempts += 1
            raise ConnectionError("storage unavailable")
        await super().save_state(**partial)


@pytest.fixture()
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture()
def roster() -> list[CoachProfile]:
    return [coach.model_copy(deep=True) for coach in ROSTER]


@pytest.fixture()
def adapter() -> SlowAdapter:
    return SlowAdapter()


@pytest_asyncio.fixture()
async def engine(adapter: SlowAdapter, clock: TickingClock) -> AssignmentEngine:
    eng = AssignmentEngine(adapter, retry_attempts=1, retry_wait=0, clock=clock)
    await eng.load()
    await eng.sync_roster(ROSTER)
    return eng


@pytest.fixture()
def failing_adapter() -> FailingAdapter:
    return FailingAdapter()


@pytest_asyncio.fixture()
async def flaky_engine(failing_adapter: FailingAdapter, clock: TickingClock) -> AssignmentEngine:
    eng = AssignmentEngine(failing_adapter, retry_attempts=3, retry_wait=0, retry_max_wait=0, clock=clock)
    await eng.load()
    await eng.sync_roster(ROSTER)
    return eng


def _alembic_upgrade_head(db_url: str) -> None:
    os.environ["ASSIGNMENT_DATABASE_URL"] = db_url
    cfg = Config(str(SERVICE_ROOT / "alembic.ini"))
    # Pin script_location explicitly to avoid picking up wrong migrations when running from repo root
    cfg.set_main_option("script_location", str(SERVICE_ROOT / "alembic"))
    command.upgrade(cfg, "head")


@pytest.fixture()
def test_db_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'test_assignments.db'}"


@pytest.fixture()
def migrated_db(test_db_url: str):
    _alembic_upgrade_head(test_db_url)
    yield test_db_url


@pytest.fixture()
def client(migrated_db: str, monkeypatch):
    monkeypatch.setenv("ASSIGNMENT_DATABASE_URL", migrated_db)
    monkeypatch.setenv("AUTO_CREATE_TABLES", "false")
    monkeypatch.setenv("PERSISTENCE_RETRY_ATTEMPTS", "1")

    from assignment_service.config import get_settings
    from assignment_service.main import app

    get_settings.cache_clear()
    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()
    get_settings.cache_clear()
