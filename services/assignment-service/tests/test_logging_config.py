from assignment_service.logging_config import add_service_and_env, render_enums
from assignment_service.schemas import CoachStatus, HistoryAction


def test_enums_render_as_values():
    event = render_enums(None, "info", {"status": CoachStatus.unavailable, "action": HistoryAction.automatic_failover})

    assert event == {"status": "unavailable", "action": "automatic_failover"}


def test_service_and_env_tags(monkeypatch):
    monkeypatch.delenv("SERVICE_NAME", raising=False)
    monkeypatch.setenv("APP_ENV", "test")

    event = add_service_and_env(None, "info", {"event": "failover_completed"})

    assert event["service"] == "assignment-service"
    assert event["env"] == "test"
