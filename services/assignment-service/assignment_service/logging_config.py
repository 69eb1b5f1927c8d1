import logging
import os
import sys
from enum import Enum

import sentry_sdk
import structlog
from asgi_correlation_id.context import correlation_id
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from structlog.contextvars import merge_contextvars

SERVICE_NAME = "assignment-service"

# Driver loggers that flood stdout at INFO with one line per statement.
NOISY_LOGGERS = ("aiosqlite", "sqlalchemy.engine", "httpx", "httpcore")


def add_service_and_env(logger, method_name, event_dict):
    event_dict["service"] = os.getenv("SERVICE_NAME", SERVICE_NAME)
    event_dict["env"] = os.getenv("APP_ENV", "local")
    return event_dict


def add_correlation_id(logger, method_name, event_dict):
    cid = correlation_id.get(None)
    if cid is not None:
        event_dict["correlation_id"] = cid
        if sentry_sdk.get_client().is_active():
            sentry_sdk.set_tag("correlation_id", cid)
    return event_dict


def render_enums(logger, method_name, event_dict):
    """Log CoachStatus / HistoryAction members by value instead of repr."""
    for key, value in event_dict.items():
        if isinstance(value, Enum):
            event_dict[key] = value.value
    return event_dict


def _init_sentry(service_name: str, app_env: str) -> None:
    dsn = os.getenv("SENTRY_DSN")
    if not dsn:
        return
    sentry_sdk.init(
        dsn=dsn,
        environment=app_env,
        integrations=[
            FastApiIntegration(),
            LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
        ],
        traces_sample_rate=float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.0")),
        send_default_pii=False,
    )
    sentry_sdk.set_tag("service", service_name)


def configure_logging() -> None:
    service_name = os.getenv("SERVICE_NAME", SERVICE_NAME)
    log_level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)
    app_env = os.getenv("APP_ENV", "local")

    _init_sentry(service_name, app_env)

    processors = [
        merge_contextvars,
        add_service_and_env,
        add_correlation_id,
        render_enums,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if app_env in {"local", "dev", "test"}:
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors.append(structlog.processors.JSONRenderer())

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level, force=True)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
