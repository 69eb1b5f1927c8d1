import uuid
from contextlib import asynccontextmanager

import structlog
from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from sentry_sdk import set_tag

from .config import get_settings
from .database import create_engine_and_session, create_tables
from .engine import AssignmentEngine, EngineNotLoadedError, PersistenceError, RosterSyncError
from .logging_config import configure_logging
from .repositories import SqlAlchemyStateRepository
from .roster_client import RosterSyncClient
from .routers.athletes import router as athletes_router
from .routers.coaches import router as coaches_router

configure_logging()
set_tag("service", "assignment-service")
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    db_engine, session_factory = create_engine_and_session(settings.ASSIGNMENT_DATABASE_URL, echo=settings.DEBUG)
    if settings.AUTO_CREATE_TABLES:
        await create_tables(db_engine)

    engine = AssignmentEngine(
        SqlAlchemyStateRepository(session_factory),
        default_max_capacity=settings.DEFAULT_MAX_CAPACITY,
        retry_attempts=settings.PERSISTENCE_RETRY_ATTEMPTS,
        retry_wait=settings.PERSISTENCE_RETRY_WAIT,
        retry_max_wait=settings.PERSISTENCE_RETRY_MAX_WAIT,
    )
    await engine.load()
    app.state.assignment_engine = engine
    app.state.roster_client = RosterSyncClient(settings.ROSTER_SERVICE_URL, timeout=settings.ROSTER_TIMEOUT_SECONDS)
    logger.info("assignment_service_started", environment=settings.ENVIRONMENT)
    try:
        yield
    finally:
        app.state.assignment_engine = None
        await db_engine.dispose()


async def persistence_error_handler(request: Request, exc: PersistenceError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": str(exc), "attempts": exc.attempts, "applied": jsonable_encoder(exc.value)},
    )


async def roster_sync_error_handler(request: Request, exc: RosterSyncError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content={"detail": str(exc)})


async def engine_not_loaded_handler(request: Request, exc: EngineNotLoadedError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content={"detail": str(exc)})


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title="assignment-service",
        version="0.1.0",
        description="Coach-athlete assignment and failover service",
        lifespan=lifespan,
    )

    Instrumentator().instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(
        CorrelationIdMiddleware,
        header_name="X-Request-ID",
        generator=lambda: str(uuid.uuid4()),
        update_request_header=True,
    )

    app.add_exception_handler(PersistenceError, persistence_error_handler)
    app.add_exception_handler(RosterSyncError, roster_sync_error_handler)
    app.add_exception_handler(EngineNotLoadedError, engine_not_loaded_handler)

    @app.get("/health")
    @app.get(f"{settings.API_PREFIX}/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(athletes_router, prefix=settings.API_PREFIX)
    app.include_router(coaches_router, prefix=settings.API_PREFIX)
    return app


app = create_app()
