"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hrdesk import __version__
from hrdesk.api.routes import (
    alerts_router,
    attendance_router,
    employees_router,
    health_router,
    leaves_router,
    performance_router,
    salary_router,
    ws_router,
)
from hrdesk.config import Settings, get_settings
from hrdesk.database import create_tables, dispose_db, init_db
from hrdesk.exceptions import (
    AttendanceConflict,
    EmployeeNotFound,
    HRDeskError,
    InvalidInput,
    PermissionDenied,
    RecordNotFound,
    RunAlreadyInProgress,
    StoreUnavailable,
)
from hrdesk.logging_config import configure_logging
from hrdesk.notifications.channel import NotificationChannel
from hrdesk.notifications.websocket import WebSocketNotificationChannel
from hrdesk.services.locking_service import KeyedLocks, SqlRunRegistry
from hrdesk.services.salary_service import SalaryOrchestrator
from hrdesk.services.state_machine import InvalidTransitionError
from hrdesk.store.sql import SqlRecordStore

logger = logging.getLogger(__name__)

ERROR_STATUS: dict[type[HRDeskError], int] = {
    InvalidInput: status.HTTP_422_UNPROCESSABLE_ENTITY,
    EmployeeNotFound: status.HTTP_404_NOT_FOUND,
    RecordNotFound: status.HTTP_404_NOT_FOUND,
    PermissionDenied: status.HTTP_403_FORBIDDEN,
    StoreUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
    RunAlreadyInProgress: status.HTTP_409_CONFLICT,
    AttendanceConflict: status.HTTP_409_CONFLICT,
}


def create_app(
    settings: Settings | None = None,
    channel: NotificationChannel | None = None,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    ``channel`` and ``session_factory`` default to the WebSocket transport
    and the configured database; tests pass their own.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan handler."""
        configure_logging(settings.log_level)
        owns_db = app.state.session_factory is None
        if owns_db:
            engine, app.state.session_factory = init_db()
            await create_tables(engine)
        orchestrator = SalaryOrchestrator(
            SqlRecordStore.provider(app.state.session_factory),
            app.state.channel,
            settings,
            registry=SqlRunRegistry(
                app.state.session_factory, stale_after=settings.salary_run_stale_seconds
            ),
        )
        app.state.orchestrator = orchestrator
        logger.info("hrdesk %s started", __version__)
        yield
        orchestrator.close()
        await app.state.channel.drain()
        if owns_db:
            await dispose_db()

    app = FastAPI(
        title="HR Desk API",
        description="Employee management with live salary computation",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.channel = channel or WebSocketNotificationChannel()
    app.state.session_factory = session_factory
    app.state.attendance_locks = KeyedLocks()

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.client_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(HRDeskError)
    async def hrdesk_exception_handler(request: Request, exc: HRDeskError) -> JSONResponse:
        code = next(
            (s for cls, s in ERROR_STATUS.items() if isinstance(exc, cls)),
            status.HTTP_400_BAD_REQUEST,
        )
        if code >= 500:
            logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(
            status_code=code,
            content={"detail": exc.message, "code": exc.code, "details": exc.details or None},
        )

    @app.exception_handler(InvalidTransitionError)
    async def transition_exception_handler(
        request: Request, exc: InvalidTransitionError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"detail": str(exc), "code": exc.code},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            },
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(employees_router, prefix="/api")
    app.include_router(attendance_router, prefix="/api")
    app.include_router(leaves_router, prefix="/api")
    app.include_router(performance_router, prefix="/api")
    app.include_router(alerts_router, prefix="/api")
    app.include_router(salary_router, prefix="/api")
    app.include_router(ws_router)

    return app
