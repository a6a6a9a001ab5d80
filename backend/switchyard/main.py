"""Switchyard API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Root router built during startup: a ConfigurationError aborts startup
    - Database manager, dispatcher and settings live on app.state (no module singletons)
    - Global error handlers map every escaping exception to the standard error envelope

Design Decisions:
    - create_app() factory: tests build isolated apps with their own settings and DB
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from switchyard.api.error_handlers import register_error_handlers
from switchyard.api.routes import health, rpc
from switchyard.config import Settings, get_settings
from switchyard.infrastructure.database import DatabaseSessionManager
from switchyard.infrastructure.observability import setup_logging
from switchyard.procedures.app_router import build_app_router
from switchyard.services.dispatch import ProcedureDispatch

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup/shutdown lifecycle."""
        setup_logging(settings.log_level, settings.log_format)
        db = DatabaseSessionManager(
            settings.database_url,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
        )
        if settings.database_auto_create:
            await db.create_all()
        app.state.db = db
        logger.info("Switchyard API started")
        yield
        await db.dispose()
        logger.info("Switchyard API shutting down")

    app = FastAPI(title="Switchyard API", version="1.0.0", lifespan=lifespan)

    # Built eagerly so a malformed tree fails before the server accepts traffic
    app.state.settings = settings
    app.state.dispatch = ProcedureDispatch(
        build_app_router(settings),
        log_internal_causes=not settings.is_production,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(rpc.router)
    register_error_handlers(app)
    return app


app = create_app()
