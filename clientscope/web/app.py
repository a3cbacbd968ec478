"""FastAPI application factory."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncEngine

from clientscope import __version__
from clientscope.config.logging import setup_logging
from clientscope.config.settings import get_settings
from clientscope.storage.database import get_engine, init_db
from clientscope.web.errors import register_error_handlers
from clientscope.web.health import check_health
from clientscope.web.middleware import ErrorHandlingMiddleware, RequestIDMiddleware
from clientscope.web.routes.auth import router as auth_router
from clientscope.web.routes.change_requests import router as change_requests_router
from clientscope.web.routes.files import router as files_router
from clientscope.web.routes.invoices import router as invoices_router
from clientscope.web.routes.leads import router as leads_router
from clientscope.web.routes.maintenance import router as maintenance_router
from clientscope.web.routes.meetings import router as meetings_router
from clientscope.web.routes.notifications import router as notifications_router
from clientscope.web.routes.projects import router as projects_router
from clientscope.web.routes.tasks import router as tasks_router

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    engine = get_engine()
    await init_db(engine)
    yield
    await engine.dispose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    setup_logging(log_level=settings.log_level, json_output=not settings.debug)

    app = FastAPI(
        title="ClientScope",
        description="Client portal access scoping and notifications",
        version=__version__,
        lifespan=lifespan,
    )

    register_error_handlers(app)

    # Middleware (order matters: last added runs first)
    app.add_middleware(ErrorHandlingMiddleware, debug=settings.debug)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    )

    # Health check (public)
    @app.get("/api/health")
    async def health_check(engine: AsyncEngine = Depends(get_engine)) -> dict[str, object]:
        return await check_health(engine)

    # Identity is resolved per route; auth routes are public
    for router in (
        auth_router,
        projects_router,
        tasks_router,
        files_router,
        invoices_router,
        maintenance_router,
        change_requests_router,
        meetings_router,
        leads_router,
        notifications_router,
    ):
        app.include_router(router)

    logger.info("app_created")
    return app
