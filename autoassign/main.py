"""Auto-assignment service — FastAPI application factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from autoassign.adapters.persistence.database import engine
from autoassign.config import settings
from autoassign.infrastructure.api.routes_auto_assign import router as auto_assign_router
from autoassign.infrastructure.api.routes_health import router as health_router
from autoassign.infrastructure.api.routes_rules import router as rules_router
from autoassign.infrastructure.api.routes_settings import router as settings_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    try:
        async with engine.begin():
            pass  # Connection pool warmed up
        logger.info("Database connection established")
    except Exception as e:
        logger.warning("Database not available on startup: %s", e)
    yield
    await engine.dispose()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Work-Order Auto-Assignment Engine",
        description="Rule-driven technician scoring, assignment and fallback handling",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Rules and settings before auto-assign: POST /auto-assign/{work_order_id}
    # would otherwise shadow POST /auto-assign/rules.
    app.include_router(health_router, prefix="/api")
    app.include_router(rules_router, prefix="/api")
    app.include_router(settings_router, prefix="/api")
    app.include_router(auto_assign_router, prefix="/api")

    return app


app = create_app()
