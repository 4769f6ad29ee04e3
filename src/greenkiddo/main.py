"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from greenkiddo.config import Settings, get_settings
from greenkiddo.courses.router import router as courses_router
from greenkiddo.gamification.engine import GamificationEngine
from greenkiddo.gamification.router import router as gamification_router
from greenkiddo.health.router import router as health_router
from greenkiddo.middleware import setup_middleware
from greenkiddo.progress.router import router as progress_router
from greenkiddo.storage import close_store, open_store
from greenkiddo.storage.base import RecordStore

logger = structlog.get_logger()


def _attach_store(app: FastAPI, store: RecordStore, settings: Settings) -> None:
    app.state.store = store
    app.state.settings = settings
    app.state.engine = GamificationEngine(store, settings=settings)


def create_app(settings: Settings | None = None, store: RecordStore | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Passing a store skips backend initialisation (used by tests).
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        owned = store is None
        if owned:
            _attach_store(app, await open_store(settings), settings)
        logger.info("startup", store_backend=settings.store_backend if owned else "injected")
        yield
        if owned:
            await close_store(settings)

    app = FastAPI(
        title="GreenKiddo Progression API",
        description="Points, levels, streaks, challenges, quests and leaderboards for GreenKiddo learners",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    if store is not None:
        _attach_store(app, store, settings)

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(gamification_router)
    app.include_router(progress_router)
    app.include_router(courses_router)

    return app


app = create_app()
