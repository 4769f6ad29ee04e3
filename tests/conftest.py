"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import datetime, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from greenkiddo.config import Settings
from greenkiddo.courses.provider import StoreCourseProgress
from greenkiddo.gamification.engine import GamificationEngine
from greenkiddo.gamification.repository import GamificationRepository
from greenkiddo.main import create_app
from greenkiddo.progress.repository import LearningRepository
from greenkiddo.storage.memory import MemoryRecordStore

# Wednesday. The calendar week started Sunday 2025-06-08, the month 2025-06-01.
NOW = datetime(2025, 6, 11, 12, 0, tzinfo=timezone.utc)


def at(year: int, month: int, day: int, hour: int = 12, minute: int = 0) -> datetime:
    """Fixed UTC timestamp helper."""
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


@pytest.fixture
def settings() -> Settings:
    return Settings(store_backend="memory", log_format="console")


@pytest.fixture
def store() -> MemoryRecordStore:
    return MemoryRecordStore()


@pytest.fixture
def repo(store: MemoryRecordStore) -> GamificationRepository:
    return GamificationRepository(store)


@pytest.fixture
def learning(store: MemoryRecordStore) -> LearningRepository:
    return LearningRepository(store)


@pytest.fixture
def courses(store: MemoryRecordStore) -> StoreCourseProgress:
    return StoreCourseProgress(store)


@pytest.fixture
def engine(store: MemoryRecordStore, settings: Settings) -> GamificationEngine:
    return GamificationEngine(store, settings=settings)


@pytest_asyncio.fixture
async def client(settings: Settings) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP test client wired to a fresh in-memory store."""
    app = create_app(settings, store=MemoryRecordStore())
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
