"""Storage backends and startup wiring."""

from __future__ import annotations

import logging

from greenkiddo.config import Settings
from greenkiddo.storage.base import RecordStore
from greenkiddo.storage.memory import MemoryRecordStore

logger = logging.getLogger(__name__)


async def open_store(settings: Settings) -> RecordStore:
    """Initialize the configured backend and return a record store over it."""
    backend = settings.store_backend.lower()
    if backend == "memory":
        return MemoryRecordStore()

    if backend == "redis":
        from greenkiddo.redis_client import init_redis
        from greenkiddo.storage.redis_store import RedisRecordStore

        return RedisRecordStore(await init_redis(settings.redis_url), prefix=settings.key_prefix)

    if backend == "sql":
        from greenkiddo.database import get_session_factory, init_db
        from greenkiddo.storage.sql_store import SqlRecordStore

        await init_db(settings.database_url)
        return SqlRecordStore(get_session_factory())

    raise ValueError(f"Unknown store backend: {settings.store_backend}")


async def close_store(settings: Settings) -> None:
    """Release connections held by the configured backend."""
    backend = settings.store_backend.lower()
    if backend == "redis":
        from greenkiddo.redis_client import close_redis

        await close_redis()
    elif backend == "sql":
        from greenkiddo.database import close_db

        await close_db()
    logger.info("Closed %s record store", backend)
