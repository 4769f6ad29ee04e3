"""Redis record store: one JSON string per ``{prefix}:{kind}:{user_id}`` key."""

from __future__ import annotations

import logging
from typing import Any

from redis.asyncio import Redis

from greenkiddo.storage.base import decode_record, encode_record

logger = logging.getLogger(__name__)

SCAN_BATCH = 500


class RedisRecordStore:
    """Record store over a ``redis.asyncio`` client with ``decode_responses=True``."""

    def __init__(self, redis: Redis, prefix: str = "greenkiddo") -> None:
        self.redis = redis
        self.prefix = prefix

    def build_key(self, kind: str, user_id: str) -> str:
        return f"{self.prefix}:{kind}:{user_id}"

    async def load(self, kind: str, user_id: str) -> dict[str, Any] | None:
        raw = await self.redis.get(self.build_key(kind, user_id))
        return decode_record(raw, kind, user_id)

    async def save(self, kind: str, user_id: str, record: dict[str, Any]) -> None:
        await self.redis.set(self.build_key(kind, user_id), encode_record(record))

    async def scan(self, kind: str) -> list[tuple[str, dict[str, Any]]]:
        """Full scan of a kind. Point-in-time per key, not a global snapshot."""
        key_prefix = f"{self.prefix}:{kind}:"
        keys = [key async for key in self.redis.scan_iter(match=f"{key_prefix}*", count=SCAN_BATCH)]
        if not keys:
            return []

        results = []
        for start in range(0, len(keys), SCAN_BATCH):
            batch = keys[start:start + SCAN_BATCH]
            values = await self.redis.mget(batch)
            for key, raw in zip(batch, values):
                user_id = key[len(key_prefix):]
                record = decode_record(raw, kind, user_id)
                if record is not None:
                    results.append((user_id, record))
        logger.debug("Scanned %d %s records", len(results), kind)
        return results

    async def ping(self) -> bool:
        return bool(await self.redis.ping())
