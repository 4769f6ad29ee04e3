"""Typed access to the per-user gamification snapshot."""

from __future__ import annotations

import logging
from datetime import datetime

from pydantic import ValidationError

from greenkiddo.gamification.level_thresholds import DEFAULT_LEVEL_CAP, calculate_level
from greenkiddo.gamification.schemas import GamificationRecord
from greenkiddo.storage.base import KIND_GAMIFICATION, RecordStore

logger = logging.getLogger(__name__)


class GamificationRepository:
    """Loads and saves GamificationRecord documents.

    Absent or unreadable records resolve to a zeroed record, so a fresh user
    always gets a valid ledger and level. The stored level is never trusted:
    it is recomputed from total_xp on every load and save.
    """

    def __init__(self, store: RecordStore, level_cap: int = DEFAULT_LEVEL_CAP) -> None:
        self.store = store
        self.level_cap = level_cap

    def _parse(self, user_id: str, raw: dict | None) -> GamificationRecord | None:
        if raw is None:
            return None
        try:
            record = GamificationRecord.model_validate(raw)
        except ValidationError:
            logger.warning("Invalid gamification record for user %s, using defaults", user_id, exc_info=True)
            return None
        record.user_id = user_id
        record.level = calculate_level(record.total_xp, self.level_cap)
        return record

    async def exists(self, user_id: str) -> bool:
        return self._parse(user_id, await self.store.load(KIND_GAMIFICATION, user_id)) is not None

    async def load(self, user_id: str) -> GamificationRecord:
        record = self._parse(user_id, await self.store.load(KIND_GAMIFICATION, user_id))
        if record is None:
            record = GamificationRecord(user_id=user_id)
        return record

    async def save(self, record: GamificationRecord, now: datetime | None = None) -> None:
        record.level = calculate_level(record.total_xp, self.level_cap)
        if now is not None:
            record.last_updated = now
        await self.store.save(KIND_GAMIFICATION, record.user_id, record.model_dump(mode="json"))

    async def scan(self) -> list[GamificationRecord]:
        """Every readable record, in store scan order."""
        records = []
        for user_id, raw in await self.store.scan(KIND_GAMIFICATION):
            record = self._parse(user_id, raw)
            if record is not None:
                records.append(record)
        return records
