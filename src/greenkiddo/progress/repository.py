"""Typed access to per-user learning activity records."""

from __future__ import annotations

import logging

from pydantic import ValidationError

from greenkiddo.progress.schemas import LearningRecord
from greenkiddo.storage.base import KIND_LEARNING, RecordStore

logger = logging.getLogger(__name__)


class LearningRepository:
    def __init__(self, store: RecordStore) -> None:
        self.store = store

    async def load(self, user_id: str) -> LearningRecord:
        raw = await self.store.load(KIND_LEARNING, user_id)
        if raw is not None:
            try:
                record = LearningRecord.model_validate(raw)
                record.user_id = user_id
                return record
            except ValidationError:
                logger.warning("Invalid learning record for user %s, using defaults", user_id, exc_info=True)
        return LearningRecord(user_id=user_id)

    async def save(self, record: LearningRecord) -> None:
        await self.store.save(KIND_LEARNING, record.user_id, record.model_dump(mode="json"))
