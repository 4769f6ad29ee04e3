"""In-process record store, used for tests and local development."""

from __future__ import annotations

from typing import Any

from greenkiddo.storage.base import decode_record, encode_record


class MemoryRecordStore:
    """Dict-backed store. Scan order follows first insertion."""

    def __init__(self) -> None:
        self._records: dict[tuple[str, str], str] = {}

    async def load(self, kind: str, user_id: str) -> dict[str, Any] | None:
        return decode_record(self._records.get((kind, user_id)), kind, user_id)

    async def save(self, kind: str, user_id: str, record: dict[str, Any]) -> None:
        self._records[(kind, user_id)] = encode_record(record)

    async def scan(self, kind: str) -> list[tuple[str, dict[str, Any]]]:
        results = []
        for (record_kind, user_id), raw in list(self._records.items()):
            if record_kind != kind:
                continue
            record = decode_record(raw, kind, user_id)
            if record is not None:
                results.append((user_id, record))
        return results

    async def ping(self) -> bool:
        return True

    def clear(self) -> None:
        self._records.clear()
