"""Record store protocol shared by every storage backend.

Records are JSON documents addressed by ``(kind, user_id)``. A kind is one
logical concern per user (gamification snapshot, learning log, course
enrolments) or a global document such as a leaderboard snapshot.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

logger = logging.getLogger(__name__)

KIND_GAMIFICATION = "gamification"
KIND_LEARNING = "learning"
KIND_COURSES = "courses"
KIND_LEADERBOARD_SNAPSHOT = "leaderboard_snapshot"


class RecordStore(Protocol):
    """Key-value persistence for per-user JSON records."""

    async def load(self, kind: str, user_id: str) -> dict[str, Any] | None:
        """Return the stored document, or None if absent or unreadable."""
        ...

    async def save(self, kind: str, user_id: str, record: dict[str, Any]) -> None:
        """Replace the stored document wholesale."""
        ...

    async def scan(self, kind: str) -> list[tuple[str, dict[str, Any]]]:
        """Return every readable ``(user_id, document)`` pair of a kind."""
        ...

    async def ping(self) -> bool:
        ...


def encode_record(record: dict[str, Any]) -> str:
    return json.dumps(record, separators=(",", ":"), default=str)


def decode_record(raw: str | bytes | None, kind: str, user_id: str) -> dict[str, Any] | None:
    """Parse a stored document. Corrupt payloads resolve to None."""
    if raw is None:
        return None
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("Discarding corrupt %s record for user %s", kind, user_id)
        return None
    if not isinstance(value, dict):
        logger.warning("Discarding non-object %s record for user %s", kind, user_id)
        return None
    return value
