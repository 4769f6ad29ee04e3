"""SQL record store backed by the ``user_records`` table."""

from __future__ import annotations

from typing import Any

from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from greenkiddo.db.models import UserRecord


class SqlRecordStore:
    """Record store over an async SQLAlchemy session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def load(self, kind: str, user_id: str) -> dict[str, Any] | None:
        async with self.session_factory() as db:
            result = await db.execute(
                select(UserRecord.payload).where(
                    UserRecord.kind == kind,
                    UserRecord.user_id == user_id,
                )
            )
            payload = result.scalar_one_or_none()
        return payload if isinstance(payload, dict) else None

    async def save(self, kind: str, user_id: str, record: dict[str, Any]) -> None:
        async with self.session_factory() as db:
            result = await db.execute(
                select(UserRecord).where(
                    UserRecord.kind == kind,
                    UserRecord.user_id == user_id,
                )
            )
            row = result.scalar_one_or_none()
            if row is None:
                db.add(UserRecord(kind=kind, user_id=user_id, payload=record))
            else:
                row.payload = record
            await db.commit()

    async def scan(self, kind: str) -> list[tuple[str, dict[str, Any]]]:
        async with self.session_factory() as db:
            result = await db.execute(
                select(UserRecord.user_id, UserRecord.payload)
                .where(UserRecord.kind == kind)
                .order_by(UserRecord.id)
            )
            return [(row.user_id, row.payload) for row in result if isinstance(row.payload, dict)]

    async def ping(self) -> bool:
        async with self.session_factory() as db:
            result = await db.execute(text("SELECT 1"))
            return result.scalar() == 1
