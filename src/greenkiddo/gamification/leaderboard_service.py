"""Leaderboard builder: full scan of every ledger, ranked in memory.

The scan is a point-in-time read with no global lock; each user's entry
reflects their last completed write visible at scan time.
"""

from __future__ import annotations

import logging
from datetime import datetime

from greenkiddo.gamification.exceptions import UnsupportedPeriodError
from greenkiddo.gamification.periods import is_in_current_month, is_in_current_week, utcnow
from greenkiddo.gamification.repository import GamificationRepository
from greenkiddo.gamification.schemas import GamificationRecord, Leaderboard, LeaderboardEntry
from greenkiddo.storage.base import KIND_LEADERBOARD_SNAPSHOT

logger = logging.getLogger(__name__)

SUPPORTED_PERIODS = ("all-time", "weekly", "monthly")
DEFAULT_LIMIT = 100


def check_period(period: str) -> str:
    if period == "daily":
        raise UnsupportedPeriodError("Daily leaderboards are not supported: the ledger keeps no daily total")
    if period not in SUPPORTED_PERIODS:
        raise UnsupportedPeriodError(f"Unknown period: {period}")
    return period


def score_for_period(record: GamificationRecord, period: str, now: datetime) -> int:
    """Points that count towards a period. Stale weekly/monthly windows count as 0."""
    points = record.points
    if period == "weekly":
        return points.this_week if is_in_current_week(points.last_updated, now) else 0
    if period == "monthly":
        return points.this_month if is_in_current_month(points.last_updated, now) else 0
    return points.total


def rank_records(
    records: list[GamificationRecord],
    period: str,
    now: datetime,
    previous_ranks: dict[str, int] | None = None,
) -> list[LeaderboardEntry]:
    """Rank users by period score, highest first.

    Zero scores are excluded. Ties keep input order (stable sort). Ranks are
    1-based and assigned after sorting. ``change`` is previous rank minus
    current rank (positive = moved up) when a snapshot rank exists.
    """
    entries = []
    for record in records:
        score = score_for_period(record, period, now)
        if score <= 0:
            continue
        entries.append(LeaderboardEntry(
            user_id=record.user_id,
            user_name=record.display_name,
            points=score,
            level=record.level.current,
        ))

    entries.sort(key=lambda e: -e.points)

    for index, entry in enumerate(entries):
        entry.rank = index + 1
        if previous_ranks and entry.user_id in previous_ranks:
            entry.change = previous_ranks[entry.user_id] - entry.rank

    return entries


async def _load_previous_ranks(repo: GamificationRepository, period: str) -> dict[str, int]:
    raw = await repo.store.load(KIND_LEADERBOARD_SNAPSHOT, period)
    if not raw:
        return {}
    ranks = raw.get("ranks")
    if not isinstance(ranks, dict):
        logger.warning("Ignoring malformed %s leaderboard snapshot", period)
        return {}
    try:
        return {str(uid): int(rank) for uid, rank in ranks.items()}
    except (TypeError, ValueError):
        logger.warning("Ignoring malformed %s leaderboard snapshot", period)
        return {}


async def get_leaderboard(
    repo: GamificationRepository,
    period: str = "all-time",
    user_id: str | None = None,
    limit: int = DEFAULT_LIMIT,
    now: datetime | None = None,
) -> Leaderboard:
    """Build the ranked leaderboard, truncated to ``limit`` entries.

    The requesting user's entry is located in the full ranking, so it is
    returned even when it falls outside the truncated list.
    """
    check_period(period)
    if now is None:
        now = utcnow()

    records = await repo.scan()
    previous_ranks = await _load_previous_ranks(repo, period)
    ranked = rank_records(records, period, now, previous_ranks)

    user_entry = None
    if user_id is not None:
        user_entry = next((e for e in ranked if e.user_id == user_id), None)

    return Leaderboard(
        period=period,
        entries=ranked[:limit],
        total=len(ranked),
        user_rank=user_entry.rank if user_entry else None,
        user_entry=user_entry,
        user_percentile=calculate_percentile(user_entry.rank, len(ranked)) if user_entry else None,
        last_updated=now,
    )


async def save_snapshot(
    repo: GamificationRepository,
    period: str = "all-time",
    now: datetime | None = None,
) -> int:
    """Save current ranks so the next build can report rank changes."""
    check_period(period)
    if now is None:
        now = utcnow()

    ranked = rank_records(await repo.scan(), period, now)
    await repo.store.save(
        KIND_LEADERBOARD_SNAPSHOT,
        period,
        {"ranks": {e.user_id: e.rank for e in ranked}, "saved_at": now.isoformat()},
    )
    logger.info("Saved %s leaderboard snapshot with %d entries", period, len(ranked))
    return len(ranked)


def calculate_percentile(rank: int, total: int) -> float:
    """Rank 1 of 100 -> 99.0, rank 100 of 100 -> 0.0."""
    if total <= 0 or rank <= 0:
        return 0.0
    return round(100 - (rank / total * 100), 2)
