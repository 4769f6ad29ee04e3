"""Points ledger: validated awards, calendar windows and level-up detection."""

from __future__ import annotations

import logging
from datetime import datetime

from greenkiddo.gamification.exceptions import InvalidAwardError
from greenkiddo.gamification.level_thresholds import calculate_level
from greenkiddo.gamification.periods import is_in_current_month, is_in_current_week, utcnow
from greenkiddo.gamification.repository import GamificationRepository
from greenkiddo.gamification.schemas import (
    POINT_CATEGORIES,
    GamificationRecord,
    LevelState,
    PointsLedger,
)

logger = logging.getLogger(__name__)


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_award(category: str, amount: int, xp_amount: int | None = None) -> None:
    """Reject malformed awards before anything is loaded or written."""
    if category not in POINT_CATEGORIES:
        raise InvalidAwardError(f"Unknown points category: {category!r}")
    if not _is_int(amount) or amount < 0:
        raise InvalidAwardError(f"Points amount must be a non-negative integer, got {amount!r}")
    if xp_amount is not None and (not _is_int(xp_amount) or xp_amount < 0):
        raise InvalidAwardError(f"XP amount must be a non-negative integer, got {xp_amount!r}")


def apply_award(
    record: GamificationRecord,
    category: str,
    amount: int,
    xp_amount: int | None,
    now: datetime,
) -> int:
    """Credit an already-validated award to an in-memory record.

    Weekly and monthly totals are reset (not accumulated) when the ledger was
    last touched before the current window started. Returns the level before
    the award so callers can detect a level-up.
    """
    points = record.points
    old_level = record.level.current

    breakdown = points.breakdown
    setattr(breakdown, category, getattr(breakdown, category) + amount)
    points.total += amount

    if is_in_current_week(points.last_updated, now):
        points.this_week += amount
    else:
        points.this_week = amount

    if is_in_current_month(points.last_updated, now):
        points.this_month += amount
    else:
        points.this_month = amount

    points.last_updated = now

    if xp_amount:
        record.total_xp += xp_amount
    record.level = calculate_level(record.total_xp)
    return old_level


def windowed_view(points: PointsLedger, now: datetime | None = None) -> PointsLedger:
    """Read-side copy whose stale weekly/monthly windows show 0."""
    if now is None:
        now = utcnow()
    view = points.model_copy(deep=True)
    if not is_in_current_week(points.last_updated, now):
        view.this_week = 0
    if not is_in_current_month(points.last_updated, now):
        view.this_month = 0
    return view


def log_level_change(user_id: str, old_level: int, level: LevelState) -> None:
    if level.current > old_level:
        logger.info(
            "User %s levelled up %d -> %d (%s)", user_id, old_level, level.current, level.title
        )


async def award_points(
    repo: GamificationRepository,
    user_id: str,
    category: str,
    amount: int,
    xp_amount: int | None = None,
    now: datetime | None = None,
) -> GamificationRecord:
    """Award points (and optionally XP) to a user and persist the ledger."""
    validate_award(category, amount, xp_amount)
    if now is None:
        now = utcnow()

    record = await repo.load(user_id)
    old_level = apply_award(record, category, amount, xp_amount, now)
    await repo.save(record, now)

    logger.info("Awarded %d points / %s XP to %s for %s", amount, xp_amount or 0, user_id, category)
    log_level_change(user_id, old_level, record.level)
    return record


async def get_user_points(
    repo: GamificationRepository, user_id: str, now: datetime | None = None
) -> PointsLedger:
    """Read-only: the user's ledger, zeroed if none exists."""
    record = await repo.load(user_id)
    return windowed_view(record.points, now)


async def get_user_level(repo: GamificationRepository, user_id: str) -> LevelState:
    record = await repo.load(user_id)
    return calculate_level(record.total_xp, repo.level_cap)
