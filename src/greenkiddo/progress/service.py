"""Learning activity recording and the read-only facts the engine consumes."""

from __future__ import annotations

import logging
import math
from datetime import date, datetime, timedelta, timezone

from greenkiddo.progress.repository import LearningRepository
from greenkiddo.progress.schemas import LearningRecord, LearningSession, LearningStats
from greenkiddo.progress.streak import StreakState, advance_streak, effective_streak

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_DAYS = 365


class InvalidActivityError(ValueError):
    """Malformed activity event (negative or non-finite minutes, empty lesson id)."""


def _today(now: datetime | None) -> date:
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.date()


def _streak_state(record: LearningRecord) -> StreakState:
    return StreakState(
        current_streak=record.current_streak,
        longest_streak=record.longest_streak,
        last_activity_date=record.last_activity_date,
    )


def _touch_today(record: LearningRecord, today: date, lesson_id: str) -> LearningSession:
    session = next((s for s in record.sessions if s.date == today), None)
    if session is None:
        session = LearningSession(date=today)
        record.sessions.append(session)
    if lesson_id not in session.lesson_ids:
        session.lesson_ids.append(lesson_id)

    streak = advance_streak(_streak_state(record), today)
    record.current_streak = streak.current_streak
    record.longest_streak = streak.longest_streak
    record.last_activity_date = streak.last_activity_date
    return session


def _trim_sessions(record: LearningRecord, today: date, retention_days: int) -> None:
    cutoff = today - timedelta(days=retention_days)
    record.sessions = [s for s in record.sessions if s.date > cutoff]


async def record_learning_session(
    repo: LearningRepository,
    user_id: str,
    lesson_id: str,
    minutes: float,
    now: datetime | None = None,
    retention_days: int = DEFAULT_RETENTION_DAYS,
) -> LearningRecord:
    """Record time spent on a lesson today and advance the streak."""
    if not lesson_id:
        raise InvalidActivityError("lesson_id is required")
    if isinstance(minutes, bool) or not isinstance(minutes, (int, float)):
        raise InvalidActivityError(f"Minutes must be a number, got {minutes!r}")
    if not math.isfinite(minutes) or minutes < 0:
        raise InvalidActivityError(f"Minutes must be a finite non-negative number, got {minutes!r}")

    today = _today(now)
    record = await repo.load(user_id)
    session = _touch_today(record, today, lesson_id)
    session.minutes_spent += minutes
    record.total_time_spent += minutes
    _trim_sessions(record, today, retention_days)
    await repo.save(record)

    logger.debug("Recorded %.1f min on %s for %s (streak %d)", minutes, lesson_id, user_id, record.current_streak)
    return record


async def record_lesson_completion(
    repo: LearningRepository,
    user_id: str,
    lesson_id: str,
    now: datetime | None = None,
    retention_days: int = DEFAULT_RETENTION_DAYS,
) -> LearningRecord:
    """Record a completed lesson today and advance the streak."""
    if not lesson_id:
        raise InvalidActivityError("lesson_id is required")

    today = _today(now)
    record = await repo.load(user_id)
    _touch_today(record, today, lesson_id)
    _trim_sessions(record, today, retention_days)
    await repo.save(record)
    return record


async def get_current_streak(repo: LearningRepository, user_id: str, now: datetime | None = None) -> int:
    record = await repo.load(user_id)
    return effective_streak(_streak_state(record), _today(now))


async def get_total_time_spent(repo: LearningRepository, user_id: str) -> float:
    record = await repo.load(user_id)
    return record.total_time_spent


async def get_time_spent_today(repo: LearningRepository, user_id: str, now: datetime | None = None) -> float:
    record = await repo.load(user_id)
    today = _today(now)
    session = next((s for s in record.sessions if s.date == today), None)
    return session.minutes_spent if session else 0


async def has_activity_today(repo: LearningRepository, user_id: str, now: datetime | None = None) -> bool:
    record = await repo.load(user_id)
    return record.last_activity_date == _today(now)


def build_learning_stats(record: LearningRecord, now: datetime | None = None) -> LearningStats:
    """Facts as of query time, with read-time streak expiry applied."""
    today = _today(now)
    current = effective_streak(_streak_state(record), today)
    session = next((s for s in record.sessions if s.date == today), None)
    return LearningStats(
        current_streak=current,
        longest_streak=max(record.longest_streak, current),
        total_time_spent=record.total_time_spent,
        time_spent_today=session.minutes_spent if session else 0,
        total_sessions=len(record.sessions),
        last_activity_date=record.last_activity_date,
    )


async def get_learning_stats(repo: LearningRepository, user_id: str, now: datetime | None = None) -> LearningStats:
    return build_learning_stats(await repo.load(user_id), now)


def format_time_spent(minutes: float) -> str:
    """Human readable duration: '45 min', '1 hr', '2 hrs 5 min'."""
    total = round(minutes)
    if total < 60:
        return f"{total} min"
    hours, mins = divmod(total, 60)
    unit = "hr" if hours == 1 else "hrs"
    if mins == 0:
        return f"{hours} {unit}"
    return f"{hours} {unit} {mins} min"
