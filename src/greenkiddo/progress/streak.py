"""Consecutive-day streak tracking.

All arithmetic is on calendar dates (UTC), never on elapsed hours, so a
session at 23:59 followed by one at 00:01 counts as two consecutive days.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date


@dataclass(frozen=True)
class StreakState:
    current_streak: int = 0
    longest_streak: int = 0
    last_activity_date: date | None = None


def advance_streak(state: StreakState, event_date: date) -> StreakState:
    """Apply one qualifying activity event dated event_date.

    Same day: unchanged. Next day: +1. Any larger gap, or no prior activity:
    fold the old streak into longest_streak and restart at 1. Events dated
    before last_activity_date are ignored.
    """
    last = state.last_activity_date
    if last is not None and event_date < last:
        return state

    if last == event_date:
        return state

    if last is not None and (event_date - last).days == 1:
        return replace(state, current_streak=state.current_streak + 1, last_activity_date=event_date)

    return StreakState(
        current_streak=1,
        longest_streak=max(state.longest_streak, state.current_streak),
        last_activity_date=event_date,
    )


def effective_streak(state: StreakState, today: date) -> int:
    """Streak as seen at query time: an idle streak expires on read.

    Valid only if the last activity was today or yesterday.
    """
    last = state.last_activity_date
    if last is None:
        return 0
    if 0 <= (today - last).days <= 1:
        return state.current_streak
    return 0
