"""Challenge evaluator.

Challenges are regenerated from live facts on every read and then overlaid
with the persisted completion latch. Only ``claim_challenge`` grants rewards.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from greenkiddo.gamification.facts import ActivityFacts
from greenkiddo.gamification.periods import end_of_day, get_week_start
from greenkiddo.gamification.points_service import apply_award, log_level_change
from greenkiddo.gamification.schemas import (
    Challenge,
    ChallengeFlag,
    ChallengeRequirement,
    GamificationRecord,
)

logger = logging.getLogger(__name__)

WEEKLY_STREAK_TARGET = 7
EXPLORER_TARGET = 5


def derive_challenges(facts: ActivityFacts, now: datetime) -> list[Challenge]:
    """Build the challenge catalogue from live facts. Pure."""
    learned_today = 1 if facts.time_spent_today > 0 else 0
    week_end = get_week_start(now) + timedelta(days=7) - timedelta(milliseconds=1)

    catalogue = [
        Challenge(
            id="daily_lesson",
            title="Daily Learner",
            description="Complete 1 lesson today",
            type="daily",
            category="learning",
            icon="📚",
            points_reward=10,
            xp_reward=20,
            progress=learned_today,
            target=1,
            expires_at=end_of_day(now),
            requirements=[
                ChallengeRequirement(
                    type="complete_lessons", target=1, current=learned_today,
                    description="Complete 1 lesson",
                ),
            ],
        ),
        Challenge(
            id="weekly_streak",
            title="Week Warrior",
            description="Maintain a 7-day streak",
            type="weekly",
            category="streak",
            icon="🔥",
            points_reward=50,
            xp_reward=100,
            progress=min(facts.current_streak, WEEKLY_STREAK_TARGET),
            target=WEEKLY_STREAK_TARGET,
            expires_at=week_end,
            requirements=[
                ChallengeRequirement(
                    type="maintain_streak", target=WEEKLY_STREAK_TARGET, current=facts.current_streak,
                    description="Maintain a 7-day learning streak",
                ),
            ],
        ),
        Challenge(
            id="complete_course",
            title="Course Completer",
            description="Complete your first course",
            type="special",
            category="learning",
            icon="🎓",
            points_reward=100,
            xp_reward=200,
            progress=facts.completed_count,
            target=1,
            requirements=[
                ChallengeRequirement(
                    type="complete_courses", target=1, current=facts.completed_count,
                    description="Complete 1 course",
                ),
            ],
        ),
        Challenge(
            id="explorer",
            title="Explorer",
            description="Enroll in 5 different courses",
            type="monthly",
            category="exploration",
            icon="🗺️",
            points_reward=75,
            xp_reward=150,
            progress=facts.enrolled_count,
            target=EXPLORER_TARGET,
            requirements=[
                ChallengeRequirement(
                    type="enroll_courses", target=EXPLORER_TARGET, current=facts.enrolled_count,
                    description="Enroll in 5 courses",
                ),
            ],
        ),
    ]

    for challenge in catalogue:
        challenge.completed = challenge.target > 0 and challenge.progress >= challenge.target
    return catalogue


def reconcile_challenges(catalogue: list[Challenge], persisted: list[ChallengeFlag]) -> list[Challenge]:
    """Overlay persisted latches onto a fresh catalogue. Pure.

    A latched challenge stays completed even if live facts no longer meet it.
    Persisted flags for ids no longer in the catalogue are ignored.
    """
    flags = {flag.id: flag for flag in persisted}
    merged = []
    for challenge in catalogue:
        item = challenge.model_copy(deep=True)
        flag = flags.get(item.id)
        if flag is not None and flag.completed:
            item.completed = True
            item.completed_at = flag.completed_at
        merged.append(item)
    return merged


def is_latched(record: GamificationRecord, challenge_id: str) -> bool:
    return any(flag.id == challenge_id and flag.completed for flag in record.challenges)


def claim_challenge(record: GamificationRecord, challenge: Challenge, now: datetime) -> bool:
    """Grant a challenge's reward onto the record once. Returns False if already latched."""
    if is_latched(record, challenge.id):
        return False

    old_level = apply_award(record, "challenges", challenge.points_reward, challenge.xp_reward, now)
    record.challenges = [flag for flag in record.challenges if flag.id != challenge.id]
    record.challenges.append(ChallengeFlag(id=challenge.id, completed=True, completed_at=now))

    logger.info("User %s completed challenge %s (+%d points)", record.user_id, challenge.id, challenge.points_reward)
    log_level_change(record.user_id, old_level, record.level)
    return True
