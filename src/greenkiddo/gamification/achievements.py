"""Achievement catalogue with duplicate-proof unlocking."""

from __future__ import annotations

import logging
from datetime import datetime

from greenkiddo.gamification.facts import ActivityFacts
from greenkiddo.gamification.points_service import apply_award, log_level_change
from greenkiddo.gamification.schemas import Achievement, AchievementFlag, GamificationRecord

logger = logging.getLogger(__name__)


def derive_achievements(facts: ActivityFacts) -> list[Achievement]:
    """Build the achievement catalogue from live facts. Pure."""
    return [
        Achievement(
            id="first_lesson",
            name="First Steps",
            description="Complete your first lesson",
            icon="🌱",
            category="milestone",
            rarity="common",
            points_reward=10,
            xp_reward=20,
            unlocked=facts.total_time_spent > 0,
        ),
        Achievement(
            id="week_warrior",
            name="Week Warrior",
            description="Maintain a 7-day streak",
            icon="🔥",
            category="streak",
            rarity="rare",
            points_reward=50,
            xp_reward=100,
            unlocked=facts.current_streak >= 7,
        ),
        Achievement(
            id="course_master",
            name="Course Master",
            description="Complete 5 courses",
            icon="🎓",
            category="course",
            rarity="epic",
            points_reward=200,
            xp_reward=500,
            unlocked=facts.completed_count >= 5,
            progress=facts.completed_count,
            target=5,
        ),
        Achievement(
            id="level_10",
            name="Green Champion",
            description="Reach level 10",
            icon="🏆",
            category="milestone",
            rarity="legendary",
            points_reward=500,
            xp_reward=1000,
            unlocked=facts.level >= 10,
            progress=facts.level,
            target=10,
        ),
    ]


def reconcile_achievements(catalogue: list[Achievement], persisted: list[AchievementFlag]) -> list[Achievement]:
    """Overlay persisted unlock latches onto a fresh catalogue. Pure."""
    flags = {flag.id: flag for flag in persisted}
    merged = []
    for achievement in catalogue:
        item = achievement.model_copy(deep=True)
        flag = flags.get(item.id)
        if flag is not None and flag.unlocked:
            item.unlocked = True
            item.unlocked_at = flag.unlocked_at
        merged.append(item)
    return merged


def has_achievement(record: GamificationRecord, achievement_id: str) -> bool:
    return any(flag.id == achievement_id and flag.unlocked for flag in record.achievements)


def claim_achievement(record: GamificationRecord, achievement: Achievement, now: datetime) -> bool:
    """Unlock an achievement and grant its reward once. Returns False if already unlocked."""
    if has_achievement(record, achievement.id):
        return False

    old_level = apply_award(record, "challenges", achievement.points_reward, achievement.xp_reward, now)
    record.achievements = [flag for flag in record.achievements if flag.id != achievement.id]
    record.achievements.append(AchievementFlag(id=achievement.id, unlocked=True, unlocked_at=now))

    logger.info("User %s unlocked achievement %s (%s)", record.user_id, achievement.id, achievement.rarity)
    log_level_change(record.user_id, old_level, record.level)
    return True
