"""Achievement tests: live unlock facts, latching and duplicate prevention."""

from __future__ import annotations

import pytest

from greenkiddo.gamification.achievements import (
    claim_achievement,
    derive_achievements,
    has_achievement,
    reconcile_achievements,
)
from greenkiddo.gamification.exceptions import UnknownAchievementError
from greenkiddo.gamification.facts import ActivityFacts
from greenkiddo.gamification.schemas import AchievementFlag, GamificationRecord
from tests.conftest import NOW


def _by_id(achievements):
    return {a.id: a for a in achievements}


class TestDeriveAchievements:
    def test_catalogue_rarities(self):
        rarities = {a.id: a.rarity for a in derive_achievements(ActivityFacts())}
        assert rarities == {
            "first_lesson": "common",
            "week_warrior": "rare",
            "course_master": "epic",
            "level_10": "legendary",
        }

    def test_fresh_user_has_nothing(self):
        assert not any(a.unlocked for a in derive_achievements(ActivityFacts()))

    def test_progress_towards_course_master(self):
        facts = ActivityFacts(completed_course_ids=("a", "b"))
        course_master = _by_id(derive_achievements(facts))["course_master"]
        assert course_master.progress == 2
        assert course_master.target == 5
        assert not course_master.unlocked

    def test_level_10_unlocks_on_level(self):
        assert _by_id(derive_achievements(ActivityFacts(level=10)))["level_10"].claimable


class TestReconcileAchievements:
    def test_persisted_unlock_kept(self):
        flags = [AchievementFlag(id="week_warrior", unlocked=True, unlocked_at=NOW)]
        merged = _by_id(reconcile_achievements(derive_achievements(ActivityFacts()), flags))
        assert merged["week_warrior"].unlocked
        assert merged["week_warrior"].unlocked_at == NOW
        assert not merged["week_warrior"].claimable


class TestClaimAchievement:
    def test_duplicate_not_awarded(self):
        record = GamificationRecord(user_id="u1")
        achievement = _by_id(derive_achievements(ActivityFacts(total_time_spent=5)))["first_lesson"]

        assert claim_achievement(record, achievement, NOW)
        assert not claim_achievement(record, achievement, NOW)
        assert has_achievement(record, "first_lesson")
        assert record.points.total == 10
        assert record.total_xp == 20

    @pytest.mark.asyncio
    async def test_unlock_via_engine_once(self, engine):
        assert await engine.unlock_achievement("u1", "course_master", now=NOW) is True
        assert await engine.unlock_achievement("u1", "course_master", now=NOW) is False

        points = await engine.get_user_points("u1", now=NOW)
        assert points.total == 200
        assert (await engine.get_user_level("u1")).total_xp == 500

        achievements = _by_id(await engine.get_user_achievements("u1", now=NOW))
        assert achievements["course_master"].unlocked_at == NOW

    @pytest.mark.asyncio
    async def test_unknown_achievement_rejected(self, engine):
        with pytest.raises(UnknownAchievementError):
            await engine.unlock_achievement("u1", "first_blood", now=NOW)
        assert not await engine.repo.exists("u1")
