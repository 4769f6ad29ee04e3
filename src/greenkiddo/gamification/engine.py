"""Gamification engine: the single entry point for every progression operation.

Each mutating operation is one read-modify-write of the user's snapshot
record, serialised per user with an in-process lock. Rewards are only ever
granted through ``claim_challenge``, ``claim_quest`` and
``claim_achievement``, each guarded by the persisted latch, so the automatic
claim pass in ``get_gamification_stats`` and explicit completion calls can
never double-award.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime

from greenkiddo.config import Settings, get_settings
from greenkiddo.courses.provider import CourseProgressProvider, StoreCourseProgress
from greenkiddo.gamification import leaderboard_service, points_service
from greenkiddo.gamification.achievements import claim_achievement, derive_achievements, reconcile_achievements
from greenkiddo.gamification.challenges import claim_challenge, derive_challenges, reconcile_challenges
from greenkiddo.gamification.exceptions import (
    QuestLockedError,
    UnknownAchievementError,
    UnknownChallengeError,
    UnknownQuestError,
    UnknownQuestStepError,
)
from greenkiddo.gamification.facts import ActivityFacts, gather_facts
from greenkiddo.gamification.periods import utcnow
from greenkiddo.gamification.quests import claim_quest, derive_quests, latch_unlocks, mark_step, reconcile_quests
from greenkiddo.gamification.repository import GamificationRepository
from greenkiddo.gamification.schemas import (
    Achievement,
    Challenge,
    GamificationRecord,
    GamificationStats,
    Leaderboard,
    LevelState,
    PointsLedger,
    Quest,
)
from greenkiddo.progress.repository import LearningRepository
from greenkiddo.storage.base import RecordStore

logger = logging.getLogger(__name__)


class GamificationEngine:
    """Points, levels, challenges, quests, achievements and leaderboards over a record store."""

    def __init__(
        self,
        store: RecordStore,
        courses: CourseProgressProvider | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.store = store
        self.repo = GamificationRepository(store, level_cap=self.settings.level_cap)
        self.learning = LearningRepository(store)
        self.courses = courses if courses is not None else StoreCourseProgress(store)
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    @asynccontextmanager
    async def _user_lock(self, user_id: str) -> AsyncIterator[None]:
        """Hold the per-user lock; the entry is dropped once no caller holds or awaits it."""
        lock = self._locks.setdefault(user_id, asyncio.Lock())
        self._lock_users[user_id] = self._lock_users.get(user_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[user_id] -= 1
            if not self._lock_users[user_id]:
                del self._lock_users[user_id]
                del self._locks[user_id]

    # ── Points & levels ──

    async def award_points(
        self,
        user_id: str,
        category: str,
        amount: int,
        xp_amount: int | None = None,
        now: datetime | None = None,
    ) -> PointsLedger:
        points_service.validate_award(category, amount, xp_amount)
        async with self._user_lock(user_id):
            record = await points_service.award_points(self.repo, user_id, category, amount, xp_amount, now)
        return record.points

    async def get_user_points(self, user_id: str, now: datetime | None = None) -> PointsLedger:
        return await points_service.get_user_points(self.repo, user_id, now)

    async def get_user_level(self, user_id: str) -> LevelState:
        return await points_service.get_user_level(self.repo, user_id)

    async def initialize_gamification(
        self, user_id: str, user_name: str | None = None, now: datetime | None = None
    ) -> GamificationRecord:
        """Create the zeroed record for a new user, or update the display name of an existing one."""
        async with self._user_lock(user_id):
            record = await self.repo.load(user_id)
            if user_name:
                record.user_name = user_name
            await self.repo.save(record, now or utcnow())
        return record

    # ── Leaderboard ──

    async def get_leaderboard(
        self, period: str = "all-time", user_id: str | None = None, now: datetime | None = None
    ) -> Leaderboard:
        return await leaderboard_service.get_leaderboard(
            self.repo, period, user_id, limit=self.settings.leaderboard_size, now=now
        )

    async def save_leaderboard_snapshot(self, period: str = "all-time", now: datetime | None = None) -> int:
        return await leaderboard_service.save_snapshot(self.repo, period, now)

    # ── Evaluation ──

    async def _facts(self, record: GamificationRecord, now: datetime) -> ActivityFacts:
        try:
            return await gather_facts(self.learning, self.courses, record.user_id, record.level.current, now)
        except Exception:
            logger.warning("Could not gather activity facts for %s, evaluating without them",
                           record.user_id, exc_info=True)
            return ActivityFacts(level=record.level.current)

    async def _challenges(self, record: GamificationRecord, now: datetime) -> list[Challenge]:
        facts = await self._facts(record, now)
        return reconcile_challenges(derive_challenges(facts, now), record.challenges)

    async def _quests(self, record: GamificationRecord, now: datetime) -> list[Quest]:
        facts = await self._facts(record, now)
        return reconcile_quests(derive_quests(facts), record.quests)

    async def _achievements(self, record: GamificationRecord, now: datetime) -> list[Achievement]:
        facts = await self._facts(record, now)
        return reconcile_achievements(derive_achievements(facts), record.achievements)

    # ── Challenges ──

    async def get_user_challenges(self, user_id: str, now: datetime | None = None) -> list[Challenge]:
        now = now or utcnow()
        return await self._challenges(await self.repo.load(user_id), now)

    async def complete_challenge(self, user_id: str, challenge_id: str, now: datetime | None = None) -> bool:
        """Grant a challenge reward once. Returns False if it was already completed."""
        async with self._user_lock(user_id):
            return await self._complete_challenge(user_id, challenge_id, now or utcnow())

    async def _complete_challenge(self, user_id: str, challenge_id: str, now: datetime) -> bool:
        record = await self.repo.load(user_id)
        challenge = next((c for c in await self._challenges(record, now) if c.id == challenge_id), None)
        if challenge is None:
            raise UnknownChallengeError(challenge_id)
        if not claim_challenge(record, challenge, now):
            return False
        await self.repo.save(record, now)
        return True

    # ── Quests ──

    async def get_user_quests(self, user_id: str, now: datetime | None = None) -> list[Quest]:
        """Evaluate quests, persisting any unlock gate that opened since the last read."""
        now = now or utcnow()
        async with self._user_lock(user_id):
            record = await self.repo.load(user_id)
            quests = await self._quests(record, now)
            if latch_unlocks(record, quests):
                await self.repo.save(record, now)
        return quests

    async def complete_quest_step(
        self, user_id: str, quest_id: str, step_id: str, now: datetime | None = None
    ) -> Quest:
        """Mark one step complete; completing the last step grants the quest reward once."""
        async with self._user_lock(user_id):
            now = now or utcnow()
            record = await self.repo.load(user_id)
            quest = next((q for q in await self._quests(record, now) if q.id == quest_id), None)
            if quest is None:
                raise UnknownQuestError(quest_id)
            if not any(step.id == step_id for step in quest.steps):
                raise UnknownQuestStepError(f"{quest_id}/{step_id}")
            if quest.completed_at is not None:
                return quest
            if not quest.unlocked:
                raise QuestLockedError(quest_id)

            mark_step(record, quest, step_id)
            claim_quest(record, quest, now)
            await self.repo.save(record, now)
        return quest

    async def _complete_ready_quest(self, user_id: str, quest_id: str, now: datetime) -> bool:
        record = await self.repo.load(user_id)
        quest = next((q for q in await self._quests(record, now) if q.id == quest_id), None)
        if quest is None or not quest.unlocked:
            return False
        latch_unlocks(record, [quest])
        if not claim_quest(record, quest, now):
            return False
        await self.repo.save(record, now)
        return True

    # ── Achievements ──

    async def get_user_achievements(self, user_id: str, now: datetime | None = None) -> list[Achievement]:
        now = now or utcnow()
        return await self._achievements(await self.repo.load(user_id), now)

    async def unlock_achievement(self, user_id: str, achievement_id: str, now: datetime | None = None) -> bool:
        """Unlock an achievement and grant its reward once. Returns False if already unlocked."""
        async with self._user_lock(user_id):
            return await self._unlock_achievement(user_id, achievement_id, now or utcnow())

    async def _unlock_achievement(self, user_id: str, achievement_id: str, now: datetime) -> bool:
        record = await self.repo.load(user_id)
        achievement = next((a for a in await self._achievements(record, now) if a.id == achievement_id), None)
        if achievement is None:
            raise UnknownAchievementError(achievement_id)
        if not claim_achievement(record, achievement, now):
            return False
        await self.repo.save(record, now)
        return True

    # ── Summary ──

    async def get_gamification_stats(self, user_id: str, now: datetime | None = None) -> GamificationStats:
        """Refresh everything for a user: claim met goals, then return a fresh snapshot."""
        now = now or utcnow()
        async with self._user_lock(user_id):
            record = await self.repo.load(user_id)

            for challenge in await self._challenges(record, now):
                if challenge.claimable:
                    await self._complete_challenge(user_id, challenge.id, now)

            record = await self.repo.load(user_id)
            for quest in await self._quests(record, now):
                if quest.claimable:
                    await self._complete_ready_quest(user_id, quest.id, now)

            # Achievements last so level-based ones see XP granted above
            record = await self.repo.load(user_id)
            for achievement in await self._achievements(record, now):
                if achievement.claimable:
                    await self._unlock_achievement(user_id, achievement.id, now)

            record = await self.repo.load(user_id)
            challenges = await self._challenges(record, now)
            quests = await self._quests(record, now)
            achievements = await self._achievements(record, now)
            if latch_unlocks(record, quests):
                await self.repo.save(record, now)

        leaderboard = await self.get_leaderboard("all-time", user_id, now)

        return GamificationStats(
            user_id=user_id,
            points=points_service.windowed_view(record.points, now),
            level=record.level,
            achievements=achievements,
            challenges=challenges,
            quests=quests,
            badges=list(record.badges),
            leaderboard_rank=leaderboard.user_rank,
            last_updated=now,
        )
