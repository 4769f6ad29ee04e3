"""Pydantic models for progression state and API payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, model_validator

POINT_CATEGORIES: tuple[str, ...] = (
    "lessons_completed",
    "courses_completed",
    "quizzes_passed",
    "streaks",
    "challenges",
    "social",
)

ChallengeType = Literal["daily", "weekly", "monthly", "special"]
ChallengeCategory = Literal["learning", "streak", "social", "quiz", "exploration"]
RequirementType = Literal[
    "complete_lessons",
    "complete_courses",
    "enroll_courses",
    "maintain_streak",
    "pass_quizzes",
    "forum_posts",
    "reviews",
    "time_spent",
]
QuestType = Literal["main", "side", "daily"]
QuestDifficulty = Literal["easy", "medium", "hard"]
AchievementCategory = Literal["milestone", "streak", "course", "quiz", "social", "special"]
Rarity = Literal["common", "rare", "epic", "legendary"]
LeaderboardPeriod = Literal["daily", "weekly", "monthly", "all-time"]


# --- Points ---


class PointsBreakdown(BaseModel):
    lessons_completed: int = Field(default=0, ge=0)
    courses_completed: int = Field(default=0, ge=0)
    quizzes_passed: int = Field(default=0, ge=0)
    streaks: int = Field(default=0, ge=0)
    challenges: int = Field(default=0, ge=0)
    social: int = Field(default=0, ge=0)

    def sum(self) -> int:
        return sum(getattr(self, category) for category in POINT_CATEGORIES)


class PointsLedger(BaseModel):
    total: int = Field(default=0, ge=0)
    this_week: int = Field(default=0, ge=0)
    this_month: int = Field(default=0, ge=0)
    breakdown: PointsBreakdown = Field(default_factory=PointsBreakdown)
    last_updated: datetime | None = None

    @model_validator(mode="after")
    def _total_matches_breakdown(self) -> PointsLedger:
        if self.total != self.breakdown.sum():
            raise ValueError(f"Ledger total {self.total} != breakdown sum {self.breakdown.sum()}")
        return self


# --- Level ---


class LevelState(BaseModel):
    current: int = Field(default=1, ge=1)
    current_xp: int = Field(default=0, ge=0)
    xp_to_next_level: int = Field(default=100, ge=0)
    total_xp: int = Field(default=0, ge=0)
    title: str = "Seedling"


# --- Challenges ---


class ChallengeRequirement(BaseModel):
    type: RequirementType
    target: int = Field(ge=0)
    current: int = Field(ge=0)
    description: str


class Challenge(BaseModel):
    id: str
    title: str
    description: str
    type: ChallengeType
    category: ChallengeCategory
    icon: str = ""
    points_reward: int = Field(ge=0)
    xp_reward: int = Field(ge=0)
    progress: int = Field(ge=0)
    target: int = Field(ge=0)
    completed: bool = False
    completed_at: datetime | None = None
    expires_at: datetime | None = None
    requirements: list[ChallengeRequirement] = []

    @property
    def claimable(self) -> bool:
        """Met by live facts but the reward has not been latched yet."""
        return self.completed and self.completed_at is None


# --- Quests ---


class QuestStep(BaseModel):
    id: str
    title: str
    description: str = ""
    completed: bool = False
    order: int


class QuestRewards(BaseModel):
    points: int = Field(ge=0)
    xp: int = Field(ge=0)
    badge: str | None = None


class Quest(BaseModel):
    id: str
    title: str
    description: str = ""
    type: QuestType
    difficulty: QuestDifficulty
    rewards: QuestRewards
    progress: int = Field(ge=0)
    target: int = Field(ge=0)
    completed: bool = False
    completed_at: datetime | None = None
    unlocked: bool = False
    requirements: list[str] = []
    steps: list[QuestStep]

    @property
    def claimable(self) -> bool:
        return self.completed and self.completed_at is None


# --- Achievements ---


class Achievement(BaseModel):
    id: str
    name: str
    description: str
    icon: str = ""
    category: AchievementCategory
    rarity: Rarity
    points_reward: int = Field(ge=0)
    xp_reward: int = Field(ge=0)
    unlocked: bool = False
    unlocked_at: datetime | None = None
    progress: int | None = None
    target: int | None = None

    @property
    def claimable(self) -> bool:
        return self.unlocked and self.unlocked_at is None


# --- Persisted latches ---


class ChallengeFlag(BaseModel):
    id: str
    completed: bool = False
    completed_at: datetime | None = None


class QuestStepFlag(BaseModel):
    id: str
    completed: bool = False


class QuestFlag(BaseModel):
    id: str
    unlocked: bool = False
    completed: bool = False
    completed_at: datetime | None = None
    steps: list[QuestStepFlag] = []


class AchievementFlag(BaseModel):
    id: str
    unlocked: bool = False
    unlocked_at: datetime | None = None


class GamificationRecord(BaseModel):
    """The per-user snapshot that is read, patched and rewritten wholesale."""

    user_id: str
    user_name: str | None = None
    points: PointsLedger = Field(default_factory=PointsLedger)
    total_xp: int = Field(default=0, ge=0)
    level: LevelState = Field(default_factory=LevelState)
    achievements: list[AchievementFlag] = []
    challenges: list[ChallengeFlag] = []
    quests: list[QuestFlag] = []
    badges: list[str] = []
    last_updated: datetime | None = None

    @property
    def display_name(self) -> str:
        return self.user_name or f"User {self.user_id[:8]}"


# --- Leaderboard ---


class LeaderboardEntry(BaseModel):
    user_id: str
    user_name: str
    rank: int = 0
    points: int
    level: int
    change: int | None = None


class Leaderboard(BaseModel):
    period: LeaderboardPeriod
    entries: list[LeaderboardEntry]
    total: int = 0
    user_rank: int | None = None
    user_entry: LeaderboardEntry | None = None
    user_percentile: float | None = None
    last_updated: datetime


# --- Summary ---


class GamificationStats(BaseModel):
    user_id: str
    points: PointsLedger
    level: LevelState
    achievements: list[Achievement]
    challenges: list[Challenge]
    quests: list[Quest]
    badges: list[str] = []
    leaderboard_rank: int | None = None
    last_updated: datetime


# --- Requests ---


class AwardPointsRequest(BaseModel):
    category: str
    amount: int
    xp_amount: int | None = None


class RewardResponse(BaseModel):
    granted: bool
    points: PointsLedger
    level: LevelState


class LevelsResponse(BaseModel):
    levels: list[dict]
