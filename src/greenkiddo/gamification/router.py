"""Gamification API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from greenkiddo.dependencies import get_engine
from greenkiddo.gamification.engine import GamificationEngine
from greenkiddo.gamification.level_thresholds import list_levels
from greenkiddo.gamification.schemas import (
    Achievement,
    AwardPointsRequest,
    Challenge,
    GamificationStats,
    Leaderboard,
    LevelsResponse,
    LevelState,
    PointsLedger,
    Quest,
    RewardResponse,
)

router = APIRouter(prefix="/api/v1", tags=["Gamification"])


# ── Public endpoints ──


@router.get("/levels", response_model=LevelsResponse)
async def get_levels(limit: int = Query(20, ge=1, le=100)):
    """Level table: title and cumulative XP per level."""
    return LevelsResponse(levels=list_levels(limit))


@router.get("/leaderboard", response_model=Leaderboard)
async def get_leaderboard(
    period: str = Query("all-time"),
    user_id: str | None = Query(None),
    engine: GamificationEngine = Depends(get_engine),
):
    """Ranked users for a period. ``daily`` is rejected with 400."""
    return await engine.get_leaderboard(period, user_id)


@router.post("/leaderboard/snapshot")
async def save_leaderboard_snapshot(
    period: str = Query("all-time"),
    engine: GamificationEngine = Depends(get_engine),
):
    """Record current ranks so later leaderboards report rank changes."""
    saved = await engine.save_leaderboard_snapshot(period)
    return {"period": period, "entries": saved}


# ── Per-user endpoints ──


@router.post("/users/{user_id}/init")
async def initialize_user(
    user_id: str,
    name: str | None = Query(None, max_length=64),
    engine: GamificationEngine = Depends(get_engine),
):
    record = await engine.initialize_gamification(user_id, name)
    return {"user_id": record.user_id, "user_name": record.display_name}


@router.get("/users/{user_id}/points", response_model=PointsLedger)
async def get_points(user_id: str, engine: GamificationEngine = Depends(get_engine)):
    return await engine.get_user_points(user_id)


@router.post("/users/{user_id}/points", response_model=PointsLedger)
async def award_points(
    user_id: str,
    body: AwardPointsRequest,
    engine: GamificationEngine = Depends(get_engine),
):
    """Credit points (and optional XP) to one earning category."""
    return await engine.award_points(user_id, body.category, body.amount, body.xp_amount)


@router.get("/users/{user_id}/level", response_model=LevelState)
async def get_level(user_id: str, engine: GamificationEngine = Depends(get_engine)):
    return await engine.get_user_level(user_id)


@router.get("/users/{user_id}/challenges", response_model=list[Challenge])
async def get_challenges(user_id: str, engine: GamificationEngine = Depends(get_engine)):
    return await engine.get_user_challenges(user_id)


@router.post("/users/{user_id}/challenges/{challenge_id}/complete", response_model=RewardResponse)
async def complete_challenge(
    user_id: str,
    challenge_id: str,
    engine: GamificationEngine = Depends(get_engine),
):
    """Claim a challenge reward. Repeated calls return granted=false."""
    granted = await engine.complete_challenge(user_id, challenge_id)
    return RewardResponse(
        granted=granted,
        points=await engine.get_user_points(user_id),
        level=await engine.get_user_level(user_id),
    )


@router.get("/users/{user_id}/quests", response_model=list[Quest])
async def get_quests(user_id: str, engine: GamificationEngine = Depends(get_engine)):
    return await engine.get_user_quests(user_id)


@router.post("/users/{user_id}/quests/{quest_id}/steps/{step_id}/complete", response_model=Quest)
async def complete_quest_step(
    user_id: str,
    quest_id: str,
    step_id: str,
    engine: GamificationEngine = Depends(get_engine),
):
    return await engine.complete_quest_step(user_id, quest_id, step_id)


@router.get("/users/{user_id}/achievements", response_model=list[Achievement])
async def get_achievements(user_id: str, engine: GamificationEngine = Depends(get_engine)):
    return await engine.get_user_achievements(user_id)


@router.post("/users/{user_id}/achievements/{achievement_id}/unlock", response_model=RewardResponse)
async def unlock_achievement(
    user_id: str,
    achievement_id: str,
    engine: GamificationEngine = Depends(get_engine),
):
    granted = await engine.unlock_achievement(user_id, achievement_id)
    return RewardResponse(
        granted=granted,
        points=await engine.get_user_points(user_id),
        level=await engine.get_user_level(user_id),
    )


@router.get("/users/{user_id}/stats", response_model=GamificationStats)
async def get_stats(user_id: str, engine: GamificationEngine = Depends(get_engine)):
    """All-in-one refresh: claims met goals, then returns the full snapshot."""
    return await engine.get_gamification_stats(user_id)
