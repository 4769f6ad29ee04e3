"""Learning activity endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from greenkiddo.config import Settings
from greenkiddo.dependencies import get_app_settings, get_learning_repo
from greenkiddo.progress import service
from greenkiddo.progress.repository import LearningRepository
from greenkiddo.progress.schemas import LearningStats, RecordLessonRequest, RecordSessionRequest

router = APIRouter(prefix="/api/v1/users/{user_id}/learning", tags=["Learning"])


@router.post("/sessions", response_model=LearningStats)
async def record_session(
    user_id: str,
    body: RecordSessionRequest,
    repo: LearningRepository = Depends(get_learning_repo),
    settings: Settings = Depends(get_app_settings),
):
    """Record minutes spent on a lesson today."""
    record = await service.record_learning_session(
        repo, user_id, body.lesson_id, body.minutes,
        retention_days=settings.session_retention_days,
    )
    return service.build_learning_stats(record)


@router.post("/lessons", response_model=LearningStats)
async def record_lesson(
    user_id: str,
    body: RecordLessonRequest,
    repo: LearningRepository = Depends(get_learning_repo),
    settings: Settings = Depends(get_app_settings),
):
    record = await service.record_lesson_completion(
        repo, user_id, body.lesson_id,
        retention_days=settings.session_retention_days,
    )
    return service.build_learning_stats(record)


@router.get("/stats", response_model=LearningStats)
async def get_stats(user_id: str, repo: LearningRepository = Depends(get_learning_repo)):
    return await service.get_learning_stats(repo, user_id)
