"""Shared FastAPI dependencies."""

from fastapi import Request

from greenkiddo.config import Settings
from greenkiddo.courses.provider import StoreCourseProgress
from greenkiddo.gamification.engine import GamificationEngine
from greenkiddo.progress.repository import LearningRepository
from greenkiddo.storage.base import RecordStore


def get_store(request: Request) -> RecordStore:
    """The record store opened by the application lifespan."""
    return request.app.state.store


def get_engine(request: Request) -> GamificationEngine:
    return request.app.state.engine


def get_learning_repo(request: Request) -> LearningRepository:
    return LearningRepository(request.app.state.store)


def get_courses(request: Request) -> StoreCourseProgress:
    return StoreCourseProgress(request.app.state.store)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings
