"""Course enrolment and progress collaborator.

The engine only reads through CourseProgressProvider. StoreCourseProgress is
a store-backed implementation that also accepts writes, so the service can
run end to end without the course catalogue service.
"""

from __future__ import annotations

import logging
from typing import Protocol

from pydantic import BaseModel, Field, ValidationError

from greenkiddo.storage.base import KIND_COURSES, RecordStore

logger = logging.getLogger(__name__)


class CourseProgress(BaseModel):
    course_id: str
    completed: bool = False
    progress_percentage: float = Field(default=0, ge=0, le=100)


class CourseEnrolments(BaseModel):
    user_id: str
    courses: list[CourseProgress] = []


class CourseProgressProvider(Protocol):
    async def get_enrolled_courses(self, user_id: str) -> list[str]:
        ...

    async def get_user_progress(self, user_id: str, course_id: str) -> CourseProgress | None:
        ...


class StoreCourseProgress:
    """Enrolments and per-course progress kept in the record store."""

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    async def _load(self, user_id: str) -> CourseEnrolments:
        raw = await self.store.load(KIND_COURSES, user_id)
        if raw is not None:
            try:
                return CourseEnrolments.model_validate(raw)
            except ValidationError:
                logger.warning("Invalid course record for user %s, using defaults", user_id)
        return CourseEnrolments(user_id=user_id)

    async def _save(self, enrolments: CourseEnrolments) -> None:
        await self.store.save(KIND_COURSES, enrolments.user_id, enrolments.model_dump(mode="json"))

    async def get_enrolled_courses(self, user_id: str) -> list[str]:
        return [c.course_id for c in (await self._load(user_id)).courses]

    async def get_user_progress(self, user_id: str, course_id: str) -> CourseProgress | None:
        enrolments = await self._load(user_id)
        return next((c for c in enrolments.courses if c.course_id == course_id), None)

    async def enroll(self, user_id: str, course_id: str) -> CourseProgress:
        """Enrol a user in a course. Re-enrolling keeps existing progress."""
        if not course_id:
            raise ValueError("course_id is required")
        enrolments = await self._load(user_id)
        existing = next((c for c in enrolments.courses if c.course_id == course_id), None)
        if existing is not None:
            return existing
        progress = CourseProgress(course_id=course_id)
        enrolments.courses.append(progress)
        await self._save(enrolments)
        return progress

    async def set_progress(self, user_id: str, course_id: str, percentage: float) -> CourseProgress:
        """Set course progress, enrolling if needed. 100% marks the course completed."""
        if not 0 <= percentage <= 100:
            raise ValueError(f"Progress percentage must be within 0..100, got {percentage}")
        await self.enroll(user_id, course_id)
        enrolments = await self._load(user_id)
        progress = next(c for c in enrolments.courses if c.course_id == course_id)
        progress.progress_percentage = percentage
        progress.completed = progress.completed or percentage >= 100
        await self._save(enrolments)
        return progress
