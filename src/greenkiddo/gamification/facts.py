"""Snapshot of the read-only facts that challenges, quests and achievements are derived from."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime

from greenkiddo.courses.provider import CourseProgressProvider
from greenkiddo.progress.repository import LearningRepository
from greenkiddo.progress.service import build_learning_stats


@dataclass(frozen=True)
class ActivityFacts:
    current_streak: int = 0
    longest_streak: int = 0
    total_time_spent: float = 0
    time_spent_today: float = 0
    last_activity_date: date | None = None
    enrolled_course_ids: tuple[str, ...] = field(default_factory=tuple)
    completed_course_ids: tuple[str, ...] = field(default_factory=tuple)
    level: int = 1

    @property
    def enrolled_count(self) -> int:
        return len(self.enrolled_course_ids)

    @property
    def completed_count(self) -> int:
        return len(self.completed_course_ids)


async def gather_facts(
    learning: LearningRepository,
    courses: CourseProgressProvider,
    user_id: str,
    level: int,
    now: datetime | None = None,
) -> ActivityFacts:
    """Collect live facts for one user at query time."""
    stats = build_learning_stats(await learning.load(user_id), now)

    enrolled = await courses.get_enrolled_courses(user_id)
    completed = []
    for course_id in enrolled:
        progress = await courses.get_user_progress(user_id, course_id)
        if progress is not None and progress.completed:
            completed.append(course_id)

    return ActivityFacts(
        current_streak=stats.current_streak,
        longest_streak=stats.longest_streak,
        total_time_spent=stats.total_time_spent,
        time_spent_today=stats.time_spent_today,
        last_activity_date=stats.last_activity_date,
        enrolled_course_ids=tuple(enrolled),
        completed_course_ids=tuple(completed),
        level=level,
    )
