"""Learning activity records owned by the activity facts provider."""

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, Field


class LearningSession(BaseModel):
    date: dt.date
    minutes_spent: float = Field(default=0, ge=0)
    lesson_ids: list[str] = []


class LearningRecord(BaseModel):
    user_id: str
    sessions: list[LearningSession] = []
    current_streak: int = Field(default=0, ge=0)
    longest_streak: int = Field(default=0, ge=0)
    total_time_spent: float = Field(default=0, ge=0)
    last_activity_date: dt.date | None = None


class LearningStats(BaseModel):
    current_streak: int
    longest_streak: int
    total_time_spent: float
    time_spent_today: float
    total_sessions: int
    last_activity_date: dt.date | None = None


class RecordSessionRequest(BaseModel):
    lesson_id: str
    minutes: float = Field(allow_inf_nan=False)


class RecordLessonRequest(BaseModel):
    lesson_id: str
