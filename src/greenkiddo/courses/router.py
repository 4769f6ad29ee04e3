"""Course enrolment and progress endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from greenkiddo.courses.provider import CourseProgress, StoreCourseProgress
from greenkiddo.dependencies import get_courses

router = APIRouter(prefix="/api/v1/users/{user_id}/courses", tags=["Courses"])


class ProgressUpdate(BaseModel):
    percentage: float = Field(ge=0, le=100)


@router.get("", response_model=list[str])
async def list_enrolled(user_id: str, courses: StoreCourseProgress = Depends(get_courses)):
    return await courses.get_enrolled_courses(user_id)


@router.post("/{course_id}", response_model=CourseProgress)
async def enroll(user_id: str, course_id: str, courses: StoreCourseProgress = Depends(get_courses)):
    return await courses.enroll(user_id, course_id)


@router.put("/{course_id}/progress", response_model=CourseProgress)
async def set_progress(
    user_id: str,
    course_id: str,
    body: ProgressUpdate,
    courses: StoreCourseProgress = Depends(get_courses),
):
    return await courses.set_progress(user_id, course_id, body.percentage)
