"""Store-backed course progress collaborator tests."""

import pytest

from greenkiddo.gamification.facts import gather_facts
from greenkiddo.storage.base import KIND_COURSES
from tests.conftest import NOW


class TestStoreCourseProgress:
    @pytest.mark.asyncio
    async def test_enroll(self, courses):
        progress = await courses.enroll("u1", "solar-101")
        assert progress.course_id == "solar-101"
        assert not progress.completed
        assert await courses.get_enrolled_courses("u1") == ["solar-101"]

    @pytest.mark.asyncio
    async def test_re_enroll_keeps_progress(self, courses):
        await courses.set_progress("u1", "solar-101", 40)
        progress = await courses.enroll("u1", "solar-101")
        assert progress.progress_percentage == 40
        assert await courses.get_enrolled_courses("u1") == ["solar-101"]

    @pytest.mark.asyncio
    async def test_full_progress_completes(self, courses):
        progress = await courses.set_progress("u1", "solar-101", 100)
        assert progress.completed
        stored = await courses.get_user_progress("u1", "solar-101")
        assert stored.completed

    @pytest.mark.asyncio
    async def test_completion_is_latched(self, courses):
        await courses.set_progress("u1", "solar-101", 100)
        progress = await courses.set_progress("u1", "solar-101", 80)
        assert progress.completed
        assert progress.progress_percentage == 80

    @pytest.mark.asyncio
    async def test_out_of_range_rejected(self, courses):
        with pytest.raises(ValueError):
            await courses.set_progress("u1", "solar-101", 120)
        assert await courses.get_enrolled_courses("u1") == []

    @pytest.mark.asyncio
    async def test_empty_course_rejected(self, courses):
        with pytest.raises(ValueError):
            await courses.enroll("u1", "")

    @pytest.mark.asyncio
    async def test_unknown_course_progress(self, courses):
        assert await courses.get_user_progress("u1", "nope") is None

    @pytest.mark.asyncio
    async def test_invalid_record_resolves_to_empty(self, store, courses):
        await store.save(KIND_COURSES, "u1", {"courses": "bad"})
        assert await courses.get_enrolled_courses("u1") == []


class TestGatherFacts:
    @pytest.mark.asyncio
    async def test_counts_enrolled_and_completed(self, learning, courses):
        await courses.enroll("u1", "a")
        await courses.set_progress("u1", "b", 100)

        facts = await gather_facts(learning, courses, "u1", level=3, now=NOW)
        assert facts.enrolled_course_ids == ("a", "b")
        assert facts.completed_course_ids == ("b",)
        assert facts.enrolled_count == 2
        assert facts.completed_count == 1
        assert facts.level == 3
        assert facts.current_streak == 0
