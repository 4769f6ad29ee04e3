"""Integration tests for the progression API endpoints."""

from __future__ import annotations

import pytest
from httpx import AsyncClient

USER = "learner-1"


class TestLevelsEndpoint:
    @pytest.mark.asyncio
    async def test_levels_table(self, client: AsyncClient):
        response = await client.get("/api/v1/levels")
        assert response.status_code == 200
        levels = response.json()["levels"]
        assert len(levels) == 20
        assert levels[0] == {"level": 1, "title": "Seedling", "cumulative": 0}

    @pytest.mark.asyncio
    async def test_levels_limit(self, client: AsyncClient):
        response = await client.get("/api/v1/levels", params={"limit": 5})
        assert len(response.json()["levels"]) == 5


class TestPointsEndpoints:
    @pytest.mark.asyncio
    async def test_fresh_user_points(self, client: AsyncClient):
        response = await client.get(f"/api/v1/users/{USER}/points")
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 0
        assert data["last_updated"] is None

    @pytest.mark.asyncio
    async def test_award_points(self, client: AsyncClient):
        response = await client.post(
            f"/api/v1/users/{USER}/points",
            json={"category": "quizzes_passed", "amount": 30, "xp_amount": 120},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 30
        assert data["breakdown"]["quizzes_passed"] == 30

        level = (await client.get(f"/api/v1/users/{USER}/level")).json()
        assert level["current"] == 2
        assert level["current_xp"] == 20
        assert level["title"] == "Sprout"

    @pytest.mark.asyncio
    async def test_unknown_category_rejected(self, client: AsyncClient):
        response = await client.post(f"/api/v1/users/{USER}/points", json={"category": "karma", "amount": 5})
        assert response.status_code == 400
        assert "karma" in response.json()["detail"]

    @pytest.mark.asyncio
    async def test_negative_amount_rejected(self, client: AsyncClient):
        response = await client.post(f"/api/v1/users/{USER}/points", json={"category": "social", "amount": -5})
        assert response.status_code == 400
        assert (await client.get(f"/api/v1/users/{USER}/points")).json()["total"] == 0

    @pytest.mark.asyncio
    async def test_malformed_body(self, client: AsyncClient):
        response = await client.post(f"/api/v1/users/{USER}/points", json={"category": "social"})
        assert response.status_code == 422


class TestChallengeEndpoints:
    @pytest.mark.asyncio
    async def test_session_makes_daily_claimable(self, client: AsyncClient):
        await client.post(f"/api/v1/users/{USER}/learning/sessions", json={"lesson_id": "l1", "minutes": 15})

        challenges = {c["id"]: c for c in (await client.get(f"/api/v1/users/{USER}/challenges")).json()}
        assert challenges["daily_lesson"]["completed"] is True
        assert challenges["daily_lesson"]["completed_at"] is None

    @pytest.mark.asyncio
    async def test_complete_challenge_idempotent(self, client: AsyncClient):
        url = f"/api/v1/users/{USER}/challenges/daily_lesson/complete"
        first = await client.post(url)
        assert first.status_code == 200
        assert first.json()["granted"] is True
        assert first.json()["points"]["total"] == 10

        second = await client.post(url)
        assert second.json()["granted"] is False
        assert second.json()["points"]["total"] == 10
        assert second.json()["level"]["total_xp"] == 20

    @pytest.mark.asyncio
    async def test_unknown_challenge_404(self, client: AsyncClient):
        response = await client.post(f"/api/v1/users/{USER}/challenges/nope/complete")
        assert response.status_code == 404
        assert "nope" in response.json()["detail"]


class TestQuestEndpoints:
    @pytest.mark.asyncio
    async def test_list_quests(self, client: AsyncClient):
        quests = {q["id"]: q for q in (await client.get(f"/api/v1/users/{USER}/quests")).json()}
        assert quests["first_steps"]["unlocked"] is True
        assert quests["eco_scholar"]["unlocked"] is False
        assert [s["order"] for s in quests["streak_master"]["steps"]] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_locked_quest_409(self, client: AsyncClient):
        response = await client.post(f"/api/v1/users/{USER}/quests/eco_scholar/steps/step1/complete")
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_complete_step(self, client: AsyncClient):
        response = await client.post(f"/api/v1/users/{USER}/quests/first_steps/steps/step1/complete")
        assert response.status_code == 200
        quest = response.json()
        assert quest["completed"] is True
        assert quest["completed_at"] is not None

        quests = {q["id"]: q for q in (await client.get(f"/api/v1/users/{USER}/quests")).json()}
        assert quests["eco_scholar"]["unlocked"] is True

    @pytest.mark.asyncio
    async def test_unknown_step_404(self, client: AsyncClient):
        response = await client.post(f"/api/v1/users/{USER}/quests/first_steps/steps/step7/complete")
        assert response.status_code == 404


class TestAchievementEndpoints:
    @pytest.mark.asyncio
    async def test_unlock_once(self, client: AsyncClient):
        url = f"/api/v1/users/{USER}/achievements/week_warrior/unlock"
        assert (await client.post(url)).json()["granted"] is True
        again = (await client.post(url)).json()
        assert again["granted"] is False
        assert again["points"]["total"] == 50

        achievements = {a["id"]: a for a in (await client.get(f"/api/v1/users/{USER}/achievements")).json()}
        assert achievements["week_warrior"]["unlocked"] is True

    @pytest.mark.asyncio
    async def test_unknown_achievement_404(self, client: AsyncClient):
        response = await client.post(f"/api/v1/users/{USER}/achievements/unknown/unlock")
        assert response.status_code == 404


class TestStatsEndpoint:
    @pytest.mark.asyncio
    async def test_stats_refresh_claims_once(self, client: AsyncClient):
        await client.post(f"/api/v1/users/{USER}/learning/sessions", json={"lesson_id": "l1", "minutes": 10})

        first = (await client.get(f"/api/v1/users/{USER}/stats")).json()
        assert first["points"]["total"] == 45
        assert first["leaderboard_rank"] == 1

        second = (await client.get(f"/api/v1/users/{USER}/stats")).json()
        assert second["points"]["total"] == 45


class TestLeaderboardEndpoints:
    @pytest.mark.asyncio
    async def test_leaderboard(self, client: AsyncClient):
        for user, amount in (("a", 300), ("b", 300), ("c", 500), ("d", 0)):
            await client.post(f"/api/v1/users/{user}/points", json={"category": "social", "amount": amount})

        response = await client.get("/api/v1/leaderboard", params={"user_id": "b"})
        assert response.status_code == 200
        data = response.json()
        assert data["period"] == "all-time"
        assert [(e["user_id"], e["rank"]) for e in data["entries"]] == [("c", 1), ("a", 2), ("b", 3)]
        assert data["user_rank"] == 3

    @pytest.mark.asyncio
    async def test_weekly_leaderboard(self, client: AsyncClient):
        await client.post("/api/v1/users/a/points", json={"category": "social", "amount": 10})
        data = (await client.get("/api/v1/leaderboard", params={"period": "weekly"})).json()
        assert data["entries"][0]["points"] == 10

    @pytest.mark.asyncio
    async def test_daily_leaderboard_400(self, client: AsyncClient):
        response = await client.get("/api/v1/leaderboard", params={"period": "daily"})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_snapshot_then_change(self, client: AsyncClient):
        await client.post("/api/v1/users/a/points", json={"category": "social", "amount": 100})
        await client.post("/api/v1/users/b/points", json={"category": "social", "amount": 50})
        snapshot = await client.post("/api/v1/leaderboard/snapshot")
        assert snapshot.json() == {"period": "all-time", "entries": 2}

        await client.post("/api/v1/users/b/points", json={"category": "social", "amount": 100})
        entries = (await client.get("/api/v1/leaderboard")).json()["entries"]
        assert {e["user_id"]: e["change"] for e in entries} == {"b": 1, "a": -1}

    @pytest.mark.asyncio
    async def test_display_name_from_init(self, client: AsyncClient):
        init = await client.post(f"/api/v1/users/{USER}/init", params={"name": "Maya"})
        assert init.json() == {"user_id": USER, "user_name": "Maya"}
        await client.post(f"/api/v1/users/{USER}/points", json={"category": "social", "amount": 5})
        entries = (await client.get("/api/v1/leaderboard")).json()["entries"]
        assert entries[0]["user_name"] == "Maya"


class TestLearningEndpoints:
    @pytest.mark.asyncio
    async def test_record_session(self, client: AsyncClient):
        response = await client.post(
            f"/api/v1/users/{USER}/learning/sessions", json={"lesson_id": "l1", "minutes": 25}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["current_streak"] == 1
        assert data["time_spent_today"] == 25
        assert data["total_sessions"] == 1

    @pytest.mark.asyncio
    async def test_negative_minutes_400(self, client: AsyncClient):
        response = await client.post(
            f"/api/v1/users/{USER}/learning/sessions", json={"lesson_id": "l1", "minutes": -3}
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    @pytest.mark.parametrize("literal", ["NaN", "Infinity", "1e999"])
    async def test_non_finite_minutes_422_keeps_history(self, client: AsyncClient, literal):
        await client.post(f"/api/v1/users/{USER}/learning/sessions", json={"lesson_id": "l1", "minutes": 25})

        response = await client.post(
            f"/api/v1/users/{USER}/learning/sessions",
            content='{"lesson_id": "l1", "minutes": %s}' % literal,
            headers={"content-type": "application/json"},
        )
        assert response.status_code == 422

        data = (await client.get(f"/api/v1/users/{USER}/learning/stats")).json()
        assert data["total_sessions"] == 1
        assert data["total_time_spent"] == 25
        assert data["current_streak"] == 1

    @pytest.mark.asyncio
    async def test_record_lesson_and_stats(self, client: AsyncClient):
        await client.post(f"/api/v1/users/{USER}/learning/lessons", json={"lesson_id": "l1"})
        data = (await client.get(f"/api/v1/users/{USER}/learning/stats")).json()
        assert data["current_streak"] == 1
        assert data["total_time_spent"] == 0


class TestCourseEndpoints:
    @pytest.mark.asyncio
    async def test_enroll_and_complete(self, client: AsyncClient):
        response = await client.post(f"/api/v1/users/{USER}/courses/solar-101")
        assert response.status_code == 200
        assert response.json()["completed"] is False

        response = await client.put(f"/api/v1/users/{USER}/courses/solar-101/progress", json={"percentage": 100})
        assert response.json()["completed"] is True

        assert (await client.get(f"/api/v1/users/{USER}/courses")).json() == ["solar-101"]

        challenges = {c["id"]: c for c in (await client.get(f"/api/v1/users/{USER}/challenges")).json()}
        assert challenges["complete_course"]["completed"] is True

    @pytest.mark.asyncio
    async def test_progress_out_of_range(self, client: AsyncClient):
        response = await client.put(f"/api/v1/users/{USER}/courses/solar-101/progress", json={"percentage": 150})
        assert response.status_code == 422
