"""Leaderboard rankings over completed achievement points."""
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import pytest
from bson import ObjectId

from meditation_api.errors import ValidationError
from meditation_api.services.leaderboard_service import LeaderboardService, period_start

from conftest import make_cursor

MODULE = "meditation_api.services.leaderboard_service"
CONTROLLER = "meditation_api.controllers.achievement_controller"

NOW = datetime(2024, 3, 14, 15, 30, tzinfo=timezone.utc)


def _stage(pipeline, name):
    return [stage[name] for stage in pipeline if name in stage]


class TestPipeline:

    def setup_method(self):
        self.service = LeaderboardService()

    @pytest.mark.parametrize("period,expected", [
        ("daily", datetime(2024, 3, 14, tzinfo=timezone.utc)),
        ("weekly", datetime(2024, 3, 7, 15, 30, tzinfo=timezone.utc)),
        ("monthly", datetime(2024, 3, 1, tzinfo=timezone.utc)),
        ("all-time", None),
    ])
    def test_period_start(self, period, expected):
        assert period_start(period, NOW) == expected

    def test_all_time_total_counts_every_completed_record(self):
        pipeline = self.service.points_pipeline("all-time", "total", NOW)
        matches = _stage(pipeline, "$match")
        assert matches[0] == {"is_completed": True}
        assert _stage(pipeline, "$group") == [{"_id": "$user_id", "points": {"$sum": "$achievement.points"}}]
        assert matches[-1] == {"points": {"$gt": 0}}
        assert _stage(pipeline, "$lookup")[0]["from"] == "achievements"

    def test_weekly_meditation_filters_date_and_type(self):
        pipeline = self.service.points_pipeline("weekly", "meditation", NOW)
        matches = _stage(pipeline, "$match")
        assert matches[0]["date_earned"] == {"$gte": NOW - timedelta(days=7)}
        assert {"achievement.criteria.type": "meditation_completed"} in matches


class TestLeaderboard:

    def setup_method(self):
        self.service = LeaderboardService()
        self.alice, self.bob, self.cara = (str(ObjectId()) for _ in range(3))

    @pytest.mark.asyncio
    async def test_entries_carry_usernames_and_shared_ranks(self):
        rows = [
            {"_id": self.alice, "points": 300},
            {"_id": self.bob, "points": 150},
            {"_id": self.cara, "points": 150},
        ]
        users = [
            {"_id": ObjectId(self.alice), "username": "alice"},
            {"_id": ObjectId(self.bob), "username": "bob"},
        ]
        with patch(f"{MODULE}.user_achievements_collection") as records, \
             patch(f"{MODULE}.users_collection") as users_collection:
            records.aggregate.return_value = make_cursor(rows)
            users_collection.find.return_value = make_cursor(users)
            board = await self.service.get_leaderboard("all-time", "total", 10)

        assert board == [
            {"user_id": self.alice, "username": "alice", "points": 300, "rank": 1},
            {"user_id": self.bob, "username": "bob", "points": 150, "rank": 2},
            {"user_id": self.cara, "username": None, "points": 150, "rank": 2},
        ]
        pipeline = records.aggregate.call_args.args[0]
        assert pipeline[-2:] == [{"$sort": {"points": -1, "_id": 1}}, {"$limit": 10}]

    @pytest.mark.asyncio
    async def test_empty_board(self):
        with patch(f"{MODULE}.user_achievements_collection") as records, \
             patch(f"{MODULE}.users_collection") as users_collection:
            records.aggregate.return_value = make_cursor([])
            assert await self.service.get_leaderboard() == []
        users_collection.find.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("period,category", [("yearly", "total"), ("weekly", "social")])
    async def test_unknown_period_or_category(self, period, category):
        with pytest.raises(ValidationError):
            await self.service.get_leaderboard(period, category)

    @pytest.mark.asyncio
    async def test_top_achievers_are_the_all_time_top_three(self):
        with patch.object(self.service, "get_leaderboard", AsyncMock(return_value=[])) as board:
            await self.service.get_top_achievers()
        board.assert_awaited_once_with("all-time", "total", 3)


class TestUserRank:

    def setup_method(self):
        self.service = LeaderboardService()
        self.me = str(ObjectId())

    @pytest.mark.asyncio
    async def test_rank_counts_users_strictly_ahead(self):
        rows = [
            {"_id": "a", "points": 500},
            {"_id": "b", "points": 200},
            {"_id": self.me, "points": 200},
            {"_id": "c", "points": 10},
        ]
        with patch(f"{MODULE}.user_achievements_collection") as records:
            records.aggregate.return_value = make_cursor(rows)
            result = await self.service.get_user_rank(self.me, "monthly", "streak")

        assert result == {"rank": 2, "points": 200, "total_users": 4, "period": "monthly", "category": "streak"}

    @pytest.mark.asyncio
    async def test_user_without_points_is_unranked(self):
        with patch(f"{MODULE}.user_achievements_collection") as records:
            records.aggregate.return_value = make_cursor([{"_id": "a", "points": 50}])
            result = await self.service.get_user_rank(self.me)

        assert result["rank"] == 0
        assert result["points"] == 0
        assert result["total_users"] == 1


class TestWeeklyProgress:

    def setup_method(self):
        self.service = LeaderboardService()
        self.me = str(ObjectId())

    async def _progress(self, rows):
        with patch(f"{MODULE}.now_utc", return_value=NOW), \
             patch(f"{MODULE}.user_achievements_collection") as records:
            records.aggregate.return_value = make_cursor(rows)
            result = await self.service.get_weekly_progress(self.me)
        self.pipeline = records.aggregate.call_args.args[0]
        return result

    @pytest.mark.asyncio
    async def test_splits_points_into_this_and_last_week(self):
        result = await self._progress([
            {"date_earned": NOW - timedelta(days=1), "points": 150},
            {"date_earned": NOW - timedelta(days=6), "points": 50},
            {"date_earned": NOW - timedelta(days=10), "points": 100},
        ])

        assert result == {"current_week": 200, "previous_week": 100, "change": 100, "percent_change": 100.0}
        assert self.pipeline[0]["$match"]["date_earned"] == {"$gte": NOW - timedelta(days=14)}
        assert self.pipeline[0]["$match"]["user_id"] == self.me

    @pytest.mark.asyncio
    async def test_naive_dates_are_treated_as_utc(self):
        earned = (NOW - timedelta(days=9)).replace(tzinfo=None)
        result = await self._progress([{"date_earned": earned, "points": 40}])
        assert result == {"current_week": 0, "previous_week": 40, "change": -40, "percent_change": -100.0}

    @pytest.mark.asyncio
    async def test_first_points_count_as_full_increase(self):
        result = await self._progress([{"date_earned": NOW, "points": 10}])
        assert result["percent_change"] == 100.0

    @pytest.mark.asyncio
    async def test_no_points_at_all(self):
        result = await self._progress([])
        assert result == {"current_week": 0, "previous_week": 0, "change": 0, "percent_change": 0.0}


# ---- HTTP ----
@pytest.mark.asyncio
async def test_leaderboard_route_is_not_taken_as_an_id(client):
    with patch(f"{CONTROLLER}.leaderboard_service") as service:
        service.get_leaderboard = AsyncMock(return_value=[{"user_id": "u1", "username": "calm", "points": 10, "rank": 1}])
        response = await client.get("/api/achievements/leaderboard", params={"period": "weekly", "limit": 5})

    assert response.status_code == 200
    assert response.json()[0]["rank"] == 1
    service.get_leaderboard.assert_awaited_once_with("weekly", "total", 5)


@pytest.mark.asyncio
async def test_rank_route_uses_current_user(client, user):
    with patch(f"{CONTROLLER}.leaderboard_service") as service:
        service.get_user_rank = AsyncMock(
            return_value={"rank": 3, "points": 40, "total_users": 9, "period": "all-time", "category": "total"}
        )
        response = await client.get("/api/achievements/leaderboard/rank")

    assert response.json()["rank"] == 3
    service.get_user_rank.assert_awaited_once_with(str(user["_id"]), "all-time", "total")


@pytest.mark.asyncio
async def test_bad_period_over_http(client):
    response = await client.get("/api/achievements/leaderboard", params={"period": "yearly"})
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid leaderboard period"}


@pytest.mark.asyncio
async def test_weekly_progress_route(client, user):
    with patch(f"{CONTROLLER}.leaderboard_service") as service:
        service.get_weekly_progress = AsyncMock(
            return_value={"current_week": 10, "previous_week": 0, "change": 10, "percent_change": 100.0}
        )
        response = await client.get("/api/user/achievements/weekly-progress")

    assert response.status_code == 200
    assert response.json()["percent_change"] == 100.0
    service.get_weekly_progress.assert_awaited_once_with(str(user["_id"]))
