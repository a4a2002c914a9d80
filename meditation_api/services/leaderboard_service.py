# meditation_api/services/leaderboard_service.py
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from bson import ObjectId

from ..db.mongo import user_achievements_collection, users_collection
from ..errors import ValidationError
from ..utils.datetime_utils import now_utc, to_utc_aware

PERIODS = ("daily", "weekly", "monthly", "all-time")

# extra $match applied to the joined achievement, None means every achievement counts
CATEGORY_FILTERS: Dict[str, Optional[dict]] = {
    "total": None,
    "meditation": {"achievement.criteria.type": "meditation_completed"},
    "stress": {"achievement.criteria.type": "stress_assessment_completed"},
    "streak": {"achievement.criteria.type": {"$in": ["streak", "login"]}},
}

DEFAULT_LIMIT = 10
TOP_ACHIEVERS = 3


def period_start(period: str, now: datetime) -> Optional[datetime]:
    """Earliest ``date_earned`` counted for ``period``; None for all-time."""
    if period == "daily":
        return now.replace(hour=0, minute=0, second=0, microsecond=0)
    if period == "weekly":
        return now - timedelta(days=7)
    if period == "monthly":
        return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    return None


def _check(period: str, category: str) -> None:
    if period not in PERIODS:
        raise ValidationError("Invalid leaderboard period")
    if category not in CATEGORY_FILTERS:
        raise ValidationError("Invalid leaderboard category")


def _join_achievement() -> List[dict]:
    # achievement_id is stored as a string
    return [
        {"$addFields": {
            "achievement_oid": {
                "$convert": {"input": "$achievement_id", "to": "objectId", "onError": None, "onNull": None}
            }
        }},
        {"$lookup": {
            "from": "achievements",
            "localField": "achievement_oid",
            "foreignField": "_id",
            "as": "achievement",
        }},
        {"$unwind": "$achievement"},
    ]


def _ranked(rows: List[dict]) -> List[int]:
    """Competition ranks for rows sorted by points descending (ties share a rank)."""
    ranks: List[int] = []
    for index, row in enumerate(rows):
        if index and row["points"] == rows[index - 1]["points"]:
            ranks.append(ranks[-1])
        else:
            ranks.append(index + 1)
    return ranks


class LeaderboardService:
    """Rankings over the points of completed achievements."""

    def points_pipeline(self, period: str, category: str, now: Optional[datetime] = None) -> List[dict]:
        match: Dict[str, Any] = {"is_completed": True}
        start = period_start(period, now or now_utc())
        if start is not None:
            match["date_earned"] = {"$gte": start}

        stages = [{"$match": match}, *_join_achievement()]
        category_filter = CATEGORY_FILTERS[category]
        if category_filter:
            stages.append({"$match": category_filter})
        stages.append({"$group": {"_id": "$user_id", "points": {"$sum": "$achievement.points"}}})
        stages.append({"$match": {"points": {"$gt": 0}}})
        return stages

    async def _usernames(self, user_ids: List[str]) -> Dict[str, str]:
        oids = [ObjectId(u) for u in user_ids if ObjectId.is_valid(u)]
        if not oids:
            return {}
        cursor = users_collection.find({"_id": {"$in": oids}}, {"username": 1})
        return {str(doc["_id"]): doc.get("username") async for doc in cursor}

    async def get_leaderboard(
        self, period: str = "all-time", category: str = "total", limit: int = DEFAULT_LIMIT
    ) -> List[dict]:
        _check(period, category)
        pipeline = self.points_pipeline(period, category) + [
            {"$sort": {"points": -1, "_id": 1}},
            {"$limit": limit},
        ]
        rows = await user_achievements_collection.aggregate(pipeline).to_list(length=limit)
        names = await self._usernames([row["_id"] for row in rows])
        return [
            {
                "user_id": row["_id"],
                "username": names.get(row["_id"]),
                "points": int(row["points"]),
                "rank": rank,
            }
            for row, rank in zip(rows, _ranked(rows))
        ]

    async def get_user_rank(self, user_id: str, period: str = "all-time", category: str = "total") -> dict:
        """Rank is one more than the number of users with strictly more points.

        Users without points in the window get rank 0.
        """
        _check(period, category)
        user_id = str(user_id)
        rows = await user_achievements_collection.aggregate(self.points_pipeline(period, category)).to_list(length=None)
        totals = {row["_id"]: int(row["points"]) for row in rows}

        points = totals.get(user_id, 0)
        rank = 1 + sum(1 for other in totals.values() if other > points) if points else 0
        return {
            "rank": rank,
            "points": points,
            "total_users": len(totals),
            "period": period,
            "category": category,
        }

    async def get_top_achievers(self, limit: int = TOP_ACHIEVERS) -> List[dict]:
        return await self.get_leaderboard("all-time", "total", limit)

    async def get_weekly_progress(self, user_id: str) -> dict:
        """Points earned in the last 7 days against the 7 days before that."""
        user_id = str(user_id)
        now = now_utc()
        current_start = now - timedelta(days=7)
        previous_start = now - timedelta(days=14)

        pipeline = [
            {"$match": {"user_id": user_id, "is_completed": True, "date_earned": {"$gte": previous_start}}},
            *_join_achievement(),
            {"$project": {"date_earned": 1, "points": "$achievement.points"}},
        ]
        rows = await user_achievements_collection.aggregate(pipeline).to_list(length=None)

        current_week = previous_week = 0
        for row in rows:
            earned = to_utc_aware(row.get("date_earned"))
            if earned is None:
                continue
            if earned >= current_start:
                current_week += int(row.get("points") or 0)
            else:
                previous_week += int(row.get("points") or 0)

        change = current_week - previous_week
        if previous_week:
            percent_change = round(change / previous_week * 100, 1)
        else:
            percent_change = 100.0 if current_week > 0 else 0.0

        return {
            "current_week": current_week,
            "previous_week": previous_week,
            "change": change,
            "percent_change": percent_change,
        }


leaderboard_service = LeaderboardService()
