# meditation_api/services/achievement_service.py
from __future__ import annotations

import logging
from math import floor, isfinite
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo import UpdateOne, ReturnDocument
from pymongo.errors import DuplicateKeyError

from ..db.mongo import (
    achievements_collection,
    user_achievements_collection,
    meditation_sessions_collection,
    stress_assessments_collection,
    users_collection,
)
from ..errors import ConflictError, NotFoundError, ValidationError
from ..models.achievement_model import ACTIVITY_TYPES
from ..utils.datetime_utils import now_utc
from ..utils.query_utils import as_object_id

logger = logging.getLogger(__name__)

# Default catalogue. criteria.value is sessions/assessments/logins for "count",
# minutes for "duration", days for "streak" and stress points for "milestone".
DEFAULT_ACHIEVEMENTS: List[Dict[str, Any]] = [
    {
        "name": "First Steps",
        "description": "Complete your first meditation session.",
        "category": "count",
        "criteria": {"type": "meditation_completed", "value": 1},
        "icon": "first_steps.png",
        "points": 10,
    },
    {
        "name": "Dedicated Meditator",
        "description": "Complete 5 meditation sessions.",
        "category": "count",
        "criteria": {"type": "meditation_completed", "value": 5},
        "icon": "dedicated_meditator.png",
        "points": 25,
    },
    {
        "name": "Meditation Master",
        "description": "Complete 50 meditation sessions.",
        "category": "count",
        "criteria": {"type": "meditation_completed", "value": 50},
        "icon": "meditation_master.png",
        "points": 200,
    },
    {
        "name": "Hour of Calm",
        "description": "Meditate for a total of 60 minutes.",
        "category": "duration",
        "criteria": {"type": "meditation_completed", "value": 60},
        "icon": "hour_of_calm.png",
        "points": 30,
    },
    {
        "name": "Marathon Meditator",
        "description": "Meditate for a total of 10 hours.",
        "category": "duration",
        "criteria": {"type": "meditation_completed", "value": 600},
        "icon": "marathon_meditator.png",
        "points": 150,
    },
    {
        "name": "Week Warrior",
        "description": "Keep a 7-day streak.",
        "category": "streak",
        "criteria": {"type": "streak", "value": 7},
        "icon": "week_warrior.png",
        "points": 150,
    },
    {
        "name": "Zen Master",
        "description": "Keep a 30-day streak.",
        "category": "streak",
        "criteria": {"type": "streak", "value": 30},
        "icon": "zen_master.png",
        "points": 500,
    },
    {
        "name": "Self Aware",
        "description": "Complete 5 stress assessments.",
        "category": "count",
        "criteria": {"type": "stress_assessment_completed", "value": 5},
        "icon": "self_aware.png",
        "points": 25,
    },
    {
        "name": "Stress Buster",
        "description": "Lower your stress score by 3 points between two assessments.",
        "category": "milestone",
        "criteria": {"type": "stress_assessment_completed", "value": 3},
        "icon": "stress_buster.png",
        "points": 100,
    },
    {
        "name": "Regular Visitor",
        "description": "Log in 10 times.",
        "category": "count",
        "criteria": {"type": "login", "value": 10},
        "icon": "regular_visitor.png",
        "points": 20,
    },
]


def _number(value: Any) -> Optional[float]:
    """Numeric payload value, or None when missing or not a number."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if isfinite(number) else None


def _percent(amount: float, target: float) -> int:
    if not target or target <= 0:
        return 0
    return max(0, min(100, floor(amount / target * 100)))


def _achievement_out(doc: dict) -> dict:
    return {
        "id": str(doc["_id"]),
        "name": doc.get("name"),
        "description": doc.get("description"),
        "category": doc.get("category"),
        "criteria": doc.get("criteria"),
        "icon": doc.get("icon"),
        "points": int(doc.get("points") or 0),
        "created_at": doc.get("created_at"),
        "updated_at": doc.get("updated_at"),
    }


class AchievementService:
    """Tracks per-user progress towards achievements.

    Progress is recomputed from stored activity (sessions, assessments,
    logins) whenever a matching activity is reported, so repeated reports
    are harmless. Completed records are never touched again.
    """

    # ------------------------------------------------------------------
    # Activity processing
    # ------------------------------------------------------------------
    async def process_user_activity(
        self,
        user_id: str,
        activity_type: str,
        activity_data: Optional[Dict[str, Any]] = None,
    ) -> List[dict]:
        if activity_type not in ACTIVITY_TYPES:
            raise ValidationError(f"Unsupported activity type: {activity_type}")
        user_id = str(user_id)
        activity_data = activity_data or {}

        logger.info("Processing %s activity for user %s", activity_type, user_id)
        updates: List[dict] = []
        async for achievement in achievements_collection.find({"criteria.type": activity_type}):
            result = await self.process_achievement(user_id, achievement, activity_type, activity_data)
            if result is not None:
                updates.append(result)
        return updates

    async def process_achievement(
        self,
        user_id: str,
        achievement: dict,
        activity_type: str,
        activity_data: Optional[Dict[str, Any]] = None,
    ) -> Optional[dict]:
        achievement_id = str(achievement["_id"])
        record = await user_achievements_collection.find_one(
            {"user_id": user_id, "achievement_id": achievement_id}
        )
        if record and record.get("is_completed"):
            return None

        current = int(record.get("progress") or 0) if record else 0
        progress = await self.calculate_progress(user_id, achievement, activity_type, activity_data, current)
        now = now_utc()

        update: Dict[str, dict] = {
            "$set": {"progress": progress, "updated_at": now},
            "$setOnInsert": {"created_at": now},
        }
        completed = progress >= 100
        if completed:
            update["$set"]["is_completed"] = True
            update["$set"]["date_earned"] = now
        else:
            update["$setOnInsert"]["is_completed"] = False
            update["$setOnInsert"]["date_earned"] = None

        try:
            await user_achievements_collection.update_one(
                {"user_id": user_id, "achievement_id": achievement_id, "is_completed": {"$ne": True}},
                update,
                upsert=True,
            )
        except DuplicateKeyError:
            # a concurrent request completed it first
            logger.debug("Achievement %s already completed for user %s", achievement_id, user_id)
            return None

        if completed:
            logger.info("User %s earned achievement %s (%s)", user_id, achievement.get("name"), achievement_id)
        return {
            "achievement_id": achievement_id,
            "name": achievement.get("name"),
            "progress": progress,
            "is_completed": completed,
        }

    async def calculate_progress(
        self,
        user_id: str,
        achievement: dict,
        activity_type: str,
        activity_data: Optional[Dict[str, Any]],
        current_progress: int = 0,
    ) -> int:
        """Return the new progress (0-100), never lower than ``current_progress``."""
        current = max(0, min(100, int(current_progress or 0)))
        computed = await self._compute_progress(user_id, achievement, activity_type, activity_data or {})
        if computed is None:
            return current
        return max(current, computed)

    async def _compute_progress(
        self, user_id: str, achievement: dict, activity_type: str, data: Dict[str, Any]
    ) -> Optional[int]:
        criteria = achievement.get("criteria") or {}
        ctype = criteria.get("type")
        target = criteria.get("value") or 0
        category = achievement.get("category")
        if ctype != activity_type or target <= 0:
            return None

        if ctype == "meditation_completed":
            if category == "count":
                total = await meditation_sessions_collection.count_documents({"user_id": user_id, "completed": True})
                return _percent(total, target)
            if category == "duration":
                total_seconds = await self._total_completed_duration(user_id)
                return _percent(total_seconds, target * 60)

        elif ctype == "stress_assessment_completed":
            if category == "count":
                total = await stress_assessments_collection.count_documents({"user_id": user_id})
                return _percent(total, target)
            if category == "milestone":
                reduction = _number(data.get("stress_reduction"))
                if reduction is not None and reduction >= target:
                    return 100

        elif ctype == "streak":
            if category == "streak":
                streak = _number(data.get("current_streak")) or _number(data.get("meditation_streak"))
                if streak:
                    return _percent(streak, target)

        elif ctype == "login":
            if category == "count":
                login_count = _number(data.get("login_count"))
                if login_count is None:
                    login_count = await self._stored_login_count(user_id)
                return _percent(login_count, target)

        return None

    async def _total_completed_duration(self, user_id: str) -> int:
        cursor = meditation_sessions_collection.aggregate([
            {"$match": {"user_id": user_id, "completed": True}},
            {"$group": {"_id": None, "total": {"$sum": "$duration"}}},
        ])
        rows = await cursor.to_list(length=1)
        return int(rows[0].get("total") or 0) if rows else 0

    async def _stored_login_count(self, user_id: str) -> int:
        if not ObjectId.is_valid(user_id):
            return 0
        user = await users_collection.find_one({"_id": ObjectId(user_id)}, {"login_count": 1})
        return int((user or {}).get("login_count") or 0)

    # ------------------------------------------------------------------
    # User views
    # ------------------------------------------------------------------
    async def _achievements_by_id(self, ids: List[str]) -> Dict[str, dict]:
        oids = [ObjectId(i) for i in ids if ObjectId.is_valid(i)]
        if not oids:
            return {}
        found: Dict[str, dict] = {}
        async for doc in achievements_collection.find({"_id": {"$in": oids}}):
            found[str(doc["_id"])] = doc
        return found

    async def _joined(self, query: dict) -> List[tuple]:
        records = [r async for r in user_achievements_collection.find(query)]
        lookup = await self._achievements_by_id([r.get("achievement_id") for r in records])
        # rows whose achievement was deleted are skipped
        return [(r, lookup[r["achievement_id"]]) for r in records if r.get("achievement_id") in lookup]

    async def get_user_achievements(self, user_id: str) -> List[dict]:
        rows = await self._joined({"user_id": str(user_id)})
        return [
            {
                "id": str(ach["_id"]),
                "name": ach.get("name"),
                "description": ach.get("description"),
                "category": ach.get("category"),
                "icon": ach.get("icon"),
                "points": int(ach.get("points") or 0),
                "progress": int(rec.get("progress") or 0),
                "is_completed": bool(rec.get("is_completed")),
                "date_earned": rec.get("date_earned"),
            }
            for rec, ach in rows
        ]

    async def get_completed_achievements(self, user_id: str) -> List[dict]:
        rows = await self._joined({"user_id": str(user_id), "is_completed": True})
        return [
            {
                "id": str(ach["_id"]),
                "name": ach.get("name"),
                "description": ach.get("description"),
                "category": ach.get("category"),
                "icon": ach.get("icon"),
                "points": int(ach.get("points") or 0),
                "date_earned": rec.get("date_earned"),
            }
            for rec, ach in rows
        ]

    async def get_user_points(self, user_id: str) -> int:
        rows = await self._joined({"user_id": str(user_id), "is_completed": True})
        return sum(int(ach.get("points") or 0) for _, ach in rows)

    # ------------------------------------------------------------------
    # Catalogue management
    # ------------------------------------------------------------------
    async def list_achievements(self, category: Optional[str] = None) -> List[dict]:
        query = {"category": category} if category else {}
        cursor = achievements_collection.find(query).sort([("category", 1), ("points", 1)])
        return [_achievement_out(doc) async for doc in cursor]

    async def get_achievement(self, achievement_id: str) -> dict:
        oid = as_object_id(achievement_id, "achievement ID")
        doc = await achievements_collection.find_one({"_id": oid})
        if not doc:
            raise NotFoundError("Achievement not found")
        return _achievement_out(doc)

    async def create_achievement(self, data: Dict[str, Any]) -> dict:
        doc = dict(data)
        doc["created_at"] = now_utc()
        try:
            result = await achievements_collection.insert_one(doc)
        except DuplicateKeyError:
            raise ConflictError("Achievement with this name already exists")
        doc["_id"] = result.inserted_id
        logger.info("Created achievement %s (%s)", doc.get("name"), result.inserted_id)
        return _achievement_out(doc)

    async def update_achievement(self, achievement_id: str, data: Dict[str, Any]) -> dict:
        oid = as_object_id(achievement_id, "achievement ID")
        updates = {k: v for k, v in data.items() if v is not None}
        if not updates:
            raise ValidationError("No fields to update")
        updates["updated_at"] = now_utc()
        try:
            doc = await achievements_collection.find_one_and_update(
                {"_id": oid}, {"$set": updates}, return_document=ReturnDocument.AFTER
            )
        except DuplicateKeyError:
            raise ConflictError("Achievement with this name already exists")
        if not doc:
            raise NotFoundError("Achievement not found")
        return _achievement_out(doc)

    async def delete_achievement(self, achievement_id: str) -> bool:
        """Delete an achievement and every user record pointing at it."""
        oid = as_object_id(achievement_id, "achievement ID")
        result = await achievements_collection.delete_one({"_id": oid})
        if result.deleted_count == 0:
            return False
        removed = await user_achievements_collection.delete_many({"achievement_id": str(oid)})
        logger.info("Deleted achievement %s and %s user records", oid, removed.deleted_count)
        return True

    async def seed_achievements(self) -> Dict[str, int]:
        """Idempotent upsert of the default catalogue, keyed by name."""
        now = now_utc()
        ops = []
        for item in DEFAULT_ACHIEVEMENTS:
            ops.append(
                UpdateOne(
                    {"name": item["name"]},
                    {
                        "$set": {**item, "updated_at": now},
                        "$setOnInsert": {"created_at": now},
                    },
                    upsert=True,
                )
            )
        result = await achievements_collection.bulk_write(ops, ordered=False)
        return {
            "matched": result.matched_count,
            "modified": result.modified_count,
            "upserted": len(result.upserted_ids or {}),
            "total": len(DEFAULT_ACHIEVEMENTS),
        }


achievement_service = AchievementService()
