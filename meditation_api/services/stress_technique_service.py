# meditation_api/services/stress_technique_service.py
from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional

from pymongo import ReturnDocument, UpdateOne
from pymongo.errors import DuplicateKeyError

from ..db.mongo import stress_techniques_collection, users_collection
from ..errors import ConflictError, NotFoundError, ValidationError
from ..models.stress_technique_model import DIFFICULTY_LEVELS, TECHNIQUE_CATEGORIES, StressTechniqueModel
from ..utils.datetime_utils import now_utc
from ..utils.query_utils import as_object_id, pagination_meta, pagination_params

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = ["breathing", "meditation"]
DEFAULT_DIFFICULTY = "beginner"
FALLBACK_LIMIT = 3
TEXT_SEARCH_MIN_LENGTH = 4

DEFAULT_TECHNIQUES: List[Dict[str, Any]] = [
    {
        "name": "4-7-8 Breathing",
        "description": "A simple breathing technique to reduce anxiety.",
        "category": "breathing",
        "difficulty_level": "beginner",
        "duration_minutes": 5,
        "steps": [
            "Exhale completely through your mouth.",
            "Inhale quietly through your nose for 4 seconds.",
            "Hold your breath for 7 seconds.",
            "Exhale through your mouth for 8 seconds.",
            "Repeat the cycle four times.",
        ],
        "benefits": ["Reduces anxiety", "Helps with falling asleep"],
        "tags": ["calm", "sleep", "anxiety"],
        "effectiveness_rating": 4,
        "recommended_frequency": "daily",
    },
    {
        "name": "Square Breathing",
        "description": "A short breathing pattern to quickly reduce stress.",
        "category": "breathing",
        "difficulty_level": "beginner",
        "duration_minutes": 2,
        "steps": [
            "Inhale for 4 seconds.",
            "Hold for 4 seconds.",
            "Exhale for 4 seconds.",
            "Hold for 4 seconds.",
        ],
        "benefits": ["Quick grounding", "Improves focus"],
        "tags": ["quick", "focus"],
        "effectiveness_rating": 4,
        "recommended_frequency": "as-needed",
    },
    {
        "name": "Body Scan",
        "description": "A meditation focusing on body sensations.",
        "category": "meditation",
        "difficulty_level": "beginner",
        "duration_minutes": 10,
        "steps": [
            "Lie down or sit comfortably.",
            "Bring attention to your feet.",
            "Slowly move your attention up through the body.",
            "Notice sensations without judging them.",
        ],
        "benefits": ["Body awareness", "Releases tension"],
        "tags": ["awareness", "relaxation"],
        "effectiveness_rating": 4,
        "recommended_frequency": "daily",
    },
    {
        "name": "Progressive Muscle Relaxation",
        "description": "Systematically tense and relax muscle groups.",
        "category": "relaxation",
        "difficulty_level": "intermediate",
        "duration_minutes": 15,
        "steps": [
            "Tense the muscles of your feet for 5 seconds.",
            "Release and notice the difference for 10 seconds.",
            "Work upwards through each muscle group.",
        ],
        "benefits": ["Releases physical tension", "Improves sleep"],
        "tags": ["tension", "sleep", "pmr"],
        "effectiveness_rating": 4,
        "recommended_frequency": "weekly",
    },
    {
        "name": "Mindful Walking",
        "description": "Walk slowly while paying attention to each step.",
        "category": "mindfulness",
        "difficulty_level": "beginner",
        "duration_minutes": 15,
        "steps": [
            "Walk at a slow, natural pace.",
            "Notice the lift, swing and placement of each foot.",
            "Return to the steps whenever the mind wanders.",
        ],
        "benefits": ["Grounding", "Light movement"],
        "tags": ["walking", "outdoors"],
        "effectiveness_rating": 3,
        "recommended_frequency": "as-needed",
    },
    {
        "name": "Safe Place Visualization",
        "description": "Picture a calm place in detail and rest there.",
        "category": "visualization",
        "difficulty_level": "intermediate",
        "duration_minutes": 10,
        "steps": [
            "Close your eyes and breathe slowly.",
            "Imagine a place where you feel safe.",
            "Add sounds, smells and textures to the scene.",
        ],
        "benefits": ["Emotional calm"],
        "tags": ["imagery", "calm"],
        "effectiveness_rating": 3,
        "recommended_frequency": "as-needed",
    },
]


def _technique_out(doc: dict) -> dict:
    out = {k: v for k, v in doc.items() if k != "_id"}
    out["id"] = str(doc["_id"])
    return out


def _check_category(category: str) -> str:
    if category not in TECHNIQUE_CATEGORIES:
        raise ValidationError("Invalid technique category")
    return category


def _check_difficulty(level: str) -> str:
    if level not in DIFFICULTY_LEVELS:
        raise ValidationError("Invalid difficulty level")
    return level


class StressTechniqueService:

    async def list_all(self) -> List[dict]:
        cursor = stress_techniques_collection.find({}).sort("name", 1)
        return [_technique_out(doc) async for doc in cursor]

    async def list_techniques(self, page: Optional[int] = None, limit: Optional[int] = None) -> Dict[str, Any]:
        page, limit, skip = pagination_params(page, limit)
        total = await stress_techniques_collection.count_documents({})
        cursor = stress_techniques_collection.find({}).sort("name", 1).skip(skip).limit(limit)
        return {
            "techniques": [_technique_out(doc) async for doc in cursor],
            "pagination": pagination_meta(total, page, limit),
        }

    async def get_technique(self, technique_id: str) -> dict:
        oid = as_object_id(technique_id, "technique ID")
        doc = await stress_techniques_collection.find_one({"_id": oid})
        if not doc:
            raise NotFoundError("Technique not found")
        return _technique_out(doc)

    async def by_category(self, category: str) -> List[dict]:
        cursor = stress_techniques_collection.find({"category": _check_category(category)}).sort("name", 1)
        return [_technique_out(doc) async for doc in cursor]

    async def by_difficulty(self, level: str) -> List[dict]:
        cursor = stress_techniques_collection.find({"difficulty_level": _check_difficulty(level)}).sort("name", 1)
        return [_technique_out(doc) async for doc in cursor]

    async def by_duration(self, min_minutes: int, max_minutes: int) -> List[dict]:
        if min_minutes > max_minutes:
            raise ValidationError("min_duration must not exceed max_duration")
        cursor = stress_techniques_collection.find(
            {"duration_minutes": {"$gte": min_minutes, "$lte": max_minutes}}
        ).sort("duration_minutes", 1)
        return [_technique_out(doc) async for doc in cursor]

    async def search(self, query: str) -> List[dict]:
        """Full-text search for longer queries, a case-insensitive substring match otherwise."""
        query = (query or "").strip()
        if not query:
            raise ValidationError("Search query is required")

        if len(query) >= TEXT_SEARCH_MIN_LENGTH:
            cursor = stress_techniques_collection.find(
                {"$text": {"$search": query}},
                {"score": {"$meta": "textScore"}},
            ).sort([("score", {"$meta": "textScore"})])
        else:
            pattern = {"$regex": re.escape(query), "$options": "i"}
            cursor = stress_techniques_collection.find(
                {"$or": [{"name": pattern}, {"description": pattern}, {"tags": pattern}]}
            ).sort("name", 1)

        results = []
        async for doc in cursor:
            doc.pop("score", None)
            results.append(_technique_out(doc))
        return results

    async def recommended_for_user(self, user_id: str) -> List[dict]:
        """Techniques in the user's preferred categories at their difficulty.

        Users without preferences get beginner breathing and meditation. When
        nothing matches, a few beginner techniques are returned instead.
        """
        oid = as_object_id(user_id, "user ID")
        user = await users_collection.find_one({"_id": oid}, {"stress_preferences": 1})
        if not user:
            raise NotFoundError("User not found")

        prefs = user.get("stress_preferences") or {}
        categories = prefs.get("preferred_categories") or DEFAULT_CATEGORIES
        difficulty = prefs.get("difficulty_level") or DEFAULT_DIFFICULTY

        cursor = stress_techniques_collection.find(
            {"category": {"$in": list(categories)}, "difficulty_level": difficulty}
        ).sort("name", 1)
        techniques = [_technique_out(doc) async for doc in cursor]
        if techniques:
            return techniques

        cursor = stress_techniques_collection.find({"difficulty_level": DEFAULT_DIFFICULTY}).limit(FALLBACK_LIMIT)
        return [_technique_out(doc) async for doc in cursor]

    async def create_technique(self, data: Dict[str, Any]) -> dict:
        doc = StressTechniqueModel(**data).model_dump(by_alias=True, exclude={"id"})
        try:
            result = await stress_techniques_collection.insert_one(doc)
        except DuplicateKeyError:
            raise ConflictError("Technique with this name already exists")
        doc["_id"] = result.inserted_id
        logger.info("Created stress technique %s (%s)", doc.get("name"), result.inserted_id)
        return _technique_out(doc)

    async def update_technique(self, technique_id: str, data: Dict[str, Any]) -> dict:
        oid = as_object_id(technique_id, "technique ID")
        updates = {k: v for k, v in data.items() if v is not None}
        if not updates:
            raise ValidationError("No fields to update")
        updates["updated_at"] = now_utc()
        try:
            doc = await stress_techniques_collection.find_one_and_update(
                {"_id": oid}, {"$set": updates}, return_document=ReturnDocument.AFTER
            )
        except DuplicateKeyError:
            raise ConflictError("Technique with this name already exists")
        if not doc:
            raise NotFoundError("Technique not found")
        return _technique_out(doc)

    async def delete_technique(self, technique_id: str) -> bool:
        oid = as_object_id(technique_id, "technique ID")
        result = await stress_techniques_collection.delete_one({"_id": oid})
        if result.deleted_count:
            logger.info("Deleted stress technique %s", oid)
        return bool(result.deleted_count)

    async def seed_techniques(self) -> Dict[str, int]:
        """Idempotent upsert of the default techniques, keyed by name."""
        now = now_utc()
        ops = [
            UpdateOne(
                {"name": item["name"]},
                {"$set": {**item, "updated_at": now}, "$setOnInsert": {"created_at": now}},
                upsert=True,
            )
            for item in DEFAULT_TECHNIQUES
        ]
        result = await stress_techniques_collection.bulk_write(ops, ordered=False)
        return {
            "matched": result.matched_count,
            "modified": result.modified_count,
            "upserted": len(result.upserted_ids or {}),
            "total": len(DEFAULT_TECHNIQUES),
        }


stress_technique_service = StressTechniqueService()
