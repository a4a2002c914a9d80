# meditation_api/services/stress_management_service.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from bson import ObjectId

from ..db.mongo import stress_assessments_collection, users_collection
from ..errors import ValidationError
from ..models.stress_assessment_model import StressAssessmentModel
from ..utils.datetime_utils import now_utc
from .achievement_service import achievement_service
from .stress_analysis_service import StressAnalysisService, _utc
from .stress_technique_service import stress_technique_service

logger = logging.getLogger(__name__)

SYMPTOM_WEIGHTS = {
    "physical_symptoms": 0.25,
    "emotional_symptoms": 0.30,
    "behavioral_symptoms": 0.20,
    "cognitive_symptoms": 0.25,
}

STRESS_LEVELS = ("LOW", "MODERATE", "HIGH")
HISTORY_LIMIT = 30
WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

def _time_slot(hour: int) -> str:
    if 5 <= hour < 12:
        return "Morning"
    if 12 <= hour < 17:
        return "Afternoon"
    if 17 <= hour < 22:
        return "Evening"
    return "Night"


def _averages(groups: Dict[str, List[float]]) -> Dict[str, float]:
    return {key: round(sum(values) / len(values), 1) for key, values in groups.items() if values}


def _assessment_out(doc: dict) -> dict:
    out = {k: v for k, v in doc.items() if k != "_id"}
    out["id"] = str(doc["_id"])
    return out


def _matches(technique: dict, names: List[str]) -> bool:
    wanted = {n.strip().lower() for n in names if n}
    return technique["name"].lower() in wanted or technique["category"].lower() in wanted


class StressManagementService:

    @staticmethod
    def calculate_stress_score(assessment: Dict[str, Any]) -> float:
        if assessment is None:
            raise ValidationError("Assessment data is required")
        score = sum(float(assessment.get(field) or 0) * weight for field, weight in SYMPTOM_WEIGHTS.items())
        return round(score, 2)

    @staticmethod
    def determine_stress_level(score: float) -> str:
        if score < 3:
            return "LOW"
        if score < 7:
            return "MODERATE"
        return "HIGH"

    @classmethod
    async def assess_stress_level(cls, user_id: str, payload: Dict[str, Any]) -> dict:
        """Score and store an assessment, then report it for achievements."""
        user_id = str(user_id)
        score = cls.calculate_stress_score(payload)
        level = cls.determine_stress_level(score)

        previous = await stress_assessments_collection.find_one({"user_id": user_id}, sort=[("timestamp", -1)])

        doc = StressAssessmentModel(user_id=user_id, score=score, level=level, **payload).model_dump(
            by_alias=True, exclude={"id"}
        )
        result = await stress_assessments_collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        logger.info("Stored stress assessment %s for user %s (score=%s, level=%s)", result.inserted_id, user_id, score, level)

        activity: Dict[str, Any] = {"score": score, "level": level}
        if previous is not None:
            activity["stress_reduction"] = round(float(previous.get("score") or 0) - score, 2)
        await achievement_service.process_user_activity(user_id, "stress_assessment_completed", activity)

        return _assessment_out(doc)

    @staticmethod
    async def get_stress_history(user_id: str, limit: int = HISTORY_LIMIT) -> List[dict]:
        cursor = stress_assessments_collection.find({"user_id": str(user_id)}).sort("timestamp", -1).limit(limit)
        return [_assessment_out(doc) async for doc in cursor]

    @classmethod
    async def get_stress_analytics(cls, user_id: str) -> Dict[str, Any]:
        history = await cls.get_stress_history(user_id)
        chronological = list(reversed(history))
        return {
            "average_level": StressAnalysisService.calculate_average_stress_level(chronological),
            "trend": StressAnalysisService.analyze_stress_trend(chronological),
            "peak_stress_times": StressAnalysisService.identify_peak_stress_times(chronological),
            "assessment_count": len(history),
        }

    @classmethod
    async def get_stress_patterns(cls, user_id: str) -> Dict[str, Any]:
        history = await cls.get_stress_history(user_id)
        by_weekday: Dict[str, List[float]] = {}
        by_slot: Dict[str, List[float]] = {}
        for assessment in history:
            ts = _utc(assessment.get("timestamp"))
            if ts is None:
                continue
            score = float(assessment.get("score") or 0)
            by_weekday.setdefault(WEEKDAYS[ts.weekday()], []).append(score)
            by_slot.setdefault(_time_slot(ts.hour), []).append(score)

        return {
            "weekday_patterns": _averages(by_weekday),
            "time_of_day_patterns": _averages(by_slot),
            "common_triggers": [t["trigger"] for t in StressAnalysisService.identify_common_triggers(history, limit=3)],
        }

    @classmethod
    async def get_peak_stress_hours(cls, user_id: str) -> List[Dict[str, Any]]:
        history = await cls.get_stress_history(user_id)
        return StressAnalysisService.identify_peak_stress_times(history)

    @staticmethod
    def generate_recommendations(
        level: str, techniques: List[dict], preferences: Optional[Dict[str, Any]] = None
    ) -> List[dict]:
        """Filter ``techniques`` by preferences and order them for ``level``.

        Avoided techniques are dropped, matching on name or category.
        Preferred ones come first, then the closest match to the preferred
        duration. For HIGH stress the shortest technique always leads.
        """
        prefs = preferences or {}
        preferred = prefs.get("preferred_techniques") or []
        avoided = prefs.get("avoided_techniques") or []
        duration = prefs.get("preferred_duration") or 5

        candidates = [dict(t) for t in techniques if not _matches(t, avoided)]
        candidates.sort(
            key=lambda t: (not _matches(t, preferred), abs(t["duration_minutes"] - duration), t["duration_minutes"])
        )

        if level == "HIGH" and candidates:
            shortest = min(candidates, key=lambda t: t["duration_minutes"])
            candidates.remove(shortest)
            candidates.insert(0, shortest)
        return candidates

    @classmethod
    async def get_recommendations(cls, user_id: str, level: Optional[str] = None) -> Dict[str, Any]:
        user_id = str(user_id)
        if level is not None and level not in STRESS_LEVELS:
            raise ValidationError("Invalid stress level")

        if level is None:
            latest = await stress_assessments_collection.find_one({"user_id": user_id}, sort=[("timestamp", -1)])
            level = (latest or {}).get("level") or "MODERATE"

        preferences = None
        if ObjectId.is_valid(user_id):
            user = await users_collection.find_one({"_id": ObjectId(user_id)}, {"stress_preferences": 1})
            preferences = (user or {}).get("stress_preferences")

        techniques = await stress_technique_service.list_all()

        return {
            "level": level,
            "recommendations": cls.generate_recommendations(level, techniques, preferences),
            "generated_at": now_utc(),
        }
