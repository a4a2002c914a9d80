# meditation_api/services/export_service.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId

from ..db.mongo import (
    users_collection,
    achievements_collection,
    user_achievements_collection,
    meditation_sessions_collection,
    stress_assessments_collection,
)
from ..errors import NotFoundError, ValidationError
from ..utils.csv_writer import render_csv
from ..utils.query_utils import as_object_id, date_range_query

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("json", "csv")

ACHIEVEMENT_HEADERS = ["name", "description", "category", "points", "progress", "is_completed", "date_earned"]
MEDITATION_HEADERS = [
    "start_time", "end_time", "title", "type", "duration", "completed",
    "mood_before", "mood_after", "tags", "interruptions",
]
STRESS_HEADERS = [
    "timestamp", "score", "level", "physical_symptoms", "emotional_symptoms",
    "behavioral_symptoms", "cognitive_symptoms", "triggers", "symptoms", "notes",
]

ExportResult = Union[str, List[dict], Dict[str, Any]]


def _check_format(fmt: str) -> str:
    fmt = (fmt or "json").lower()
    if fmt not in EXPORT_FORMATS:
        raise ValidationError("format must be 'json' or 'csv'")
    return fmt


def _clean(doc: dict) -> dict:
    out = {k: v for k, v in doc.items() if k not in ("_id", "password")}
    out["id"] = str(doc["_id"])
    return out


class ExportService:
    """Read-only exports of a user's own data as JSON-able dicts or CSV text."""

    @staticmethod
    async def get_user_achievements(
        user_id: str,
        format: str = "json",
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> ExportResult:
        fmt = _check_format(format)
        as_object_id(user_id, "user ID")
        query = {"user_id": str(user_id), **date_range_query("created_at", start_date, end_date)}

        records = [r async for r in user_achievements_collection.find(query).sort("created_at", -1)]
        ids = [ObjectId(r["achievement_id"]) for r in records if ObjectId.is_valid(r.get("achievement_id"))]
        catalogue = {str(a["_id"]): a async for a in achievements_collection.find({"_id": {"$in": ids}})} if ids else {}

        rows = []
        for record in records:
            achievement = catalogue.get(record.get("achievement_id"))
            if not achievement:
                continue
            rows.append({
                "id": str(record["_id"]),
                "achievement_id": record.get("achievement_id"),
                "name": achievement.get("name"),
                "description": achievement.get("description"),
                "category": achievement.get("category"),
                "points": achievement.get("points"),
                "progress": record.get("progress", 0),
                "is_completed": bool(record.get("is_completed")),
                "date_earned": record.get("date_earned"),
            })
        return render_csv(rows, ACHIEVEMENT_HEADERS) if fmt == "csv" else rows

    @staticmethod
    async def get_user_meditations(
        user_id: str,
        format: str = "json",
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> ExportResult:
        fmt = _check_format(format)
        as_object_id(user_id, "user ID")
        query = {"user_id": str(user_id), **date_range_query("start_time", start_date, end_date)}
        sessions = [_clean(s) async for s in meditation_sessions_collection.find(query).sort("start_time", -1)]
        if fmt == "json":
            return sessions

        for session in sessions:
            mood = session.get("mood") or {}
            session["mood_before"] = mood.get("before")
            session["mood_after"] = mood.get("after")
        return render_csv(sessions, MEDITATION_HEADERS)

    @staticmethod
    async def get_user_stress_assessments(
        user_id: str,
        format: str = "json",
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> ExportResult:
        fmt = _check_format(format)
        as_object_id(user_id, "user ID")
        query = {"user_id": str(user_id), **date_range_query("timestamp", start_date, end_date)}
        assessments = [_clean(a) async for a in stress_assessments_collection.find(query).sort("timestamp", -1)]
        return render_csv(assessments, STRESS_HEADERS) if fmt == "csv" else assessments

    @classmethod
    async def get_user_data(
        cls,
        user_id: str,
        format: str = "json",
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> ExportResult:
        """Profile plus every collection; CSV output is one file with ``#`` section headings."""
        fmt = _check_format(format)
        user = await users_collection.find_one({"_id": as_object_id(user_id, "user ID")}, {"password": 0})
        if not user:
            raise NotFoundError("User not found")

        achievements = await cls.get_user_achievements(user_id, fmt, start_date, end_date)
        meditations = await cls.get_user_meditations(user_id, fmt, start_date, end_date)
        assessments = await cls.get_user_stress_assessments(user_id, fmt, start_date, end_date)
        logger.info("Exported data for user %s as %s", user_id, fmt)

        if fmt == "json":
            return {
                "profile": _clean(user),
                "achievements": achievements,
                "meditations": meditations,
                "stress_assessments": assessments,
            }

        last_login = user.get("last_login_at")
        sections = [
            "# USER PROFILE",
            f"Username: {user.get('username') or ''}",
            f"Email: {user.get('email') or ''}",
            f"Last Login: {last_login.isoformat() if last_login else 'N/A'}",
            f"Account Active: {'No' if user.get('is_active') is False else 'Yes'}",
            "",
            "# ACHIEVEMENTS",
            achievements,
            "# MEDITATION SESSIONS",
            meditations,
            "# STRESS ASSESSMENTS",
            assessments,
        ]
        return "\n".join(sections)
