# meditation_api/controllers/meditation_session_controller.py
from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Dict, Optional

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from ..db.mongo import meditation_sessions_collection
from ..errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..models.meditation_session_model import MeditationSessionModel, SessionMood, mood_improvement
from ..schemas.meditation_session_schema import (
    MeditationSessionComplete,
    MeditationSessionCreate,
    MeditationSessionUpdate,
)
from ..services.achievement_service import achievement_service
from ..utils.datetime_utils import now_utc, to_utc_aware
from ..utils.query_utils import as_object_id, pagination_meta, pagination_params

logger = logging.getLogger(__name__)

ACTIVE_SESSION_MESSAGE = "You already have an active meditation session"


# ------------- helpers -------------
def _uid(current_user: dict) -> str:
    return str(current_user["_id"])


def _serialize(doc: dict) -> dict:
    out = {k: v for k, v in doc.items() if k != "_id"}
    out["id"] = str(doc["_id"])
    return out


async def _get_owned_session(session_id: str, user_id: str) -> dict:
    oid = as_object_id(session_id, "session ID")
    doc = await meditation_sessions_collection.find_one({"_id": oid})
    if not doc:
        raise NotFoundError("Meditation session not found")
    if str(doc.get("user_id")) != user_id:
        raise AuthorizationError("Not authorized to access this session")
    return doc


async def _meditation_streak(user_id: str) -> int:
    """Consecutive UTC days, ending today or yesterday, with a completed session."""
    cursor = meditation_sessions_collection.find(
        {"user_id": user_id, "completed": True}, {"end_time": 1, "start_time": 1}
    ).sort("start_time", -1)
    days = set()
    async for doc in cursor:
        ts = to_utc_aware(doc.get("end_time") or doc.get("start_time"))
        if ts:
            days.add(ts.date())

    today = now_utc().date()
    day = today if today in days else today - timedelta(days=1)
    streak = 0
    while day in days:
        streak += 1
        day -= timedelta(days=1)
    return streak


# ------------- CRUD -------------
async def create_session(current_user: dict, payload: MeditationSessionCreate) -> dict:
    user_id = _uid(current_user)
    if await meditation_sessions_collection.find_one({"user_id": user_id, "completed": False}, {"_id": 1}):
        raise ConflictError(ACTIVE_SESSION_MESSAGE)

    session = MeditationSessionModel(
        user_id=user_id,
        title=payload.title,
        description=payload.description,
        duration=payload.duration,
        type=payload.type,
        start_time=to_utc_aware(payload.start_time) or now_utc(),
        mood=SessionMood(before=payload.mood_before),
        tags=payload.tags,
    )
    doc = session.model_dump(by_alias=True, exclude={"id"})
    try:
        result = await meditation_sessions_collection.insert_one(doc)
    except DuplicateKeyError:
        # partial unique index on (user_id) where completed == false
        raise ConflictError(ACTIVE_SESSION_MESSAGE)

    doc["_id"] = result.inserted_id
    logger.info("User %s started meditation session %s", user_id, result.inserted_id)
    return _serialize(doc)


async def list_sessions(
    current_user: dict,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    completed: Optional[bool] = None,
    session_type: Optional[str] = None,
) -> Dict[str, Any]:
    user_id = _uid(current_user)
    page, limit, skip = pagination_params(page, limit)

    query: Dict[str, Any] = {"user_id": user_id}
    if completed is not None:
        query["completed"] = completed
    if session_type:
        query["type"] = session_type

    total = await meditation_sessions_collection.count_documents(query)
    cursor = meditation_sessions_collection.find(query).sort("start_time", -1).skip(skip).limit(limit)
    sessions = [_serialize(doc) async for doc in cursor]
    return {"sessions": sessions, "pagination": pagination_meta(total, page, limit)}


async def get_session(current_user: dict, session_id: str) -> dict:
    return _serialize(await _get_owned_session(session_id, _uid(current_user)))


async def update_session(current_user: dict, session_id: str, payload: MeditationSessionUpdate) -> dict:
    doc = await _get_owned_session(session_id, _uid(current_user))

    data = payload.model_dump(exclude_none=True)
    mood_before = data.pop("mood_before", None)
    if mood_before is not None:
        data["mood.before"] = mood_before
    if not data:
        raise ValidationError("No fields to update")
    data["updated_at"] = now_utc()

    updated = await meditation_sessions_collection.find_one_and_update(
        {"_id": doc["_id"]}, {"$set": data}, return_document=ReturnDocument.AFTER
    )
    if not updated:
        raise NotFoundError("Meditation session not found")
    return _serialize(updated)


async def delete_session(current_user: dict, session_id: str) -> dict:
    doc = await _get_owned_session(session_id, _uid(current_user))
    await meditation_sessions_collection.delete_one({"_id": doc["_id"]})
    return {"message": "Meditation session deleted"}


# ------------- lifecycle -------------
async def complete_session(current_user: dict, session_id: str, payload: MeditationSessionComplete) -> dict:
    user_id = _uid(current_user)
    doc = await _get_owned_session(session_id, user_id)
    if doc.get("completed"):
        raise ValidationError("Session is already completed")

    end_time = now_utc()
    updates: Dict[str, Any] = {"completed": True, "end_time": end_time, "updated_at": end_time}
    start_time = to_utc_aware(doc.get("start_time"))
    if start_time:
        elapsed = int((end_time - start_time).total_seconds())
        if elapsed > 0:
            updates["duration"] = elapsed
    if payload.mood_after is not None:
        updates["mood.after"] = payload.mood_after
    if payload.interruptions is not None:
        updates["interruptions"] = payload.interruptions

    updated = await meditation_sessions_collection.find_one_and_update(
        {"_id": doc["_id"], "completed": False},
        {"$set": updates},
        return_document=ReturnDocument.AFTER,
    )
    if not updated:
        raise ValidationError("Session is already completed")

    mood = updated.get("mood") or {}
    await achievement_service.process_user_activity(
        user_id,
        "meditation_completed",
        {
            "session_id": str(updated["_id"]),
            "duration": updated.get("duration"),
            "mood_improvement": mood_improvement(mood.get("before"), mood.get("after")),
        },
    )
    streak = await _meditation_streak(user_id)
    if streak:
        await achievement_service.process_user_activity(user_id, "streak", {"meditation_streak": streak})

    logger.info("User %s completed meditation session %s", user_id, updated["_id"])
    return _serialize(updated)


# ------------- stats -------------
async def get_session_stats(current_user: dict) -> Dict[str, Any]:
    user_id = _uid(current_user)
    cursor = meditation_sessions_collection.find({"user_id": user_id, "completed": True}).sort("start_time", -1)
    sessions = [doc async for doc in cursor]

    week_ago = now_utc() - timedelta(days=7)
    recent = [s for s in sessions if (to_utc_aware(s.get("start_time")) or week_ago) > week_ago]
    total_duration = sum(int(s.get("duration") or 0) for s in sessions)
    longest = max(sessions, key=lambda s: int(s.get("duration") or 0), default=None)

    return {
        "total_sessions": len(sessions),
        "total_duration": total_duration,
        "average_duration": round(total_duration / len(sessions)) if sessions else 0,
        "sessions_last_7_days": len(recent),
        "duration_last_7_days": sum(int(s.get("duration") or 0) for s in recent),
        "longest_session": _serialize(longest) if longest else None,
        "most_recent_session": _serialize(sessions[0]) if sessions else None,
    }
