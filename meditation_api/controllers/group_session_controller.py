# meditation_api/controllers/group_session_controller.py
from __future__ import annotations

import logging
from typing import List

from pymongo import ReturnDocument

from ..db.mongo import group_sessions_collection
from ..errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..models.group_session_model import GroupSessionModel, Participant
from ..schemas.group_session_schema import GroupSessionComplete, GroupSessionCreate
from ..utils.datetime_utils import now_utc, to_utc_aware
from ..utils.query_utils import as_object_id
from .chat_controller import add_system_message, is_host, is_joined

logger = logging.getLogger(__name__)

JOINABLE_STATUSES = ("scheduled", "in_progress")
DEFAULT_MAX_PARTICIPANTS = 10


# ------------- helpers -------------
def _uid(current_user: dict) -> str:
    return str(current_user["_id"])


def _serialize(doc: dict) -> dict:
    out = {k: v for k, v in doc.items() if k != "_id"}
    out["id"] = str(doc["_id"])
    return out


async def _get_session(session_id: str) -> dict:
    session = await group_sessions_collection.find_one({"_id": as_object_id(session_id, "session ID")})
    if not session:
        raise NotFoundError("Session not found")
    return session


def _require_host(session: dict, user_id: str, action: str) -> None:
    if not is_host(session, user_id):
        raise AuthorizationError(f"Only the host can {action} the session")


async def _save(session_id, update: dict, extra_filter: dict = None) -> dict:
    query = {"_id": session_id, **(extra_filter or {})}
    updated = await group_sessions_collection.find_one_and_update(
        query, update, return_document=ReturnDocument.AFTER
    )
    if not updated:
        # state changed between read and write
        raise ConflictError("Session was modified, please retry")
    return updated


def _participant(user_id: str) -> dict:
    return Participant(user_id=user_id).model_dump()


def _has_room() -> dict:
    """Filter matching only while fewer than max_participants are joined."""
    joined = {"$size": {"$filter": {
        "input": {"$ifNull": ["$participants", []]},
        "as": "p",
        "cond": {"$eq": ["$$p.status", "joined"]},
    }}}
    return {"$expr": {"$lt": [joined, {"$ifNull": ["$max_participants", DEFAULT_MAX_PARTICIPANTS]}]}}


# ------------- create / list -------------
async def create_session(current_user: dict, payload: GroupSessionCreate) -> dict:
    scheduled = to_utc_aware(payload.scheduled_time)
    if scheduled < now_utc():
        raise ValidationError("Cannot schedule session in the past")

    session = GroupSessionModel(
        host_id=_uid(current_user),
        title=payload.title,
        description=payload.description,
        scheduled_time=scheduled,
        duration=payload.duration,
        max_participants=payload.max_participants,
        is_private=payload.is_private,
        allowed_participants=payload.allowed_participants,
    )
    doc = session.model_dump(by_alias=True, exclude={"id"})
    result = await group_sessions_collection.insert_one(doc)
    doc["_id"] = result.inserted_id
    logger.info("User %s scheduled group session %s", doc["host_id"], result.inserted_id)
    return _serialize(doc)


async def list_upcoming_sessions(current_user: dict) -> List[dict]:
    user_id = _uid(current_user)
    cursor = group_sessions_collection.find({
        "scheduled_time": {"$gt": now_utc()},
        "status": "scheduled",
        "$or": [
            {"is_private": False},
            {"host_id": user_id},
            {"allowed_participants": user_id},
        ],
    }).sort("scheduled_time", 1)
    return [_serialize(doc) async for doc in cursor]


async def list_my_sessions(current_user: dict) -> List[dict]:
    user_id = _uid(current_user)
    cursor = group_sessions_collection.find(
        {"$or": [{"host_id": user_id}, {"participants.user_id": user_id}]}
    ).sort("scheduled_time", -1)
    return [_serialize(doc) async for doc in cursor]


# ------------- lifecycle -------------
async def join_session(current_user: dict, session_id: str) -> dict:
    user_id = _uid(current_user)
    session = await _get_session(session_id)

    if session.get("status") not in JOINABLE_STATUSES:
        raise ValidationError("Session is not open for joining")
    participants = session.get("participants") or []
    previous = next((p for p in participants if str(p.get("user_id")) == user_id), None)
    if previous and previous.get("status") == "joined":
        raise ConflictError("Already joined this session")
    if previous and previous.get("status") == "completed":
        raise ConflictError("Already completed this session")
    if session.get("is_private") and not is_host(session, user_id) \
            and user_id not in [str(u) for u in session.get("allowed_participants") or []]:
        raise AuthorizationError("This session is private")

    active = [p for p in participants if p.get("status") == "joined"]
    if len(active) >= int(session.get("max_participants") or DEFAULT_MAX_PARTICIPANTS):
        raise ValidationError("Session is full")

    now = now_utc()
    guard = {"status": {"$in": list(JOINABLE_STATUSES)}, **_has_room()}
    if previous:
        # a user who left earlier gets their own entry back
        guard["participants"] = {"$elemMatch": {"user_id": user_id, "status": "left"}}
        update = {"$set": {
            "participants.$.status": "joined",
            "participants.$.joined_at": now,
            "updated_at": now,
        }}
    else:
        guard["participants.user_id"] = {"$ne": user_id}
        update = {"$push": {"participants": _participant(user_id)}, "$set": {"updated_at": now}}

    updated = await _save(session["_id"], update, guard)
    logger.info("User %s joined group session %s", user_id, session["_id"])
    return _serialize(updated)


async def start_session(current_user: dict, session_id: str) -> dict:
    user_id = _uid(current_user)
    session = await _get_session(session_id)
    _require_host(session, user_id, "start")
    if session.get("status") != "scheduled":
        raise ValidationError("Session cannot be started")

    update: dict = {"$set": {"status": "in_progress", "updated_at": now_utc()}}
    if not any(str(p.get("user_id")) == user_id for p in session.get("participants") or []):
        update["$push"] = {"participants": _participant(user_id)}

    updated = await _save(session["_id"], update, {"status": "scheduled"})
    await add_system_message(session_id, "Session has started")
    return _serialize(updated)


async def complete_session(current_user: dict, session_id: str, payload: GroupSessionComplete) -> dict:
    user_id = _uid(current_user)
    session = await _get_session(session_id)
    if not is_joined(session, user_id):
        raise ValidationError("Participant not found or already completed")

    now = now_utc()
    duration_completed = payload.duration_completed
    if duration_completed is None:
        duration_completed = int(session.get("duration") or 0)

    updated = await _save(
        session["_id"],
        {
            "$set": {
                "participants.$.status": "completed",
                "participants.$.duration_completed": duration_completed,
                "participants.$.completed_at": now,
                "updated_at": now,
            }
        },
        {"participants": {"$elemMatch": {"user_id": user_id, "status": "joined"}}},
    )

    # last active participant closes a running session
    still_active = [p for p in updated.get("participants") or [] if p.get("status") == "joined"]
    if not still_active and updated.get("status") == "in_progress":
        updated = await _save(
            updated["_id"],
            {"$set": {"status": "completed", "end_time": now}},
            {"status": "in_progress"},
        )
    return _serialize(updated)


async def leave_session(current_user: dict, session_id: str) -> dict:
    user_id = _uid(current_user)
    session = await _get_session(session_id)
    if not is_joined(session, user_id):
        raise ValidationError("Participant not found or already left/completed")

    updated = await _save(
        session["_id"],
        {"$set": {"participants.$.status": "left", "updated_at": now_utc()}},
        {"participants": {"$elemMatch": {"user_id": user_id, "status": "joined"}}},
    )
    username = current_user.get("username") or "A participant"
    await add_system_message(session_id, f"{username} has left the session")
    return _serialize(updated)


async def cancel_session(current_user: dict, session_id: str) -> dict:
    user_id = _uid(current_user)
    session = await _get_session(session_id)
    _require_host(session, user_id, "cancel")
    if session.get("status") not in ("scheduled", "in_progress"):
        raise ValidationError("Session cannot be cancelled")

    updated = await _save(
        session["_id"],
        {"$set": {"status": "cancelled", "updated_at": now_utc()}},
        {"status": {"$in": ["scheduled", "in_progress"]}},
    )
    await add_system_message(session_id, "Session has been cancelled by the host")
    return _serialize(updated)


async def end_session(current_user: dict, session_id: str) -> dict:
    user_id = _uid(current_user)
    session = await _get_session(session_id)
    _require_host(session, user_id, "end")
    if session.get("status") != "in_progress":
        raise ValidationError("Session must be in progress to end it")

    now = now_utc()
    updated = await _save(
        session["_id"],
        {"$set": {"status": "completed", "end_time": now, "updated_at": now}},
        {"status": "in_progress"},
    )
    await add_system_message(session_id, "Session ended by the host")
    return _serialize(updated)
