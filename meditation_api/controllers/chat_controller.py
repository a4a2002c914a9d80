# meditation_api/controllers/chat_controller.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from bson import ObjectId

from ..db.mongo import chat_messages_collection, group_sessions_collection, users_collection
from ..errors import AuthorizationError, NotFoundError, ValidationError
from ..models.chat_message_model import ChatMessageModel
from ..utils.moderation import moderate_message
from ..utils.query_utils import as_object_id, MAX_PAGE_SIZE

logger = logging.getLogger(__name__)

SYSTEM_SENDER = "system"
DEFAULT_MESSAGE_LIMIT = 50


def _serialize(doc: dict) -> dict:
    out = {k: v for k, v in doc.items() if k != "_id"}
    out["id"] = str(doc["_id"])
    return out


def is_host(session: dict, user_id: str) -> bool:
    return str(session.get("host_id")) == str(user_id)


def is_joined(session: dict, user_id: str) -> bool:
    return any(
        str(p.get("user_id")) == str(user_id) and p.get("status") == "joined"
        for p in session.get("participants") or []
    )


def _is_member(session: dict, user_id: str) -> bool:
    return is_host(session, user_id) or any(
        str(p.get("user_id")) == str(user_id) for p in session.get("participants") or []
    )


async def _get_session(session_id: str) -> dict:
    session = await group_sessions_collection.find_one({"_id": as_object_id(session_id, "session ID")})
    if not session:
        raise NotFoundError("Session not found")
    return session


# ------------- messages -------------
async def add_message(session_id: str, sender_id: str, content: str, message_type: str = "text") -> dict:
    session = await _get_session(session_id)
    if message_type != "system":
        if session.get("status") == "cancelled":
            raise ValidationError("Cannot send messages to a cancelled session")
        if not (is_host(session, sender_id) or is_joined(session, sender_id)):
            raise AuthorizationError("Only the host or joined participants can send messages")

    moderated = moderate_message(content)
    if not moderated["cleaned"]:
        raise ValidationError("Message content is required")
    if moderated["flagged"]:
        logger.info("Censored chat message from %s in session %s", sender_id, session_id)

    message = ChatMessageModel(
        session_id=str(session["_id"]),
        sender_id=str(sender_id),
        content=moderated["cleaned"],
        type=message_type,
        flagged=moderated["flagged"],
    )
    doc = message.model_dump(by_alias=True, exclude={"id"})
    result = await chat_messages_collection.insert_one(doc)
    doc["_id"] = result.inserted_id
    return _serialize(doc)


async def add_system_message(session_id: str, content: str) -> dict:
    return await add_message(session_id, SYSTEM_SENDER, content, "system")


async def get_session_messages(
    session_id: str,
    user_id: str,
    before: Optional[datetime] = None,
    limit: Optional[int] = None,
) -> List[dict]:
    """Newest first; ``before`` pages back through older messages."""
    session = await _get_session(session_id)
    if not _is_member(session, user_id):
        raise AuthorizationError("Not a member of this session")

    limit = min(limit or DEFAULT_MESSAGE_LIMIT, MAX_PAGE_SIZE)
    query: Dict[str, Any] = {"session_id": str(session["_id"])}
    if before:
        query["created_at"] = {"$lt": before}
    cursor = chat_messages_collection.find(query).sort("created_at", -1).limit(limit)
    return [_serialize(doc) async for doc in cursor]


# ------------- participants -------------
async def get_session_participants(session_id: str, user_id: str) -> List[dict]:
    session = await _get_session(session_id)
    if not _is_member(session, user_id):
        raise AuthorizationError("Not a member of this session")
    participants = session.get("participants") or []
    oids = [ObjectId(p["user_id"]) for p in participants if ObjectId.is_valid(str(p.get("user_id")))]
    names: Dict[str, Optional[str]] = {}
    if oids:
        async for user in users_collection.find({"_id": {"$in": oids}}, {"username": 1}):
            names[str(user["_id"])] = user.get("username")

    return [
        {
            "user_id": str(p.get("user_id")),
            "username": names.get(str(p.get("user_id"))),
            "status": p.get("status"),
            "joined_at": p.get("joined_at"),
            "duration_completed": p.get("duration_completed", 0),
            "is_host": is_host(session, p.get("user_id")),
        }
        for p in participants
    ]
