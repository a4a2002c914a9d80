from typing import Optional
from fastapi import APIRouter, Depends, Query

from ..controllers.chat_controller import add_message, get_session_messages, get_session_participants
from ..errors import ValidationError
from ..schemas.chat import ChatMessageRequest
from ..utils.auth_utils import get_current_user
from ..utils.datetime_utils import parse_date_param

router = APIRouter(prefix="/api/group-sessions", tags=["Chat"])

@router.get("/{session_id}/messages", summary="Session chat, newest first")
async def get_messages(
    session_id: str,
    before: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=100),
    current_user: dict = Depends(get_current_user),
):
    before_dt = parse_date_param(before)
    if before and before_dt is None:
        raise ValidationError("Invalid before")
    return await get_session_messages(session_id, str(current_user["_id"]), before_dt, limit)

@router.post("/{session_id}/messages", status_code=201, summary="Post a chat message")
async def post_message(
    session_id: str,
    request: ChatMessageRequest,
    current_user: dict = Depends(get_current_user),
):
    return await add_message(session_id, str(current_user["_id"]), request.content)

@router.get("/{session_id}/participants", summary="Session participants")
async def get_participants(session_id: str, current_user: dict = Depends(get_current_user)):
    return await get_session_participants(session_id, str(current_user["_id"]))
