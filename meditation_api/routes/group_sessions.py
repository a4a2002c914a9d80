# meditation_api/routes/group_sessions.py
from typing import Optional
from fastapi import APIRouter, Body, Depends

from ..controllers.group_session_controller import (
    create_session,
    list_upcoming_sessions,
    list_my_sessions,
    join_session,
    start_session,
    complete_session,
    leave_session,
    cancel_session,
    end_session,
)
from ..schemas.group_session_schema import GroupSessionComplete, GroupSessionCreate
from ..utils.auth_utils import get_current_user

router = APIRouter(prefix="/api/group-sessions", tags=["Group Sessions"])


@router.post("", status_code=201, summary="Schedule a group session")
async def post_session(payload: GroupSessionCreate, current_user: dict = Depends(get_current_user)):
    return await create_session(current_user, payload)

@router.get("", summary="Upcoming sessions I can see")
async def get_upcoming(current_user: dict = Depends(get_current_user)):
    return await list_upcoming_sessions(current_user)

@router.get("/mine", summary="Sessions I host or joined")
async def get_mine(current_user: dict = Depends(get_current_user)):
    return await list_my_sessions(current_user)

@router.post("/{session_id}/join", summary="Join a session")
async def post_join(session_id: str, current_user: dict = Depends(get_current_user)):
    return await join_session(current_user, session_id)

@router.post("/{session_id}/start", summary="Start a session (host)")
async def post_start(session_id: str, current_user: dict = Depends(get_current_user)):
    return await start_session(current_user, session_id)

@router.post("/{session_id}/complete", summary="Mark my participation completed")
async def post_complete(
    session_id: str,
    payload: Optional[GroupSessionComplete] = Body(None),
    current_user: dict = Depends(get_current_user),
):
    return await complete_session(current_user, session_id, payload or GroupSessionComplete())

@router.post("/{session_id}/leave", summary="Leave a session")
async def post_leave(session_id: str, current_user: dict = Depends(get_current_user)):
    return await leave_session(current_user, session_id)

@router.post("/{session_id}/cancel", summary="Cancel a session (host)")
async def post_cancel(session_id: str, current_user: dict = Depends(get_current_user)):
    return await cancel_session(current_user, session_id)

@router.post("/{session_id}/end", summary="End a running session (host)")
async def post_end(session_id: str, current_user: dict = Depends(get_current_user)):
    return await end_session(current_user, session_id)
