# meditation_api/routes/meditation_sessions.py
from typing import Optional
from fastapi import APIRouter, Body, Depends, Query

from ..controllers.meditation_session_controller import (
    create_session,
    list_sessions,
    get_session,
    update_session,
    delete_session,
    complete_session,
    get_session_stats,
)
from ..schemas.meditation_session_schema import (
    MeditationSessionComplete,
    MeditationSessionCreate,
    MeditationSessionUpdate,
)
from ..utils.auth_utils import get_current_user

router = APIRouter(prefix="/api/meditation-sessions", tags=["Meditation Sessions"])


@router.post("", status_code=201, summary="Start a meditation session")
async def post_session(payload: MeditationSessionCreate, current_user: dict = Depends(get_current_user)):
    return await create_session(current_user, payload)

@router.get("", summary="List my meditation sessions (paginated, newest first)")
async def get_sessions(
    page: Optional[int] = Query(None, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    completed: Optional[bool] = Query(None),
    type: Optional[str] = Query(None),
    current_user: dict = Depends(get_current_user),
):
    return await list_sessions(current_user, page, limit, completed, type)

@router.get("/stats", summary="Meditation statistics")
async def get_stats(current_user: dict = Depends(get_current_user)):
    return await get_session_stats(current_user)

@router.get("/{session_id}", summary="Get a meditation session")
async def get_one(session_id: str, current_user: dict = Depends(get_current_user)):
    return await get_session(current_user, session_id)

@router.put("/{session_id}", summary="Update a meditation session")
async def put_session(session_id: str, payload: MeditationSessionUpdate, current_user: dict = Depends(get_current_user)):
    return await update_session(current_user, session_id, payload)

@router.delete("/{session_id}", summary="Delete a meditation session")
async def remove_session(session_id: str, current_user: dict = Depends(get_current_user)):
    return await delete_session(current_user, session_id)

@router.post("/{session_id}/complete", summary="Complete a meditation session")
async def post_complete(
    session_id: str,
    payload: Optional[MeditationSessionComplete] = Body(None),
    current_user: dict = Depends(get_current_user),
):
    return await complete_session(current_user, session_id, payload or MeditationSessionComplete())
