# meditation_api/routes/achievements.py
from typing import List, Optional
from fastapi import APIRouter, Depends, Query

from ..controllers.achievement_controller import (
    list_achievements,
    get_achievement,
    create_achievement,
    update_achievement,
    delete_achievement,
    seed_achievements,
    get_user_achievements,
    get_completed_achievements,
    get_user_points,
    record_activity,
    get_leaderboard,
    get_my_rank,
    get_top_achievers,
    get_weekly_progress,
)
from ..schemas.achievement_schema import (
    AchievementCreate,
    AchievementUpdate,
    AchievementOut,
    ActivityRequest,
    ActivityResponse,
    UserAchievementOut,
    UserPointsOut,
    LeaderboardEntryOut,
    UserRankOut,
    WeeklyProgressOut,
)
from ..utils.auth_utils import get_current_user, get_current_admin_user

router = APIRouter(prefix="/api/achievements", tags=["Achievements"])
user_router = APIRouter(prefix="/api/user", tags=["Achievements"])


# ---- catalogue ----
@router.get("", response_model=List[AchievementOut], summary="List achievements")
async def get_all(category: Optional[str] = Query(None), current_user: dict = Depends(get_current_user)):
    return await list_achievements(category)

@router.post("", response_model=AchievementOut, status_code=201, summary="Create achievement (admin)")
async def post_achievement(payload: AchievementCreate, admin: dict = Depends(get_current_admin_user)):
    return await create_achievement(payload)

# declared before /{achievement_id} so "seed" is not taken as an id
@router.post("/seed", summary="Seed the default achievement catalogue (admin)")
async def post_seed(admin: dict = Depends(get_current_admin_user)):
    return await seed_achievements()

# ---- leaderboard ----
@router.get("/leaderboard", response_model=List[LeaderboardEntryOut], summary="Users ranked by achievement points")
async def leaderboard(
    period: str = Query("all-time", description="daily, weekly, monthly or all-time"),
    category: str = Query("total", description="total, meditation, stress or streak"),
    limit: int = Query(10, ge=1, le=100),
    current_user: dict = Depends(get_current_user),
):
    return await get_leaderboard(period, category, limit)

@router.get("/leaderboard/rank", response_model=UserRankOut, summary="My leaderboard rank")
async def my_rank(
    period: str = Query("all-time"),
    category: str = Query("total"),
    current_user: dict = Depends(get_current_user),
):
    return await get_my_rank(current_user, period, category)

@router.get("/leaderboard/top", response_model=List[LeaderboardEntryOut], summary="All-time top achievers")
async def top_achievers(limit: int = Query(3, ge=1, le=20), current_user: dict = Depends(get_current_user)):
    return await get_top_achievers(limit)

@router.get("/{achievement_id}", response_model=AchievementOut, summary="Get achievement")
async def get_one(achievement_id: str, current_user: dict = Depends(get_current_user)):
    return await get_achievement(achievement_id)

@router.put("/{achievement_id}", response_model=AchievementOut, summary="Update achievement (admin)")
async def put_achievement(achievement_id: str, payload: AchievementUpdate, admin: dict = Depends(get_current_admin_user)):
    return await update_achievement(achievement_id, payload)

@router.delete("/{achievement_id}", summary="Delete achievement and user progress (admin)")
async def remove_achievement(achievement_id: str, admin: dict = Depends(get_current_admin_user)):
    return await delete_achievement(achievement_id)


# ---- per user ----
@user_router.get("/achievements", response_model=List[UserAchievementOut], summary="My achievements with progress")
async def my_achievements(current_user: dict = Depends(get_current_user)):
    return await get_user_achievements(current_user)

@user_router.get("/achievements/completed", response_model=List[UserAchievementOut], summary="My completed achievements")
async def my_completed(current_user: dict = Depends(get_current_user)):
    return await get_completed_achievements(current_user)

@user_router.get("/achievements/points", response_model=UserPointsOut, summary="My achievement points")
async def my_points(current_user: dict = Depends(get_current_user)):
    return await get_user_points(current_user)

@user_router.get("/achievements/weekly-progress", response_model=WeeklyProgressOut, summary="Points this week against last week")
async def my_weekly_progress(current_user: dict = Depends(get_current_user)):
    return await get_weekly_progress(current_user)

@user_router.post("/activity", response_model=ActivityResponse, summary="Report an activity for achievement progress")
async def post_activity(payload: ActivityRequest, current_user: dict = Depends(get_current_user)):
    return await record_activity(current_user, payload)
