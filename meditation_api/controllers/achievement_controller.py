# meditation_api/controllers/achievement_controller.py
from typing import Optional

from ..errors import NotFoundError
from ..schemas.achievement_schema import AchievementCreate, AchievementUpdate, ActivityRequest
from ..services.achievement_service import achievement_service
from ..services.leaderboard_service import leaderboard_service


def _uid(current_user: dict) -> str:
    return str(current_user["_id"])


# ---- catalogue ----
async def list_achievements(category: Optional[str] = None):
    return await achievement_service.list_achievements(category)


async def get_achievement(achievement_id: str):
    return await achievement_service.get_achievement(achievement_id)


async def create_achievement(payload: AchievementCreate):
    return await achievement_service.create_achievement(payload.model_dump())


async def update_achievement(achievement_id: str, payload: AchievementUpdate):
    return await achievement_service.update_achievement(achievement_id, payload.model_dump(exclude_none=True))


async def delete_achievement(achievement_id: str):
    if not await achievement_service.delete_achievement(achievement_id):
        raise NotFoundError("Achievement not found")
    return {"message": "Achievement deleted"}


async def seed_achievements():
    return await achievement_service.seed_achievements()


# ---- per user ----
async def get_user_achievements(current_user: dict):
    return await achievement_service.get_user_achievements(_uid(current_user))


async def get_completed_achievements(current_user: dict):
    return await achievement_service.get_completed_achievements(_uid(current_user))


async def get_user_points(current_user: dict):
    return {"points": await achievement_service.get_user_points(_uid(current_user))}


async def record_activity(current_user: dict, payload: ActivityRequest):
    updated = await achievement_service.process_user_activity(
        _uid(current_user), payload.activity_type, payload.activity_data
    )
    return {"message": "Activity processed", "updated": updated}


# ---- leaderboard ----
async def get_leaderboard(period: str, category: str, limit: int):
    return await leaderboard_service.get_leaderboard(period, category, limit)


async def get_my_rank(current_user: dict, period: str, category: str):
    return await leaderboard_service.get_user_rank(_uid(current_user), period, category)


async def get_top_achievers(limit: int):
    return await leaderboard_service.get_top_achievers(limit)


async def get_weekly_progress(current_user: dict):
    return await leaderboard_service.get_weekly_progress(_uid(current_user))
