# meditation_api/schemas/achievement_schema.py
from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime

from ..models.achievement_model import AchievementCategory, AchievementCriteria, ActivityType


class AchievementCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=500)
    category: AchievementCategory
    criteria: AchievementCriteria
    icon: str = Field(..., min_length=1)
    points: int = Field(..., ge=0)


class AchievementUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, min_length=1, max_length=500)
    category: Optional[AchievementCategory] = None
    criteria: Optional[AchievementCriteria] = None
    icon: Optional[str] = None
    points: Optional[int] = Field(default=None, ge=0)


class AchievementOut(BaseModel):
    id: str
    name: str
    description: str
    category: str
    criteria: AchievementCriteria
    icon: str
    points: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserAchievementOut(BaseModel):
    id: str
    name: str
    description: str
    category: str
    icon: str
    points: int
    progress: Optional[int] = None
    is_completed: Optional[bool] = None
    date_earned: Optional[datetime] = None


class UserPointsOut(BaseModel):
    points: int


class ActivityRequest(BaseModel):
    activity_type: ActivityType
    activity_data: Dict[str, Any] = Field(default_factory=dict)


class ActivityUpdate(BaseModel):
    achievement_id: str
    name: Optional[str] = None
    progress: int
    is_completed: bool


class ActivityResponse(BaseModel):
    message: str
    updated: List[ActivityUpdate]


class LeaderboardEntryOut(BaseModel):
    user_id: str
    username: Optional[str] = None
    points: int
    rank: int


class UserRankOut(BaseModel):
    rank: int
    points: int
    total_users: int
    period: str
    category: str


class WeeklyProgressOut(BaseModel):
    current_week: int
    previous_week: int
    change: int
    percent_change: float
