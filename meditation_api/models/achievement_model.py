# meditation_api/models/achievement_model.py
from pydantic import BaseModel, Field
from typing import Optional, Literal
from datetime import datetime
from bson import ObjectId
from typing_extensions import Annotated
from pydantic.functional_validators import BeforeValidator

from ..utils.datetime_utils import now_utc

PyObjectId = Annotated[str, BeforeValidator(lambda x: str(x))]

AchievementCategory = Literal["count", "duration", "streak", "milestone"]
ActivityType = Literal["meditation_completed", "stress_assessment_completed", "login", "streak"]

ACTIVITY_TYPES = ("meditation_completed", "stress_assessment_completed", "login", "streak")


class AchievementCriteria(BaseModel):
    type: ActivityType
    value: float = Field(..., gt=0)  # sessions, minutes, days or stress points depending on category


class AchievementModel(BaseModel):
    id: Optional[PyObjectId] = Field(alias="_id", default=None)
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=500)
    category: AchievementCategory
    criteria: AchievementCriteria
    icon: str
    points: int = Field(..., ge=0)

    created_at: datetime = Field(default_factory=now_utc)
    updated_at: Optional[datetime] = None

    model_config = {
        "populate_by_name": True,
        "arbitrary_types_allowed": True,
        "json_encoders": {ObjectId: str},
    }


class UserAchievementModel(BaseModel):
    id: Optional[PyObjectId] = Field(alias="_id", default=None)
    user_id: PyObjectId
    achievement_id: PyObjectId
    progress: int = Field(default=0, ge=0, le=100)
    is_completed: bool = False
    date_earned: Optional[datetime] = None

    created_at: datetime = Field(default_factory=now_utc)
    updated_at: Optional[datetime] = None

    model_config = {
        "populate_by_name": True,
        "arbitrary_types_allowed": True,
        "json_encoders": {ObjectId: str},
    }
