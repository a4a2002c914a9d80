from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List
from datetime import datetime
from bson import ObjectId
from typing_extensions import Annotated
from pydantic.functional_validators import BeforeValidator

from .stress_technique_model import DifficultyLevel, TechniqueCategory
from ..utils.datetime_utils import now_utc

# Converts ObjectId to string before validation
PyObjectId = Annotated[str, BeforeValidator(lambda x: str(x))]


class StressPreferences(BaseModel):
    preferred_techniques: List[str] = Field(default_factory=list)
    avoided_techniques: List[str] = Field(default_factory=list)
    preferred_duration: int = 5  # minutes
    preferred_categories: List[TechniqueCategory] = Field(default_factory=list)
    difficulty_level: DifficultyLevel = "beginner"


class UserModel(BaseModel):
    id: Optional[PyObjectId] = Field(alias="_id", default=None)
    email: EmailStr
    username: str
    username_lc: Optional[str] = None   # lowercased copy, for uniqueness checks
    password: Optional[str] = None
    is_admin: bool = False
    is_active: bool = True

    login_count: int = 0
    login_streak: int = 0
    last_login_at: Optional[datetime] = None

    stress_preferences: StressPreferences = Field(default_factory=StressPreferences)

    created_at: datetime = Field(default_factory=now_utc)
    updated_at: Optional[datetime] = None

    model_config = {
        "populate_by_name": True,
        "arbitrary_types_allowed": True,
        "json_encoders": {ObjectId: str},
        "extra": "ignore",
    }
