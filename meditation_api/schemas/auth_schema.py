from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List
from datetime import datetime
from typing_extensions import Annotated
from pydantic.functional_validators import BeforeValidator

from ..models.stress_technique_model import DifficultyLevel, TechniqueCategory

# For MongoDB ObjectId support
PyObjectId = Annotated[str, BeforeValidator(lambda x: str(x))]

# Request Schemas
class RegisterRequest(BaseModel):
    email: EmailStr
    username: str = Field(..., min_length=3, max_length=30)
    password: str = Field(..., min_length=8)

    @field_validator("username", mode="before")
    @classmethod
    def _trim(cls, v):
        return str(v or "").strip().lstrip("@")

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class StressPreferencesUpdate(BaseModel):
    preferred_techniques: Optional[List[str]] = None
    avoided_techniques: Optional[List[str]] = None
    preferred_duration: Optional[int] = Field(default=None, gt=0, le=120)  # minutes
    preferred_categories: Optional[List[TechniqueCategory]] = None
    difficulty_level: Optional[DifficultyLevel] = None

# Response Schemas
class StressPreferencesOut(BaseModel):
    preferred_techniques: List[str] = []
    avoided_techniques: List[str] = []
    preferred_duration: int = 5
    preferred_categories: List[str] = []
    difficulty_level: str = "beginner"

class UserOut(BaseModel):
    id: Optional[PyObjectId]
    email: EmailStr
    username: Optional[str] = None
    is_admin: bool = False
    login_count: int = 0
    login_streak: int = 0
    last_login_at: Optional[datetime] = None
    stress_preferences: StressPreferencesOut = StressPreferencesOut()

class AuthResponse(BaseModel):
    token: str
    user: UserOut
