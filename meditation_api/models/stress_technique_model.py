# meditation_api/models/stress_technique_model.py
from pydantic import BaseModel, Field
from typing import Optional, List, Literal
from datetime import datetime
from bson import ObjectId
from typing_extensions import Annotated
from pydantic.functional_validators import BeforeValidator

from ..utils.datetime_utils import now_utc

PyObjectId = Annotated[str, BeforeValidator(lambda x: str(x))]

TechniqueCategory = Literal["breathing", "meditation", "mindfulness", "physical", "relaxation", "visualization"]
DifficultyLevel = Literal["beginner", "intermediate", "advanced"]
Frequency = Literal["daily", "weekly", "as-needed"]

TECHNIQUE_CATEGORIES = ("breathing", "meditation", "mindfulness", "physical", "relaxation", "visualization")
DIFFICULTY_LEVELS = ("beginner", "intermediate", "advanced")


class StressTechniqueModel(BaseModel):
    id: Optional[PyObjectId] = Field(alias="_id", default=None)
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=1000)
    category: TechniqueCategory
    difficulty_level: DifficultyLevel = "beginner"
    duration_minutes: int = Field(..., ge=1, le=120)
    steps: List[str] = Field(default_factory=list)
    benefits: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    effectiveness_rating: float = Field(default=3, ge=1, le=5)
    recommended_frequency: Frequency = "as-needed"

    created_at: datetime = Field(default_factory=now_utc)
    updated_at: Optional[datetime] = None

    model_config = {
        "populate_by_name": True,
        "arbitrary_types_allowed": True,
        "json_encoders": {ObjectId: str},
    }
