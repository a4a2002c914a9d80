# meditation_api/models/meditation_session_model.py
from pydantic import BaseModel, Field
from typing import Optional, List, Literal
from datetime import datetime
from bson import ObjectId
from typing_extensions import Annotated
from pydantic.functional_validators import BeforeValidator

from ..utils.datetime_utils import now_utc

PyObjectId = Annotated[str, BeforeValidator(lambda x: str(x))]

SessionType = Literal["guided", "unguided", "timed"]
MoodState = Literal["very_bad", "bad", "neutral", "good", "very_good"]

MOOD_VALUES = {"very_bad": 1, "bad": 2, "neutral": 3, "good": 4, "very_good": 5}


class SessionMood(BaseModel):
    before: Optional[MoodState] = None
    after: Optional[MoodState] = None


class MeditationSessionModel(BaseModel):
    id: Optional[PyObjectId] = Field(alias="_id", default=None)
    user_id: PyObjectId
    title: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    duration: int = Field(..., gt=0)  # seconds
    type: SessionType
    start_time: datetime = Field(default_factory=now_utc)
    end_time: Optional[datetime] = None
    completed: bool = False
    mood: SessionMood = Field(default_factory=SessionMood)
    tags: List[Annotated[str, Field(max_length=30)]] = Field(default_factory=list)
    interruptions: int = Field(default=0, ge=0)

    created_at: datetime = Field(default_factory=now_utc)
    updated_at: Optional[datetime] = None

    model_config = {
        "populate_by_name": True,
        "arbitrary_types_allowed": True,
        "json_encoders": {ObjectId: str},
    }


def mood_improvement(before: Optional[str], after: Optional[str]) -> int:
    if not before or not after:
        return 0
    return MOOD_VALUES.get(after, 0) - MOOD_VALUES.get(before, 0)
