# meditation_api/schemas/meditation_session_schema.py
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
from typing_extensions import Annotated

from ..models.meditation_session_model import MoodState, SessionType

Tag = Annotated[str, Field(min_length=1, max_length=30)]


class MeditationSessionCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    duration: int = Field(..., gt=0)  # seconds
    type: SessionType
    start_time: Optional[datetime] = None
    mood_before: Optional[MoodState] = None
    tags: List[Tag] = Field(default_factory=list)

    @field_validator("title", mode="before")
    @classmethod
    def _trim_title(cls, v):
        return str(v).strip() if v is not None else v


class MeditationSessionUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    duration: Optional[int] = Field(default=None, gt=0)
    type: Optional[SessionType] = None
    tags: Optional[List[Tag]] = None
    interruptions: Optional[int] = Field(default=None, ge=0)
    mood_before: Optional[MoodState] = None


class MeditationSessionComplete(BaseModel):
    mood_after: Optional[MoodState] = None
    interruptions: Optional[int] = Field(default=None, ge=0)
