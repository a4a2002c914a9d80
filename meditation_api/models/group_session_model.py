# meditation_api/models/group_session_model.py
from pydantic import BaseModel, Field
from typing import Optional, List, Literal
from datetime import datetime
from bson import ObjectId
from typing_extensions import Annotated
from pydantic.functional_validators import BeforeValidator

from ..utils.datetime_utils import now_utc

PyObjectId = Annotated[str, BeforeValidator(lambda x: str(x))]

GroupSessionStatus = Literal["scheduled", "in_progress", "completed", "cancelled"]
ParticipantStatus = Literal["joined", "completed", "left"]


class Participant(BaseModel):
    user_id: PyObjectId
    status: ParticipantStatus = "joined"
    joined_at: datetime = Field(default_factory=now_utc)
    duration_completed: int = 0  # minutes
    completed_at: Optional[datetime] = None


class GroupSessionModel(BaseModel):
    id: Optional[PyObjectId] = Field(alias="_id", default=None)
    host_id: PyObjectId
    title: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    scheduled_time: datetime
    duration: int = Field(..., gt=0)  # minutes
    max_participants: int = Field(default=10, ge=2, le=100)
    is_private: bool = False
    allowed_participants: List[PyObjectId] = Field(default_factory=list)
    participants: List[Participant] = Field(default_factory=list)
    status: GroupSessionStatus = "scheduled"
    end_time: Optional[datetime] = None

    created_at: datetime = Field(default_factory=now_utc)
    updated_at: Optional[datetime] = None

    model_config = {
        "populate_by_name": True,
        "arbitrary_types_allowed": True,
        "json_encoders": {ObjectId: str},
    }
