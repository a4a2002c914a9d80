# meditation_api/schemas/group_session_schema.py
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from typing_extensions import Annotated
from pydantic.functional_validators import BeforeValidator

PyObjectId = Annotated[str, BeforeValidator(lambda x: str(x))]


class GroupSessionCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    scheduled_time: datetime
    duration: int = Field(..., gt=0)  # minutes
    max_participants: int = Field(default=10, ge=2, le=100)
    is_private: bool = False
    allowed_participants: List[PyObjectId] = Field(default_factory=list)


class GroupSessionComplete(BaseModel):
    duration_completed: Optional[int] = Field(default=None, ge=0)  # minutes; defaults to the session duration
