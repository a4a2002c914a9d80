# meditation_api/models/chat_message_model.py
from pydantic import BaseModel, Field
from typing import Optional, Literal
from datetime import datetime
from bson import ObjectId
from typing_extensions import Annotated
from pydantic.functional_validators import BeforeValidator

from ..utils.datetime_utils import now_utc

PyObjectId = Annotated[str, BeforeValidator(lambda x: str(x))]

MessageType = Literal["text", "system"]


class ChatMessageModel(BaseModel):
    id: Optional[PyObjectId] = Field(alias="_id", default=None)
    session_id: PyObjectId
    sender_id: PyObjectId
    content: str = Field(..., min_length=1, max_length=1000)
    type: MessageType = "text"
    flagged: bool = False

    created_at: datetime = Field(default_factory=now_utc)

    model_config = {
        "populate_by_name": True,
        "arbitrary_types_allowed": True,
        "json_encoders": {ObjectId: str},
    }
