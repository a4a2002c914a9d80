# meditation_api/models/stress_assessment_model.py
from pydantic import BaseModel, Field
from typing import Optional, List, Literal
from datetime import datetime
from bson import ObjectId
from typing_extensions import Annotated
from pydantic.functional_validators import BeforeValidator

from ..utils.datetime_utils import now_utc

PyObjectId = Annotated[str, BeforeValidator(lambda x: str(x))]

StressLevel = Literal["LOW", "MODERATE", "HIGH"]
SymptomScore = Annotated[float, Field(ge=0, le=10)]


class StressAssessmentModel(BaseModel):
    id: Optional[PyObjectId] = Field(alias="_id", default=None)
    user_id: PyObjectId
    score: float = Field(..., ge=0, le=10)
    level: StressLevel

    physical_symptoms: SymptomScore = 0
    emotional_symptoms: SymptomScore = 0
    behavioral_symptoms: SymptomScore = 0
    cognitive_symptoms: SymptomScore = 0

    triggers: List[Annotated[str, Field(max_length=100)]] = Field(default_factory=list, max_length=5)
    symptoms: List[Annotated[str, Field(max_length=50)]] = Field(default_factory=list, max_length=10)
    notes: Optional[str] = Field(default=None, max_length=1000)

    timestamp: datetime = Field(default_factory=now_utc)
    created_at: datetime = Field(default_factory=now_utc)

    model_config = {
        "populate_by_name": True,
        "arbitrary_types_allowed": True,
        "json_encoders": {ObjectId: str},
    }
