# meditation_api/schemas/stress_schema.py
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from typing_extensions import Annotated

SymptomScore = Annotated[float, Field(ge=0, le=10)]


class StressAssessmentCreate(BaseModel):
    physical_symptoms: SymptomScore = 0
    emotional_symptoms: SymptomScore = 0
    behavioral_symptoms: SymptomScore = 0
    cognitive_symptoms: SymptomScore = 0
    triggers: List[Annotated[str, Field(min_length=1, max_length=100)]] = Field(default_factory=list, max_length=5)
    symptoms: List[Annotated[str, Field(min_length=1, max_length=50)]] = Field(default_factory=list, max_length=10)
    notes: Optional[str] = Field(default=None, max_length=1000)

    @field_validator("triggers", "symptoms", mode="before")
    @classmethod
    def _strip_items(cls, v):
        if v is None:
            return []
        return [str(x).strip() for x in v]
