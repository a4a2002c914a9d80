# meditation_api/schemas/stress_technique_schema.py
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from ..models.stress_technique_model import DifficultyLevel, Frequency, TechniqueCategory


class StressTechniqueCreate(BaseModel):
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


class StressTechniqueUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, min_length=1, max_length=1000)
    category: Optional[TechniqueCategory] = None
    difficulty_level: Optional[DifficultyLevel] = None
    duration_minutes: Optional[int] = Field(default=None, ge=1, le=120)
    steps: Optional[List[str]] = None
    benefits: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    effectiveness_rating: Optional[float] = Field(default=None, ge=1, le=5)
    recommended_frequency: Optional[Frequency] = None


class StressTechniqueOut(BaseModel):
    id: str
    name: str
    description: str
    category: str
    difficulty_level: str
    duration_minutes: int
    steps: List[str] = []
    benefits: List[str] = []
    tags: List[str] = []
    effectiveness_rating: float = 3
    recommended_frequency: str = "as-needed"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class StressTechniquePage(BaseModel):
    techniques: List[StressTechniqueOut]
    pagination: dict
