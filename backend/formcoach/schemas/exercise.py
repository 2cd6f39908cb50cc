"""Exercise catalog schemas."""

from typing import List
from pydantic import BaseModel, Field


class StepResponse(BaseModel):
    """One step of an exercise."""
    comparison: str = Field(..., description="One of <, >, >=, <=")
    threshold: float
    instruction: str


class ExerciseResponse(BaseModel):
    """Schema for a catalog entry."""
    id: str
    display_name: str
    measurement: str = Field(..., description="angle or vertical")
    measurement_label: str
    landmarks: List[int] = Field(..., description="MediaPipe Pose landmark indices")
    steps: List[StepResponse]
