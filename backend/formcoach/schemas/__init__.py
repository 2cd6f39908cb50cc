"""Pydantic schemas for API request/response models."""

from formcoach.schemas.exercise import (
    ExerciseResponse,
    StepResponse,
)
from formcoach.schemas.session import (
    ExerciseSelect,
    KeypointIn,
    FrameRequest,
    SessionStateResponse,
)

__all__ = [
    "ExerciseResponse",
    "StepResponse",
    "ExerciseSelect",
    "KeypointIn",
    "FrameRequest",
    "SessionStateResponse",
]
