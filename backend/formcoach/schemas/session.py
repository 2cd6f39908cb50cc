"""Session and frame schemas."""

from typing import Optional, List
from pydantic import BaseModel, Field, field_validator

from formcoach.cv.exercise_catalog import ExerciseType
from formcoach.cv.landmarks import NUM_LANDMARKS


class ExerciseSelect(BaseModel):
    """Schema for creating a session or switching its exercise."""
    exercise_id: str = Field(..., description="Catalog id, e.g. squat or biceps_curl")


class KeypointIn(BaseModel):
    """One landmark as delivered by the pose provider."""
    x: float
    y: float
    z: float = 0.0
    visibility: Optional[float] = Field(default=None, ge=0.0, le=1.0)


class FrameRequest(BaseModel):
    """
    One frame of landmarks in MediaPipe Pose order.

    ``null`` entries mark landmarks the provider did not detect; a ``null``
    or empty list is a no-op frame.
    """
    keypoints: Optional[List[Optional[KeypointIn]]] = None

    @field_validator("keypoints")
    @classmethod
    def validate_length(cls, v):
        if v is not None and len(v) > NUM_LANDMARKS:
            raise ValueError(f"At most {NUM_LANDMARKS} keypoints per frame, got {len(v)}")
        return v


class SessionStateResponse(BaseModel):
    """Schema for session state after a frame or a lifecycle call."""
    session_id: str
    exercise_id: str
    display_name: str
    feedback_text: str
    completed_steps: List[bool]
    is_complete: bool
    measurement: Optional[float] = None
    progress: float = Field(..., ge=0.0, le=100.0)
    hold_counter: int
    frames_processed: int

    # True only on the frame that completed the session
    completion_event: bool = False

    @field_validator("exercise_id")
    @classmethod
    def validate_exercise_id(cls, v: str) -> str:
        if v not in ExerciseType.all():
            raise ValueError(f"exercise_id must be one of: {ExerciseType.all()}")
        return v
