"""
Exercise-form evaluation engine.

PIPELINE COMPONENTS:
1. Landmarks: MediaPipe Pose indexing and the Keypoint record
2. KeypointSmoother: EMA temporal smoothing per keypoint
3. Angles: joint angle and vertical offset geometry
4. ExerciseCatalog: keypoints, thresholds and instructions per exercise
5. StepStateMachine: two-step hysteresis progression with hold countdown
6. SessionController: per-frame orchestration and completion event

Usage:
    from formcoach.cv import SessionController

    controller = SessionController()
    controller.select_exercise("squat")
    for landmarks in pose_stream:
        result = controller.process_frame(landmarks)
        if result.just_completed:
            print(result.feedback_text)
"""

from formcoach.cv.landmarks import PoseLandmark, Keypoint, lookup_keypoint, NUM_LANDMARKS
from formcoach.cv.keypoint_smoother import KeypointSmoother
from formcoach.cv.angles import calculate_angle, vertical_offset
from formcoach.cv.exercise_catalog import (
    ExerciseType,
    ExerciseDefinition,
    StepSpec,
    Comparison,
    JointAngle,
    VerticalOffset,
    UnknownExerciseError,
    EXERCISE_CATALOG,
    get_exercise,
    list_exercises,
)
from formcoach.cv.step_state_machine import StepStateMachine, StepState, StepUpdate
from formcoach.cv.session_controller import (
    SessionController,
    ExerciseSession,
    FrameResult,
    SessionCompleted,
)

__all__ = [
    # Landmarks
    "PoseLandmark",
    "Keypoint",
    "lookup_keypoint",
    "NUM_LANDMARKS",

    # Keypoint smoothing (EMA)
    "KeypointSmoother",

    # Geometry
    "calculate_angle",
    "vertical_offset",

    # Exercise catalog
    "ExerciseType",
    "ExerciseDefinition",
    "StepSpec",
    "Comparison",
    "JointAngle",
    "VerticalOffset",
    "UnknownExerciseError",
    "EXERCISE_CATALOG",
    "get_exercise",
    "list_exercises",

    # Step state machine
    "StepStateMachine",
    "StepState",
    "StepUpdate",

    # Session controller
    "SessionController",
    "ExerciseSession",
    "FrameResult",
    "SessionCompleted",
]
