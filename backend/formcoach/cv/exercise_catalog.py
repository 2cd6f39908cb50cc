"""
Exercise catalog: which keypoints each exercise reads and the two step
thresholds it is judged by.

Every exercise is a two-step movement:
- Step 0: descent / flex (e.g. knee angle drops below 140° in a squat)
- Step 1: return / extension (e.g. knee angle back above 160°)

The gap between the two thresholds is the hysteresis band. A subject
hovering around a single threshold would otherwise complete and undo the
step on alternate frames.

Exercises are judged either by a joint angle (keypoint triple) or by a
vertical offset between two keypoints. Both measurement kinds expose the
same interface, so the state machine never branches on exercise type.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from formcoach.cv.angles import calculate_angle, vertical_offset
from formcoach.cv.landmarks import Keypoint, PoseLandmark


class UnknownExerciseError(ValueError):
    """Raised when an exercise id is not in the catalog."""

    def __init__(self, exercise_id: Any):
        self.exercise_id = exercise_id
        super().__init__(
            f"Unknown exercise: {exercise_id!r}. Must be one of: {ExerciseType.all()}"
        )


class ExerciseType(Enum):
    """Supported exercises."""
    SQUAT = "squat"
    BICEPS_CURL = "biceps_curl"
    LUNGE = "lunge"
    OVERHEAD_PRESS = "overhead_press"
    CALF_RAISE = "calf_raise"
    SUMO_DEADLIFT = "sumo_deadlift"
    CRUNCH = "crunch"

    @classmethod
    def all(cls) -> List[str]:
        return [member.value for member in cls]


class Comparison(Enum):
    """Threshold comparison direction."""
    BELOW = "<"
    ABOVE = ">"
    AT_OR_ABOVE = ">="
    AT_OR_BELOW = "<="

    def holds(self, value: float, threshold: float) -> bool:
        if self is Comparison.BELOW:
            return value < threshold
        if self is Comparison.ABOVE:
            return value > threshold
        if self is Comparison.AT_OR_ABOVE:
            return value >= threshold
        return value <= threshold


@dataclass(frozen=True)
class StepSpec:
    """Entry predicate and user-facing text for one step."""
    comparison: Comparison
    threshold: float
    instruction: str  # Shown while working toward this step
    reached_message: str  # Shown on the frame the step is reached

    def is_satisfied(self, value: float) -> bool:
        return self.comparison.holds(value, self.threshold)


@dataclass(frozen=True)
class JointAngle:
    """Interior angle at ``vertex`` between ``first`` and ``last``."""
    first: PoseLandmark
    vertex: PoseLandmark
    last: PoseLandmark
    label: str = "angle"

    kind = "angle"

    @property
    def landmarks(self) -> Tuple[PoseLandmark, ...]:
        return (self.first, self.vertex, self.last)

    def compute(self, points: Mapping[PoseLandmark, Keypoint]) -> float:
        return calculate_angle(points[self.first], points[self.vertex], points[self.last])

    def format(self, value: float) -> str:
        return f"{value:.0f}°"


@dataclass(frozen=True)
class VerticalOffset:
    """``point.y - reference.y``; negative when point is above reference."""
    point: PoseLandmark
    reference: PoseLandmark
    label: str = "height offset"

    kind = "vertical"

    @property
    def landmarks(self) -> Tuple[PoseLandmark, ...]:
        return (self.point, self.reference)

    def compute(self, points: Mapping[PoseLandmark, Keypoint]) -> float:
        return vertical_offset(points[self.point], points[self.reference])

    def format(self, value: float) -> str:
        return f"{value:+.2f}"


Measurement = Union[JointAngle, VerticalOffset]


@dataclass(frozen=True)
class ExerciseDefinition:
    """Static description of one exercise. Immutable after load."""
    exercise_type: ExerciseType
    display_name: str
    measurement: Measurement
    steps: Tuple[StepSpec, StepSpec]
    success_message: str

    @property
    def id(self) -> str:
        return self.exercise_type.value

    @property
    def landmarks(self) -> Tuple[PoseLandmark, ...]:
        return self.measurement.landmarks

    @property
    def keypoint_names(self) -> List[str]:
        return [landmark.key for landmark in self.landmarks]

    def measure(self, points: Mapping[PoseLandmark, Keypoint]) -> Optional[float]:
        """Compute the live measurement, or None if a keypoint is missing."""
        if any(points.get(landmark) is None for landmark in self.landmarks):
            return None
        return self.measurement.compute(points)

    def satisfies(self, step_index: int, value: float) -> bool:
        return self.steps[step_index].is_satisfied(value)

    def describe(self) -> Dict[str, Any]:
        """Plain-dict view for the API layer."""
        return {
            "id": self.id,
            "display_name": self.display_name,
            "measurement": self.measurement.kind,
            "measurement_label": self.measurement.label,
            "landmarks": [int(landmark) for landmark in self.landmarks],
            "steps": [
                {
                    "comparison": step.comparison.value,
                    "threshold": step.threshold,
                    "instruction": step.instruction,
                }
                for step in self.steps
            ],
        }


# =============================================================================
# Catalog
# =============================================================================

EXERCISE_CATALOG: Dict[ExerciseType, ExerciseDefinition] = {
    ExerciseType.SQUAT: ExerciseDefinition(
        exercise_type=ExerciseType.SQUAT,
        display_name="Squat",
        measurement=JointAngle(
            PoseLandmark.LEFT_HIP, PoseLandmark.LEFT_KNEE, PoseLandmark.LEFT_ANKLE,
            label="knee angle",
        ),
        steps=(
            StepSpec(
                Comparison.BELOW, 140.0,
                instruction="Bend your knees and lower your hips below 140°.",
                reached_message="Squat depth reached! Hold the position.",
            ),
            StepSpec(
                Comparison.ABOVE, 160.0,
                instruction="Push through your heels and stand up straight.",
                reached_message="Standing tall!",
            ),
        ),
        success_message="Great squat! Exercise complete.",
    ),
    ExerciseType.BICEPS_CURL: ExerciseDefinition(
        exercise_type=ExerciseType.BICEPS_CURL,
        display_name="Biceps Curl",
        measurement=JointAngle(
            PoseLandmark.RIGHT_SHOULDER, PoseLandmark.RIGHT_ELBOW, PoseLandmark.RIGHT_WRIST,
            label="elbow angle",
        ),
        steps=(
            StepSpec(
                Comparison.BELOW, 90.0,
                instruction="Curl the weight up until your elbow is below 90°.",
                reached_message="Full curl! Keep your elbow tucked and hold.",
            ),
            StepSpec(
                Comparison.ABOVE, 160.0,
                instruction="Lower the weight slowly until your arm is straight.",
                reached_message="Arm extended!",
            ),
        ),
        success_message="Great curl! Exercise complete.",
    ),
    ExerciseType.LUNGE: ExerciseDefinition(
        exercise_type=ExerciseType.LUNGE,
        display_name="Lunge",
        measurement=JointAngle(
            PoseLandmark.RIGHT_HIP, PoseLandmark.RIGHT_KNEE, PoseLandmark.RIGHT_ANKLE,
            label="knee angle",
        ),
        steps=(
            StepSpec(
                Comparison.BELOW, 110.0,
                instruction="Step forward and drop your back knee below 110°.",
                reached_message="Lunge depth reached! Hold the position.",
            ),
            StepSpec(
                Comparison.ABOVE, 160.0,
                instruction="Drive back up to a standing position.",
                reached_message="Back to standing!",
            ),
        ),
        success_message="Great lunge! Exercise complete.",
    ),
    ExerciseType.OVERHEAD_PRESS: ExerciseDefinition(
        exercise_type=ExerciseType.OVERHEAD_PRESS,
        display_name="Overhead Press",
        measurement=VerticalOffset(
            PoseLandmark.RIGHT_WRIST, PoseLandmark.RIGHT_SHOULDER,
            label="wrist height vs shoulder",
        ),
        steps=(
            StepSpec(
                Comparison.BELOW, 0.0,
                instruction="Press the weight overhead, wrist above your shoulder.",
                reached_message="Arms overhead! Hold the lockout.",
            ),
            StepSpec(
                Comparison.AT_OR_ABOVE, 0.0,
                instruction="Lower the weight back down to shoulder level.",
                reached_message="Back at the shoulders!",
            ),
        ),
        success_message="Great press! Exercise complete.",
    ),
    ExerciseType.CALF_RAISE: ExerciseDefinition(
        exercise_type=ExerciseType.CALF_RAISE,
        display_name="Calf Raise",
        measurement=VerticalOffset(
            PoseLandmark.LEFT_ANKLE, PoseLandmark.LEFT_HEEL,
            label="ankle height vs heel",
        ),
        steps=(
            StepSpec(
                Comparison.ABOVE, 0.05,
                instruction="Rise up onto the balls of your feet.",
                reached_message="Heels up! Hold at the top.",
            ),
            StepSpec(
                Comparison.BELOW, 0.03,
                instruction="Lower your heels back to the floor with control.",
                reached_message="Heels down!",
            ),
        ),
        success_message="Great calf raise! Exercise complete.",
    ),
    ExerciseType.SUMO_DEADLIFT: ExerciseDefinition(
        exercise_type=ExerciseType.SUMO_DEADLIFT,
        display_name="Sumo Deadlift",
        measurement=JointAngle(
            PoseLandmark.LEFT_SHOULDER, PoseLandmark.LEFT_HIP, PoseLandmark.LEFT_KNEE,
            label="hip angle",
        ),
        steps=(
            StepSpec(
                Comparison.BELOW, 115.0,
                instruction="Hinge at the hips and lower until your hip angle is below 115°.",
                reached_message="Bottom position reached! Keep your back flat and hold.",
            ),
            StepSpec(
                Comparison.ABOVE, 170.0,
                instruction="Drive your hips forward and lock out standing tall.",
                reached_message="Locked out!",
            ),
        ),
        success_message="Great sumo deadlift! Exercise complete.",
    ),
    ExerciseType.CRUNCH: ExerciseDefinition(
        exercise_type=ExerciseType.CRUNCH,
        display_name="Crunch",
        measurement=JointAngle(
            PoseLandmark.NOSE, PoseLandmark.RIGHT_SHOULDER, PoseLandmark.RIGHT_HIP,
            label="torso angle",
        ),
        steps=(
            StepSpec(
                Comparison.BELOW, 110.0,
                instruction="Curl your torso up until the angle is below 110°.",
                reached_message="Full crunch! Squeeze and hold.",
            ),
            StepSpec(
                Comparison.ABOVE, 160.0,
                instruction="Lower your shoulders back to the floor slowly.",
                reached_message="Back down!",
            ),
        ),
        success_message="Great crunch! Exercise complete.",
    ),
}


def get_exercise(exercise_id: Union[str, ExerciseType]) -> ExerciseDefinition:
    """
    Look up an exercise by id.

    Raises:
        UnknownExerciseError: if the id is not in the catalog
    """
    try:
        exercise_type = ExerciseType(exercise_id)
    except ValueError:
        raise UnknownExerciseError(exercise_id) from None
    return EXERCISE_CATALOG[exercise_type]


def list_exercises() -> List[ExerciseDefinition]:
    return list(EXERCISE_CATALOG.values())
