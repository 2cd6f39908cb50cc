"""
Two-step exercise progression state machine.

States:
- AWAITING_STEP0: waiting for the descent / flex threshold
- AWAITING_STEP1: step 0 reached, waiting for the return / extension threshold
- COMPLETE: both steps reached; measurements are ignored until reset

Hysteresis comes from the catalog: step 0 and step 1 use different
thresholds (e.g. 140° down, 160° up for a squat), so a subject resting near
one boundary cannot flip the state back and forth.

HOLD COUNTER:
On entering AWAITING_STEP1 a countdown of ``hold_frames`` starts. It is
decremented on every frame that still satisfies the step 0 predicate and
is rendered as "Hold for Ns". By default it is advisory only and does not
gate the step 1 transition. With ``enforce_hold=True`` step 1 is refused
until the countdown has reached zero.

The countdown advances per frame, not per wall-clock second, so the
perceived duration follows the frame delivery rate.
"""

import math
from dataclasses import dataclass
from enum import Enum, auto
from typing import List
import logging

from formcoach.cv.exercise_catalog import ExerciseDefinition

logger = logging.getLogger(__name__)


class StepState(Enum):
    """State machine states for two-step exercises."""
    AWAITING_STEP0 = auto()
    AWAITING_STEP1 = auto()
    COMPLETE = auto()


@dataclass
class StepUpdate:
    """Result of feeding one measurement to the state machine."""
    state: StepState
    completed_steps: List[bool]
    feedback_text: str
    hold_counter: int
    progress: float  # 0-100
    just_completed: bool = False

    @property
    def is_complete(self) -> bool:
        return self.state == StepState.COMPLETE


class StepStateMachine:
    """
    Step progression for a single exercise session.

    One instance per session; a new exercise or a dismissed completion
    notice gets a new instance.
    """

    DEFAULT_HOLD_FRAMES = 60  # ~2s at 30fps
    DEFAULT_FRAME_RATE = 30.0

    def __init__(
        self,
        exercise: ExerciseDefinition,
        hold_frames: int = DEFAULT_HOLD_FRAMES,
        frame_rate: float = DEFAULT_FRAME_RATE,
        enforce_hold: bool = False,
    ):
        """
        Initialize state machine.

        Args:
            exercise: Catalog entry providing the step predicates and messages
            hold_frames: Length of the hold countdown in frames
            frame_rate: Frames per second, used to render the countdown in seconds
            enforce_hold: Refuse step 1 until the countdown reaches zero
        """
        if hold_frames < 1:
            raise ValueError(f"hold_frames must be >= 1, got {hold_frames}")
        if frame_rate <= 0:
            raise ValueError(f"frame_rate must be positive, got {frame_rate}")

        self.exercise = exercise
        self.hold_frames = hold_frames
        self.frame_rate = frame_rate
        self.enforce_hold = enforce_hold

        self.state = StepState.AWAITING_STEP0
        self.completed_steps: List[bool] = [False, False]
        self.feedback_text = ""
        self.hold_counter = 0
        self.frame_count = 0

        logger.debug(f"StepStateMachine initialized: {exercise.id}, "
                     f"hold={hold_frames} frames, enforce_hold={enforce_hold}")

    @property
    def is_complete(self) -> bool:
        return self.state == StepState.COMPLETE

    @property
    def progress(self) -> float:
        """
        Progress percentage for a progress bar.

        Step 0 is worth half; the hold countdown fills the second half.
        """
        if self.state == StepState.COMPLETE:
            return 100.0
        if self.state == StepState.AWAITING_STEP0:
            return 0.0
        held = self.hold_frames - self.hold_counter
        return 50.0 + 50.0 * held / self.hold_frames

    def process_measurement(self, value: float) -> StepUpdate:
        """
        Run one transition for the current frame's measurement.

        Returns:
            StepUpdate snapshot after the transition
        """
        self.frame_count += 1

        if self.state == StepState.COMPLETE:
            return self._snapshot()

        just_completed = False
        measurement = self.exercise.measurement
        live = f"Current {measurement.label}: {measurement.format(value)}"

        if self.state == StepState.AWAITING_STEP0:
            if self.exercise.satisfies(0, value):
                self.completed_steps[0] = True
                self.state = StepState.AWAITING_STEP1
                self.hold_counter = self.hold_frames
                self.feedback_text = self.exercise.steps[0].reached_message
                logger.info(f"Frame {self.frame_count}: AWAITING_STEP0 → AWAITING_STEP1 "
                            f"({self.exercise.id}, value={measurement.format(value)})")
            else:
                self.feedback_text = f"{self.exercise.steps[0].instruction} {live}"

        elif self.state == StepState.AWAITING_STEP1:
            if self.exercise.satisfies(1, value) and not self._hold_pending():
                self.completed_steps[1] = True
                self.state = StepState.COMPLETE
                self.hold_counter = 0
                self.feedback_text = self.exercise.success_message
                just_completed = True
                logger.info(f"Frame {self.frame_count}: AWAITING_STEP1 → COMPLETE "
                            f"({self.exercise.id}, value={measurement.format(value)})")
            elif self.exercise.satisfies(1, value):
                # Only reachable with enforce_hold
                self.feedback_text = (
                    f"Too soon! Go back and hold for {self._hold_seconds()}s more."
                )
            elif self.exercise.satisfies(0, value):
                self.hold_counter = max(0, self.hold_counter - 1)
                if self.hold_counter > 0:
                    self.feedback_text = f"Hold for {self._hold_seconds()}s"
                else:
                    self.feedback_text = (
                        f"Hold complete! {self.exercise.steps[1].instruction}"
                    )
            else:
                self.feedback_text = f"{self.exercise.steps[1].instruction} {live}"

        return self._snapshot(just_completed)

    def _hold_pending(self) -> bool:
        return self.enforce_hold and self.hold_counter > 0

    def _hold_seconds(self) -> int:
        return math.ceil(self.hold_counter / self.frame_rate)

    def _snapshot(self, just_completed: bool = False) -> StepUpdate:
        return StepUpdate(
            state=self.state,
            completed_steps=list(self.completed_steps),
            feedback_text=self.feedback_text,
            hold_counter=self.hold_counter,
            progress=self.progress,
            just_completed=just_completed,
        )