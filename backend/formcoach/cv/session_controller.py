"""
Session controller: the per-frame entry point of the evaluation engine.

PIPELINE (per frame):
1. Skip absent, empty or unreadable frames, and all frames once complete
   (previous state is kept)
2. Smooth the keypoints the active exercise needs
3. Compute the exercise measurement (joint angle or vertical offset)
4. Run one StepStateMachine transition
5. Fire the completion event once when the session reaches COMPLETE

The controller is synchronous and does no I/O. Frames must be delivered one
at a time; the caller owns scheduling.

Usage:
    controller = SessionController()
    controller.add_completion_listener(lambda event: play_chime())
    controller.select_exercise("squat")
    for landmarks in pose_stream:
        result = controller.process_frame(landmarks)
        show(result.feedback_text, result.completed_steps)
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
import logging

from formcoach.config import Settings, get_settings
from formcoach.cv.exercise_catalog import ExerciseDefinition, get_exercise
from formcoach.cv.keypoint_smoother import KeypointSmoother
from formcoach.cv.landmarks import (
    Keypoint,
    PoseLandmark,
    RawFrame,
    is_raw_frame,
    lookup_keypoint,
)
from formcoach.cv.step_state_machine import StepState, StepStateMachine

logger = logging.getLogger(__name__)


@dataclass
class SessionCompleted:
    """Completion event, consumed by the audio cue and completion dialog."""
    exercise_id: str
    display_name: str
    frames_processed: int


CompletionListener = Callable[[SessionCompleted], Any]


@dataclass
class ExerciseSession:
    """
    Mutable runtime state for one active exercise.

    Replaced wholesale on exercise change or dismissal; only the
    SessionController touches it.
    """
    exercise: ExerciseDefinition
    machine: StepStateMachine = field(repr=False)
    measurement: Optional[float] = None
    frames_processed: int = 0
    frames_skipped: int = 0
    completion_notified: bool = False

    @property
    def exercise_id(self) -> str:
        return self.exercise.id

    @property
    def completed_steps(self) -> List[bool]:
        return list(self.machine.completed_steps)

    @property
    def feedback_text(self) -> str:
        return self.machine.feedback_text

    @property
    def hold_counter(self) -> int:
        return self.machine.hold_counter

    @property
    def is_complete(self) -> bool:
        return self.machine.is_complete

    @property
    def state(self) -> StepState:
        return self.machine.state


@dataclass
class FrameResult:
    """What the rendering / UI layer needs after each frame."""
    exercise_id: Optional[str]
    feedback_text: str
    completed_steps: List[bool]
    is_complete: bool
    measurement: Optional[float] = None
    progress: float = 0.0
    hold_counter: int = 0
    just_completed: bool = False


class SessionController:
    """
    Owns the active exercise selection, the keypoint smoother and the
    state machine of the current session.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        smoother: Optional[KeypointSmoother] = None,
    ):
        self.settings = settings if settings is not None else get_settings()
        if smoother is None:
            smoother = KeypointSmoother(alpha=self.settings.smoothing_alpha)
        self.smoother = smoother
        self.session: Optional[ExerciseSession] = None
        self._listeners: List[CompletionListener] = []

    # -------------------------------------------------------------------------
    # Session lifecycle
    # -------------------------------------------------------------------------

    def select_exercise(self, exercise_id: str) -> ExerciseSession:
        """
        Start a fresh session for ``exercise_id``.

        Raises:
            UnknownExerciseError: if the id is not in the catalog
        """
        exercise = get_exercise(exercise_id)
        self.smoother.reset(exercise.keypoint_names)
        self.session = self._new_session(exercise)
        logger.info(f"Exercise selected: {exercise.id}")
        return self.session

    def dismiss_completion(self) -> Optional[ExerciseSession]:
        """Reset the session for the same exercise (user closed the completion notice)."""
        if self.session is None:
            return None
        exercise = self.session.exercise
        self.session = self._new_session(exercise)
        logger.info(f"Session reset after dismissal: {exercise.id}")
        return self.session

    def _new_session(self, exercise: ExerciseDefinition) -> ExerciseSession:
        machine = StepStateMachine(
            exercise=exercise,
            hold_frames=self.settings.hold_frames,
            frame_rate=self.settings.frame_rate,
            enforce_hold=self.settings.enforce_hold,
        )
        return ExerciseSession(exercise=exercise, machine=machine)

    # -------------------------------------------------------------------------
    # Completion event
    # -------------------------------------------------------------------------

    def add_completion_listener(self, listener: CompletionListener):
        self._listeners.append(listener)

    def remove_completion_listener(self, listener: CompletionListener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify_completed(self, session: ExerciseSession):
        event = SessionCompleted(
            exercise_id=session.exercise_id,
            display_name=session.exercise.display_name,
            frames_processed=session.frames_processed,
        )
        session.completion_notified = True
        logger.info(f"Session complete: {event.exercise_id} "
                    f"after {event.frames_processed} frames")

        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(f"Completion listener {listener!r} failed")

    # -------------------------------------------------------------------------
    # Frame processing
    # -------------------------------------------------------------------------

    @property
    def state(self) -> FrameResult:
        """Current state without processing a frame."""
        return self._result()

    def process_frame(self, raw_keypoints: Optional[RawFrame]) -> FrameResult:
        """
        Process one frame of raw keypoints.

        Args:
            raw_keypoints: 33 landmarks in MediaPipe order (sequence), or a
                mapping of landmark index -> keypoint. None / empty is a
                no-op frame, as is any frame once the session is complete.

        Returns:
            FrameResult after this frame
        """
        session = self.session
        if session is None or session.is_complete or raw_keypoints is None:
            return self._result()

        if not is_raw_frame(raw_keypoints):
            logger.debug(f"Skipping frame: unreadable {type(raw_keypoints).__name__}")
            session.frames_skipped += 1
            return self._result()

        if len(raw_keypoints) == 0:
            return self._result()

        points = self._smoothed_points(session.exercise, raw_keypoints)
        if points is None:
            session.frames_skipped += 1
            return self._result()

        value = session.exercise.measure(points)
        session.measurement = value
        session.frames_processed += 1

        update = session.machine.process_measurement(value)

        just_completed = update.just_completed and not session.completion_notified
        if just_completed:
            self._notify_completed(session)

        return self._result(just_completed=just_completed)

    def _smoothed_points(
        self,
        exercise: ExerciseDefinition,
        raw_keypoints: RawFrame,
    ) -> Optional[Dict[PoseLandmark, Keypoint]]:
        """Smooth the exercise's keypoints; None if any is missing or not visible."""
        raw_points: Dict[PoseLandmark, Keypoint] = {}
        for landmark in exercise.landmarks:
            keypoint = lookup_keypoint(raw_keypoints, int(landmark))
            if keypoint is None:
                logger.debug(f"Skipping frame: {landmark.key} missing")
                return None
            if not keypoint.is_visible(self.settings.min_keypoint_visibility):
                logger.debug(f"Skipping frame: {landmark.key} visibility "
                             f"{keypoint.visibility:.2f}")
                return None
            raw_points[landmark] = keypoint

        # Only smooth once the whole set is usable, so a half-present frame
        # leaves no trace in the filter.
        return {
            landmark: self.smoother.smooth(landmark.key, keypoint)
            for landmark, keypoint in raw_points.items()
        }

    def _result(self, just_completed: bool = False) -> FrameResult:
        session = self.session
        if session is None:
            return FrameResult(
                exercise_id=None,
                feedback_text="",
                completed_steps=[False, False],
                is_complete=False,
            )

        return FrameResult(
            exercise_id=session.exercise_id,
            feedback_text=session.feedback_text,
            completed_steps=session.completed_steps,
            is_complete=session.is_complete,
            measurement=session.measurement,
            progress=session.machine.progress,
            hold_counter=session.hold_counter,
            just_completed=just_completed,
        )
