"""Tests for the session controller (per-frame pipeline and lifecycle)."""

import pytest

from formcoach.config import Settings
from formcoach.cv.exercise_catalog import UnknownExerciseError, get_exercise
from formcoach.cv.keypoint_smoother import KeypointSmoother
from formcoach.cv.landmarks import PoseLandmark
from formcoach.cv.session_controller import SessionController
from formcoach.cv.step_state_machine import StepState


@pytest.fixture
def controller(raw_settings):
    return SessionController(settings=raw_settings)


# ============================================================================
# Test: Frame pipeline
# ============================================================================

class TestProcessFrame:

    def test_idle_before_selection(self, controller, squat_frame):
        result = controller.process_frame(squat_frame(130))
        assert result.exercise_id is None
        assert result.feedback_text == ""
        assert result.completed_steps == [False, False]

    def test_squat_angle_sequence(self, controller, squat_frame):
        events = []
        controller.add_completion_listener(events.append)
        controller.select_exercise("squat")

        results = [controller.process_frame(squat_frame(a)) for a in [170, 170, 130, 130, 130, 165]]

        assert [r.completed_steps for r in results] == (
            [[False, False]] * 2 + [[True, False]] * 3 + [[True, True]]
        )
        assert [r.is_complete for r in results] == [False] * 5 + [True]
        assert results[0].measurement == pytest.approx(170.0)
        assert len(events) == 1
        assert events[0].exercise_id == "squat"
        assert events[0].frames_processed == 6

    def test_completion_event_does_not_refire(self, controller, squat_frame):
        events = []
        controller.add_completion_listener(events.append)
        controller.select_exercise("squat")

        results = [controller.process_frame(squat_frame(a)) for a in [130, 170, 170, 130, 170]]
        assert [r.just_completed for r in results] == [False, True, False, False, False]
        assert len(events) == 1

    def test_overhead_press_vertical_comparison(self, controller, press_frame):
        controller.select_exercise("overhead_press")
        results = [controller.process_frame(press_frame(y, shoulder_y=0.4))
                   for y in [0.5, 0.3, 0.3, 0.45]]

        assert [r.completed_steps[0] for r in results] == [False, True, True, True]
        assert [r.completed_steps[1] for r in results] == [False, False, False, True]
        assert results[3].is_complete

    def test_smoothing_suppresses_single_frame_jump(self, squat_frame):
        controller = SessionController(settings=Settings(smoothing_alpha=0.07))
        controller.select_exercise("squat")
        controller.process_frame(squat_frame(170))
        result = controller.process_frame(squat_frame(100))
        assert result.completed_steps == [False, False]
        assert result.measurement > 140.0

    def test_custom_smoother(self, raw_settings, squat_frame):
        smoother = KeypointSmoother(alpha=1.0)
        controller = SessionController(settings=raw_settings, smoother=smoother)
        assert controller.smoother is smoother
        controller.select_exercise("squat")
        controller.process_frame(squat_frame(150))
        assert smoother.get("left_knee") is not None

    def test_injected_smoother_alpha_wins_over_settings(self, squat_frame):
        controller = SessionController(
            settings=Settings(smoothing_alpha=0.07),
            smoother=KeypointSmoother(alpha=1.0),
        )
        controller.select_exercise("squat")
        controller.process_frame(squat_frame(170))
        result = controller.process_frame(squat_frame(130))
        assert result.measurement == pytest.approx(130.0)
        assert result.completed_steps == [True, False]

    def test_completed_session_ignores_further_frames(self, controller, squat_frame):
        controller.select_exercise("squat")
        for angle in [130, 170]:
            controller.process_frame(squat_frame(angle))
        assert controller.session.is_complete

        result = controller.process_frame(squat_frame(100))
        assert result.is_complete
        assert result.measurement == pytest.approx(170.0)
        assert controller.session.frames_processed == 2

    def test_accepts_mapping_frames(self, controller, squat_frame):
        controller.select_exercise("squat")
        frame = {str(i): kp for i, kp in enumerate(squat_frame(130))}
        result = controller.process_frame(frame)
        assert result.completed_steps == [True, False]


# ============================================================================
# Test: Missing data
# ============================================================================

class TestMissingData:

    def test_none_frames_are_idempotent(self, controller, squat_frame):
        controller.select_exercise("squat")
        before = controller.process_frame(squat_frame(130))

        first = controller.process_frame(None)
        second = controller.process_frame(None)
        for result in (first, second):
            assert result.feedback_text == before.feedback_text
            assert result.completed_steps == before.completed_steps
        assert controller.session.frames_processed == 1

    @pytest.mark.parametrize("frame", [5, True, "frame", 1.5])
    def test_unreadable_frame_skips(self, controller, squat_frame, frame):
        controller.select_exercise("squat")
        before = controller.process_frame(squat_frame(130))
        result = controller.process_frame(frame)
        assert result.completed_steps == before.completed_steps
        assert result.feedback_text == before.feedback_text
        assert controller.session.frames_skipped == 1

    def test_empty_frame_is_noop(self, controller, squat_frame):
        controller.select_exercise("squat")
        controller.process_frame(squat_frame(170))
        result = controller.process_frame([])
        assert result.completed_steps == [False, False]
        assert controller.session.frames_processed == 1

    def test_missing_required_keypoint_skips_frame(self, controller, squat_frame):
        controller.select_exercise("squat")
        controller.process_frame(squat_frame(170))

        frame = squat_frame(130)
        frame[PoseLandmark.LEFT_KNEE] = None
        result = controller.process_frame(frame)

        assert result.completed_steps == [False, False]
        assert controller.session.frames_skipped == 1
        assert controller.session.frames_processed == 1

    def test_short_frame_skips(self, controller, squat_frame):
        controller.select_exercise("squat")
        result = controller.process_frame(squat_frame(130)[:20])
        assert result.completed_steps == [False, False]
        assert controller.session.frames_skipped == 1

    def test_skipped_frame_leaves_smoother_untouched(self, controller, squat_frame):
        controller.select_exercise("squat")
        frame = squat_frame(130)
        frame[PoseLandmark.LEFT_ANKLE] = None
        controller.process_frame(frame)
        assert controller.smoother.get("left_hip") is None

    def test_low_visibility_skips(self, controller, squat_frame):
        controller.select_exercise("squat")
        result = controller.process_frame(squat_frame(130, visibility=0.1))
        assert result.completed_steps == [False, False]
        assert controller.session.frames_skipped == 1

    def test_unknown_visibility_is_accepted(self, controller, squat_frame):
        controller.select_exercise("squat")
        frame = [{"x": kp["x"], "y": kp["y"]} for kp in squat_frame(130)]
        result = controller.process_frame(frame)
        assert result.completed_steps == [True, False]


# ============================================================================
# Test: Session lifecycle
# ============================================================================

class TestSessionLifecycle:

    def test_select_creates_fresh_session(self, controller):
        session = controller.select_exercise("biceps_curl")
        assert session.exercise_id == "biceps_curl"
        assert session.completed_steps == [False, False]
        assert session.feedback_text == ""
        assert session.hold_counter == 0
        assert not session.is_complete
        assert session.state == StepState.AWAITING_STEP0

    def test_switching_exercise_resets_state(self, controller, squat_frame):
        controller.select_exercise("squat")
        for angle in [130, 170]:
            controller.process_frame(squat_frame(angle))
        assert controller.state.is_complete

        controller.select_exercise("lunge")
        state = controller.state
        assert state.exercise_id == "lunge"
        assert state.completed_steps == [False, False]
        assert state.feedback_text == ""
        assert not state.is_complete

    def test_switching_mid_session_resets_state(self, controller, squat_frame):
        controller.select_exercise("squat")
        controller.process_frame(squat_frame(130))
        controller.select_exercise("squat")
        assert controller.state.completed_steps == [False, False]
        assert controller.state.feedback_text == ""

    def test_selection_clears_smoother_for_new_keypoints(self, controller, squat_frame):
        controller.select_exercise("squat")
        controller.process_frame(squat_frame(130))
        assert controller.smoother.get("left_knee") is not None

        controller.select_exercise("sumo_deadlift")  # shares left_hip / left_knee
        assert controller.smoother.get("left_knee") is None
        assert controller.smoother.get("left_hip") is None

    def test_unknown_exercise_keeps_current_session(self, controller, squat_frame):
        controller.select_exercise("squat")
        controller.process_frame(squat_frame(130))
        with pytest.raises(UnknownExerciseError):
            controller.select_exercise("burpee")
        assert controller.state.exercise_id == "squat"
        assert controller.state.completed_steps == [True, False]

    def test_dismiss_completion_restarts_same_exercise(self, controller, squat_frame):
        events = []
        controller.add_completion_listener(events.append)
        controller.select_exercise("squat")
        for angle in [130, 170]:
            controller.process_frame(squat_frame(angle))

        session = controller.dismiss_completion()
        assert session.exercise_id == "squat"
        assert session.completed_steps == [False, False]

        for angle in [130, 170]:
            controller.process_frame(squat_frame(angle))
        assert len(events) == 2

    def test_dismiss_without_session(self, controller):
        assert controller.dismiss_completion() is None

    def test_uses_hold_settings(self, squat_frame):
        settings = Settings(smoothing_alpha=1.0, hold_seconds=1.0, frame_rate=10.0)
        controller = SessionController(settings=settings)
        controller.select_exercise("squat")
        result = controller.process_frame(squat_frame(130))
        assert result.hold_counter == 10
        assert controller.session.machine.exercise is get_exercise("squat")


# ============================================================================
# Test: Completion listeners
# ============================================================================

class TestCompletionListeners:

    def test_failing_listener_does_not_break_processing(self, controller, squat_frame):
        received = []

        def broken(event):
            raise RuntimeError("speaker unplugged")

        controller.add_completion_listener(broken)
        controller.add_completion_listener(received.append)
        controller.select_exercise("squat")

        results = [controller.process_frame(squat_frame(a)) for a in [130, 170]]
        assert results[-1].is_complete
        assert len(received) == 1

    def test_removed_listener_is_not_called(self, controller, squat_frame):
        received = []
        controller.add_completion_listener(received.append)
        controller.remove_completion_listener(received.append)
        controller.select_exercise("squat")
        for angle in [130, 170]:
            controller.process_frame(squat_frame(angle))
        assert received == []
