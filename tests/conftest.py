"""Shared fixtures: synthetic MediaPipe frames and unsmoothed settings."""

import math

import pytest

from formcoach.config import Settings
from formcoach.cv.landmarks import NUM_LANDMARKS, PoseLandmark


def _blank_frame():
    return [{"x": 0.5, "y": 0.5, "z": 0.0, "visibility": 0.9} for _ in range(NUM_LANDMARKS)]


def _squat_frame(angle_deg: float, visibility: float = 0.9):
    """
    Frame whose left hip-knee-ankle angle equals ``angle_deg``.

    The shin points straight down from the knee; the thigh is rotated
    ``angle_deg`` away from it.
    """
    frame = _blank_frame()
    knee = (0.5, 0.5)
    length = 0.3
    thigh_dir = math.radians(90.0 - angle_deg)

    frame[PoseLandmark.LEFT_KNEE] = {"x": knee[0], "y": knee[1], "z": 0.0, "visibility": visibility}
    frame[PoseLandmark.LEFT_ANKLE] = {"x": knee[0], "y": knee[1] + length, "z": 0.0, "visibility": visibility}
    frame[PoseLandmark.LEFT_HIP] = {
        "x": knee[0] + length * math.cos(thigh_dir),
        "y": knee[1] + length * math.sin(thigh_dir),
        "z": 0.0,
        "visibility": visibility,
    }
    return frame


def _press_frame(wrist_y: float, shoulder_y: float = 0.4):
    frame = _blank_frame()
    frame[PoseLandmark.RIGHT_SHOULDER] = {"x": 0.6, "y": shoulder_y, "z": 0.0, "visibility": 0.9}
    frame[PoseLandmark.RIGHT_WRIST] = {"x": 0.62, "y": wrist_y, "z": 0.0, "visibility": 0.9}
    return frame


@pytest.fixture
def blank_frame():
    return _blank_frame


@pytest.fixture
def squat_frame():
    return _squat_frame


@pytest.fixture
def press_frame():
    return _press_frame


@pytest.fixture
def raw_settings():
    """Settings with smoothing disabled so frames map 1:1 to measurements."""
    return Settings(
        smoothing_alpha=1.0,
        hold_seconds=2.0,
        frame_rate=30.0,
        enforce_hold=False,
        min_keypoint_visibility=0.5,
        max_active_sessions=3,
    )
