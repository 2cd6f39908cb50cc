"""
Body landmark indexing and keypoint records.

Keypoints arrive from an external pose provider as 33 landmarks in the
MediaPipe Pose ordering. Coordinates are normalized to the frame (0-1,
origin top-left, y grows downward); z is depth relative to the hips.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Mapping, Optional, Sequence, Union

import numpy as np


class PoseLandmark(IntEnum):
    """MediaPipe Pose landmark indices."""
    NOSE = 0
    LEFT_EYE_INNER = 1
    LEFT_EYE = 2
    LEFT_EYE_OUTER = 3
    RIGHT_EYE_INNER = 4
    RIGHT_EYE = 5
    RIGHT_EYE_OUTER = 6
    LEFT_EAR = 7
    RIGHT_EAR = 8
    MOUTH_LEFT = 9
    MOUTH_RIGHT = 10
    LEFT_SHOULDER = 11
    RIGHT_SHOULDER = 12
    LEFT_ELBOW = 13
    RIGHT_ELBOW = 14
    LEFT_WRIST = 15
    RIGHT_WRIST = 16
    LEFT_PINKY = 17
    RIGHT_PINKY = 18
    LEFT_INDEX = 19
    RIGHT_INDEX = 20
    LEFT_THUMB = 21
    RIGHT_THUMB = 22
    LEFT_HIP = 23
    RIGHT_HIP = 24
    LEFT_KNEE = 25
    RIGHT_KNEE = 26
    LEFT_ANKLE = 27
    RIGHT_ANKLE = 28
    LEFT_HEEL = 29
    RIGHT_HEEL = 30
    LEFT_FOOT_INDEX = 31
    RIGHT_FOOT_INDEX = 32

    @property
    def key(self) -> str:
        """Smoother key, e.g. ``left_hip``."""
        return self.name.lower()


NUM_LANDMARKS = len(PoseLandmark)


@dataclass
class Keypoint:
    """Single keypoint with 3D position and optional visibility."""
    x: float  # Normalized x coordinate (0-1)
    y: float  # Normalized y coordinate (0-1)
    z: float = 0.0  # Depth relative to hips
    visibility: Optional[float] = None  # None when the provider does not report it

    def is_visible(self, min_visibility: float) -> bool:
        """Unknown visibility counts as visible."""
        return self.visibility is None or self.visibility >= min_visibility

    def to_array(self) -> np.ndarray:
        """Convert to numpy array [x, y]."""
        return np.array([self.x, self.y], dtype=float)

    @classmethod
    def from_raw(cls, raw: Any) -> Optional["Keypoint"]:
        """
        Build a Keypoint from whatever the provider hands over.

        Accepts a Keypoint, a mapping with ``x``/``y`` (optionally ``z`` and
        ``visibility``) or any object exposing ``x``/``y`` attributes, such
        as a MediaPipe NormalizedLandmark. Returns None for None or a record
        without coordinates.
        """
        if raw is None:
            return None
        if isinstance(raw, Keypoint):
            return raw

        if isinstance(raw, Mapping):
            x, y = raw.get("x"), raw.get("y")
            z = raw.get("z")
            visibility = raw.get("visibility")
        else:
            x, y = getattr(raw, "x", None), getattr(raw, "y", None)
            z = getattr(raw, "z", None)
            visibility = getattr(raw, "visibility", None)

        if x is None or y is None:
            return None

        return cls(
            x=float(x),
            y=float(y),
            z=float(z) if z is not None else 0.0,
            visibility=float(visibility) if visibility is not None else None,
        )


RawFrame = Union[Sequence[Any], Mapping[Any, Any]]


def is_raw_frame(obj: Any) -> bool:
    """True for objects lookup_keypoint can read: mappings, sequences, numpy arrays."""
    if isinstance(obj, (str, bytes)):
        return False
    if isinstance(obj, np.ndarray):
        return obj.ndim >= 1
    return isinstance(obj, (Sequence, Mapping))


def lookup_keypoint(frame: RawFrame, index: int) -> Optional[Keypoint]:
    """
    Read one landmark from a raw frame.

    Sequences are indexed positionally (out of range gives None). Mappings
    may be keyed by the int index or its string form, as JSON objects are.
    """
    if isinstance(frame, Mapping):
        raw = frame.get(index)
        if raw is None:
            raw = frame.get(str(index))
    else:
        if index < 0 or index >= len(frame):
            return None
        raw = frame[index]

    return Keypoint.from_raw(raw)
