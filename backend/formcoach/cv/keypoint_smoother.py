"""
Temporal keypoint smoothing using an Exponential Moving Average.

Pose providers jitter by a few pixels from frame to frame, which is enough
to flip a joint angle back and forth across a threshold. A low EMA weight
(0.07 by default) suppresses that jitter while still following a real
movement within a few hundred milliseconds at 30 fps.

Only x and y are smoothed. Depth (z) and visibility are passed through from
the newest raw sample since none of the measurements depend on them.
"""

from typing import Dict, Iterable, Optional
import logging

from formcoach.cv.landmarks import Keypoint

logger = logging.getLogger(__name__)


class KeypointSmoother:
    """
    Per-keypoint EMA smoother keyed by landmark name.

    The first observation of a name is stored as is; every later value is
    a convex combination of the stored value and the new raw sample.
    """

    DEFAULT_ALPHA = 0.07

    def __init__(self, alpha: float = DEFAULT_ALPHA):
        """
        Initialize smoother.

        Args:
            alpha: EMA weight of the newest sample (0 < alpha <= 1).
                1.0 disables smoothing.
        """
        if not 0.0 < alpha <= 1.0:
            raise ValueError(f"alpha must be in (0, 1], got {alpha}")
        self.alpha = alpha

        # Current smoothed values: keypoint name -> Keypoint
        self.smoothed: Dict[str, Keypoint] = {}

    def smooth(self, name: str, raw: Keypoint) -> Keypoint:
        """
        Fold a raw sample into the running estimate for ``name``.

        Returns:
            The smoothed keypoint (the raw one on first observation)
        """
        prev = self.smoothed.get(name)
        if prev is None:
            smoothed = Keypoint(x=raw.x, y=raw.y, z=raw.z, visibility=raw.visibility)
        else:
            smoothed = Keypoint(
                x=prev.x * (1 - self.alpha) + raw.x * self.alpha,
                y=prev.y * (1 - self.alpha) + raw.y * self.alpha,
                z=raw.z,
                visibility=raw.visibility,
            )

        self.smoothed[name] = smoothed
        return smoothed

    def get(self, name: str) -> Optional[Keypoint]:
        return self.smoothed.get(name)

    def reset(self, names: Optional[Iterable[str]] = None):
        """Reset smoothing history for ``names``, or for every keypoint."""
        if names is None:
            self.smoothed.clear()
            return

        names = list(names)
        for name in names:
            self.smoothed.pop(name, None)
        logger.debug(f"Smoother reset for {sorted(names)}")

    def __len__(self) -> int:
        return len(self.smoothed)
