"""Joint angle and vertical offset geometry on normalized keypoints."""

import numpy as np

from formcoach.cv.landmarks import Keypoint


def calculate_angle(point_a: Keypoint, point_b: Keypoint, point_c: Keypoint) -> float:
    """
    Calculate the interior angle at point_b formed by points a, b, c.

    The difference of the two arm directions is folded into [0, 180], so the
    result does not depend on point order or rotation sense.

    Degenerate input (a or c coinciding with b) is undefined: atan2(0, 0)
    is 0, so the result is just the direction of the other arm measured
    from the +x axis. Callers get that value back unchanged.
    """
    a = point_a.to_array()
    b = point_b.to_array()
    c = point_c.to_array()

    ba = a - b
    bc = c - b

    radians = np.arctan2(bc[1], bc[0]) - np.arctan2(ba[1], ba[0])
    angle = abs(float(np.degrees(radians)))
    if angle > 180.0:
        angle = 360.0 - angle

    return angle


def vertical_offset(point: Keypoint, reference: Keypoint) -> float:
    """
    Vertical offset of point relative to reference in image coordinates.

    Negative means point is higher in the frame than reference.
    """
    return point.y - reference.y
