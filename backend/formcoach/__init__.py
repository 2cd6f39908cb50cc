"""Form Coach: real-time exercise form feedback from body keypoints."""

__version__ = "1.0.0"
