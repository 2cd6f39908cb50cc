"""
Replay recorded keypoint frames through the evaluation engine.

Input is JSON Lines: one frame per line, each a list of 33 landmark objects
(``{"x": .., "y": .., "z": .., "visibility": ..}`` or ``null``) in MediaPipe
Pose order. A line holding ``null`` is a dropped frame.

    formcoach-replay session.jsonl --exercise squat
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Iterator, List, Optional

from formcoach.config import get_settings
from formcoach.cv.exercise_catalog import ExerciseType, UnknownExerciseError
from formcoach.cv.keypoint_smoother import KeypointSmoother
from formcoach.cv.session_controller import FrameResult, SessionCompleted, SessionController

logger = logging.getLogger(__name__)


def read_frames(path: Path) -> Iterator[Optional[List[Any]]]:
    """Yield one decoded frame per non-blank line."""
    with open(path, "r", encoding="utf-8") as f:
        for line_number, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                yield json.loads(line)
            except json.JSONDecodeError as e:
                raise ValueError(f"{path}:{line_number}: invalid JSON ({e.msg})") from e


def format_result(frame_number: int, result: FrameResult) -> str:
    steps = "".join("x" if done else "." for done in result.completed_steps)
    measurement = "-" if result.measurement is None else f"{result.measurement:.2f}"
    return (f"{frame_number:5d}  [{steps}]  {measurement:>7}  "
            f"{result.progress:5.1f}%  {result.feedback_text}")


def replay(
    path: Path,
    exercise_id: str,
    alpha: Optional[float] = None,
    enforce_hold: Optional[bool] = None,
) -> List[FrameResult]:
    """
    Run every frame in ``path`` through a fresh controller.

    Returns:
        One FrameResult per frame line

    Raises:
        UnknownExerciseError: if the exercise id is not in the catalog
    """
    settings = get_settings()
    overrides = {}
    if enforce_hold is not None:
        overrides["enforce_hold"] = enforce_hold
    if overrides:
        settings = settings.model_copy(update=overrides)

    smoother = KeypointSmoother(alpha=alpha if alpha is not None else settings.smoothing_alpha)
    controller = SessionController(settings=settings, smoother=smoother)

    completions: List[SessionCompleted] = []
    controller.add_completion_listener(completions.append)
    controller.select_exercise(exercise_id)

    results = [controller.process_frame(frame) for frame in read_frames(path)]

    logger.info(f"Replayed {len(results)} frames from {path}: "
                f"{'completed' if completions else 'not completed'}")
    return results


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="formcoach-replay",
        description="Replay recorded keypoint frames and print per-frame feedback.",
    )
    parser.add_argument("path", type=Path, help="JSON Lines file, one frame per line")
    parser.add_argument("--exercise", "-e", required=True,
                        help=f"Exercise id: {', '.join(ExerciseType.all())}")
    parser.add_argument("--alpha", type=float, default=None,
                        help="Smoothing weight of the newest sample (1.0 disables smoothing)")
    parser.add_argument("--enforce-hold", action="store_true", default=None,
                        help="Refuse step 1 until the hold countdown has finished")
    parser.add_argument("--verbose", "-v", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    try:
        results = replay(args.path, args.exercise, alpha=args.alpha,
                         enforce_hold=args.enforce_hold)
    except UnknownExerciseError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    except (OSError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    for frame_number, result in enumerate(results, 1):
        print(format_result(frame_number, result))

    completed_at = next(
        (i for i, result in enumerate(results, 1) if result.just_completed), None
    )
    if completed_at is not None:
        print(f"Completed at frame {completed_at} of {len(results)}")
    else:
        print(f"Not completed ({len(results)} frames)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
