"""Frame clock conversions at a fixed frame rate."""

import math

from .models import InputViolation


DEFAULT_FPS = 30
CANVAS_SIZE = (1080, 1920)  # (width, height) of the vertical output


def _check_fps(fps: float) -> None:
    if fps <= 0:
        raise InputViolation(f"fps must be > 0, got {fps!r}")


def seconds_to_frame(seconds: float, fps: float = DEFAULT_FPS) -> int:
    """Return the frame index nearest to `seconds`."""
    _check_fps(fps)
    if seconds < 0:
        raise InputViolation(f"time must be >= 0, got {seconds!r}")
    return int(round(seconds * fps))


def frame_to_seconds(frame: int, fps: float = DEFAULT_FPS) -> float:
    """Return the timestamp (seconds) at which `frame` is shown."""
    _check_fps(fps)
    return frame / fps


def frame_count(duration: float, fps: float = DEFAULT_FPS) -> int:
    """Number of frames needed to cover `duration` seconds."""
    _check_fps(fps)
    if duration < 0:
        raise InputViolation(f"duration must be >= 0, got {duration!r}")
    # Round first so 2.0000000001 * 30 does not spill into a 61st frame.
    return math.ceil(round(duration * fps, 6))
