"""Per-word subtitle animation, evaluated one frame at a time.

The visual state of a word is a pure function of the frame index and the
word's own timestamps. Nothing is carried between frames, so frames can
be rendered in any order or in parallel.

With s = word.start * fps and e = word.end * fps (frame domain):

  opacity   0 before s, linear 0 -> 1 over [s, s + FADE_FRAMES], then 1.
            Words never fade out once shown.
  active    s <= frame <= e: emphasized, scale linear 1.0 -> ACTIVE_SCALE
            over [s, s + SCALE_RAMP_FRAMES], then held.
  after e   not emphasized, scale 1.0, opacity stays where the fade left it.
"""

from dataclasses import dataclass

from .common import parse_hex_color
from .models import InputViolation, Word


FADE_FRAMES = 5
SCALE_RAMP_FRAMES = 3
ACTIVE_SCALE = 1.1

ACTIVE_COLOR = "#FFFF00"
INACTIVE_COLOR = "#FFFFFF"


@dataclass(frozen=True)
class WordVisualState:
    opacity: float
    scale: float
    emphasized: bool


def interpolate(x: float, x0: float, x1: float, y0: float, y1: float) -> float:
    """Linear map of x from [x0, x1] onto [y0, y1], clamped at both ends."""
    if x <= x0:
        return y0
    if x >= x1:
        return y1
    return y0 + (y1 - y0) * (x - x0) / (x1 - x0)


def state_at(frame: int, fps: float, word: Word) -> WordVisualState:
    """Visual state of `word` at `frame`."""
    if fps <= 0:
        raise InputViolation(f"fps must be > 0, got {fps!r}")
    s = word.start * fps
    e = word.end * fps

    opacity = interpolate(frame, s, s + FADE_FRAMES, 0.0, 1.0)
    if s <= frame <= e:
        scale = interpolate(frame, s, s + SCALE_RAMP_FRAMES, 1.0, ACTIVE_SCALE)
        return WordVisualState(opacity, scale, True)
    return WordVisualState(opacity, 1.0, False)


def word_color(state: WordVisualState) -> tuple[int, int, int]:
    return parse_hex_color(ACTIVE_COLOR if state.emphasized else INACTIVE_COLOR)
