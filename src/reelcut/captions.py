"""Animated subtitle compositing onto video frames.

Draws the subtitle block for one frame: the most recent lines that have
started, stacked above a baseline at 15% of the frame height, each word
tinted, scaled and faded according to its animation state.

  ┌──────────────────────┐
  │                      │
  │                      │
  │    talk about the    │  ← earlier line (words persist)
  │    [GROWTH] of our   │  ← current line, active word emphasized
  │                      │  ← 15% bottom margin
  └──────────────────────┘

Layout uses unscaled word widths; an emphasized word grows around its
own center without pushing its neighbours, so lines never jitter.

All pixel constants are defined at a 1920px-high reference canvas and
scale linearly with the frame height.
"""

from functools import lru_cache

import numpy as np
from PIL import Image, ImageDraw, ImageFilter

from .animation import WordVisualState, state_at, word_color
from .common import load_font
from .layout import Line


# ── Scaling system ───────────────────────────────────────────────

REF_H = 1920

# Each is (value_at_REF_H, floor).
_REF_FONT_SIZE = (90, 10)
_REF_WORD_PADDING = (10, 1)
_REF_STROKE = (3, 1)
_REF_GLOW_ACTIVE = (20, 2)
_REF_GLOW_INACTIVE = (10, 1)

LINE_HEIGHT = 1.2
BOTTOM_MARGIN_FRAC = 0.15
MAX_LINES = 2
SHADOW_COLOR = (0, 0, 0)


def _scale(ref_and_floor: tuple[int, int], frame_h: int) -> int:
    ref_val, floor = ref_and_floor
    return max(floor, round(ref_val * frame_h / REF_H))


# ── Word patches ─────────────────────────────────────────────────


@lru_cache(maxsize=1024)
def _text_size(text: str, font_size: int) -> tuple[int, int]:
    font = load_font(font_size)
    bbox = ImageDraw.Draw(Image.new("RGBA", (1, 1))).textbbox((0, 0), text, font=font)
    return bbox[2] - bbox[0], bbox[3] - bbox[1]


@lru_cache(maxsize=1024)
def render_word_patch(
    text: str,
    font_size: int,
    color: tuple[int, int, int],
    glow: int,
    stroke: int = 0,
) -> np.ndarray:
    """Render one word with a dark glow behind it.

    Returns an RGBA uint8 array at full opacity. The array is cached and
    shared; callers must not modify it.
    """
    font = load_font(font_size)
    draw_tmp = ImageDraw.Draw(Image.new("RGBA", (1, 1)))
    bbox = draw_tmp.textbbox((0, 0), text, font=font, stroke_width=stroke)
    text_w = bbox[2] - bbox[0]
    text_h = bbox[3] - bbox[1]

    margin = 2 * glow
    patch_w = text_w + 2 * margin
    patch_h = text_h + 2 * margin
    origin = (margin - bbox[0], margin - bbox[1])

    # Glow: the word in black, blurred.
    glow_img = Image.new("RGBA", (patch_w, patch_h), (*SHADOW_COLOR, 0))
    ImageDraw.Draw(glow_img).text(
        origin, text, font=font, fill=(*SHADOW_COLOR, 255),
        stroke_width=stroke, stroke_fill=(*SHADOW_COLOR, 255),
    )
    if glow > 0:
        glow_img = glow_img.filter(ImageFilter.GaussianBlur(glow / 2))

    # Face: the word itself, stroked in its own color for a bold look.
    face = Image.new("RGBA", (patch_w, patch_h), (0, 0, 0, 0))
    ImageDraw.Draw(face).text(
        origin, text, font=font, fill=(*color, 255),
        stroke_width=stroke, stroke_fill=(*color, 255),
    )
    return np.array(Image.alpha_composite(glow_img, face))


def _blend(dest: np.ndarray, patch: np.ndarray, x: int, y: int, opacity: float) -> None:
    """Alpha-blend an RGBA patch into dest at (x, y), clipped to dest."""
    frame_h, frame_w = dest.shape[:2]
    patch_h, patch_w = patch.shape[:2]
    x0, y0 = max(0, x), max(0, y)
    x1, y1 = min(frame_w, x + patch_w), min(frame_h, y + patch_h)
    if x0 >= x1 or y0 >= y1:
        return
    sub = patch[y0 - y:y1 - y, x0 - x:x1 - x]
    alpha = sub[:, :, 3:4].astype(np.float32) / 255.0 * opacity
    rgb = sub[:, :, :3].astype(np.float32)
    region = dest[y0:y1, x0:x1].astype(np.float32)
    dest[y0:y1, x0:x1] = (region * (1 - alpha) + rgb * alpha).astype(np.uint8)


# ── Line selection ───────────────────────────────────────────────


def visible_lines(
    lines: list[Line],
    frame_index: int,
    fps: float,
    max_lines: int = MAX_LINES,
) -> list[tuple[Line, list[WordVisualState]]]:
    """Lines to draw at this frame, with their per-word states.

    A line is drawn once any of its words has started fading in. Of
    those, only the last `max_lines` are kept.
    """
    shown = []
    for line in lines:
        states = [state_at(frame_index, fps, w) for w in line.words]
        if any(s.opacity > 0 for s in states):
            shown.append((line, states))
    if max_lines > 0:
        shown = shown[-max_lines:]
    return shown


# ── Frame-level application ──────────────────────────────────────


def apply_subtitles_to_frame(
    frame: np.ndarray,
    lines: list[Line],
    frame_index: int,
    fps: float,
    max_lines: int = MAX_LINES,
) -> np.ndarray:
    """Composite the subtitle block for `frame_index` onto a frame.

    Args:
        frame: Input frame, shape (h, w, 3), dtype uint8.
        lines: Subtitle lines from layout_lines (clip time base).
        frame_index: Frame clock value for this frame.
        fps: Frame rate the clock runs at.
        max_lines: How many started lines to keep on screen (0 = all).

    Returns:
        New frame with subtitles drawn, same shape and dtype.
    """
    frame_h, frame_w = frame.shape[:2]
    result = frame.copy()

    shown = visible_lines(lines, frame_index, fps, max_lines)
    if not shown:
        return result

    font_size = _scale(_REF_FONT_SIZE, frame_h)
    padding = _scale(_REF_WORD_PADDING, frame_h)
    stroke = _scale(_REF_STROKE, frame_h)
    line_h = round(font_size * LINE_HEIGHT)

    # Bottom of the block sits at BOTTOM_MARGIN_FRAC above the frame edge.
    block_bottom = frame_h - round(frame_h * BOTTOM_MARGIN_FRAC)
    top = block_bottom - line_h * len(shown)

    for row, (line, states) in enumerate(shown):
        slots = [_text_size(w.text, font_size)[0] + 2 * padding for w in line.words]
        x = (frame_w - sum(slots)) // 2
        center_y = top + row * line_h + line_h // 2

        for word, state, slot_w in zip(line.words, states, slots):
            if state.opacity > 0:
                glow = _scale(
                    _REF_GLOW_ACTIVE if state.emphasized else _REF_GLOW_INACTIVE,
                    frame_h,
                )
                patch = render_word_patch(
                    word.text,
                    max(1, round(font_size * state.scale)),
                    word_color(state),
                    glow,
                    stroke,
                )
                patch_h, patch_w = patch.shape[:2]
                px = x + slot_w // 2 - patch_w // 2
                py = center_y - patch_h // 2
                _blend(result, patch, px, py, state.opacity)
            x += slot_w

    return result
