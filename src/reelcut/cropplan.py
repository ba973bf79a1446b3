"""Crop plan compiler — per-segment vertical framing from speaker positions.

Each selected transcript segment becomes one CropPlanEntry: a 9:16 window
cut from the full source height, centered horizontally on the segment's
speaker, with a slow push-in zoom.

Framing:
  left    -> crop centered at 25% of source width
  right   -> crop centered at 75% of source width
  center  -> crop centered at 50%
  unknown -> crop centered at 50%

The zoom ramps from 1.0 to ZOOM_TARGET over ZOOM_RAMP_S seconds of the
segment and then holds. The pan point follows the zoom so the crop
center stays put on screen: offset = center * (1 - 1/zoom). Both are
expressions over the stream's own timestamp, so the ramp is continuous
rather than stepped per frame.

Expression strings use ffmpeg's expression syntax (crop / zoompan
variables iw, ih, ow, it, zoom).
"""

from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence

from .models import InputViolation, Position, Speaker, TranscriptSegment, speakers_by_id


# ── Constants ────────────────────────────────────────────────────

ASPECT_W, ASPECT_H = 9, 16

POSITION_CENTERS = {
    Position.LEFT: 0.25,
    Position.RIGHT: 0.75,
    Position.CENTER: 0.5,
    Position.UNKNOWN: 0.5,
}

ZOOM_TARGET = 1.1
ZOOM_RAMP_S = 4.0

# Gaps shorter than this are float noise, not missing footage.
GAP_EPSILON = 1e-3

VALID_UNRESOLVED = {"skip", "center"}


def _num(value: float) -> str:
    """Shortest stable text for a number inside an expression."""
    return f"{value:g}"


# ── Plan entries ─────────────────────────────────────────────────


@dataclass(frozen=True)
class CropPlanEntry:
    """Framing for one stretch of the clip timeline.

    Times are relative to the clip start. speaker_id is None for entries
    that were not produced from a resolved speaker (gap fill, centered
    fallback).
    """

    relative_start: float
    relative_end: float
    center_fraction: float = 0.5
    speaker_id: str | None = None
    zoom_target: float = ZOOM_TARGET
    zoom_ramp: float = ZOOM_RAMP_S

    @property
    def duration(self) -> float:
        return self.relative_end - self.relative_start

    # Expression views, consumed by the filter graph serializer.

    @property
    def crop_width_expr(self) -> str:
        return f"ih*{ASPECT_W}/{ASPECT_H}"

    @property
    def crop_height_expr(self) -> str:
        return "ih"

    @property
    def crop_offset_expr(self) -> str:
        # Clamped so a window near the edge never leaves the frame.
        return f"max(0,min(iw-ow,iw*{_num(self.center_fraction)}-ow/2))"

    @property
    def zoom_expr(self) -> str:
        t, r = _num(self.zoom_target), _num(self.zoom_ramp)
        return f"min(1+({t}-1)*it/{r},{t})"

    @property
    def pan_x_expr(self) -> str:
        return "(iw/2)*(1-1/zoom)"

    @property
    def pan_y_expr(self) -> str:
        return "(ih/2)*(1-1/zoom)"

    # Numeric views of the same geometry.

    def crop_box(self, src_w: float, src_h: float) -> tuple[float, float, float, float]:
        """Return (x, y, w, h) of the crop window on a src_w x src_h frame.

        Raises:
            InputViolation: If the source is too narrow for a 9:16 window.
        """
        w = src_h * ASPECT_W / ASPECT_H
        if w > src_w:
            raise InputViolation(
                f"Source {src_w}x{src_h} is narrower than a 9:16 crop ({w:.1f}px)"
            )
        x = min(max(0.0, src_w * self.center_fraction - w / 2), src_w - w)
        return (x, 0.0, w, float(src_h))

    def zoom_at(self, t: float) -> float:
        """Magnification `t` seconds into the entry."""
        t = max(0.0, t)
        return min(1.0 + (self.zoom_target - 1.0) * t / self.zoom_ramp, self.zoom_target)


def pan_offset(center: float, zoom: float) -> float:
    """Top-left offset that keeps `center` fixed at magnification `zoom`."""
    return center * (1.0 - 1.0 / zoom)


# ── Compiler ─────────────────────────────────────────────────────


def compile_crop_plan(
    segments: Sequence[TranscriptSegment],
    speakers: Mapping[str, Speaker] | Iterable[Speaker],
    clip_start: float,
    clip_end: float | None = None,
    *,
    unresolved: str = "skip",
    fill_gaps: bool = False,
) -> list[CropPlanEntry]:
    """Map each segment to a CropPlanEntry, in input order.

    Args:
        segments: Segments already narrowed to the clip window.
        speakers: Speakers by id, or a speaker list (indexed here).
        clip_start: Clip start on the source timeline (seconds).
        clip_end: Clip end. Required for fill_gaps; when given, every
            entry is also checked to lie within the clip.
        unresolved: What to do with a segment whose speaker id is unknown.
            "skip" drops it; "center" frames it at the source center.
        fill_gaps: Add centered entries for parts of the clip no entry
            covers, so the concatenated output spans the whole clip. An
            overlapping segment is trimmed to start where coverage ends
            and dropped when it is already fully covered.

    Returns:
        List of CropPlanEntry. Empty when there is nothing to frame.

    Raises:
        InputViolation: Entry outside the clip, or bad clip bounds.
        ValueError: Unknown `unresolved` mode, or fill_gaps without clip_end.
    """
    if unresolved not in VALID_UNRESOLVED:
        raise ValueError(
            f"Invalid unresolved mode '{unresolved}'. Valid: {sorted(VALID_UNRESOLVED)}"
        )
    if clip_end is not None and clip_end <= clip_start:
        raise InputViolation(
            f"Clip end ({clip_end}) must be > clip start ({clip_start})"
        )
    if fill_gaps and clip_end is None:
        raise ValueError("fill_gaps requires clip_end")

    if not isinstance(speakers, Mapping):
        speakers = speakers_by_id(speakers)

    duration = None if clip_end is None else clip_end - clip_start

    entries = []
    cursor = 0.0  # furthest relative time covered so far

    for i, seg in enumerate(segments):
        speaker = speakers.get(seg.speaker_id)
        if speaker is None and unresolved == "skip":
            continue

        rel_start = seg.start_time - clip_start
        rel_end = seg.end_time - clip_start
        if rel_start < 0 or (duration is not None and rel_end > duration):
            raise InputViolation(
                f"Segment {i} ({seg.speaker_id}) [{seg.start_time}, {seg.end_time}] "
                f"lies outside the clip starting at {clip_start}"
            )

        if fill_gaps:
            if rel_end - cursor <= GAP_EPSILON:
                continue  # already on screen
            if rel_start - cursor > GAP_EPSILON:
                entries.append(CropPlanEntry(cursor, rel_start))
            # An overlap starts where the covered timeline ends.
            rel_start = max(rel_start, cursor)

        if speaker is None:
            entries.append(CropPlanEntry(rel_start, rel_end))
        else:
            entries.append(CropPlanEntry(
                rel_start, rel_end,
                center_fraction=POSITION_CENTERS[speaker.position],
                speaker_id=speaker.id,
            ))
        cursor = max(cursor, rel_end)

    if fill_gaps and duration - cursor > GAP_EPSILON:
        entries.append(CropPlanEntry(cursor, duration))

    return entries


def covers_clip(entries: Sequence[CropPlanEntry], clip_duration: float) -> bool:
    """True when the entries play the clip once, start to end, with no holes.

    Only then does the rendered video keep the clip's own time base. An
    empty plan renders the untouched clip window and so covers it too.
    """
    if not entries:
        return True
    cursor = 0.0
    for e in entries:
        if abs(e.relative_start - cursor) > GAP_EPSILON:
            return False
        cursor = e.relative_end
    return abs(clip_duration - cursor) <= GAP_EPSILON
