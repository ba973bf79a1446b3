"""Segment selection — narrow a full transcript to one clip window."""

from typing import Iterable

from .models import InputViolation, TranscriptSegment


def select_segments(
    transcript: Iterable[TranscriptSegment],
    clip_start: float,
    clip_end: float,
) -> list[TranscriptSegment]:
    """Return the segments lying entirely inside [clip_start, clip_end].

    A segment straddling either boundary is dropped, not truncated.
    Input order is kept, overlaps included. No match is a valid result.

    Raises:
        InputViolation: If clip_end <= clip_start.
    """
    if clip_end <= clip_start:
        raise InputViolation(
            f"Clip end ({clip_end}) must be > clip start ({clip_start})"
        )
    return [
        seg for seg in transcript
        if seg.start_time >= clip_start and seg.end_time <= clip_end
    ]


def relative_segments(
    segments: Iterable[TranscriptSegment],
    clip_start: float,
) -> list[TranscriptSegment]:
    """Re-time segments (and their words) to the clip's own time base."""
    return [seg.shifted(clip_start) for seg in segments]
