"""CLI for subtitle burn-in — animated word-by-word subtitles on a clip.

Usage:
    reelcut subtitle clip.mp4 --transcript transcript.json --output out.mp4
    reelcut subtitle clip.mp4 --transcript full.json --clip-start 120 \
        --output out.mp4 --workers 4
"""

import argparse

from moviepy import VideoFileClip

from .burn import burn_subtitles
from .captions import MAX_LINES
from .common import load_json
from .layout import layout_lines
from .models import parse_transcript
from .segments import relative_segments, select_segments
from .timing import DEFAULT_FPS


def _parse_args(args=None):
    parser = argparse.ArgumentParser(
        description="Burn animated word-by-word subtitles into a video.",
    )
    parser.add_argument("video", help="Path to the (vertical) video")
    parser.add_argument(
        "--transcript", required=True,
        help="Transcript JSON with word-level timestamps",
    )
    parser.add_argument("--output", required=True, help="Output mp4 path")
    parser.add_argument(
        "--clip-start", type=float, default=None,
        help="Transcript time (s) at which the video starts, when the "
             "transcript covers a longer source",
    )
    parser.add_argument(
        "--fps", type=int, default=DEFAULT_FPS,
        help=f"Frame rate of the subtitle clock and output (default: {DEFAULT_FPS})",
    )
    parser.add_argument(
        "--workers", type=int, default=1,
        help="Parallel chunk renderers (default: 1)",
    )
    parser.add_argument(
        "--max-lines", type=int, default=MAX_LINES,
        help=f"Subtitle lines kept on screen, 0 for all (default: {MAX_LINES})",
    )
    return parser, parser.parse_args(args)


def main(args=None):
    parser, parsed = _parse_args(args)
    if parsed.workers < 1:
        parser.error("--workers must be >= 1")
    if parsed.fps <= 0:
        parser.error("--fps must be > 0")

    segments = parse_transcript(load_json(parsed.transcript))

    if parsed.clip_start is not None:
        with VideoFileClip(parsed.video, audio=False) as probe:
            duration = probe.duration
        clip_end = parsed.clip_start + duration
        segments = relative_segments(
            select_segments(segments, parsed.clip_start, clip_end),
            parsed.clip_start,
        )

    lines = layout_lines(segments)
    n_words = sum(len(line.words) for line in lines)
    print(f"Subtitling: {parsed.video}")
    print(f"Words: {n_words} in {len(lines)} lines, {parsed.fps}fps")

    burn_subtitles(
        parsed.video, segments, parsed.output,
        fps=parsed.fps,
        workers=parsed.workers,
        max_lines=parsed.max_lines,
    )
    print(f"\nDone: {parsed.output}")


if __name__ == "__main__":
    main()
