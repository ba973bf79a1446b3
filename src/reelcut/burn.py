"""Subtitle burn-in — draw animated word subtitles onto a rendered clip.

Frames are produced by moviepy and passed through
apply_subtitles_to_frame with their frame index. Because a frame's
subtitles depend only on its index and the fixed word timestamps, the
clip can be cut into frame ranges that render independently:

  workers == 1   one moviepy pass over the whole clip, audio kept.
  workers  > 1   N frame-range chunks rendered in a process pool to
                 temporary mp4s, joined with ffmpeg's concat demuxer,
                 audio copied from the input video.
"""

import math
import subprocess
import tempfile
import time
from concurrent.futures import ProcessPoolExecutor, as_completed
from pathlib import Path

import imageio_ffmpeg
from moviepy import VideoFileClip

from .captions import MAX_LINES, apply_subtitles_to_frame
from .layout import Line, layout_lines
from .models import TranscriptSegment
from .timing import DEFAULT_FPS, frame_count, frame_to_seconds

_FFMPEG = imageio_ffmpeg.get_ffmpeg_exe()


def _export_clip(clip, output_path, fps, audio=True, quiet=False):
    """Write a clip to mp4 with standard encoding settings."""
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)
    clip.write_videofile(
        str(output_path),
        fps=fps,
        codec="libx264",
        audio=audio,
        audio_codec="aac",
        preset="medium",
        ffmpeg_params=["-crf", "20", "-pix_fmt", "yuv420p"],
        logger=None if quiet else "bar",
    )


def subtitle_clip(clip, lines: list[Line], fps: int, first_frame: int = 0,
                  max_lines: int = MAX_LINES):
    """Wrap a moviepy clip so each frame gets its subtitles drawn.

    first_frame is the frame index of the clip's t=0, for clips that are
    a sub-range of the subtitled timeline.
    """
    def _apply(get_frame, t):
        index = first_frame + int(round(t * fps))
        return apply_subtitles_to_frame(get_frame(t), lines, index, fps, max_lines)

    return clip.transform(_apply)


def _chunk_ranges(total_frames: int, workers: int) -> list[tuple[int, int]]:
    """Split [0, total_frames) into at most `workers` contiguous ranges."""
    size = math.ceil(total_frames / workers)
    return [
        (start, min(start + size, total_frames))
        for start in range(0, total_frames, size)
    ]


def _render_chunk(args):
    """Worker: render frames [start, end) of the video with subtitles.

    Takes a single tuple so it works with ProcessPoolExecutor.submit().
    """
    video_path, lines, start, end, fps, max_lines, output_path = args
    with VideoFileClip(str(video_path), audio=False) as source:
        t0 = frame_to_seconds(start, fps)
        t1 = min(frame_to_seconds(end, fps), source.duration)
        clip = source.subclipped(t0, t1).with_fps(fps)
        clip = subtitle_clip(clip, lines, fps, first_frame=start, max_lines=max_lines)
        _export_clip(clip, output_path, fps, audio=False, quiet=True)
    return start, output_path


def _concat_chunks(chunk_paths: list[str], audio_source: str, output_path: str,
                   work_dir: Path) -> None:
    """Join rendered chunks losslessly and mux in the original audio."""
    list_file = work_dir / "chunks.txt"
    list_file.write_text(
        "".join(f"file '{Path(p).resolve().as_posix()}'\n" for p in chunk_paths)
    )
    cmd = [
        _FFMPEG, "-y",
        "-f", "concat", "-safe", "0", "-i", str(list_file),
        "-i", str(audio_source),
        "-map", "0:v", "-map", "1:a?",
        "-c:v", "copy", "-c:a", "aac",
        "-shortest",
        str(output_path),
    ]
    subprocess.run(cmd, check=True, capture_output=True)


def burn_subtitles(
    video_path: str,
    segments: list[TranscriptSegment],
    output_path: str,
    fps: int = DEFAULT_FPS,
    workers: int = 1,
    max_lines: int = MAX_LINES,
    quiet: bool = False,
) -> str:
    """Render `video_path` with animated word subtitles to `output_path`.

    Args:
        video_path: Input video (usually a rendered vertical clip).
        segments: Transcript segments timed relative to the video start.
        output_path: Output mp4 path.
        fps: Frame clock rate; the output is written at this rate.
        workers: Parallel chunk renderers (1 = single moviepy pass).
        max_lines: Started lines kept on screen (0 = all).
        quiet: Suppress moviepy's progress bar.

    Returns:
        The output path.
    """
    if not Path(video_path).exists():
        raise FileNotFoundError(f"Video not found: {video_path}")
    if workers < 1:
        raise ValueError(f"workers must be >= 1, got {workers}")

    lines = layout_lines(segments)
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)

    if workers == 1:
        with VideoFileClip(str(video_path)) as source:
            clip = source.with_fps(fps) if source.fps != fps else source
            clip = subtitle_clip(clip, lines, fps, max_lines=max_lines)
            _export_clip(clip, output_path, fps, quiet=quiet)
        return str(output_path)

    with VideoFileClip(str(video_path), audio=False) as probe:
        total_frames = frame_count(probe.duration, fps)
    if total_frames == 0:
        raise ValueError(f"Video has no frames: {video_path}")
    ranges = _chunk_ranges(total_frames, workers)

    t_start = time.monotonic()
    with tempfile.TemporaryDirectory() as tmp:
        work_dir = Path(tmp)
        work = [
            (video_path, lines, start, end, fps, max_lines,
             str(work_dir / f"chunk-{i:03d}.mp4"))
            for i, (start, end) in enumerate(ranges)
        ]
        if not quiet:
            print(f"Rendering {total_frames} frames in {len(work)} chunks "
                  f"({min(workers, len(work))} workers)")

        done = {}
        with ProcessPoolExecutor(max_workers=min(workers, len(work))) as pool:
            futures = [pool.submit(_render_chunk, item) for item in work]
            for future in as_completed(futures):
                start, path = future.result()  # propagate exceptions
                done[start] = path
                if not quiet:
                    print(f"  DONE   frames from {start}", flush=True)

        _concat_chunks([done[s] for s in sorted(done)], video_path, output_path, work_dir)

    if not quiet:
        print(f"Subtitles burned in {time.monotonic() - t_start:.1f}s")
    return str(output_path)
