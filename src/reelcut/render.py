"""Clip rendering — run the framing compiler and hand the program to ffmpeg.

Pipeline for one clip:
  1. select_segments      narrow the transcript to the clip window
  2. compile_crop_plan    one framing entry per segment
  3. serialize            one filter program for the whole clip
  4. ffmpeg               video from the filter program, audio copied
                          from the same clip window of the source

The source is read twice: input 0 unseeked for the filter program (its
trims use source-timeline times), input 1 seeked to the clip window for
the audio, which is passed through as-is.
"""

import shlex
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

import imageio_ffmpeg

from .common import safe_title
from .cropplan import CropPlanEntry, compile_crop_plan
from .filtergraph import FilterProgram, describe, serialize, to_ffmpeg
from .models import ClipRequest, Speaker, TranscriptSegment, speakers_by_id
from .segments import select_segments
from .timing import CANVAS_SIZE, DEFAULT_FPS

_FFMPEG = imageio_ffmpeg.get_ffmpeg_exe()

# How much of ffmpeg's stderr to keep in error messages.
STDERR_TAIL_CHARS = 2000


@dataclass
class ClipRenderResult:
    output_path: str
    command: list[str]
    plan: list[CropPlanEntry] = field(default_factory=list)
    program: FilterProgram | None = None
    rendered: bool = False

    @property
    def command_line(self) -> str:
        return format_command(self.command)

    def trace(self) -> dict:
        """JSON-compatible diagnostic record of what was (or would be) run."""
        return {
            "output": self.output_path,
            "command": self.command_line,
            "entries": len(self.plan),
            "program": describe(self.program) if self.program else [],
            "rendered": self.rendered,
        }


def _codec_params(codec):
    """Return (codec, ffmpeg_params) for the given codec name."""
    if codec == "h264_nvenc":
        return codec, ["-cq", "20", "-pix_fmt", "yuv420p"]
    return codec, ["-preset", "veryfast", "-crf", "20", "-pix_fmt", "yuv420p"]


def format_command(cmd: list[str]) -> str:
    """Shell-quoted single-line form of an argv list."""
    return " ".join(shlex.quote(str(a)) for a in cmd)


def build_clip_command(
    source: str,
    program: FilterProgram,
    request: ClipRequest,
    output: str,
    codec: str = "libx264",
) -> list[str]:
    """Assemble the ffmpeg argv that renders `program` to `output`."""
    codec_name, codec_ffparams = _codec_params(codec)
    return [
        _FFMPEG, "-y",
        "-i", source,
        "-ss", f"{request.clip_start:.3f}",
        "-t", f"{request.duration:.3f}",
        "-i", source,
        "-filter_complex", to_ffmpeg(program),
        "-map", f"[{program.output}]",
        "-map", "1:a?",
        "-c:v", codec_name, *codec_ffparams,
        "-c:a", "aac",
        "-shortest",
        output,
    ]


def run_ffmpeg(cmd: list[str]) -> None:
    """Run an ffmpeg argv, raising RuntimeError with its stderr on failure."""
    try:
        subprocess.run(cmd, check=True, capture_output=True)
    except subprocess.CalledProcessError as exc:
        stderr = (exc.stderr or b"").decode("utf-8", errors="replace")
        raise RuntimeError(
            f"ffmpeg failed (exit {exc.returncode}):\n{stderr[-STDERR_TAIL_CHARS:]}"
        ) from exc


def render_clip(
    request: ClipRequest,
    speakers: list[Speaker] | dict[str, Speaker],
    transcript: list[TranscriptSegment],
    output_dir: str,
    codec: str = "libx264",
    unresolved: str = "skip",
    fill_gaps: bool = False,
    output_size: tuple[int, int] = CANVAS_SIZE,
    fps: int = DEFAULT_FPS,
    dry_run: bool = False,
) -> ClipRenderResult:
    """Render one vertical clip from the source in `request`.

    Args:
        request: Source path, clip window and title.
        speakers: Speaker list or speakers by id.
        transcript: Full transcript of the source (absolute times).
        output_dir: Directory for the output mp4 (created if needed).
        codec: Video codec — "libx264" for CPU, "h264_nvenc" for GPU.
        unresolved: Unknown-speaker policy, see compile_crop_plan.
        fill_gaps: Frame uncovered stretches of the clip at center.
        output_size: (width, height) of the output frames.
        fps: Output frame rate.
        dry_run: Compile and build the command but don't run ffmpeg.

    Returns:
        ClipRenderResult with the output path, argv, plan and program.

    Raises:
        InputViolation: Malformed clip or transcript input.
        RuntimeError: ffmpeg failed.
    """
    if not isinstance(speakers, dict):
        speakers = speakers_by_id(speakers)

    selected = select_segments(transcript, request.clip_start, request.clip_end)
    plan = compile_crop_plan(
        selected, speakers, request.clip_start, request.clip_end,
        unresolved=unresolved, fill_gaps=fill_gaps,
    )
    program = serialize(
        plan, request.clip_start, request.duration,
        output_size=output_size, fps=fps,
    )

    output = str(Path(output_dir) / f"{safe_title(request.title)}.mp4")
    cmd = build_clip_command(request.source, program, request, output, codec=codec)
    result = ClipRenderResult(output, cmd, plan, program)

    if dry_run:
        return result

    Path(output_dir).mkdir(parents=True, exist_ok=True)
    run_ffmpeg(cmd)
    if not Path(output).exists():
        raise RuntimeError(f"ffmpeg did not produce an output file: {output}")
    result.rendered = True
    return result
