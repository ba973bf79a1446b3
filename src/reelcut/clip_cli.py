"""CLI for vertical clips — single clip from JSON inputs or batch from YAML.

Usage:
    # Single clip
    reelcut clip source.mp4 --speakers speakers.json \
        --transcript transcript.json --start 10 --end 30 \
        --title "Best bit" --output-dir clips/

    # Batch from a clip job manifest
    reelcut clip --manifest job.yaml --output-dir clips/

    # Print the ffmpeg command without rendering
    reelcut clip --manifest job.yaml --output-dir clips/ --dry-run
"""

import argparse
import json
from pathlib import Path

from .burn import burn_subtitles
from .common import load_json, safe_title
from .cropplan import compile_crop_plan, covers_clip
from .manifest import load_clip_manifest, validate_clip_source
from .models import ClipRequest, InputViolation, parse_speakers, parse_transcript
from .render import render_clip
from .segments import relative_segments, select_segments
from .timing import CANVAS_SIZE, DEFAULT_FPS


def _subtitled_path(clip_path: str) -> str:
    p = Path(clip_path)
    return str(p.with_name(f"{p.stem}.subtitled{p.suffix}"))


def check_subtitle_timeline(config: dict) -> None:
    """Reject subtitled clips whose framing drops or replays footage.

    Subtitles are timed on the clip's own time base, which the rendered
    video only keeps when its plan covers the clip contiguously.

    Raises:
        InputViolation: For the first clip whose plan leaves holes.
    """
    framing = config["framing"]
    for request in config["clips"]:
        selected = select_segments(
            config["transcript"], request.clip_start, request.clip_end,
        )
        plan = compile_crop_plan(
            selected, config["speakers"], request.clip_start, request.clip_end,
            unresolved=framing["unresolved"],
            fill_gaps=framing["fill_gaps"],
        )
        if not covers_clip(plan, request.duration):
            raise InputViolation(
                f"Clip '{request.title}': framing does not cover the whole clip, "
                f"so subtitles would drift out of sync. Enable fill_gaps or "
                f"disable subtitles."
            )


def render_clips(
    config: dict,
    output_dir: str,
    codec: str = "libx264",
    force: bool = False,
    dry_run: bool = False,
) -> list[dict]:
    """Render every clip of a loaded manifest config.

    Clips whose output already exists are skipped unless force is set.
    When subtitles are enabled, each rendered clip is also burned with
    its own words to <title>.subtitled.mp4.

    Returns:
        One trace dict per clip (see ClipRenderResult.trace).

    Raises:
        InputViolation: Subtitles enabled on a clip whose framing does not
            cover it contiguously. Checked before anything is rendered.
    """
    video = config["video"]
    framing = config["framing"]
    subtitles = config["subtitles"]
    if subtitles["enabled"]:
        check_subtitle_timeline(config)
    traces = []

    for request in config["clips"]:
        label = f"{request.title}  {request.clip_start:.1f}s — {request.clip_end:.1f}s"
        output = Path(output_dir) / f"{safe_title(request.title)}.mp4"
        if not dry_run and output.exists() and not force:
            print(f"  SKIP   {output} (exists, use --force to overwrite)")
            traces.append({"output": str(output), "rendered": False, "skipped": True})
            continue

        print(f"  {'PLAN' if dry_run else 'CLIP'}   {label}", flush=True)
        result = render_clip(
            request, config["speakers"], config["transcript"], output_dir,
            codec=codec,
            unresolved=framing["unresolved"],
            fill_gaps=framing["fill_gaps"],
            output_size=video["resolution"],
            fps=video["fps"],
            dry_run=dry_run,
        )
        trace = result.trace()

        if dry_run:
            print(f"         {len(result.plan)} framing entries")
            print(f"         {result.command_line}")
            traces.append(trace)
            continue

        if subtitles["enabled"]:
            selected = select_segments(
                config["transcript"], request.clip_start, request.clip_end,
            )
            out = _subtitled_path(result.output_path)
            print(f"  SUBS   {out}")
            burn_subtitles(
                result.output_path,
                relative_segments(selected, request.clip_start),
                out,
                fps=video["fps"],
                workers=subtitles["workers"],
                max_lines=subtitles["max_lines"],
                quiet=True,
            )
            trace["subtitled"] = out

        traces.append(trace)

    return traces


def main(args=None):
    parser = argparse.ArgumentParser(
        description="Render vertical 9:16 clips with speaker-tracked framing.",
    )
    parser.add_argument(
        "source", nargs="?", default=None,
        help="Path to source video (optional if --manifest provides it)",
    )
    parser.add_argument("--speakers", default=None, help="Speakers JSON (single clip mode)")
    parser.add_argument("--transcript", default=None, help="Transcript JSON (single clip mode)")
    parser.add_argument(
        "--start", type=float, default=None,
        help="Clip start time in seconds (single clip mode)",
    )
    parser.add_argument(
        "--end", type=float, default=None,
        help="Clip end time in seconds (single clip mode)",
    )
    parser.add_argument("--title", default="clip", help="Clip title, used for the filename")
    parser.add_argument("--manifest", default=None, help="Path to clip job YAML manifest")
    parser.add_argument("--output-dir", required=True, help="Directory for rendered clips")
    parser.add_argument(
        "--unresolved", choices=["skip", "center"], default=None,
        help="Segments with unknown speakers: drop them or frame them centered "
             "(default: manifest setting, else center)",
    )
    parser.add_argument(
        "--no-fill-gaps", action="store_true",
        help="Don't frame stretches of the clip without a transcript segment",
    )
    parser.add_argument(
        "--subtitles", action="store_true",
        help="Also burn animated subtitles into each clip",
    )
    parser.add_argument(
        "--workers", type=int, default=None,
        help="Parallel workers for subtitle rendering",
    )
    parser.add_argument(
        "--gpu", action="store_true",
        help="Use GPU encoding (h264_nvenc). Default is CPU (libx264).",
    )
    parser.add_argument(
        "--force", action="store_true",
        help="Overwrite existing output files",
    )
    parser.add_argument(
        "--dry-run", action="store_true",
        help="Print the ffmpeg command(s) without rendering",
    )
    parser.add_argument(
        "--trace", default=None,
        help="Write a JSON trace of commands and filter programs to this path",
    )
    parsed = parser.parse_args(args)

    is_single = parsed.start is not None or parsed.end is not None
    is_batch = parsed.manifest is not None

    if is_single and is_batch:
        parser.error("Cannot mix single-clip args (--start/--end) with --manifest")

    if is_single:
        if parsed.start is None or parsed.end is None:
            parser.error("Single clip mode requires --start and --end")
        if parsed.source is None:
            parser.error("Single clip mode requires a source video argument")
        if parsed.speakers is None or parsed.transcript is None:
            parser.error("Single clip mode requires --speakers and --transcript")

        config = {
            "source": parsed.source,
            "speakers": parse_speakers(load_json(parsed.speakers)),
            "transcript": parse_transcript(load_json(parsed.transcript)),
            "video": {"fps": DEFAULT_FPS, "resolution": CANVAS_SIZE},
            "framing": {"unresolved": "center", "fill_gaps": True},
            "subtitles": {"enabled": False, "workers": 1, "max_lines": 2},
            "clips": [ClipRequest(parsed.source, parsed.start, parsed.end, parsed.title)],
        }
    elif is_batch:
        config = load_clip_manifest(parsed.manifest)
        # CLI source arg overrides manifest source.
        if parsed.source:
            config["source"] = parsed.source
            config["clips"] = [
                ClipRequest(parsed.source, c.clip_start, c.clip_end, c.title)
                for c in config["clips"]
            ]
    else:
        parser.error("Specify either a single clip (--start/--end) or --manifest")

    # CLI flags override manifest settings.
    if parsed.unresolved:
        config["framing"]["unresolved"] = parsed.unresolved
    if parsed.no_fill_gaps:
        config["framing"]["fill_gaps"] = False
    if parsed.subtitles:
        config["subtitles"]["enabled"] = True
    if parsed.no_fill_gaps and config["subtitles"]["enabled"]:
        parser.error("--no-fill-gaps cannot be combined with subtitles")
    if parsed.workers is not None:
        if parsed.workers < 1:
            parser.error("--workers must be >= 1")
        config["subtitles"]["workers"] = parsed.workers

    if not parsed.dry_run:
        validate_clip_source(config)

    print(f"{'Planning' if parsed.dry_run else 'Rendering'} "
          f"{len(config['clips'])} clip(s) from {config['source']}")
    traces = render_clips(
        config, parsed.output_dir,
        codec="h264_nvenc" if parsed.gpu else "libx264",
        force=parsed.force,
        dry_run=parsed.dry_run,
    )

    if parsed.trace:
        Path(parsed.trace).parent.mkdir(parents=True, exist_ok=True)
        with open(parsed.trace, "w") as f:
            json.dump(traces, f, indent=2)
        print(f"Trace: {parsed.trace}")

    print(f"Done: {len(traces)} clip(s) in {parsed.output_dir}")


if __name__ == "__main__":
    main()
