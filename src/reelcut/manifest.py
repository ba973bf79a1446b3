"""Clip job manifest loader — batch vertical clips from YAML.

Parses YAML manifests that describe which clips to cut from one source
video, with the speakers and transcript needed to frame them. Uses the
same ${var} path resolution as other manifests in this tool family.

Clip job manifest schema:
  source: "${raw}/episode.mp4"
  paths:
    raw: "/data/recordings"
  speakers: "${raw}/speakers.json"      # JSON file, or an inline list
  transcript: "${raw}/transcript.json"  # JSON file, or an inline list
  video:
    fps: 30                   # default 30
    resolution: [1080, 1920]  # default 1080x1920
  framing:
    unresolved: center        # "skip" or "center" (default center)
    fill_gaps: true           # default true
  subtitles:
    enabled: true             # default false
    workers: 1
    max_lines: 2
  clips:
    - title: "Best bit"
      start: 10.0
      end: 20.0
"""

from pathlib import Path

import yaml

from .common import load_json, resolve_path_vars, safe_title
from .cropplan import VALID_UNRESOLVED
from .models import ClipRequest, InputViolation, parse_speakers, parse_transcript
from .timing import CANVAS_SIZE, DEFAULT_FPS


DEFAULT_FRAMING = {"unresolved": "center", "fill_gaps": True}
DEFAULT_SUBTITLES = {"enabled": False, "workers": 1, "max_lines": 2}


def _load_inline_or_file(value, paths: dict, field_name: str):
    """A manifest field holding either inline data or a JSON file path."""
    if isinstance(value, str):
        return load_json(resolve_path_vars(value, paths))
    if isinstance(value, (list, dict)):
        return value
    raise ValueError(
        f"Clip manifest: '{field_name}' must be a JSON file path or an inline list"
    )


def _load_video(raw: dict) -> dict:
    video = dict(raw.get("video") or {})
    fps = video.get("fps", DEFAULT_FPS)
    if isinstance(fps, bool) or not isinstance(fps, int) or fps <= 0:
        raise ValueError(f"Clip manifest: video.fps must be a positive integer, got {fps!r}")
    resolution = tuple(video.get("resolution", CANVAS_SIZE))
    if len(resolution) != 2 or not all(isinstance(v, int) and v > 0 for v in resolution):
        raise ValueError(
            f"Clip manifest: video.resolution must be [width, height], got {list(resolution)!r}"
        )
    return {"fps": fps, "resolution": resolution}


def _load_framing(raw: dict) -> dict:
    framing = {**DEFAULT_FRAMING, **(raw.get("framing") or {})}
    if framing["unresolved"] not in VALID_UNRESOLVED:
        raise ValueError(
            f"Clip manifest: invalid framing.unresolved '{framing['unresolved']}'. "
            f"Valid: {sorted(VALID_UNRESOLVED)}"
        )
    if not isinstance(framing["fill_gaps"], bool):
        raise ValueError("Clip manifest: framing.fill_gaps must be true or false")
    return framing


def _load_subtitles(raw: dict) -> dict:
    subs = {**DEFAULT_SUBTITLES, **(raw.get("subtitles") or {})}
    if not isinstance(subs["enabled"], bool):
        raise ValueError("Clip manifest: subtitles.enabled must be true or false")
    for key in ("workers", "max_lines"):
        v = subs[key]
        if isinstance(v, bool) or not isinstance(v, int) or v < (1 if key == "workers" else 0):
            raise ValueError(f"Clip manifest: subtitles.{key} must be an integer, got {v!r}")
    return subs


def load_clip_manifest(manifest_path: str | Path) -> dict:
    """Load, validate, and normalize a clip job manifest.

    Processing pipeline:
      1. Parse YAML.
      2. Resolve ${path} variables in source, speakers and transcript.
      3. Load speakers and transcript (file or inline) into model objects.
      4. Apply defaults to video, framing and subtitles settings.
      5. Validate each clip entry (title, start, end) and title uniqueness.

    Args:
        manifest_path: Path to the YAML clip manifest.

    Returns:
        Normalized config dict: source, speakers, transcript, video,
        framing, subtitles, clips (list of ClipRequest).

    Raises:
        ValueError: Missing/invalid fields (InputViolation for bad data).
        FileNotFoundError: Missing speakers/transcript JSON file.
    """
    with open(manifest_path) as f:
        raw = yaml.safe_load(f)

    if not isinstance(raw, dict):
        raise ValueError("Clip manifest: expected a mapping at top level")
    for required in ("source", "speakers", "transcript", "clips"):
        if required not in raw:
            raise ValueError(f"Clip manifest: missing required '{required}' field")

    paths = raw.get("paths") or {}
    source = resolve_path_vars(str(raw["source"]), paths)

    speakers = parse_speakers(_load_inline_or_file(raw["speakers"], paths, "speakers"))
    transcript = parse_transcript(
        _load_inline_or_file(raw["transcript"], paths, "transcript")
    )

    clips = []
    seen_names = {}
    for i, clip in enumerate(raw["clips"] or []):
        title = clip.get("title", clip.get("id"))
        if title is None:
            raise ValueError(f"Clip {i}: missing required field 'title'")
        for key in ("start", "end"):
            if key not in clip:
                raise ValueError(f"Clip {i} ({title}): missing required field '{key}'")

        try:
            request = ClipRequest(
                source=source,
                clip_start=float(clip["start"]),
                clip_end=float(clip["end"]),
                title=str(title),
            )
        except InputViolation as exc:
            raise InputViolation(f"Clip {i}: {exc}") from None

        name = safe_title(request.title)
        if name in seen_names:
            raise ValueError(
                f"Clip {i} ({title}): output name '{name}.mp4' collides with "
                f"clip {seen_names[name]}"
            )
        seen_names[name] = i
        clips.append(request)

    return {
        "source": source,
        "speakers": speakers,
        "transcript": transcript,
        "video": _load_video(raw),
        "framing": _load_framing(raw),
        "subtitles": _load_subtitles(raw),
        "clips": clips,
    }


def validate_clip_source(config: dict) -> None:
    """Check that the source video path exists on disk.

    Raises:
        FileNotFoundError: If source file is missing.
    """
    p = Path(config["source"])
    if not p.exists():
        raise FileNotFoundError(f"Source video not found: {config['source']}")
