"""Filter graph serializer — crop plan entries to one ffmpeg filter program.

The program is built as a small tree of immutable nodes first and turned
into ffmpeg text second, so the compile step never deals with quoting.

Program shape for N entries:

  [0:v] split=N [s0]..[sN-1]                     (only when N > 1)
  [s0]  trim, setpts, crop, zoompan  [v0]
  ...
  [sN-1] trim, setpts, crop, zoompan [vN-1]
  [v0]..[vN-1] concat=n=N            [vout]

With no entries the program is a single identity chain that trims the
clip window and nothing else:

  [0:v] trim, setpts [vout]

Every entry is validated before any node is built; an invalid entry
never reaches the program text.
"""

from dataclasses import dataclass, field
from typing import Sequence

from .cropplan import CropPlanEntry
from .models import InputViolation
from .timing import CANVAS_SIZE, DEFAULT_FPS


SOURCE_LABEL = "0:v"
OUTPUT_LABEL = "vout"

# Entry ends may overshoot the clip by float noise from subtraction.
BOUNDS_EPSILON = 1e-6


# ── Nodes ────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Trim:
    """Keep [offset+start, offset+end] of the input and restart its clock at 0."""

    op = "trim"
    start: float
    end: float
    offset: float = 0.0


@dataclass(frozen=True)
class Crop:
    op = "crop"
    width: str
    height: str
    x: str
    y: str = "0"


@dataclass(frozen=True)
class ZoomPan:
    op = "zoompan"
    zoom: str
    x: str
    y: str
    size: tuple[int, int] = CANVAS_SIZE
    fps: int = DEFAULT_FPS


@dataclass(frozen=True)
class Split:
    op = "split"
    input: str
    outputs: tuple[str, ...]


@dataclass(frozen=True)
class Concat:
    op = "concat"
    inputs: tuple[str, ...]
    output: str


@dataclass(frozen=True)
class FilterChain:
    """A linear run of filters from one labeled stream to another."""

    input: str
    filters: tuple = field(default_factory=tuple)
    output: str = OUTPUT_LABEL


@dataclass(frozen=True)
class FilterProgram:
    chains: tuple[FilterChain, ...]
    split: Split | None = None
    concat: Concat | None = None
    output: str = OUTPUT_LABEL

    @property
    def stages(self) -> list:
        """All stages in execution order."""
        stages = [self.split] if self.split else []
        stages.extend(self.chains)
        if self.concat:
            stages.append(self.concat)
        return stages


# ── Compilation ──────────────────────────────────────────────────


def _validate_entries(entries: Sequence[CropPlanEntry], clip_duration: float) -> None:
    for i, e in enumerate(entries):
        if e.relative_end <= e.relative_start:
            raise InputViolation(
                f"Plan entry {i}: relative end ({e.relative_end}) must be > "
                f"relative start ({e.relative_start})"
            )
        if e.relative_start < 0:
            raise InputViolation(
                f"Plan entry {i}: relative start must be >= 0, got {e.relative_start}"
            )
        if e.relative_end > clip_duration + BOUNDS_EPSILON:
            raise InputViolation(
                f"Plan entry {i}: relative end ({e.relative_end}) exceeds clip "
                f"duration ({clip_duration})"
            )


def serialize(
    entries: Sequence[CropPlanEntry],
    clip_start: float,
    clip_duration: float,
    *,
    output_size: tuple[int, int] = CANVAS_SIZE,
    fps: int = DEFAULT_FPS,
) -> FilterProgram:
    """Compile crop plan entries into a FilterProgram.

    Args:
        entries: Plan entries, in the order they should play.
        clip_start: Clip start on the source timeline. Trims are placed at
            clip_start + relative time since the program reads the
            unseeked source.
        clip_duration: Clip length in seconds.
        output_size: (width, height) each framed chain is resampled to.
        fps: Output frame rate of the zoom/pan stage.

    Returns:
        FilterProgram whose final stream is labeled "vout".

    Raises:
        InputViolation: Non-positive duration or any malformed entry.
    """
    if clip_duration <= 0:
        raise InputViolation(f"Clip duration must be > 0, got {clip_duration}")
    if clip_start < 0:
        raise InputViolation(f"Clip start must be >= 0, got {clip_start}")
    _validate_entries(entries, clip_duration)

    if not entries:
        identity = FilterChain(
            input=SOURCE_LABEL,
            filters=(Trim(0.0, clip_duration, offset=clip_start),),
            output=OUTPUT_LABEL,
        )
        return FilterProgram(chains=(identity,))

    n = len(entries)
    split = None
    inputs = [SOURCE_LABEL]
    if n > 1:
        split = Split(SOURCE_LABEL, tuple(f"s{i}" for i in range(n)))
        inputs = list(split.outputs)

    chains = []
    for i, e in enumerate(entries):
        chains.append(FilterChain(
            input=inputs[i],
            filters=(
                Trim(e.relative_start, e.relative_end, offset=clip_start),
                Crop(e.crop_width_expr, e.crop_height_expr, e.crop_offset_expr),
                ZoomPan(e.zoom_expr, e.pan_x_expr, e.pan_y_expr,
                        size=tuple(output_size), fps=fps),
            ),
            output=f"v{i}",
        ))

    concat = Concat(tuple(c.output for c in chains), OUTPUT_LABEL)
    return FilterProgram(chains=tuple(chains), split=split, concat=concat)


# ── ffmpeg target ────────────────────────────────────────────────


def _t(seconds: float) -> str:
    return f"{seconds:.3f}"


def _render_filter(node) -> str:
    """ffmpeg text for one filter node (may expand to several filters)."""
    if isinstance(node, Trim):
        return (
            f"trim=start={_t(node.offset + node.start)}:end={_t(node.offset + node.end)},"
            f"setpts=PTS-STARTPTS"
        )
    if isinstance(node, Crop):
        return f"crop=w='{node.width}':h='{node.height}':x='{node.x}':y='{node.y}'"
    if isinstance(node, ZoomPan):
        w, h = node.size
        # zoompan emits one frame per input frame at its own rate, so the
        # input is resampled to that rate first to keep durations intact.
        return (
            f"fps={node.fps},zoompan=z='{node.zoom}':x='{node.x}':y='{node.y}'"
            f":d=1:s={w}x{h}:fps={node.fps},setsar=1"
        )
    raise TypeError(f"Not a filter node: {node!r}")


def _render_stage(stage) -> str:
    if isinstance(stage, Split):
        outs = "".join(f"[{o}]" for o in stage.outputs)
        return f"[{stage.input}]split={len(stage.outputs)}{outs}"
    if isinstance(stage, Concat):
        ins = "".join(f"[{i}]" for i in stage.inputs)
        return f"{ins}concat=n={len(stage.inputs)}:v=1:a=0[{stage.output}]"
    if isinstance(stage, FilterChain):
        body = ",".join(_render_filter(f) for f in stage.filters) or "null"
        return f"[{stage.input}]{body}[{stage.output}]"
    raise TypeError(f"Not a program stage: {stage!r}")


def to_ffmpeg(program: FilterProgram) -> str:
    """Render a program as an ffmpeg -filter_complex argument."""
    return ";".join(_render_stage(s) for s in program.stages)


def describe(program: FilterProgram) -> list[dict]:
    """JSON-compatible structural dump of a program, stage by stage."""
    out = []
    for stage in program.stages:
        if isinstance(stage, FilterChain):
            out.append({
                "op": "chain",
                "input": stage.input,
                "output": stage.output,
                "filters": [_node_dict(f) for f in stage.filters],
            })
        else:
            out.append(_node_dict(stage))
    return out


def _node_dict(node) -> dict:
    d = {"op": node.op}
    for name in node.__dataclass_fields__:
        value = getattr(node, name)
        d[name] = list(value) if isinstance(value, tuple) else value
    return d
