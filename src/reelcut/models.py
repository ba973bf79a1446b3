"""Data model for clip jobs: speakers, transcript segments, words, clip requests.

All records are frozen dataclasses built once from JSON-compatible dicts
and never mutated afterwards. Parsing accepts the key spellings produced
by the upstream analysis/transcription stages:

  Speaker:  {id, description?, position}
            position: left | right | center | unknown
                      (izquierda | derecha | centro | desconocido also accepted)
  Segment:  {speakerId|speaker_id|speaker, text?, startTime|start,
             endTime|end, words?}
  Word:     {text|word, start, end, confidence|probability?}

Malformed records raise InputViolation, a ValueError subclass.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterable, Mapping


# Words may poke past their segment by float noise from the transcriber.
WORD_BOUNDS_TOLERANCE = 1e-3


class InputViolation(ValueError):
    """Input that cannot be compiled into a well-formed clip render."""


class Position(str, Enum):
    LEFT = "left"
    RIGHT = "right"
    CENTER = "center"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value) -> "Position":
        if isinstance(value, Position):
            return value
        key = str(value).strip().lower()
        key = _POSITION_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            valid = sorted(p.value for p in cls) + sorted(_POSITION_ALIASES)
            raise InputViolation(
                f"Unknown speaker position '{value}'. Valid: {valid}"
            ) from None


_POSITION_ALIASES = {
    "izquierda": "left",
    "derecha": "right",
    "centro": "center",
    "desconocido": "unknown",
}


def _first(raw: Mapping, keys: tuple[str, ...], what: str, default=None, required=True):
    for key in keys:
        if key in raw:
            return raw[key]
    if required:
        raise InputViolation(f"{what}: missing required field '{keys[0]}'")
    return default


def _number(value, what: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InputViolation(f"{what} must be a number, got {value!r}")
    return float(value)


@dataclass(frozen=True)
class Speaker:
    id: str
    position: Position = Position.UNKNOWN
    description: str = ""

    @classmethod
    def from_dict(cls, raw: Mapping) -> "Speaker":
        sid = _first(raw, ("id",), "Speaker")
        return cls(
            id=str(sid),
            position=Position.parse(raw.get("position", "unknown")),
            description=str(raw.get("description", "")),
        )


@dataclass(frozen=True)
class Word:
    text: str
    start: float
    end: float
    confidence: float = 1.0

    def __post_init__(self):
        if self.start < 0:
            raise InputViolation(f"Word '{self.text}': start must be >= 0, got {self.start}")
        if self.end < self.start:
            raise InputViolation(
                f"Word '{self.text}': end ({self.end}) must be >= start ({self.start})"
            )
        if not 0.0 <= self.confidence <= 1.0:
            raise InputViolation(
                f"Word '{self.text}': confidence must be in [0, 1], got {self.confidence}"
            )

    @classmethod
    def from_dict(cls, raw: Mapping) -> "Word":
        text = _first(raw, ("text", "word"), "Word")
        return cls(
            text=str(text).strip(),
            start=_number(_first(raw, ("start",), "Word"), "Word start"),
            end=_number(_first(raw, ("end",), "Word"), "Word end"),
            confidence=_number(
                _first(raw, ("confidence", "probability"), "Word", 1.0, required=False),
                "Word confidence",
            ),
        )


@dataclass(frozen=True)
class TranscriptSegment:
    speaker_id: str
    start_time: float
    end_time: float
    text: str = ""
    words: tuple[Word, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if self.start_time < 0:
            raise InputViolation(
                f"Segment ({self.speaker_id}): startTime must be >= 0, got {self.start_time}"
            )
        if self.end_time <= self.start_time:
            raise InputViolation(
                f"Segment ({self.speaker_id}): endTime ({self.end_time}) "
                f"must be > startTime ({self.start_time})"
            )
        for w in self.words:
            if (w.start < self.start_time - WORD_BOUNDS_TOLERANCE
                    or w.end > self.end_time + WORD_BOUNDS_TOLERANCE):
                raise InputViolation(
                    f"Word '{w.text}' [{w.start}, {w.end}] lies outside its segment "
                    f"[{self.start_time}, {self.end_time}]"
                )

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    def shifted(self, offset: float) -> "TranscriptSegment":
        """Copy with segment and word times moved by -offset.

        Word starts are floored at 0 so tolerance slop before a segment
        that begins exactly at `offset` stays a valid time.
        """
        words = []
        for w in self.words:
            start = max(0.0, w.start - offset)
            words.append(replace(w, start=start, end=max(start, w.end - offset)))
        return replace(
            self,
            start_time=self.start_time - offset,
            end_time=self.end_time - offset,
            words=tuple(words),
        )

    @classmethod
    def from_dict(cls, raw: Mapping) -> "TranscriptSegment":
        speaker = _first(
            raw, ("speakerId", "speaker_id", "speaker"), "Segment", "", required=False,
        )
        words = tuple(Word.from_dict(w) for w in raw.get("words") or [])
        text = raw.get("text")
        if text is None:
            text = " ".join(w.text for w in words)
        return cls(
            speaker_id="" if speaker is None else str(speaker),
            start_time=_number(_first(raw, ("startTime", "start_time", "start"), "Segment"),
                               "Segment startTime"),
            end_time=_number(_first(raw, ("endTime", "end_time", "end"), "Segment"),
                             "Segment endTime"),
            text=str(text).strip(),
            words=words,
        )


@dataclass(frozen=True)
class ClipRequest:
    source: str
    clip_start: float
    clip_end: float
    title: str = "clip"

    def __post_init__(self):
        if self.clip_start < 0:
            raise InputViolation(f"Clip '{self.title}': start must be >= 0, got {self.clip_start}")
        if self.clip_end <= self.clip_start:
            raise InputViolation(
                f"Clip '{self.title}': end ({self.clip_end}) must be > start ({self.clip_start})"
            )

    @property
    def duration(self) -> float:
        return self.clip_end - self.clip_start


# ── Collection parsing ─────────────────────────────────────────────


def parse_speakers(raw) -> list[Speaker]:
    """Parse a speaker list, or a {"speakers": [...]} document."""
    if isinstance(raw, Mapping):
        raw = raw.get("speakers", [])
    if not isinstance(raw, list):
        raise InputViolation("Speakers must be a list of speaker objects")
    speakers = [Speaker.from_dict(s) for s in raw]
    speakers_by_id(speakers)  # duplicate check
    return speakers


def parse_transcript(raw) -> list[TranscriptSegment]:
    """Parse a segment list, or a {"segments": [...]} document."""
    if isinstance(raw, Mapping):
        raw = raw.get("segments", raw.get("transcript", []))
    if not isinstance(raw, list):
        raise InputViolation("Transcript must be a list of segment objects")
    segments = []
    for i, seg in enumerate(raw):
        try:
            segments.append(TranscriptSegment.from_dict(seg))
        except InputViolation as exc:
            raise InputViolation(f"Transcript segment {i}: {exc}") from None
    return segments


def speakers_by_id(speakers: Iterable[Speaker]) -> dict[str, Speaker]:
    """Index speakers by id. Exactly one speaker per id."""
    index = {}
    for s in speakers:
        if s.id in index:
            raise InputViolation(f"Duplicate speaker id: '{s.id}'")
        index[s.id] = s
    return index
