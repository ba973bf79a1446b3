"""Subtitle layout — fixed-size display lines from timestamped words."""

from dataclasses import dataclass
from typing import Iterable

from .models import TranscriptSegment, Word


WORDS_PER_LINE = 3


@dataclass(frozen=True)
class Line:
    words: tuple[Word, ...]

    @property
    def start(self) -> float:
        return self.words[0].start

    @property
    def end(self) -> float:
        return max(w.end for w in self.words)

    @property
    def text(self) -> str:
        return " ".join(w.text for w in self.words)


def flatten_words(segments: Iterable[TranscriptSegment]) -> list[Word]:
    """All words of all segments, in segment order."""
    return [w for seg in segments for w in seg.words]


def layout_lines(
    segments: Iterable[TranscriptSegment],
    words_per_line: int = WORDS_PER_LINE,
) -> list[Line]:
    """Partition the flattened words into lines of `words_per_line`.

    The last line keeps whatever is left over (1..words_per_line-1 words)
    instead of being merged into the previous one or dropped.
    """
    if words_per_line < 1:
        raise ValueError(f"words_per_line must be >= 1, got {words_per_line}")
    words = flatten_words(segments)
    return [
        Line(tuple(words[i:i + words_per_line]))
        for i in range(0, len(words), words_per_line)
    ]
