"""Shared test fixtures for reelcut tests."""

import subprocess

import pytest
import imageio_ffmpeg

from reelcut.models import Speaker, TranscriptSegment, Word, Position

_FFMPEG = imageio_ffmpeg.get_ffmpeg_exe()


def _make_video(out, size, duration, rate=30):
    subprocess.run(
        [
            _FFMPEG, "-y",
            "-f", "lavfi", "-i", f"testsrc=s={size}:d={duration}:r={rate}",
            "-f", "lavfi", "-i", "anullsrc=r=44100:cl=mono",
            "-shortest",
            "-c:v", "libx264", "-crf", "28", "-pix_fmt", "yuv420p",
            "-c:a", "aac", "-b:a", "32k",
            str(out),
        ],
        check=True,
        capture_output=True,
    )
    return out


@pytest.fixture
def source_video(tmp_path):
    """A 6-second 16:9 test video (640x360, 30fps) with audio."""
    return _make_video(tmp_path / "source.mp4", "640x360", 6)


@pytest.fixture
def vertical_video(tmp_path):
    """A 2-second 9:16 test video (180x320, 30fps) with audio."""
    return _make_video(tmp_path / "vertical.mp4", "180x320", 2)


@pytest.fixture
def speakers():
    return [
        Speaker("A", Position.LEFT, "host on the left"),
        Speaker("B", Position.RIGHT, "guest on the right"),
        Speaker("C", Position.CENTER),
    ]


def _make_segment(speaker_id, start, end, words=()):
    """Segment with evenly spaced words filling [start, end]."""
    if isinstance(words, int):
        step = (end - start) / words
        words = [
            Word(f"w{i}", start + i * step, start + (i + 1) * step)
            for i in range(words)
        ]
    return TranscriptSegment(speaker_id, start, end, words=tuple(words))


@pytest.fixture
def make_segment():
    """Factory: make_segment(speaker_id, start, end, words=n or [Word...])."""
    return _make_segment

