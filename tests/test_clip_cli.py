"""Tests for the clip CLI."""

import json
import tempfile

import pytest
import yaml

from reelcut.clip_cli import main, render_clips
from reelcut.models import ClipRequest, InputViolation, Position, Speaker


def _write_json(path, data):
    path.write_text(json.dumps(data))
    return str(path)


def _inputs(tmp_path):
    speakers = _write_json(tmp_path / "speakers.json", [
        {"id": "A", "position": "left"},
        {"id": "B", "position": "right"},
    ])
    transcript = _write_json(tmp_path / "transcript.json", {"segments": [
        {"speakerId": "A", "text": "one two", "startTime": 0.5, "endTime": 1.5},
        {"speakerId": "B", "text": "three", "startTime": 1.5, "endTime": 2.5},
    ]})
    return speakers, transcript


def _write_manifest(content: dict) -> str:
    f = tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False)
    yaml.dump(content, f)
    f.close()
    return f.name


class TestArgumentErrors:
    def test_no_mode_errors(self, tmp_path):
        with pytest.raises(SystemExit):
            main(["--output-dir", str(tmp_path)])

    def test_mixed_modes_error(self, tmp_path):
        with pytest.raises(SystemExit):
            main(["src.mp4", "--start", "1", "--end", "2",
                  "--manifest", "job.yaml", "--output-dir", str(tmp_path)])

    def test_single_mode_needs_end(self, tmp_path):
        with pytest.raises(SystemExit):
            main(["src.mp4", "--start", "1", "--output-dir", str(tmp_path)])

    def test_single_mode_needs_inputs(self, tmp_path):
        with pytest.raises(SystemExit):
            main(["src.mp4", "--start", "1", "--end", "2", "--output-dir", str(tmp_path)])

    def test_output_dir_required(self):
        with pytest.raises(SystemExit):
            main(["--manifest", "job.yaml"])


class TestDryRun:
    def test_single_clip_plan(self, tmp_path, capsys):
        speakers, transcript = _inputs(tmp_path)
        main([
            "/fake/source.mp4", "--speakers", speakers, "--transcript", transcript,
            "--start", "0", "--end", "3", "--title", "Best bit",
            "--output-dir", str(tmp_path / "out"), "--dry-run",
        ])
        out = capsys.readouterr().out
        assert "PLAN" in out
        assert "-filter_complex" in out
        assert "Best_bit.mp4" in out
        assert not (tmp_path / "out").exists()

    def test_manifest_trace(self, tmp_path, capsys):
        speakers, transcript = _inputs(tmp_path)
        path = _write_manifest({
            "source": "/fake/source.mp4",
            "speakers": speakers,
            "transcript": transcript,
            "clips": [
                {"title": "first", "start": 0.0, "end": 2.0},
                {"title": "second", "start": 1.0, "end": 3.0},
            ],
        })
        trace = tmp_path / "trace.json"
        main(["--manifest", path, "--output-dir", str(tmp_path / "out"),
              "--dry-run", "--trace", str(trace)])

        records = json.loads(trace.read_text())
        assert [r["output"].rsplit("/", 1)[-1] for r in records] == ["first.mp4", "second.mp4"]
        assert all(not r["rendered"] for r in records)
        assert "Planning 2 clip(s)" in capsys.readouterr().out

    def test_no_fill_gaps_flag(self, tmp_path):
        speakers, transcript = _inputs(tmp_path)
        trace = tmp_path / "trace.json"
        base = [
            "/fake/source.mp4", "--speakers", speakers, "--transcript", transcript,
            "--start", "0", "--end", "3", "--output-dir", str(tmp_path),
            "--dry-run", "--trace", str(trace),
        ]
        main(base)
        filled = json.loads(trace.read_text())[0]["entries"]
        main(base + ["--no-fill-gaps"])
        bare = json.loads(trace.read_text())[0]["entries"]
        assert filled == 4  # lead-in, A, B, tail
        assert bare == 2


class TestRender:
    def test_missing_source_raises(self, tmp_path):
        speakers, transcript = _inputs(tmp_path)
        with pytest.raises(FileNotFoundError):
            main([
                str(tmp_path / "missing.mp4"), "--speakers", speakers,
                "--transcript", transcript, "--start", "0", "--end", "2",
                "--output-dir", str(tmp_path / "out"),
            ])

    def test_renders_then_skips(self, tmp_path, source_video, capsys):
        speakers, transcript = _inputs(tmp_path)
        args = [
            str(source_video), "--speakers", speakers, "--transcript", transcript,
            "--start", "0.5", "--end", "2.5", "--title", "demo",
            "--output-dir", str(tmp_path / "out"),
        ]
        main(args)
        assert (tmp_path / "out" / "demo.mp4").exists()
        capsys.readouterr()

        main(args)
        assert "SKIP" in capsys.readouterr().out


def _config(make_segment, segments, unresolved, fill_gaps):
    return {
        "source": "/fake/source.mp4",
        "speakers": [Speaker("A", Position.LEFT)],
        "transcript": [make_segment(*s, words=2) for s in segments],
        "video": {"fps": 30, "resolution": (1080, 1920)},
        "framing": {"unresolved": unresolved, "fill_gaps": fill_gaps},
        "subtitles": {"enabled": True, "workers": 1, "max_lines": 2},
        "clips": [ClipRequest("/fake/source.mp4", 0.0, 3.0, "talk")],
    }


class TestSubtitleTimeline:
    def test_no_fill_gaps_flag_with_subtitles_errors(self, tmp_path):
        speakers, transcript = _inputs(tmp_path)
        with pytest.raises(SystemExit):
            main([
                "/fake/source.mp4", "--speakers", speakers, "--transcript", transcript,
                "--start", "0", "--end", "3", "--output-dir", str(tmp_path),
                "--subtitles", "--no-fill-gaps", "--dry-run",
            ])

    def test_manifest_without_fill_gaps_rejected(self, tmp_path):
        speakers, transcript = _inputs(tmp_path)
        path = _write_manifest({
            "source": "/fake/source.mp4",
            "speakers": speakers,
            "transcript": transcript,
            "framing": {"fill_gaps": False},
            "subtitles": {"enabled": True},
            "clips": [{"title": "talk", "start": 0.0, "end": 3.0}],
        })
        with pytest.raises(InputViolation, match="talk"):
            main(["--manifest", path, "--output-dir", str(tmp_path / "out"), "--dry-run"])
        assert not (tmp_path / "out").exists()

    def test_skipped_speaker_rejected(self, tmp_path, make_segment):
        config = _config(make_segment, [("A", 0.0, 1.5), ("ghost", 1.5, 3.0)],
                         unresolved="skip", fill_gaps=False)
        with pytest.raises(InputViolation, match="fill_gaps"):
            render_clips(config, str(tmp_path), dry_run=True)

    def test_centered_speaker_covers_clip(self, tmp_path, make_segment):
        config = _config(make_segment, [("A", 0.0, 1.5), ("ghost", 1.5, 3.0)],
                         unresolved="center", fill_gaps=False)
        traces = render_clips(config, str(tmp_path), dry_run=True)
        assert traces[0]["entries"] == 2

    def test_default_framing_with_subtitles_plans(self, tmp_path, capsys):
        speakers, transcript = _inputs(tmp_path)
        main([
            "/fake/source.mp4", "--speakers", speakers, "--transcript", transcript,
            "--start", "0", "--end", "3", "--output-dir", str(tmp_path),
            "--subtitles", "--dry-run",
        ])
        assert "PLAN" in capsys.readouterr().out
