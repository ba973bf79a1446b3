"""Tests for the subcommand dispatcher."""

import pytest


class TestMainDispatcher:
    def test_no_subcommand_shows_help(self, capsys):
        from reelcut.main import main

        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code != 0  # should error without subcommand

    def test_clip_subcommand_exists(self):
        """Verify clip subcommand is registered (will fail on missing --output-dir)."""
        from reelcut.main import main

        with pytest.raises(SystemExit):
            main(["clip"])

    def test_subtitle_subcommand_exists(self):
        from reelcut.main import main

        with pytest.raises(SystemExit):
            main(["subtitle"])

    def test_clip_dry_run_through_dispatcher(self, tmp_path, capsys):
        from reelcut.main import main

        (tmp_path / "s.json").write_text('[{"id": "A", "position": "left"}]')
        (tmp_path / "t.json").write_text("[]")
        main([
            "clip", "/fake/source.mp4",
            "--speakers", str(tmp_path / "s.json"),
            "--transcript", str(tmp_path / "t.json"),
            "--start", "0", "--end", "2",
            "--output-dir", str(tmp_path), "--dry-run",
        ])
        assert "PLAN" in capsys.readouterr().out

    def test_invalid_subcommand_errors(self, capsys):
        from reelcut.main import main

        with pytest.raises(SystemExit) as exc_info:
            main(["nonexistent"])
        assert exc_info.value.code != 0
