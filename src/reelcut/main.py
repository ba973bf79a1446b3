"""Subcommand dispatcher for reelcut.

Usage:
    reelcut clip      source.mp4 --speakers s.json --transcript t.json \
                      --start 10 --end 30 --output-dir clips/
    reelcut clip      --manifest job.yaml --output-dir clips/
    reelcut subtitle  clip.mp4 --transcript t.json --output out.mp4
"""

import argparse
import sys


def main(args=None):
    parser = argparse.ArgumentParser(
        prog="reelcut",
        description="Vertical clips with speaker framing and animated subtitles.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # Register subcommands. Each delegates to its own module's main().
    subparsers.add_parser("clip", help="Render vertical clips from a source video")
    subparsers.add_parser("subtitle", help="Burn animated subtitles into a video")

    # Parse only the subcommand name, pass the rest to the subcommand's parser.
    parsed, remaining = parser.parse_known_args(args)

    if parsed.command is None:
        parser.print_help()
        sys.exit(1)

    if parsed.command == "clip":
        from .clip_cli import main as clip_main
        clip_main(remaining)
    elif parsed.command == "subtitle":
        from .subtitle_cli import main as subtitle_main
        subtitle_main(remaining)


if __name__ == "__main__":
    main()
