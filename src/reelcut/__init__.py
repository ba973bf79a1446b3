"""reelcut — vertical short-form clips from long-form horizontal video.

Compile speaker-aware crop/zoom framing into a single ffmpeg filter
program, and burn word-synchronized animated subtitles onto the result.
Clip jobs can be declared in YAML manifests.
"""
