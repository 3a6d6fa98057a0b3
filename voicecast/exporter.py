"""Export the concatenated audio to its final local file."""

import os

from pydub import AudioSegment

from voicecast.constants import OUTPUT_BITRATE

# Containers pydub/ffmpeg can carry tags for
_TAGGABLE = {"mp3", "ogg"}


def export(
    assembled: AudioSegment,
    output_path: str,
    export_format: str,
    bitrate: str = OUTPUT_BITRATE,
    tags: dict | None = None,
    segment_count: int = 0,
) -> dict:
    """Write assembled audio and return a summary of the result.

    wav output is written directly by pydub; lossy formats go through
    ffmpeg with the configured bitrate and optional metadata tags.
    """
    os.makedirs(os.path.dirname(output_path) or ".", exist_ok=True)

    kwargs = {}
    if export_format != "wav":
        kwargs["bitrate"] = bitrate
        if tags and export_format in _TAGGABLE:
            kwargs["tags"] = tags

    assembled.export(output_path, format=export_format, **kwargs)

    return {
        "format": export_format,
        "segments": segment_count,
        "duration_seconds": round(len(assembled) / 1000, 1),
        "size_bytes": os.path.getsize(output_path),
    }
