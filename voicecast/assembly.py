"""Download synthesized segments and concatenate them into one file."""

import asyncio
import logging
import os

from pydub import AudioSegment

from voicecast.artifacts import init_work_dir, segment_path
from voicecast.config import Settings
from voicecast.constants import PCM_SAMPLE_RATE
from voicecast.exporter import export
from voicecast.models import AudioArtifact
from voicecast.storage import ObjectStore, parse_s3_location

logger = logging.getLogger(__name__)


def load_segment(path: str, output_format: str) -> AudioSegment:
    """Read one Polly segment. PCM output is headerless 16-bit mono."""
    if output_format == "pcm":
        return AudioSegment.from_raw(path, sample_width=2, frame_rate=PCM_SAMPLE_RATE, channels=1)
    if output_format == "ogg_vorbis":
        return AudioSegment.from_file(path, format="ogg")
    return AudioSegment.from_file(path, format=output_format)


def concatenate(audio_files: list[AudioSegment], gap_seconds: float = 0.0) -> AudioSegment:
    """Join segments in the given order with a fixed silence between them."""
    if not audio_files:
        return AudioSegment.silent(duration=0)

    gap_ms = int(round(gap_seconds * 1000))
    result = audio_files[0]
    for audio in audio_files[1:]:
        if gap_ms > 0:
            result += AudioSegment.silent(duration=gap_ms, frame_rate=result.frame_rate)
        result += audio

    return result


def render(
    paths: list[str],
    output_path: str,
    settings: Settings,
    tags: dict | None = None,
) -> dict:
    """Load local segments in order, concatenate, and export. Blocking."""
    audio_files = [load_segment(p, settings.output_format) for p in paths]
    assembled = concatenate(audio_files, gap_seconds=settings.gap_seconds)
    return export(
        assembled,
        output_path,
        settings.export_format,
        bitrate=settings.output_bitrate,
        tags=tags,
        segment_count=len(paths),
    )


async def materialize(
    run_id: str,
    output_uris: list[str],
    store: ObjectStore,
    settings: Settings,
    tags: dict | None = None,
) -> AudioArtifact:
    """Fetch each ordered segment to <work_dir>/<run_id>/<n>.<ext> and concatenate.

    Downloads run one at a time to bound local disk and S3 load.
    """
    work_dir = init_work_dir(settings.work_dir, run_id)
    total = len(output_uris)
    paths = []

    for position, uri in enumerate(output_uris):
        _, key = parse_s3_location(uri)
        path = segment_path(work_dir, position, settings.segment_extension)
        await store.download(settings.output_bucket, key, path)
        logger.info("Downloaded segment %d/%d: %s", position + 1, total, key)
        paths.append(path)

    filename = settings.output_filename
    output_path = os.path.join(work_dir, filename)
    summary = await asyncio.to_thread(render, paths, output_path, settings, tags)
    logger.info(
        "Concatenated %d segment(s) into %s (%.1fs)", total, output_path, summary["duration_seconds"]
    )

    return AudioArtifact(path=output_path, prefix=run_id, filename=filename, summary=summary)
