"""Runtime settings loaded from the environment."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping

from voicecast.constants import (
    VOICE_IDS,
    WORK_DIR,
    OUTPUT_FILE_NAME,
    OUTPUT_FORMAT,
    OUTPUT_BITRATE,
    SYNTHESIS_ENGINE,
    DEFAULT_GAP_SECONDS,
    SUBMIT_PACING_SECONDS,
    POLL_PACING_SECONDS,
    POLL_BATCH_SECONDS,
    POLL_TIMEOUT_SECONDS,
    SEGMENT_EXTENSIONS,
    EXPORT_FORMATS,
    CONTENT_TYPES,
    LOG_LEVEL,
)


def _env_seconds(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number of seconds, got {raw!r}.") from None
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {raw!r}.")
    return value


@dataclass(frozen=True)
class Settings:
    input_bucket: str
    output_bucket: str
    work_dir: str = WORK_DIR
    output_file_name: str = OUTPUT_FILE_NAME
    output_format: str = OUTPUT_FORMAT
    output_bitrate: str = OUTPUT_BITRATE
    engine: str = SYNTHESIS_ENGINE
    gap_seconds: float = DEFAULT_GAP_SECONDS
    submit_pacing_seconds: float = SUBMIT_PACING_SECONDS
    poll_pacing_seconds: float = POLL_PACING_SECONDS
    poll_batch_seconds: float = POLL_BATCH_SECONDS
    poll_timeout_seconds: float = POLL_TIMEOUT_SECONDS
    region_name: str | None = None
    log_level: str = LOG_LEVEL
    voice_ids: tuple[str, ...] = VOICE_IDS

    def __post_init__(self) -> None:
        if self.output_format not in SEGMENT_EXTENSIONS:
            supported = ", ".join(sorted(SEGMENT_EXTENSIONS))
            raise ValueError(
                f"OUTPUT_FORMAT must be one of {supported}, got {self.output_format!r}."
            )
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ValueError(f"LOG_LEVEL must be a logging level name, got {self.log_level!r}.")

    @property
    def segment_extension(self) -> str:
        return SEGMENT_EXTENSIONS[self.output_format]

    @property
    def export_format(self) -> str:
        return EXPORT_FORMATS[self.output_format]

    @property
    def output_filename(self) -> str:
        return f"{self.output_file_name}.{self.export_format}"

    @property
    def content_type(self) -> str:
        return CONTENT_TYPES[self.export_format]

    @staticmethod
    def from_env(environ: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ

        input_bucket = env.get("INPUT_BUCKET")
        if not input_bucket:
            raise ValueError("INPUT_BUCKET is required.")

        output_bucket = env.get("OUTPUT_BUCKET")
        if not output_bucket:
            raise ValueError("OUTPUT_BUCKET is required.")

        return Settings(
            input_bucket=input_bucket,
            output_bucket=output_bucket,
            work_dir=env.get("WORK_DIR") or WORK_DIR,
            output_file_name=env.get("OUTPUT_FILE_NAME") or OUTPUT_FILE_NAME,
            output_format=env.get("OUTPUT_FORMAT") or OUTPUT_FORMAT,
            output_bitrate=env.get("OUTPUT_BITRATE") or OUTPUT_BITRATE,
            engine=env.get("SYNTHESIS_ENGINE") or SYNTHESIS_ENGINE,
            gap_seconds=_env_seconds(env, "DEFAULT_GAP_SECONDS", DEFAULT_GAP_SECONDS),
            submit_pacing_seconds=_env_seconds(env, "SUBMIT_PACING_SECONDS", SUBMIT_PACING_SECONDS),
            poll_pacing_seconds=_env_seconds(env, "POLL_PACING_SECONDS", POLL_PACING_SECONDS),
            poll_batch_seconds=_env_seconds(env, "POLL_BATCH_SECONDS", POLL_BATCH_SECONDS),
            poll_timeout_seconds=_env_seconds(env, "POLL_TIMEOUT_SECONDS", POLL_TIMEOUT_SECONDS),
            region_name=env.get("AWS_REGION") or env.get("AWS_DEFAULT_REGION") or None,
            log_level=(env.get("LOG_LEVEL") or LOG_LEVEL).upper(),
        )
