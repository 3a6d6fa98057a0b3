"""AWS Lambda entrypoint."""

import asyncio
import logging

from voicecast.config import Settings
from voicecast.errors import MissingInputError
from voicecast.pipeline import build_pipeline

logger = logging.getLogger(__name__)


def _input_key(event) -> str | None:
    if not isinstance(event, dict):
        return None
    key = event.get("s3InputKey") or event.get("inputStorageKey")
    return key if isinstance(key, str) else None


def handler(event, context=None, pipeline=None) -> dict:
    """Invoke with {"s3InputKey": ...}; returns {"s3OutputKey", "s3OutputBucket"}.

    Errors propagate so the invocation fails with the structured error type.
    """
    input_key = _input_key(event)
    if not input_key:
        raise MissingInputError("s3InputKey is missing")

    if pipeline is None:
        settings = Settings.from_env()
        logging.getLogger().setLevel(settings.log_level)
        pipeline = build_pipeline(settings)

    result = asyncio.run(pipeline.run(input_key))
    logger.info("Published %s to %s", result["s3OutputKey"], result["s3OutputBucket"])
    return result
