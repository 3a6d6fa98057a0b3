"""Pipeline controller: script in S3 -> one published audio file."""

import asyncio
import logging
import os
import time

from voicecast.artifacts import list_work_files, remove_work_dir, work_dir_for
from voicecast.assembly import materialize
from voicecast.config import Settings
from voicecast.errors import CleanupError, MissingInputError, ValidationError
from voicecast.models import PipelineRun, RunState
from voicecast.parser import parse_script
from voicecast.storage import ObjectStore
from voicecast.tracking import aggregate, await_completion
from voicecast.tts import SpeechSynthesizer, dispatch

logger = logging.getLogger(__name__)


class Pipeline:
    """Runs parse -> dispatch -> settle -> aggregate -> materialize -> publish.

    Each call to run() gets its own PipelineRun, so one Pipeline can serve
    concurrent invocations; only the read-only settings and clients are shared.
    """

    def __init__(
        self,
        settings: Settings,
        store: ObjectStore,
        synthesizer: SpeechSynthesizer,
        sleep=asyncio.sleep,
        clock=time.monotonic,
        run_factory=PipelineRun.new,
    ) -> None:
        self.settings = settings
        self.store = store
        self.synthesizer = synthesizer
        self._sleep = sleep
        self._clock = clock
        self._run_factory = run_factory

    async def run(self, input_key: str | None, run: PipelineRun | None = None) -> dict:
        """Produce one concatenated artifact for the script at input_key.

        Returns {"s3OutputKey", "s3OutputBucket"}. On any failure the run is
        marked failed, cleaned up, and the original error is re-raised.
        """
        if not isinstance(input_key, str) or not input_key.strip():
            raise MissingInputError("s3InputKey is missing")

        settings = self.settings
        run = run or self._run_factory()
        logger.info("run %s: input s3://%s/%s", run.run_id, settings.input_bucket, input_key)
        published_key = None

        try:
            text = await self.store.get_text(settings.input_bucket, input_key)
            records = parse_script(text, settings.voice_ids)
            if not records:
                raise ValidationError(f"No utterances found in {input_key}")
            run.advance(RunState.PARSED)

            tasks = await dispatch(
                records,
                self.synthesizer,
                settings.output_bucket,
                run.key_prefix,
                output_format=settings.output_format,
                engine=settings.engine,
                pacing_seconds=settings.submit_pacing_seconds,
                sleep=self._sleep,
            )
            run.advance(RunState.DISPATCHED)

            await await_completion(
                tasks,
                self.synthesizer,
                batch_interval=settings.poll_batch_seconds,
                poll_pacing=settings.poll_pacing_seconds,
                timeout=settings.poll_timeout_seconds,
                sleep=self._sleep,
                clock=self._clock,
            )
            run.advance(RunState.ALL_SETTLED)

            output_uris = aggregate(tasks)
            run.advance(RunState.AGGREGATED)

            tags = {
                "title": os.path.splitext(os.path.basename(input_key))[0],
                "comment": run.run_id,
            }
            artifact = await materialize(run.run_id, output_uris, self.store, settings, tags=tags)
            run.advance(RunState.MATERIALIZED)

            await self.store.put_file(
                settings.output_bucket, artifact.key, artifact.path, content_type=settings.content_type
            )
            published_key = artifact.key
            logger.info("run %s: published s3://%s/%s", run.run_id, settings.output_bucket, published_key)
            run.advance(RunState.PUBLISHED)
        except BaseException as exc:
            logger.error("run %s failed in state %s: %s", run.run_id, run.state.value, exc)
            run.advance(RunState.FAILED)
            raise
        finally:
            await self.cleanup(run, keep=published_key)

        return {"s3OutputKey": published_key, "s3OutputBucket": settings.output_bucket}

    async def cleanup(self, run: PipelineRun, keep: str | None = None) -> None:
        """Best-effort removal of the run's local and remote intermediates.

        Failures are logged and recorded on run.cleanup_errors; they never
        replace the pipeline's own result or error.
        """
        settings = self.settings
        work_dir = work_dir_for(settings.work_dir, run.run_id)
        logger.debug(
            "run %s: removing %s (%d file(s))", run.run_id, work_dir, len(list_work_files(work_dir))
        )

        try:
            remove_work_dir(work_dir)
        except CleanupError as exc:
            logger.exception("run %s: local cleanup failed", run.run_id)
            run.cleanup_errors.append(exc)

        # Nothing can exist remotely until dispatch has started.
        if run.reached(RunState.PARSED):
            keep_keys = {keep} if keep else set()
            try:
                removed = await self.store.delete_prefix(
                    settings.output_bucket, run.key_prefix, keep=keep_keys
                )
                logger.info("run %s: removed %d intermediate object(s)", run.run_id, removed)
            except Exception as exc:
                logger.exception("run %s: remote cleanup failed", run.run_id)
                error = CleanupError(f"Remote cleanup of {run.key_prefix} failed: {exc}")
                error.__cause__ = exc
                run.cleanup_errors.append(error)

        run.advance(RunState.CLEANED_UP)


def build_pipeline(settings: Settings) -> Pipeline:
    """Wire a Pipeline to real boto3 clients."""
    return Pipeline(
        settings,
        ObjectStore(region_name=settings.region_name),
        SpeechSynthesizer(region_name=settings.region_name),
    )
