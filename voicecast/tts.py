"""Speech synthesis task submission via Amazon Polly."""

import asyncio
import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from voicecast.constants import OUTPUT_FORMAT, SYNTHESIS_ENGINE, SUBMIT_PACING_SECONDS
from voicecast.errors import SubmissionError, SynthesisError
from voicecast.models import SynthesisTask, TaskStatus, UtteranceRecord

logger = logging.getLogger(__name__)


class SpeechSynthesizer:
    """Async facade over the Polly asynchronous synthesis-task API."""

    def __init__(self, client=None, region_name: str | None = None) -> None:
        self._polly = client if client is not None else boto3.client("polly", region_name=region_name)

    async def start_task(
        self,
        record: UtteranceRecord,
        bucket: str,
        key_prefix: str,
        output_format: str = OUTPUT_FORMAT,
        engine: str = SYNTHESIS_ENGINE,
    ) -> SynthesisTask:
        try:
            response = await asyncio.to_thread(
                self._polly.start_speech_synthesis_task,
                OutputFormat=output_format,
                OutputS3BucketName=bucket,
                OutputS3KeyPrefix=key_prefix,
                Engine=engine,
                Text=record.text,
                VoiceId=record.voice_id,
            )
        except (ClientError, BotoCoreError) as exc:
            raise SubmissionError(
                f"Polly rejected utterance {record.index} ({record.voice_id}): {exc}"
            ) from exc

        task = response["SynthesisTask"]
        return SynthesisTask(
            index=record.index,
            task_id=task["TaskId"],
            status=TaskStatus(task.get("TaskStatus", TaskStatus.SCHEDULED.value)),
        )

    async def get_task(self, task_id: str) -> tuple[TaskStatus, str, str]:
        """Return (status, output uri, failure reason) for one task."""
        try:
            response = await asyncio.to_thread(
                self._polly.get_speech_synthesis_task, TaskId=task_id
            )
        except (ClientError, BotoCoreError) as exc:
            raise SynthesisError(f"Could not poll Polly task {task_id}: {exc}") from exc

        task = response["SynthesisTask"]
        return (
            TaskStatus(task["TaskStatus"]),
            task.get("OutputUri", ""),
            task.get("TaskStatusReason", ""),
        )


async def dispatch(
    records: list[UtteranceRecord],
    synthesizer: SpeechSynthesizer,
    bucket: str,
    key_prefix: str,
    output_format: str = OUTPUT_FORMAT,
    engine: str = SYNTHESIS_ENGINE,
    pacing_seconds: float = SUBMIT_PACING_SECONDS,
    sleep=asyncio.sleep,
) -> list[SynthesisTask]:
    """Submit one synthesis task per record, strictly in order.

    Submissions are sequential with a fixed pause between them to stay under
    Polly's request throttling. The first failed submission aborts dispatch;
    tasks already started are left to finish on their own.
    """
    total = len(records)
    tasks = []

    for i, record in enumerate(records):
        if i and pacing_seconds > 0:
            await sleep(pacing_seconds)
        task = await synthesizer.start_task(
            record, bucket, key_prefix, output_format=output_format, engine=engine
        )
        logger.info(
            "Submitted utterance %d/%d (%s) as task %s", i + 1, total, record.voice_id, task.task_id
        )
        tasks.append(task)

    return tasks
