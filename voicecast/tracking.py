"""Poll synthesis tasks until they settle, then restore script order."""

import asyncio
import logging
import time

from voicecast.constants import POLL_BATCH_SECONDS, POLL_PACING_SECONDS, POLL_TIMEOUT_SECONDS
from voicecast.errors import IncompleteResultError, SynthesisFailedError, SynthesisTimeoutError
from voicecast.models import SynthesisTask, TaskStatus

logger = logging.getLogger(__name__)


def _raise_if_failed(tasks: list[SynthesisTask]) -> None:
    failed = {t.index: t.reason for t in tasks if t.status == TaskStatus.FAILED}
    if failed:
        details = "; ".join(f"#{i}: {reason or 'no reason given'}" for i, reason in sorted(failed.items()))
        raise SynthesisFailedError(
            f"{len(failed)} synthesis task(s) failed ({details})", failed=failed
        )


async def await_completion(
    tasks: list[SynthesisTask],
    synthesizer,
    batch_interval: float = POLL_BATCH_SECONDS,
    poll_pacing: float = POLL_PACING_SECONDS,
    timeout: float = POLL_TIMEOUT_SECONDS,
    sleep=asyncio.sleep,
    clock=time.monotonic,
) -> list[SynthesisTask]:
    """Block until every task is completed or failed.

    Polly offers no completion callback, so tasks are polled in batches:
    wait batch_interval, then poll each unsettled task in turn with
    poll_pacing between calls. A failed task aborts the wait with
    SynthesisFailedError; tasks still pending after timeout seconds raise
    SynthesisTimeoutError.
    """
    deadline = clock() + timeout
    pending = [t for t in tasks if not t.settled]
    batch = 0

    while pending:
        await sleep(batch_interval)
        batch += 1

        for i, task in enumerate(pending):
            if i and poll_pacing > 0:
                await sleep(poll_pacing)
            status, output_uri, reason = await synthesizer.get_task(task.task_id)
            task.apply_status(status, output_uri=output_uri, reason=reason)

        _raise_if_failed(pending)
        pending = [t for t in pending if not t.settled]
        logger.info(
            "Poll batch %d: %d/%d task(s) settled", batch, len(tasks) - len(pending), len(tasks)
        )

        if pending and clock() >= deadline:
            raise SynthesisTimeoutError(
                f"{len(pending)} synthesis task(s) still pending after {timeout:g}s",
                pending=sorted(t.index for t in pending),
            )

    _raise_if_failed(tasks)
    return tasks


def aggregate(tasks: list[SynthesisTask]) -> list[str]:
    """Return output URIs ordered by utterance index, not completion order."""
    ordered = sorted(tasks, key=lambda t: t.index)
    missing = [t.index for t in ordered if t.status != TaskStatus.COMPLETED or not t.output_uri]
    if missing:
        raise IncompleteResultError(
            f"Task(s) without a completed output: {', '.join(str(i) for i in missing)}"
        )
    return [t.output_uri for t in ordered]
