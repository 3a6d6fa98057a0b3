"""Data models for a voicecast run."""

import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UtteranceRecord:
    index: int         # position among non-empty cues, 0..N-1
    voice_id: str
    text: str


class TaskStatus(str, Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "inProgress"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.COMPLETED, TaskStatus.FAILED)


@dataclass
class SynthesisTask:
    index: int         # copied from the originating UtteranceRecord
    task_id: str
    status: TaskStatus
    output_uri: str = ""   # set only once completed
    reason: str = ""       # provider's explanation for a failed task

    @property
    def settled(self) -> bool:
        return self.status.is_terminal

    def apply_status(self, status: TaskStatus, output_uri: str = "", reason: str = "") -> None:
        """Record a polled status. Settled tasks never change again."""
        if self.settled:
            raise ValueError(f"Task {self.task_id} already settled as {self.status.value}")
        self.status = status
        if status == TaskStatus.COMPLETED:
            self.output_uri = output_uri
        elif status == TaskStatus.FAILED:
            self.reason = reason


class RunState(str, Enum):
    STARTED = "started"
    PARSED = "parsed"
    DISPATCHED = "dispatched"
    ALL_SETTLED = "all_settled"
    AGGREGATED = "aggregated"
    MATERIALIZED = "materialized"
    PUBLISHED = "published"
    FAILED = "failed"
    CLEANED_UP = "cleaned_up"


@dataclass
class PipelineRun:
    """One pipeline invocation, namespaced by a fresh run id."""

    run_id: str
    state: RunState = RunState.STARTED
    history: list[RunState] = field(default_factory=lambda: [RunState.STARTED])
    cleanup_errors: list[Exception] = field(default_factory=list)

    @classmethod
    def new(cls) -> "PipelineRun":
        return cls(run_id=str(uuid.uuid4()))

    @property
    def key_prefix(self) -> str:
        """S3 key prefix for everything this run writes."""
        return f"{self.run_id}/"

    def advance(self, state: RunState) -> None:
        logger.info("run %s: %s -> %s", self.run_id, self.state.value, state.value)
        self.state = state
        self.history.append(state)

    def reached(self, state: RunState) -> bool:
        return state in self.history


@dataclass(frozen=True)
class AudioArtifact:
    path: str          # local file holding the concatenated audio
    prefix: str        # run namespace (the run id)
    filename: str      # e.g. "output.mp3"
    summary: dict = field(default_factory=dict)

    @property
    def key(self) -> str:
        return f"{self.prefix}/{self.filename}"
