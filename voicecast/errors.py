"""Exception taxonomy for the voicecast pipeline."""


class VoicecastError(RuntimeError):
    """Base error. `stage` names the pipeline step that raised it."""

    stage = "pipeline"

    def __init__(self, detail: str, *, stage: str | None = None) -> None:
        super().__init__(detail)
        self.detail = detail
        if stage is not None:
            self.stage = stage


class MissingInputError(VoicecastError):
    stage = "input"


class ValidationError(VoicecastError):
    stage = "parse"


class StorageError(VoicecastError):
    stage = "storage"


class SynthesisError(VoicecastError):
    """Provider-side failure; raised directly when a status poll fails."""

    stage = "synthesis"


class SubmissionError(SynthesisError):
    stage = "dispatch"


class SynthesisFailedError(SynthesisError):
    stage = "tracking"

    def __init__(self, detail: str, *, failed: dict[int, str] | None = None) -> None:
        super().__init__(detail)
        self.failed = failed or {}   # utterance index -> provider reason


class SynthesisTimeoutError(SynthesisError, TimeoutError):
    stage = "tracking"

    def __init__(self, detail: str, *, pending: list[int] | None = None) -> None:
        super().__init__(detail)
        self.pending = pending or []


class IncompleteResultError(VoicecastError):
    stage = "aggregate"


class CleanupError(VoicecastError):
    stage = "cleanup"
