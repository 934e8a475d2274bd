"""Error taxonomy for the streaming pipeline."""
from __future__ import annotations


class StreamscribeError(Exception):
    """Base class for streamscribe errors."""


class InsufficientData(StreamscribeError):
    """Buffer does not yet hold a full chunk. Internal; the scheduler just waits."""

    def __init__(self, available: int, required: int) -> None:
        super().__init__(f"need {required} samples, have {available}")
        self.available = available
        self.required = required


class InferenceFailure(StreamscribeError):
    """Transcription or diarization failed, or returned malformed data."""

    def __init__(self, message: str, stage: str | None = None) -> None:
        super().__init__(message)
        self.stage = stage  # "transcription" | "diarization" | None


class InvalidState(StreamscribeError):
    """Session operation called outside its lifecycle state."""

    def __init__(self, operation: str, state: str) -> None:
        super().__init__(f"cannot {operation} while {state}")
        self.operation = operation
        self.state = state
