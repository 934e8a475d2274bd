"""
ASREngine: abstract interface for Whisper-compatible ASR with word timestamps.

Implementations: LocalWhisperEngine (faster-whisper), CloudflareWhisperEngine.
All run heavy work in executor to avoid blocking the event loop.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import numpy as np


@dataclass
class WordTimestamp:
    """Single word with start/end in seconds (chunk-local until aligned)."""

    word: str
    start: float
    end: float

    @property
    def midpoint(self) -> float:
        return (self.start + self.end) / 2.0


@dataclass
class ASRResult:
    """Result of one ASR transcribe call."""

    text: str
    word_timestamps: list[WordTimestamp] | None = None
    language: str | None = None


class ASREngine(ABC):
    """
    Abstract ASR engine. Accepts float32 mono audio (normalized [-1, 1]).
    transcribe() is async; implementations may run sync work in executor.
    """

    @abstractmethod
    async def transcribe(self, audio: "np.ndarray", language: str) -> ASRResult:
        """
        Transcribe one chunk of audio with word-level timestamps.
        language: ISO code hint, or "auto" to let the model detect it.
        Must not block event loop; run heavy work in executor.
        """
        ...

    @property
    @abstractmethod
    def sample_rate(self) -> int:
        """Expected sample rate (e.g. 16000)."""
        ...
