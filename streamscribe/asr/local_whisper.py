"""
LocalWhisperEngine: Whisper-compatible ASR using faster-whisper.

- Model loaded ONCE per process (held by ModelHandle, injected at construction).
- Always decodes with word_timestamps so words can be attributed to speakers.
- Audio: float32 mono [-1, 1].
- Runs in executor so event loop stays responsive.
"""
from __future__ import annotations

import asyncio
from typing import Any

import numpy as np

from streamscribe.asr.base import ASREngine, ASRResult, WordTimestamp
from streamscribe.config import get_settings

# Type for shared WhisperModel
WhisperModelT = Any


def load_whisper_model() -> WhisperModelT:
    """Load the faster-whisper model described by settings."""
    try:
        from faster_whisper import WhisperModel
    except ImportError as err:
        raise ImportError(
            "faster-whisper is required for ASR_BACKEND=local. "
            "Install with: pip install faster-whisper"
        ) from err
    settings = get_settings()
    return WhisperModel(
        settings.LOCAL_WHISPER_MODEL,
        device=settings.LOCAL_WHISPER_DEVICE,
        compute_type=settings.LOCAL_WHISPER_COMPUTE_TYPE,
    )


class LocalWhisperEngine(ASREngine):
    """
    Local Whisper via faster-whisper. Uses shared model.
    transcribe() is async; heavy work runs in executor.
    """

    def __init__(self, model: WhisperModelT, beam_size: int | None = None) -> None:
        self._model = model
        self._beam_size = beam_size or get_settings().LOCAL_WHISPER_BEAM_SIZE

    def _transcribe_sync(self, audio: np.ndarray, language: str) -> ASRResult:
        segments, info = self._model.transcribe(
            audio,
            language=None if language in ("", "auto") else language,
            beam_size=self._beam_size,
            word_timestamps=True,
            condition_on_previous_text=False,
        )

        parts: list[str] = []
        words: list[WordTimestamp] = []
        for seg in segments:
            t = (seg.text or "").strip()
            if t:
                parts.append(t)
            for w in getattr(seg, "words", None) or []:
                token = (w.word or "").strip()
                if not token:
                    continue
                words.append(WordTimestamp(word=token, start=float(w.start), end=float(w.end)))

        return ASRResult(
            text=" ".join(parts).strip(),
            word_timestamps=words,
            language=getattr(info, "language", None),
        )

    async def transcribe(self, audio: np.ndarray, language: str) -> ASRResult:
        """Run _transcribe_sync in executor so event loop is not blocked."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None,
            self._transcribe_sync,
            audio,
            language,
        )

    @property
    def sample_rate(self) -> int:
        return get_settings().SAMPLE_RATE
