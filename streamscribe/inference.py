"""
Model handle and inference invoker.

ModelHandle: the process-wide transcriber/diarizer pair. Constructed once
(FastAPI lifespan), loaded lazily on first use (or at startup with
PRELOAD_MODELS), never torn down before exit, shared read-only by sessions.

InferenceInvoker: runs transcription and diarization concurrently on the
same chunk, waits for both, and returns chunk-local words and labelled
speaker intervals. Any collaborator error or malformed output becomes an
InferenceFailure carrying the first error to complete.
"""
from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Mapping

import numpy as np

from streamscribe.asr.base import ASREngine, WordTimestamp
from streamscribe.config import Settings, get_settings
from streamscribe.diarization.base import DiarizationEngine
from streamscribe.diarization.models import RawSpeakerSegment, SpeakerInterval
from streamscribe.errors import InferenceFailure

logger = logging.getLogger(__name__)

# Called with a human-readable status message while models load
ProgressCallback = Callable[[str], None]


@dataclass
class InferenceResult:
    """Raw, chunk-local output of one inference pass."""

    words: list[WordTimestamp] = field(default_factory=list)
    intervals: list[SpeakerInterval] = field(default_factory=list)


def _build_transcriber(settings: Settings) -> ASREngine:
    if settings.ASR_BACKEND == "cloudflare":
        from streamscribe.asr.cloudflare import CloudflareWhisperEngine

        return CloudflareWhisperEngine()
    from streamscribe.asr.local_whisper import LocalWhisperEngine, load_whisper_model

    return LocalWhisperEngine(model=load_whisper_model())


def _build_diarizer(settings: Settings) -> DiarizationEngine | None:
    if not settings.DIARIZATION_ENABLED:
        return None
    from streamscribe.diarization.frame_classifier import FrameClassificationDiarizer

    return FrameClassificationDiarizer.from_pretrained(settings.DIARIZATION_MODEL, settings.DIARIZATION_DEVICE)


class ModelHandle:
    """
    Init-once holder for the model pair. Engines may be injected (tests,
    custom backends); otherwise they are built from settings on first
    ensure_loaded().
    """

    def __init__(
        self,
        transcriber: ASREngine | None = None,
        diarizer: DiarizationEngine | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._transcriber = transcriber
        self._diarizer = diarizer
        self._loaded = transcriber is not None
        self._lock = asyncio.Lock()

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def transcriber(self) -> ASREngine:
        if self._transcriber is None:
            raise RuntimeError("Models not loaded (call ensure_loaded first)")
        return self._transcriber

    @property
    def diarizer(self) -> DiarizationEngine | None:
        return self._diarizer

    def _load_sync(self) -> None:
        settings = self._settings
        self._transcriber = _build_transcriber(settings)
        self._diarizer = _build_diarizer(settings)

    async def ensure_loaded(self, progress: ProgressCallback | None = None) -> None:
        """Load models once per process. Concurrent callers wait for the same load."""
        if self._loaded:
            return
        async with self._lock:
            if self._loaded:
                return
            settings = self._settings
            device = settings.LOCAL_WHISPER_DEVICE if settings.ASR_BACKEND == "local" else "remote"
            if progress:
                progress(f"Loading models ({settings.ASR_BACKEND} ASR on {device})...")
            logger.info(
                "Loading models: asr=%s diarization=%s",
                settings.ASR_BACKEND,
                settings.DIARIZATION_MODEL if settings.DIARIZATION_ENABLED else "disabled",
            )
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, self._load_sync)
            if settings.WARMUP_ON_LOAD:
                if progress:
                    progress("Warming up model...")
                await self.warmup()
            # Only a load that survived warm-up counts; a failed one is retried on the next call
            self._loaded = True
            logger.info("Models loaded")

    async def warmup(self) -> None:
        """Transcribe one second of silence so the first real chunk is not slowed by lazy init."""
        silence = np.zeros(self._settings.SAMPLE_RATE, dtype=np.float32)
        await self.transcriber.transcribe(silence, self._settings.DEFAULT_LANGUAGE)


def _check_timestamps(start: float, end: float, what: str) -> None:
    if not (math.isfinite(start) and math.isfinite(end)) or start < 0 or end < start:
        raise InferenceFailure(f"malformed {what} timestamps: start={start} end={end}")


def label_segments(segments: list[RawSpeakerSegment], id2label: Mapping[int, str]) -> list[SpeakerInterval]:
    """Resolve model class ids to labels. Unknown ids are malformed output."""
    intervals: list[SpeakerInterval] = []
    for seg in segments:
        if seg.id not in id2label:
            raise InferenceFailure(f"diarization class id {seg.id} has no label", stage="diarization")
        _check_timestamps(seg.start, seg.end, "speaker interval")
        intervals.append(
            SpeakerInterval(
                label=id2label[seg.id],
                start=float(seg.start),
                end=float(seg.end),
                id=seg.id,
                confidence=float(seg.confidence),
            )
        )
    return intervals


class InferenceInvoker:
    """Calls the transcriber and diarizer of a ModelHandle concurrently on one chunk."""

    def __init__(self, models: ModelHandle) -> None:
        self._models = models

    async def _transcribe(self, chunk: np.ndarray, language: str) -> list[WordTimestamp]:
        result = await self._models.transcriber.transcribe(chunk, language)
        words = result.word_timestamps or []
        for w in words:
            _check_timestamps(w.start, w.end, "word")
        return words

    async def _diarize(self, chunk: np.ndarray) -> list[SpeakerInterval]:
        diarizer = self._models.diarizer
        if diarizer is None:
            return []
        segments = await diarizer.diarize(chunk)
        return label_segments(segments, diarizer.id2label)

    async def invoke(self, chunk: np.ndarray, language: str) -> InferenceResult:
        """Run both models on the same chunk; raise InferenceFailure if either fails."""
        try:
            await self._models.ensure_loaded()
        except Exception as exc:
            raise InferenceFailure(f"model load failed: {exc}") from exc

        transcription = asyncio.ensure_future(self._transcribe(chunk, language))
        diarization = asyncio.ensure_future(self._diarize(chunk))
        stages = {transcription: "transcription", diarization: "diarization"}

        first_error: BaseException | None = None
        first_stage: str | None = None
        pending = set(stages)
        # Both calls always run to completion; the first failure to finish is reported
        while pending:
            done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                exc = task.exception()
                if exc is not None and first_error is None:
                    first_error = exc
                    first_stage = stages[task]

        if first_error is not None:
            if isinstance(first_error, InferenceFailure):
                first_error.stage = first_error.stage or first_stage
                raise first_error
            raise InferenceFailure(f"{first_stage} failed: {first_error}", stage=first_stage) from first_error

        return InferenceResult(words=transcription.result(), intervals=diarization.result())
