"""
StreamSession: start/feed/stop lifecycle around one ChunkScheduler.

States: IDLE -> STREAMING -> IDLE. Each processed chunk goes through
InferenceInvoker -> align -> TranscriptMerger and is reported as a
PartialTranscript event. Chunk-level failures are caught here and reported
as Error events; streaming continues with the next chunk. The failed
chunk's audio is not re-queued.

feed/stop while IDLE (or start while STREAMING) raise InvalidState; the
host reports it to the client and session state is left untouched.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Callable

import numpy as np

from streamscribe.config import get_settings
from streamscribe.errors import InferenceFailure, InvalidState
from streamscribe.events import (
    Command,
    Error,
    Feed,
    PartialTranscript,
    Progress,
    SessionEvent,
    Start,
    Stop,
    Stopped,
)
from streamscribe.inference import InferenceInvoker
from streamscribe.scheduler import ChunkScheduler
from streamscribe.transcript.aligner import align
from streamscribe.transcript.merger import TranscriptMerger, TranscriptSegment

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    IDLE = "idle"
    STREAMING = "streaming"


class StreamSession:
    """One live stream: owns the scheduler (buffer + offset) and the merger (speaker state)."""

    def __init__(
        self,
        invoker: InferenceInvoker,
        emit: Callable[[SessionEvent], None],
        chunk_samples: int | None = None,
        overlap_samples: int | None = None,
        sample_rate: int | None = None,
    ) -> None:
        settings = get_settings()
        self._invoker = invoker
        self._emit = emit
        self._sample_rate = sample_rate or settings.SAMPLE_RATE
        self._scheduler = ChunkScheduler(
            self._process_chunk,
            chunk_samples=chunk_samples if chunk_samples is not None else settings.chunk_samples,
            overlap_samples=overlap_samples if overlap_samples is not None else settings.overlap_samples,
            sample_rate=self._sample_rate,
        )
        self._merger = TranscriptMerger()
        self._state = SessionState.IDLE
        self._stopping = False

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def scheduler(self) -> ChunkScheduler:
        return self._scheduler

    @property
    def transcript(self) -> list[TranscriptSegment]:
        return self._merger.transcript

    def start(self, language: str) -> None:
        if self._state is not SessionState.IDLE:
            raise InvalidState("start", self._state.value)
        self._reset()
        self._state = SessionState.STREAMING
        logger.info("Session started (language=%s)", language)
        self._emit(Progress(status="streaming", message="Started streaming mode"))

    def feed(self, samples: np.ndarray, language: str) -> None:
        if self._state is not SessionState.STREAMING or self._stopping:
            raise InvalidState("feed", "stopping" if self._stopping else self._state.value)
        self._scheduler.on_audio(samples, language)

    async def stop(self, language: str) -> None:
        """Let the in-flight chunk finish, flush the remainder as a final pass, reset to IDLE."""
        if self._state is not SessionState.STREAMING or self._stopping:
            raise InvalidState("stop", "stopping" if self._stopping else self._state.value)
        self._stopping = True
        try:
            await self._scheduler.wait_idle()
            remainder = self._scheduler.drain_remainder()
            if remainder.size > 0:
                logger.info(
                    "Flushing %.2fs of buffered audio at offset %.2fs",
                    remainder.size / float(self._sample_rate),
                    self._scheduler.offset,
                )
                await self._run_pass(remainder, self._scheduler.offset, language, final=True)
            total = len(self._merger.transcript)
        finally:
            self._reset()
            self._state = SessionState.IDLE
            self._stopping = False
        logger.info("Session stopped (%d segments)", total)
        self._emit(Stopped(segments_total=total))

    async def handle(self, command: Command) -> None:
        """Dispatch one command from the host."""
        if isinstance(command, Start):
            self.start(command.language)
        elif isinstance(command, Feed):
            self.feed(command.samples, command.language)
        elif isinstance(command, Stop):
            await self.stop(command.language)
        else:
            raise TypeError(f"Unknown command: {command!r}")

    def _reset(self) -> None:
        self._scheduler.reset()
        self._merger.reset()

    async def _process_chunk(self, chunk: np.ndarray, offset: float, language: str) -> None:
        await self._run_pass(chunk, offset, language, final=False)
        self._emit(
            Progress(
                status="chunk",
                message="Chunk processed",
                offset=offset + self._scheduler.chunk_duration,
            )
        )

    async def _run_pass(self, chunk: np.ndarray, offset: float, language: str, final: bool) -> None:
        """inference -> align -> merge -> emit. Never raises for chunk-level failures."""
        try:
            raw = await self._invoker.invoke(chunk, language)
            aligned = align(raw.words, raw.intervals, offset)
            segments = self._merger.merge(aligned.words, aligned.intervals)
        except InferenceFailure as exc:
            logger.warning("Inference failed for chunk at %.2fs (%s): %s", offset, exc.stage, exc)
            self._emit(Error(message=str(exc), kind="inference", offset=offset))
            return
        except Exception as exc:
            logger.exception("Chunk processing failed at %.2fs", offset)
            self._emit(Error(message=str(exc), kind="error", offset=offset))
            return
        logger.debug("Chunk at %.2fs: %d words -> %d segments", offset, len(aligned.words), len(segments))
        self._emit(PartialTranscript(segments=segments, offset=offset, final=final))
