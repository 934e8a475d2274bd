"""
ChunkScheduler: single-flight admission control over chunk processing.

- on_audio() always appends to the SampleBuffer, so audio arriving while a
  chunk is in flight is buffered, never dropped.
- When a full chunk (chunk + overlap) is ready and nothing is in flight, the
  chunk is extracted and handed to the processor as an asyncio task.
- When that task finishes (success or failure) busy is cleared and the
  offset advances by the chunk duration only; overlap is model context and
  never counts as stream time. If another full chunk accumulated meanwhile,
  it is dispatched right away.

All state lives on the event loop thread; the only suspension is inside the
processor coroutine.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

import numpy as np

from streamscribe.audio.buffer import SampleBuffer

logger = logging.getLogger(__name__)

# processor(chunk, offset_seconds, language); reports its own failures, anything it raises is only logged
ChunkProcessor = Callable[[np.ndarray, float, str], Awaitable[None]]


class ChunkScheduler:
    """Owns the SampleBuffer and the stream offset of one session."""

    def __init__(
        self,
        processor: ChunkProcessor,
        chunk_samples: int,
        overlap_samples: int,
        sample_rate: int,
        buffer: SampleBuffer | None = None,
    ) -> None:
        if chunk_samples <= 0 or overlap_samples < 0:
            raise ValueError("chunk_samples must be > 0 and overlap_samples >= 0")
        self._processor = processor
        self._chunk_samples = chunk_samples
        self._overlap_samples = overlap_samples
        self._sample_rate = sample_rate
        self._buffer = buffer if buffer is not None else SampleBuffer()
        self._busy = False
        self._offset = 0.0
        self._language = ""
        self._task: asyncio.Task | None = None
        self._chunks_dispatched = 0

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def offset(self) -> float:
        """Stream seconds covered by completed chunks."""
        return self._offset

    @property
    def buffer(self) -> SampleBuffer:
        return self._buffer

    @property
    def chunk_duration(self) -> float:
        return self._chunk_samples / float(self._sample_rate)

    @property
    def chunks_dispatched(self) -> int:
        return self._chunks_dispatched

    def on_audio(self, samples: np.ndarray, language: str) -> None:
        """Buffer samples; dispatch one chunk if ready and idle."""
        self._buffer.append(samples)
        self._language = language
        if self._busy:
            return
        self._dispatch()

    def _dispatch(self) -> None:
        if self._busy or not self._buffer.ready(self._chunk_samples, self._overlap_samples):
            return
        chunk = self._buffer.take_chunk(self._chunk_samples, self._overlap_samples)
        self._busy = True
        self._chunks_dispatched += 1
        offset = self._offset
        logger.debug(
            "Dispatching chunk #%d at offset %.2fs (%d samples, %d left buffered)",
            self._chunks_dispatched,
            offset,
            len(chunk),
            len(self._buffer),
        )
        self._task = asyncio.create_task(self._run(chunk, offset, self._language))

    async def _run(self, chunk: np.ndarray, offset: float, language: str) -> None:
        try:
            await self._processor(chunk, offset, language)
        except Exception:
            # Processor is expected to report its own failures; the stream keeps going
            logger.exception("Chunk processor raised for chunk at %.2fs", offset)
        finally:
            self._busy = False
            self._offset = offset + self.chunk_duration
            self._task = None
        self._dispatch()

    async def wait_idle(self) -> None:
        """Wait until no chunk is in flight (including chunks dispatched on completion)."""
        while self._task is not None:
            await asyncio.shield(self._task)

    def drain_remainder(self) -> np.ndarray:
        return self._buffer.drain_remainder()

    def reset(self) -> None:
        """Clear buffer and offset. Only call when idle."""
        self._buffer.reset()
        self._busy = False
        self._offset = 0.0
        self._task = None
        self._chunks_dispatched = 0
