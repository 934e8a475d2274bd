"""
AudioReceiver: accepts raw binary WebSocket frames and yields float32 sample batches.

- float32: little-endian IEEE floats (a browser Float32Array sent as-is).
- pcm16: signed 16-bit little-endian, scaled to [-1.0, 1.0].
- Frames need not align to sample boundaries; a trailing partial sample is
  kept for the next frame.
"""
from __future__ import annotations

import numpy as np

from streamscribe.config import get_settings

_SAMPLE_WIDTH = {"float32": 4, "pcm16": 2}


def pcm_bytes_to_float32(pcm_bytes: bytes) -> np.ndarray:
    """Convert PCM 16-bit mono bytes to float32 [-1.0, 1.0]."""
    samples = np.frombuffer(pcm_bytes, dtype="<i2")
    return samples.astype(np.float32) / 32768.0


def float32_bytes_to_samples(raw: bytes) -> np.ndarray:
    """Interpret little-endian float32 bytes as samples (copy, so the buffer can be reused)."""
    return np.frombuffer(raw, dtype="<f4").astype(np.float32)


class AudioReceiver:
    """
    Buffers incoming binary messages and converts whole samples to float32.
    Any remainder is kept for the next call.
    """

    def __init__(self, encoding: str | None = None) -> None:
        self._encoding = encoding or get_settings().AUDIO_ENCODING
        if self._encoding not in _SAMPLE_WIDTH:
            raise ValueError(f"Unsupported audio encoding: {self._encoding}")
        self._width = _SAMPLE_WIDTH[self._encoding]
        self._buffer = bytearray()

    def feed(self, data: bytes) -> np.ndarray:
        """Append raw bytes; return the complete samples they finish (possibly empty)."""
        self._buffer.extend(data)
        usable = len(self._buffer) - (len(self._buffer) % self._width)
        if usable == 0:
            return np.zeros(0, dtype=np.float32)
        raw = bytes(self._buffer[:usable])
        del self._buffer[:usable]
        if self._encoding == "pcm16":
            return pcm_bytes_to_float32(raw)
        return float32_bytes_to_samples(raw)

    def remaining_bytes(self) -> int:
        """Bytes left in buffer (incomplete sample)."""
        return len(self._buffer)

    def reset(self) -> None:
        self._buffer.clear()

    @property
    def encoding(self) -> str:
        return self._encoding
