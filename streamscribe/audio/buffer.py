"""
SampleBuffer: append-only float32 sample store, drained by prefix.

- append() accepts batches of any size.
- take_chunk() returns chunk + overlap samples but drops only the chunk part,
  so the overlap becomes the head of the next chunk (left context for the models).
- drain_remainder() empties the buffer on stream stop (final partial chunk).

Storage is one numpy array with a moving head index. Capacity grows
geometrically and live samples are compacted to the front only when growing,
so sustained streaming stays amortized O(n) instead of reallocating per append.
"""
from __future__ import annotations

import numpy as np

from streamscribe.errors import InsufficientData

_MIN_CAPACITY = 16000


class SampleBuffer:
    """Ordered float32 samples; never reordered, only a contiguous prefix is ever removed."""

    def __init__(self, initial_capacity: int = _MIN_CAPACITY) -> None:
        self._initial_capacity = max(1, initial_capacity)
        self._data = np.zeros(self._initial_capacity, dtype=np.float32)
        self._head = 0
        self._tail = 0

    def __len__(self) -> int:
        return self._tail - self._head

    def append(self, samples: np.ndarray) -> None:
        """Concatenate a batch to the tail."""
        batch = np.asarray(samples, dtype=np.float32).reshape(-1)
        n = batch.size
        if n == 0:
            return
        if self._tail + n > self._data.size:
            self._grow(n)
        self._data[self._tail : self._tail + n] = batch
        self._tail += n

    def _grow(self, extra: int) -> None:
        size = len(self)
        needed = size + extra
        if needed <= self._data.size // 2:
            # Plenty of room once the drained prefix is reclaimed
            self._data[:size] = self._data[self._head : self._tail]
        else:
            capacity = self._data.size
            while capacity < needed * 2:
                capacity *= 2
            data = np.zeros(capacity, dtype=np.float32)
            data[:size] = self._data[self._head : self._tail]
            self._data = data
        self._head = 0
        self._tail = size

    def ready(self, chunk_samples: int, overlap_samples: int) -> bool:
        return len(self) >= chunk_samples + overlap_samples

    def take_chunk(self, chunk_samples: int, overlap_samples: int) -> np.ndarray:
        """
        Return the first chunk_samples + overlap_samples samples (a copy) and drop
        the first chunk_samples. Raises InsufficientData when not ready().
        """
        required = chunk_samples + overlap_samples
        if len(self) < required:
            raise InsufficientData(len(self), required)
        chunk = self._data[self._head : self._head + required].copy()
        self._head += chunk_samples
        return chunk

    def drain_remainder(self) -> np.ndarray:
        """Return and clear everything buffered, regardless of size."""
        out = self._data[self._head : self._tail].copy()
        self._head = 0
        self._tail = 0
        return out

    def reset(self) -> None:
        self._data = np.zeros(self._initial_capacity, dtype=np.float32)
        self._head = 0
        self._tail = 0

    def duration_seconds(self, sample_rate: int) -> float:
        return len(self) / float(sample_rate)
