"""
DiarizationEngine: two-step speaker segmentation interface.

    inputs = extract_features(audio)
    logits = classify(inputs)
    segments = post_process(logits, num_samples)

Class ids in the segments are resolved to labels through id2label, a fixed
table owned by the model configuration. diarize() runs the three steps in
executor so the event loop is never blocked.
"""
from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Mapping

import numpy as np

from streamscribe.diarization.models import RawSpeakerSegment


def frames_to_segments(logits: np.ndarray, num_samples: int, sample_rate: int) -> list[RawSpeakerSegment]:
    """
    Turn per-frame class logits (frames x classes) into contiguous segments.

    Each frame takes the argmax of its softmax; runs of the same id merge into
    one segment whose confidence is the mean winning probability. Frame indices
    are scaled to seconds by (num_samples / num_frames) / sample_rate.
    """
    scores = np.asarray(logits, dtype=np.float64)
    if scores.ndim == 3:
        # (batch, frames, classes): one chunk per call
        scores = scores[0]
    if scores.ndim != 2 or scores.shape[0] == 0:
        return []
    shifted = scores - scores.max(axis=1, keepdims=True)
    probs = np.exp(shifted)
    probs /= probs.sum(axis=1, keepdims=True)
    ids = probs.argmax(axis=1)
    best = probs.max(axis=1)

    ratio = (num_samples / scores.shape[0]) / float(sample_rate)
    segments: list[RawSpeakerSegment] = []
    run_id = int(ids[0])
    run_start = 0
    run_score = 0.0
    for i, (frame_id, score) in enumerate(zip(ids, best)):
        if int(frame_id) != run_id:
            segments.append(
                RawSpeakerSegment(
                    id=run_id,
                    start=run_start * ratio,
                    end=i * ratio,
                    confidence=run_score / (i - run_start),
                )
            )
            run_id = int(frame_id)
            run_start = i
            run_score = 0.0
        run_score += float(score)
    end = scores.shape[0]
    segments.append(
        RawSpeakerSegment(
            id=run_id,
            start=run_start * ratio,
            end=end * ratio,
            confidence=run_score / (end - run_start),
        )
    )
    return segments


class DiarizationEngine(ABC):
    """Abstract speaker-segmentation model. Accepts float32 mono audio."""

    @abstractmethod
    def extract_features(self, audio: np.ndarray) -> Any:
        """Model inputs for one chunk of audio."""
        ...

    @abstractmethod
    def classify(self, inputs: Any) -> np.ndarray:
        """Per-frame class logits, shape (frames, classes) or (1, frames, classes)."""
        ...

    @abstractmethod
    def post_process(self, logits: np.ndarray, num_samples: int) -> list[RawSpeakerSegment]:
        """Convert logits for a chunk of num_samples samples into id/start/end segments."""
        ...

    @property
    @abstractmethod
    def id2label(self) -> Mapping[int, str]:
        """Fixed model class id -> label table."""
        ...

    def _diarize_sync(self, audio: np.ndarray) -> list[RawSpeakerSegment]:
        inputs = self.extract_features(audio)
        logits = self.classify(inputs)
        return self.post_process(logits, len(audio))

    async def diarize(self, audio: np.ndarray) -> list[RawSpeakerSegment]:
        """Run the three steps in executor so event loop is not blocked."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._diarize_sync, audio)
