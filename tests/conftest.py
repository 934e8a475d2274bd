"""Pytest configuration and fixtures for streamscribe tests."""
from __future__ import annotations

import asyncio
import logging
from typing import Callable, Mapping

import numpy as np
import pytest

from streamscribe.asr.base import ASREngine, ASRResult, WordTimestamp
from streamscribe.diarization.base import DiarizationEngine
from streamscribe.diarization.models import RawSpeakerSegment
from streamscribe.inference import InferenceInvoker, ModelHandle

logging.basicConfig(level=logging.INFO)

SAMPLE_RATE = 16000


class FakeTranscriber(ASREngine):
    """
    Scripted ASR. `words` may be a list (returned for every chunk) or a
    callable taking the call index. `gate` (asyncio.Event) holds each call
    until set; `error` makes every call fail.
    """

    def __init__(self, words=None, gate: asyncio.Event | None = None, error: Exception | None = None) -> None:
        self.words = words if words is not None else []
        self.gate = gate
        self.error = error
        self.calls: list[tuple[int, str]] = []
        self.active = 0
        self.max_active = 0

    async def transcribe(self, audio: np.ndarray, language: str) -> ASRResult:
        index = len(self.calls)
        self.calls.append((len(audio), language))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.gate is not None:
                await self.gate.wait()
            else:
                await asyncio.sleep(0)
            if self.error is not None:
                raise self.error
            words = self.words(index) if callable(self.words) else self.words
            return ASRResult(
                text=" ".join(w.word for w in words),
                word_timestamps=[WordTimestamp(w.word, w.start, w.end) for w in words],
            )
        finally:
            self.active -= 1

    @property
    def sample_rate(self) -> int:
        return SAMPLE_RATE


class FakeDiarizer(DiarizationEngine):
    """Scripted segmentation: post_process returns `segments` regardless of logits."""

    def __init__(self, segments: list[RawSpeakerSegment] | None = None, labels: Mapping[int, str] | None = None) -> None:
        self.segments = segments or []
        self._labels = dict(labels or {0: "SPEAKER_00", 1: "SPEAKER_01"})
        self.calls = 0

    def extract_features(self, audio: np.ndarray):
        self.calls += 1
        return audio

    def classify(self, inputs) -> np.ndarray:
        return np.zeros((1, 2), dtype=np.float32)

    def post_process(self, logits: np.ndarray, num_samples: int) -> list[RawSpeakerSegment]:
        return [RawSpeakerSegment(s.id, s.start, s.end, s.confidence) for s in self.segments]

    @property
    def id2label(self) -> Mapping[int, str]:
        return self._labels


@pytest.fixture
def fake_transcriber() -> FakeTranscriber:
    return FakeTranscriber()


@pytest.fixture
def fake_diarizer() -> FakeDiarizer:
    return FakeDiarizer()


@pytest.fixture
def model_handle(fake_transcriber, fake_diarizer) -> ModelHandle:
    return ModelHandle(transcriber=fake_transcriber, diarizer=fake_diarizer)


@pytest.fixture
def invoker(model_handle) -> InferenceInvoker:
    return InferenceInvoker(model_handle)


@pytest.fixture
def audio_test_data() -> Callable[..., np.ndarray]:
    """Generate float32 audio for testing."""

    def generate_audio(duration_seconds: float = 1.0, pattern: str = "sine", sample_rate: int = SAMPLE_RATE) -> np.ndarray:
        samples = int(round(duration_seconds * sample_rate))
        if pattern == "sine":
            t = np.arange(samples) / sample_rate
            return (0.5 * np.sin(2 * np.pi * 440 * t)).astype(np.float32)
        if pattern == "silence":
            return np.zeros(samples, dtype=np.float32)
        if pattern == "ramp":
            return np.arange(samples, dtype=np.float32)
        raise ValueError(f"Unknown pattern: {pattern}")

    return generate_audio


def w(word: str, start: float, end: float) -> WordTimestamp:
    return WordTimestamp(word=word, start=start, end=end)
