"""Segmentation post-processing and the transformers-backed diarizer."""
from types import SimpleNamespace

import numpy as np
import pytest

from streamscribe.diarization.base import frames_to_segments
from streamscribe.diarization.frame_classifier import FrameClassificationDiarizer


def _logits(ids, classes=3, strength=5.0):
    out = np.zeros((len(ids), classes), dtype=np.float32)
    for i, k in enumerate(ids):
        out[i, k] = strength
    return out


def test_runs_of_same_class_merge():
    # 10 frames over 16000 samples at 16 kHz -> 0.1s per frame
    segments = frames_to_segments(_logits([0, 0, 1, 1, 1, 2, 2, 2, 2, 0]), 16000, 16000)
    assert [s.id for s in segments] == [0, 1, 2, 0]
    assert [(round(s.start, 3), round(s.end, 3)) for s in segments] == [
        (0.0, 0.2),
        (0.2, 0.5),
        (0.5, 0.9),
        (0.9, 1.0),
    ]


def test_confidence_is_mean_winning_probability():
    segments = frames_to_segments(_logits([1, 1], classes=2, strength=0.0), 3200, 16000)
    assert len(segments) == 1
    assert segments[0].confidence == pytest.approx(0.5)


def test_batch_dimension_accepted():
    batched = _logits([0, 1])[None, ...]
    segments = frames_to_segments(batched, 32000, 16000)
    assert [s.id for s in segments] == [0, 1]
    assert segments[-1].end == pytest.approx(2.0)


def test_empty_logits():
    assert frames_to_segments(np.zeros((0, 3)), 16000, 16000) == []


def test_frame_classifier_reads_id2label_from_config():
    model = SimpleNamespace(config=SimpleNamespace(id2label={"0": "SPEAKER_00", "1": "SPEAKER_01"}))
    diarizer = FrameClassificationDiarizer(feature_extractor=None, model=model, sample_rate=16000)
    assert diarizer.id2label == {0: "SPEAKER_00", 1: "SPEAKER_01"}
    segments = diarizer.post_process(_logits([1, 1, 0, 0], classes=2), 16000)
    assert [s.id for s in segments] == [1, 0]
    assert segments[1].start == pytest.approx(0.5)


@pytest.mark.asyncio
async def test_diarize_runs_all_three_steps():
    steps = []

    class Stub(FrameClassificationDiarizer):
        def extract_features(self, audio):
            steps.append("features")
            return {"input_values": audio}

        def classify(self, inputs):
            steps.append("classify")
            return _logits([0, 0, 1, 1], classes=2)

    model = SimpleNamespace(config=SimpleNamespace(id2label={0: "A", 1: "B"}))
    segments = await Stub(None, model, sample_rate=16000).diarize(np.zeros(8000, dtype=np.float32))
    assert steps == ["features", "classify"]
    assert [(s.id, s.end) for s in segments] == [(0, pytest.approx(0.25)), (1, pytest.approx(0.5))]
