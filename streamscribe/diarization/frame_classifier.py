"""
FrameClassificationDiarizer: speaker segmentation with a Hugging Face
audio-frame-classification model (e.g. wav2vec2 fine-tuned for SUPERB SD).

- Feature extractor and model loaded ONCE per process (held by ModelHandle).
- classify() runs under torch.no_grad(); logits are returned as numpy.
- id2label comes from the model config.
"""
from __future__ import annotations

import logging
from typing import Any, Mapping

import numpy as np

from streamscribe.config import get_settings
from streamscribe.diarization.base import DiarizationEngine, frames_to_segments
from streamscribe.diarization.models import RawSpeakerSegment

logger = logging.getLogger(__name__)


class FrameClassificationDiarizer(DiarizationEngine):
    """Wraps a transformers feature extractor + AutoModelForAudioFrameClassification."""

    def __init__(self, feature_extractor: Any, model: Any, sample_rate: int | None = None, device: str = "cpu") -> None:
        self._feature_extractor = feature_extractor
        self._model = model
        self._sample_rate = sample_rate or get_settings().SAMPLE_RATE
        self._device = device
        raw = getattr(model.config, "id2label", None) or {}
        self._id2label = {int(k): str(v) for k, v in raw.items()}

    @classmethod
    def from_pretrained(cls, model_id: str | None = None, device: str | None = None) -> "FrameClassificationDiarizer":
        """Load feature extractor and model from the Hub (or local cache)."""
        from transformers import AutoFeatureExtractor, AutoModelForAudioFrameClassification

        settings = get_settings()
        model_id = model_id or settings.DIARIZATION_MODEL
        device = device or settings.DIARIZATION_DEVICE
        logger.info("Loading diarization model %s on %s", model_id, device)
        feature_extractor = AutoFeatureExtractor.from_pretrained(model_id)
        model = AutoModelForAudioFrameClassification.from_pretrained(model_id)
        model.to(device)
        model.eval()
        return cls(feature_extractor, model, sample_rate=settings.SAMPLE_RATE, device=device)

    def extract_features(self, audio: np.ndarray) -> Any:
        inputs = self._feature_extractor(
            audio,
            sampling_rate=self._sample_rate,
            return_tensors="pt",
        )
        return {k: v.to(self._device) for k, v in inputs.items()}

    def classify(self, inputs: Any) -> np.ndarray:
        import torch

        with torch.no_grad():
            logits = self._model(**inputs).logits
        return logits.detach().cpu().numpy()

    def post_process(self, logits: np.ndarray, num_samples: int) -> list[RawSpeakerSegment]:
        return frames_to_segments(logits, num_samples, self._sample_rate)

    @property
    def id2label(self) -> Mapping[int, str]:
        return self._id2label
