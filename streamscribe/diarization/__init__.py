"""
Speaker diarization (segmentation model only).

- No audio separation; no multi-channel input.
- A segmentation model labels frames of each chunk with speaker classes;
  labels come from the model's id2label table.

Limitations (see models.py):
- Overlapping speech may be partially lost on single-channel input.
- Labels are model classes, not real identities.
"""
from __future__ import annotations

from streamscribe.diarization.base import DiarizationEngine, frames_to_segments
from streamscribe.diarization.frame_classifier import FrameClassificationDiarizer
from streamscribe.diarization.models import RawSpeakerSegment, SpeakerInterval

__all__ = [
    "DiarizationEngine",
    "FrameClassificationDiarizer",
    "RawSpeakerSegment",
    "SpeakerInterval",
    "frames_to_segments",
]
