"""
Speaker interval structures for the diarization pipeline.

RawSpeakerSegment is what a segmentation model's post-processing yields: a
model-internal class id over a time range. SpeakerInterval is the same range
with the id resolved to a human-readable label via the model's id2label table.

Times are seconds, chunk-local until the timeline aligner shifts them.

Limitations (diarization-only, single channel):
- Overlapping speech may be partially lost; we do not separate audio.
- Speaker labels are per-chunk model classes; we do not infer real identities.
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass
class RawSpeakerSegment:
    """Post-processed model output: class id, start/end seconds, mean frame confidence."""

    id: int
    start: float
    end: float
    confidence: float = 1.0


@dataclass
class SpeakerInterval:
    """
    One labelled speaker interval.

    label: id2label[id], e.g. "SPEAKER_00".
    start, end: seconds; inclusive on both ends when matching word midpoints.
    """

    label: str
    start: float
    end: float
    id: int = -1
    confidence: float = 1.0

    def contains(self, t: float) -> bool:
        return self.start <= t <= self.end
