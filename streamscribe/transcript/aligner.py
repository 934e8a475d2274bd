"""
Timeline alignment: shift chunk-local timestamps onto the stream timeline.

Models see each chunk starting at 0s. Adding the stream offset of the chunk
(sum of earlier chunk durations, overlap excluded) places words and speaker
intervals on one continuous timeline. Apply exactly once per result.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace

from streamscribe.asr.base import WordTimestamp
from streamscribe.diarization.models import SpeakerInterval


@dataclass
class AlignedResult:
    """Words and speaker intervals of one chunk, in stream seconds."""

    offset: float
    words: list[WordTimestamp] = field(default_factory=list)
    intervals: list[SpeakerInterval] = field(default_factory=list)


def align(words: list[WordTimestamp], intervals: list[SpeakerInterval], offset: float) -> AlignedResult:
    """Return copies of words and intervals with offset added to every start/end."""
    return AlignedResult(
        offset=offset,
        words=[replace(w, start=w.start + offset, end=w.end + offset) for w in words],
        intervals=[replace(s, start=s.start + offset, end=s.end + offset) for s in intervals],
    )
