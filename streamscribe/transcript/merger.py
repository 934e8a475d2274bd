"""
TranscriptMerger: fuses word timestamps with speaker intervals into speaker blocks.

- Each word is attributed by its midpoint: the first interval (in list order)
  whose [start, end] contains it wins. No match means "no speaker" (None),
  which is a speaker state of its own.
- A new segment starts only when the resolved speaker changes; words under
  the same speaker are joined with single spaces.
- The current speaker is session-scoped: when an update opens with the
  speaker that closed the previous update, its first segment is flagged as a
  continuation instead of being treated as a new turn.
- Segments are appended to the session transcript, never rewritten.
"""
from __future__ import annotations

from dataclasses import dataclass

from streamscribe.asr.base import WordTimestamp
from streamscribe.diarization.models import SpeakerInterval


@dataclass
class TranscriptSegment:
    """
    One speaker-attributed text block.

    speaker: interval label, or None when no interval covered the words.
    start, end: stream seconds of the first/last word.
    continuation: True when this block continues the last block of the previous update.
    """

    speaker: str | None
    text: str
    start: float
    end: float
    continuation: bool = False


def resolve_speaker(t: float, intervals: list[SpeakerInterval]) -> str | None:
    """Label of the first interval containing t, else None."""
    for interval in intervals:
        if interval.contains(t):
            return interval.label
    return None


class TranscriptMerger:
    """Session-scoped merger; keeps the current speaker and the cumulative transcript."""

    def __init__(self) -> None:
        self._current_speaker: str | None = None
        self._has_output = False
        self._transcript: list[TranscriptSegment] = []

    def merge(self, words: list[WordTimestamp], intervals: list[SpeakerInterval]) -> list[TranscriptSegment]:
        """Group words into segments by resolved speaker; append and return the new segments."""
        segments: list[TranscriptSegment] = []
        current: TranscriptSegment | None = None
        parts: list[str] = []

        for word in sorted(words, key=lambda w: w.start):
            speaker = resolve_speaker(word.midpoint, intervals)
            if current is None:
                current = TranscriptSegment(
                    speaker=speaker,
                    text="",
                    start=word.start,
                    end=word.end,
                    continuation=self._has_output and speaker == self._current_speaker,
                )
            elif speaker != self._current_speaker:
                current.text = " ".join(parts)
                segments.append(current)
                parts = []
                current = TranscriptSegment(speaker=speaker, text="", start=word.start, end=word.end)
            self._current_speaker = speaker
            parts.append(word.word)
            current.end = word.end

        if current is not None:
            current.text = " ".join(parts)
            segments.append(current)
            self._has_output = True

        self._transcript.extend(segments)
        return segments

    @property
    def current_speaker(self) -> str | None:
        return self._current_speaker

    @property
    def transcript(self) -> list[TranscriptSegment]:
        """All segments emitted this session, in order."""
        return list(self._transcript)

    def transcript_blocks(self) -> list[TranscriptSegment]:
        """Cumulative transcript with continuations folded into the block they continue."""
        blocks: list[TranscriptSegment] = []
        for seg in self._transcript:
            if seg.continuation and blocks:
                last = blocks[-1]
                last.text = f"{last.text} {seg.text}"
                last.end = seg.end
            else:
                blocks.append(TranscriptSegment(seg.speaker, seg.text, seg.start, seg.end))
        return blocks

    def reset(self) -> None:
        self._current_speaker = None
        self._has_output = False
        self._transcript = []
