"""Transcript handling: timeline alignment and speaker-attributed merging."""
from .aligner import AlignedResult, align
from .merger import TranscriptMerger, TranscriptSegment, resolve_speaker

__all__ = ["AlignedResult", "align", "TranscriptMerger", "TranscriptSegment", "resolve_speaker"]
