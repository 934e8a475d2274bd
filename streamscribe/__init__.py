"""Streaming speaker-attributed transcription over overlapping audio chunks."""

__version__ = "0.1.0"
