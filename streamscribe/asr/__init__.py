"""ASR: swappable Whisper-compatible engines with word timestamps."""
from .base import ASREngine, ASRResult, WordTimestamp
from .local_whisper import LocalWhisperEngine, load_whisper_model
from .cloudflare import CloudflareWhisperEngine

__all__ = [
    "ASREngine",
    "ASRResult",
    "WordTimestamp",
    "LocalWhisperEngine",
    "CloudflareWhisperEngine",
    "load_whisper_model",
]
