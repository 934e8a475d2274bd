"""Audio pipeline: receive wire frames, buffer samples for chunking."""
from .buffer import SampleBuffer
from .receiver import AudioReceiver, float32_bytes_to_samples, pcm_bytes_to_float32

__all__ = [
    "SampleBuffer",
    "AudioReceiver",
    "float32_bytes_to_samples",
    "pcm_bytes_to_float32",
]
