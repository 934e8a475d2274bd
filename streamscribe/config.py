"""Application configuration. Loads from env vars."""
from pydantic_settings import BaseSettings
from typing import Literal


class Settings(BaseSettings):
    """App settings. Override via environment variables."""

    # Audio: float32 mono, 16kHz
    SAMPLE_RATE: int = 16000
    # Wire format of binary WebSocket frames: browser Float32Array or PCM 16-bit
    AUDIO_ENCODING: Literal["float32", "pcm16"] = "float32"

    # Chunking: each chunk is CHUNK_DURATION + CHUNK_OVERLAP seconds of audio;
    # only CHUNK_DURATION advances the stream offset.
    CHUNK_DURATION_SECONDS: float = 30.0
    CHUNK_OVERLAP_SECONDS: float = 5.0

    # Language hint for ASR when the client does not send one ("auto" = detect)
    DEFAULT_LANGUAGE: str = "en"

    # ASR backend: "local" | "cloudflare"
    ASR_BACKEND: Literal["local", "cloudflare"] = "local"

    # Cloudflare Workers AI Whisper (when ASR_BACKEND=cloudflare)
    CLOUDFLARE_ACCOUNT_ID: str = ""
    CLOUDFLARE_API_TOKEN: str = ""
    CLOUDFLARE_TIMEOUT_SECONDS: float = 60.0

    # Local Whisper (when ASR_BACKEND=local)
    LOCAL_WHISPER_MODEL: str = "base"  # base | small | medium | large-v3
    LOCAL_WHISPER_DEVICE: Literal["cpu", "cuda"] = "cpu"
    LOCAL_WHISPER_COMPUTE_TYPE: Literal["int8", "float16", "float32"] = "int8"
    LOCAL_WHISPER_BEAM_SIZE: int = 5

    # Speaker diarization (transformers audio-frame-classification model)
    DIARIZATION_ENABLED: bool = True
    DIARIZATION_MODEL: str = "anton-l/wav2vec2-base-superb-sd"
    DIARIZATION_DEVICE: Literal["cpu", "cuda"] = "cpu"

    # Model lifecycle: load at startup instead of on the first chunk; warm up with 1s of silence
    PRELOAD_MODELS: bool = False
    WARMUP_ON_LOAD: bool = False

    # Logging: level (DEBUG, INFO, WARNING, ERROR); file path = also log to file (empty = console only)
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""

    class Config:
        env_file = ".env"
        extra = "ignore"

    @property
    def chunk_samples(self) -> int:
        return int(round(self.CHUNK_DURATION_SECONDS * self.SAMPLE_RATE))

    @property
    def overlap_samples(self) -> int:
        return int(round(self.CHUNK_OVERLAP_SECONDS * self.SAMPLE_RATE))


def get_settings() -> Settings:
    return Settings()
