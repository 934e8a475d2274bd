"""
CloudflareWhisperEngine: Whisper via Cloudflare Workers AI.

Accepts float32 audio; wraps it as a 16-bit WAV for the API, which answers
with text plus a "words" list carrying start/end seconds.
Runs HTTP call in executor to avoid blocking event loop.
"""
from __future__ import annotations

import asyncio
import io
import logging
import wave

import numpy as np
import httpx

from streamscribe.asr.base import ASREngine, ASRResult, WordTimestamp
from streamscribe.config import get_settings

logger = logging.getLogger(__name__)

_API_URL = "https://api.cloudflare.com/client/v4/accounts/{account_id}/ai/run/@cf/openai/whisper"


def _float32_to_wav_bytes(audio: np.ndarray, sample_rate: int) -> bytes:
    """Convert float32 [-1, 1] to a mono 16-bit WAV file in memory."""
    samples = (audio * 32767).clip(-32768, 32767).astype("<i2")
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(sample_rate)
        wav.writeframes(samples.tobytes())
    return buf.getvalue()


def _parse_words(raw_words: list) -> list[WordTimestamp]:
    words: list[WordTimestamp] = []
    for item in raw_words or []:
        token = (item.get("word") or "").strip()
        if not token:
            continue
        words.append(WordTimestamp(word=token, start=float(item["start"]), end=float(item["end"])))
    return words


class CloudflareWhisperEngine(ASREngine):
    """
    Remote Whisper via Cloudflare Workers AI.
    async transcribe() runs HTTP in executor.
    """

    def __init__(self, account_id: str | None = None, api_token: str | None = None) -> None:
        settings = get_settings()
        self._account_id = account_id or settings.CLOUDFLARE_ACCOUNT_ID
        self._api_token = api_token or settings.CLOUDFLARE_API_TOKEN
        self._timeout = settings.CLOUDFLARE_TIMEOUT_SECONDS
        if not self._account_id or not self._api_token:
            raise ValueError("CLOUDFLARE_ACCOUNT_ID and CLOUDFLARE_API_TOKEN are required for ASR_BACKEND=cloudflare")

    def _transcribe_sync(self, wav_bytes: bytes, language: str) -> ASRResult:
        """Blocking HTTP call; run in executor. Raises on transport or API errors."""
        url = _API_URL.format(account_id=self._account_id)
        headers = {"Authorization": f"Bearer {self._api_token}"}
        body: dict = {"audio": list(wav_bytes)}
        if language and language != "auto":
            body["language"] = language

        with httpx.Client(timeout=self._timeout) as client:
            resp = client.post(url, headers=headers, json=body)
        resp.raise_for_status()

        data = resp.json()
        result = data.get("result", data)
        if not isinstance(result, dict):
            raise ValueError(f"Unexpected Workers AI response: {type(result).__name__}")
        text = (result.get("text") or "").strip()
        words = _parse_words(result.get("words") or [])
        logger.debug("Cloudflare Whisper: %d words", len(words))
        return ASRResult(text=text, word_timestamps=words, language=language)

    async def transcribe(self, audio: np.ndarray, language: str) -> ASRResult:
        """Encode audio as WAV, run HTTP in executor."""
        wav_bytes = _float32_to_wav_bytes(audio, self.sample_rate)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None,
            self._transcribe_sync,
            wav_bytes,
            language,
        )

    @property
    def sample_rate(self) -> int:
        return get_settings().SAMPLE_RATE
