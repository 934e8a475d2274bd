"""
WebSocketManager: hosts one StreamSession per WebSocket connection.

Client -> server:
- text frames: {"type": "start" | "stop", "language": "..."} (ControlMessage)
- binary frames: audio samples (AUDIO_ENCODING: float32 or pcm16, mono, SAMPLE_RATE)

Server -> client: JSON events
- {"type": "progress", "status": "loading" | "ready" | "streaming" | "chunk", ...}
- {"type": "partial", "segments": [...], "offset": float, "final": bool}
- {"type": "stopped", ...}
- {"type": "error", "message": str, "kind": ...}

Session events are queued and written by a sender task so the session
never awaits the socket.
"""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from fastapi import WebSocket
from pydantic import ValidationError

from streamscribe.audio.receiver import AudioReceiver
from streamscribe.config import get_settings
from streamscribe.errors import InvalidState
from streamscribe.events import Error, Feed, Progress, SessionEvent, Start, Stop, event_to_dict
from streamscribe.inference import InferenceInvoker, ModelHandle
from streamscribe.schemas.stream import ControlMessage
from streamscribe.session import SessionState, StreamSession

logger = logging.getLogger(__name__)


class WebSocketManager:
    """One WebSocket = one streaming session."""

    def __init__(self, websocket: WebSocket, models: ModelHandle) -> None:
        settings = get_settings()
        self._ws = websocket
        self._models = models
        self._receiver = AudioReceiver()
        self._language = settings.DEFAULT_LANGUAGE
        self._default_language = settings.DEFAULT_LANGUAGE
        self._outbox: asyncio.Queue[SessionEvent | None] = asyncio.Queue()
        self._sender_task: asyncio.Task[Any] | None = None
        self._closed = False
        self._session = StreamSession(InferenceInvoker(models), emit=self._emit)

    @property
    def session(self) -> StreamSession:
        return self._session

    def _emit(self, event: SessionEvent) -> None:
        if self._closed:
            return
        self._outbox.put_nowait(event)

    async def _sender(self) -> None:
        """Drain outbox to the socket. None = stop. A failed send closes the manager."""
        while True:
            event = await self._outbox.get()
            if event is None:
                break
            try:
                await self._ws.send_text(json.dumps(event_to_dict(event)))
            except Exception as e:
                logger.info("WebSocket send failed, closing: %s", e)
                self._closed = True
                break

    async def _ensure_models(self) -> bool:
        if self._models.loaded:
            return True
        try:
            await self._models.ensure_loaded(
                progress=lambda message: self._emit(Progress(status="loading", message=message))
            )
        except Exception as e:
            logger.exception("Model load failed")
            self._emit(Error(message=f"Model load failed: {e}", kind="error"))
            return False
        self._emit(Progress(status="ready", message="Ready to record"))
        return True

    async def _on_control(self, text: str) -> None:
        try:
            msg = ControlMessage.model_validate_json(text)
        except ValidationError as e:
            self._emit(Error(message=f"Invalid control message: {e.errors()[0]['msg']}", kind="invalid_message"))
            return
        language = msg.language or self._default_language
        try:
            if msg.type == "start":
                if self._session.state is SessionState.STREAMING:
                    raise InvalidState("start", SessionState.STREAMING.value)
                if not await self._ensure_models():
                    return
                self._receiver.reset()
                self._language = language
                await self._session.handle(Start(language=language))
            else:
                await self._session.handle(Stop(language=language))
                self._receiver.reset()
        except InvalidState as e:
            self._emit(Error(message=str(e), kind="invalid_state"))

    async def _on_audio(self, data: bytes) -> None:
        samples = self._receiver.feed(data)
        try:
            await self._session.handle(Feed(samples=samples, language=self._language))
        except InvalidState as e:
            self._emit(Error(message=str(e), kind="invalid_state"))

    async def run(self) -> None:
        """Main loop: receive frames, dispatch to the session, stop cleanly on disconnect."""
        self._sender_task = asyncio.create_task(self._sender())
        try:
            while not self._closed:
                msg = await self._ws.receive()
                if msg.get("type") == "websocket.disconnect":
                    break
                if msg.get("bytes") is not None:
                    await self._on_audio(msg["bytes"])
                elif msg.get("text") is not None:
                    await self._on_control(msg["text"])
        finally:
            if self._session.state is SessionState.STREAMING:
                # Client went away mid-stream: flush what is buffered so the session ends in IDLE
                self._closed = True
                await self._session.stop(self._language)
            self._outbox.put_nowait(None)
            if self._sender_task:
                try:
                    await asyncio.wait_for(self._sender_task, timeout=5.0)
                except asyncio.TimeoutError:
                    self._sender_task.cancel()
            self._closed = True
