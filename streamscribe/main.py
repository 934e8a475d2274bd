"""
FastAPI app: WebSocket endpoint for streaming speaker-attributed transcription.

Client sends {"type": "start"}, then binary audio frames, then {"type": "stop"}.
Server responds with JSON events:
{ "type": "progress" | "partial" | "stopped" | "error", ... }
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket, WebSocketDisconnect

from streamscribe.config import get_settings
from streamscribe.inference import ModelHandle
from streamscribe.logging_config import configure_logging
from streamscribe.schemas.stream import HealthResponse
from streamscribe.websocket_manager import WebSocketManager

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    # One model handle per process; loaded on first stream unless PRELOAD_MODELS
    if getattr(app.state, "models", None) is None:
        app.state.models = ModelHandle()
    if get_settings().PRELOAD_MODELS:
        await app.state.models.ensure_loaded()
    yield


app = FastAPI(
    title="Streaming Diarized Transcription",
    description="WebSocket streaming ASR with speaker diarization over overlapping chunks",
    lifespan=lifespan,
)


@app.websocket("/ws/transcribe")
async def websocket_transcribe(websocket: WebSocket) -> None:
    """
    WebSocket: client sends JSON control text frames and binary audio frames.
    Server sends JSON events (progress, partial, stopped, error).
    """
    await websocket.accept()
    manager = WebSocketManager(websocket, websocket.app.state.models)
    try:
        await manager.run()
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("WebSocket session failed")
        try:
            await websocket.close()
        except Exception:
            pass


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    models = getattr(app.state, "models", None)
    return HealthResponse(status="ok", models_loaded=bool(models and models.loaded))
