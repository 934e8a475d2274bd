"""
Schemas for WebSocket control messages.

Binary frames carry audio samples. Text frames carry JSON control messages:
{"type": "start" | "stop", "language": "en"}.
"""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class ControlMessage(BaseModel):
    """Text frame from client: start or stop the stream."""

    type: Literal["start", "stop"] = Field(..., description="start: begin streaming; stop: flush and end")
    language: str | None = Field(
        None,
        description="Language hint for ASR (e.g. 'en', 'auto'); defaults to DEFAULT_LANGUAGE",
    )


class HealthResponse(BaseModel):
    """Response body for GET /health."""

    status: str = "ok"
    models_loaded: bool = False
