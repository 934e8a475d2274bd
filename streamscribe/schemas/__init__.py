"""Pydantic schemas for WebSocket and HTTP payloads."""
from streamscribe.schemas.stream import ControlMessage, HealthResponse

__all__ = ["ControlMessage", "HealthResponse"]
