"""
Typed command/event channel between a StreamSession and its host.

Commands in: Start, Feed, Stop.
Events out: Progress, PartialTranscript, Stopped, Error.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Union

import numpy as np

from streamscribe.transcript.merger import TranscriptSegment


@dataclass
class Start:
    language: str


@dataclass
class Feed:
    samples: np.ndarray
    language: str


@dataclass
class Stop:
    language: str


Command = Union[Start, Feed, Stop]


@dataclass
class Progress:
    """Coarse lifecycle status: loading | ready | streaming | chunk."""

    status: str
    message: str = ""
    offset: float | None = None


@dataclass
class PartialTranscript:
    """New segments for one processed chunk; final=True for the flush at stop."""

    segments: list[TranscriptSegment]
    offset: float
    final: bool = False


@dataclass
class Stopped:
    message: str = "Streaming stopped"
    segments_total: int = 0


@dataclass
class Error:
    message: str
    kind: str = "error"  # inference | invalid_state | invalid_message | error
    offset: float | None = None


SessionEvent = Union[Progress, PartialTranscript, Stopped, Error]

_EVENT_TYPES = {
    Progress: "progress",
    PartialTranscript: "partial",
    Stopped: "stopped",
    Error: "error",
}


def event_to_dict(event: SessionEvent) -> dict[str, Any]:
    """Wire payload for an event: {"type": ..., **fields}."""
    payload: dict[str, Any] = {"type": _EVENT_TYPES[type(event)]}
    payload.update(asdict(event))
    return payload
