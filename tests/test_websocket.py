"""WebSocket host: control messages, audio frames, event stream."""
import json

import numpy as np
import pytest
from fastapi.testclient import TestClient

from conftest import FakeDiarizer, FakeTranscriber, w
from streamscribe.diarization.models import RawSpeakerSegment
from streamscribe.inference import ModelHandle

RATE = 16000


@pytest.fixture
def short_chunks(monkeypatch):
    monkeypatch.setenv("CHUNK_DURATION_SECONDS", "1.0")
    monkeypatch.setenv("CHUNK_OVERLAP_SECONDS", "0.5")
    monkeypatch.setenv("AUDIO_ENCODING", "float32")
    monkeypatch.setenv("DEFAULT_LANGUAGE", "en")
    monkeypatch.setenv("PRELOAD_MODELS", "false")


@pytest.fixture
def api_client(short_chunks):
    from streamscribe.main import app

    transcriber = FakeTranscriber(words=[w("hello", 0.1, 0.4), w("world", 0.5, 0.9)])
    diarizer = FakeDiarizer(segments=[RawSpeakerSegment(1, 0.0, 1.5)])
    app.state.models = ModelHandle(transcriber=transcriber, diarizer=diarizer)
    with TestClient(app) as client:
        yield client, transcriber
    app.state.models = None


def _audio(seconds: float) -> bytes:
    return np.zeros(int(seconds * RATE), dtype="<f4").tobytes()


def test_health(api_client):
    client, _ = api_client
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "models_loaded": True}


def test_stream_start_feed_stop(api_client):
    client, transcriber = api_client
    with client.websocket_connect("/ws/transcribe") as ws:
        ws.send_text(json.dumps({"type": "start", "language": "fr"}))
        assert ws.receive_json() == {"type": "progress", "status": "streaming", "message": "Started streaming mode", "offset": None}

        # 1.5s = one chunk (1s + 0.5s overlap), sent in uneven frames
        raw = _audio(1.5)
        for piece in (raw[:10001], raw[10001:50000], raw[50000:]):
            ws.send_bytes(piece)

        partial = ws.receive_json()
        assert partial["type"] == "partial"
        assert partial["final"] is False
        assert partial["offset"] == 0.0
        assert [(s["speaker"], s["text"]) for s in partial["segments"]] == [("SPEAKER_01", "hello world")]

        progress = ws.receive_json()
        assert progress["type"] == "progress"
        assert progress["status"] == "chunk"
        assert progress["offset"] == pytest.approx(1.0)

        ws.send_text(json.dumps({"type": "stop"}))
        final = ws.receive_json()
        assert final["type"] == "partial"
        assert final["final"] is True
        assert final["offset"] == pytest.approx(1.0)
        assert final["segments"][0]["start"] == pytest.approx(1.1)
        assert final["segments"][0]["continuation"] is True

        stopped = ws.receive_json()
        assert stopped["type"] == "stopped"
        assert stopped["segments_total"] == 2

    assert transcriber.calls[0] == (int(1.5 * RATE), "fr")
    # stop without a language falls back to DEFAULT_LANGUAGE
    assert transcriber.calls[1] == (int(0.5 * RATE), "en")


def test_audio_before_start_is_an_error(api_client):
    client, transcriber = api_client
    with client.websocket_connect("/ws/transcribe") as ws:
        ws.send_bytes(_audio(0.1))
        event = ws.receive_json()
        assert event["type"] == "error"
        assert event["kind"] == "invalid_state"

        ws.send_text(json.dumps({"type": "stop"}))
        event = ws.receive_json()
        assert event["kind"] == "invalid_state"
    assert transcriber.calls == []


def test_invalid_control_message(api_client):
    client, _ = api_client
    with client.websocket_connect("/ws/transcribe") as ws:
        ws.send_text("not json")
        event = ws.receive_json()
        assert event["type"] == "error"
        assert event["kind"] == "invalid_message"

        ws.send_text(json.dumps({"type": "pause"}))
        assert ws.receive_json()["kind"] == "invalid_message"


def test_double_start_rejected(api_client):
    client, _ = api_client
    with client.websocket_connect("/ws/transcribe") as ws:
        ws.send_text(json.dumps({"type": "start"}))
        assert ws.receive_json()["status"] == "streaming"
        ws.send_text(json.dumps({"type": "start"}))
        event = ws.receive_json()
        assert event["type"] == "error"
        assert event["kind"] == "invalid_state"


def test_models_loaded_on_first_start(short_chunks, monkeypatch):
    from streamscribe import inference
    from streamscribe.main import app

    monkeypatch.setattr(inference, "_build_transcriber", lambda settings: FakeTranscriber())
    monkeypatch.setattr(inference, "_build_diarizer", lambda settings: None)
    app.state.models = ModelHandle()
    try:
        with TestClient(app) as client:
            assert client.get("/health").json()["models_loaded"] is False
            with client.websocket_connect("/ws/transcribe") as ws:
                ws.send_text(json.dumps({"type": "start"}))
                statuses = [ws.receive_json()["status"] for _ in range(3)]
                assert statuses[0] == "loading"
                assert statuses[1:] == ["ready", "streaming"]
            assert client.get("/health").json()["models_loaded"] is True
    finally:
        app.state.models = None
