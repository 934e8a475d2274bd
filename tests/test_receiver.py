"""AudioReceiver: wire bytes -> float32 sample batches."""
import numpy as np
import pytest

from streamscribe.audio.receiver import AudioReceiver, pcm_bytes_to_float32


def test_float32_frames_decode():
    receiver = AudioReceiver(encoding="float32")
    samples = np.array([0.0, 0.5, -0.25], dtype="<f4")
    out = receiver.feed(samples.tobytes())
    np.testing.assert_array_equal(out, samples)
    assert out.dtype == np.float32


def test_partial_sample_kept_for_next_frame():
    receiver = AudioReceiver(encoding="float32")
    raw = np.array([0.1, 0.2], dtype="<f4").tobytes()
    first = receiver.feed(raw[:5])
    assert len(first) == 1
    assert receiver.remaining_bytes() == 1
    second = receiver.feed(raw[5:])
    assert len(second) == 1
    assert second[0] == pytest.approx(0.2)
    assert receiver.remaining_bytes() == 0


def test_pcm16_scaled():
    receiver = AudioReceiver(encoding="pcm16")
    raw = np.array([0, 16384, -32768], dtype="<i2").tobytes()
    out = receiver.feed(raw)
    np.testing.assert_allclose(out, [0.0, 0.5, -1.0])
    np.testing.assert_allclose(pcm_bytes_to_float32(raw), out)


def test_unknown_encoding_rejected():
    with pytest.raises(ValueError):
        AudioReceiver(encoding="mulaw")


def test_reset_drops_remainder():
    receiver = AudioReceiver(encoding="pcm16")
    receiver.feed(b"\x01")
    receiver.reset()
    assert receiver.remaining_bytes() == 0
