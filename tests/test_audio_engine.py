"""Tests for SoundDeviceAudioEngine."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import numpy as np
import pytest

import audio_engine
from audio_engine import SoundDeviceAudioEngine, has_input_device
from errors import AudioEngineError
from models import AudioFrame


# ---------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------

def _fake_sd(samplerate: float = 44100.0) -> MagicMock:
    mock_sd = MagicMock()
    mock_sd.query_devices.return_value = {"name": "mic", "default_samplerate": samplerate}
    return mock_sd


def _block(n_frames: int = 512) -> np.ndarray:
    return np.zeros((n_frames, 1), dtype=np.int16)


# ---------------------------------------------------------------
# Start / stop
# ---------------------------------------------------------------

def test_start_opens_stream_in_native_format(monkeypatch) -> None:  # noqa: ANN001
    mock_sd = _fake_sd(48000.0)
    monkeypatch.setattr(audio_engine, "sd", mock_sd)

    engine = SoundDeviceAudioEngine()
    engine.install_tap(512, lambda frame: None)
    engine.prepare()
    engine.start()

    mock_sd.InputStream.assert_called_once()
    kwargs = mock_sd.InputStream.call_args.kwargs
    assert kwargs["samplerate"] == 48000
    assert kwargs["blocksize"] == 512
    assert kwargs["channels"] == 1
    assert kwargs["dtype"] == "int16"
    mock_sd.InputStream.return_value.start.assert_called_once()
    assert engine.running is True

    engine.stop()
    mock_sd.InputStream.return_value.stop.assert_called_once()
    mock_sd.InputStream.return_value.close.assert_called_once()
    assert engine.running is False


@patch("audio_engine.sd", _fake_sd())
def test_start_is_idempotent() -> None:
    engine = SoundDeviceAudioEngine()
    engine.install_tap(512, lambda frame: None)
    engine.start()
    engine.start()

    assert audio_engine.sd.InputStream.call_count == 1
    engine.stop()


@patch("audio_engine.sd", _fake_sd())
def test_stop_is_idempotent_and_safe_before_start() -> None:
    engine = SoundDeviceAudioEngine()
    engine.stop()  # never started

    engine.install_tap(512, lambda frame: None)
    engine.start()
    engine.stop()
    engine.stop()

    stream = audio_engine.sd.InputStream.return_value
    assert stream.close.call_count == 1


@patch("audio_engine.sd", _fake_sd())
def test_start_without_tap_raises() -> None:
    engine = SoundDeviceAudioEngine()
    with pytest.raises(AudioEngineError, match="no tap installed"):
        engine.start()


def test_start_failure_is_wrapped_and_stream_closed(monkeypatch) -> None:  # noqa: ANN001
    mock_sd = _fake_sd()
    mock_sd.InputStream.return_value.start.side_effect = Exception("Device unavailable")
    monkeypatch.setattr(audio_engine, "sd", mock_sd)

    engine = SoundDeviceAudioEngine()
    engine.install_tap(512, lambda frame: None)
    with pytest.raises(AudioEngineError, match="Device unavailable"):
        engine.start()

    mock_sd.InputStream.return_value.close.assert_called_once()
    assert engine.running is False


def test_start_raises_without_sounddevice(monkeypatch) -> None:  # noqa: ANN001
    monkeypatch.setattr(audio_engine, "sd", None)

    engine = SoundDeviceAudioEngine(sample_rate=16000)
    engine.install_tap(512, lambda frame: None)
    with pytest.raises(AudioEngineError, match="sounddevice is not installed"):
        engine.start()


def test_sample_rate_falls_back_when_query_fails(monkeypatch) -> None:  # noqa: ANN001
    mock_sd = _fake_sd()
    mock_sd.query_devices.side_effect = ValueError("No input device matching")
    monkeypatch.setattr(audio_engine, "sd", mock_sd)

    assert SoundDeviceAudioEngine().sample_rate == 16000
    assert SoundDeviceAudioEngine(sample_rate=22050).sample_rate == 22050


# ---------------------------------------------------------------
# Tap delivery
# ---------------------------------------------------------------

@patch("audio_engine.sd", _fake_sd(16000.0))
def test_callback_forwards_frames_to_tap() -> None:
    frames: list[AudioFrame] = []
    engine = SoundDeviceAudioEngine()
    engine.install_tap(512, frames.append)
    engine.start()

    engine._on_audio(_block(512), frames=512, time_info=None, status=None)

    assert len(frames) == 1
    assert frames[0].sample_rate == 16000
    assert frames[0].channels == 1
    assert frames[0].frames == 512
    assert len(frames[0].pcm16_bytes) == 512 * 2
    engine.stop()


@patch("audio_engine.sd", _fake_sd())
def test_callback_after_stop_or_tap_removal_is_noop() -> None:
    frames: list[AudioFrame] = []
    engine = SoundDeviceAudioEngine()
    engine.install_tap(512, frames.append)
    engine.start()
    engine.remove_tap()
    engine._on_audio(_block(), frames=512, time_info=None, status=None)

    engine.install_tap(512, frames.append)
    engine.stop()
    engine._on_audio(_block(), frames=512, time_info=None, status=None)

    assert frames == []


# ---------------------------------------------------------------
# Device detection
# ---------------------------------------------------------------

def test_has_input_device(monkeypatch) -> None:  # noqa: ANN001
    monkeypatch.setattr(audio_engine, "sd", _fake_sd())
    assert has_input_device() is True

    broken = _fake_sd()
    broken.query_devices.side_effect = ValueError("No input device matching")
    monkeypatch.setattr(audio_engine, "sd", broken)
    assert has_input_device() is False

    monkeypatch.setattr(audio_engine, "sd", None)
    assert has_input_device() is False
