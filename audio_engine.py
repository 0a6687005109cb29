"""Microphone audio engine built on sounddevice."""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Optional

from errors import AudioEngineError
from interfaces import TapCallback
from models import AudioFrame

try:
    import numpy as np
except Exception:  # pragma: no cover
    np = None  # type: ignore

try:
    import sounddevice as sd
except Exception:  # pragma: no cover
    sd = None  # type: ignore

logger = logging.getLogger(__name__)

DEFAULT_BUFFER_SIZE = 512
FALLBACK_SAMPLE_RATE = 16000


def has_input_device() -> bool:
    if sd is None:
        return False
    try:
        sd.query_devices(kind="input")
    except Exception as exc:
        logger.info("no audio input device: %s", exc)
        return False
    return True


class SoundDeviceAudioEngine:
    """Captures the default input device and hands each block to a tap."""

    def __init__(self, sample_rate: Optional[int] = None, channels: int = 1) -> None:
        self._sample_rate = sample_rate
        self.channels = channels
        self._stream: Any = None
        self._running = False
        self._tap: Optional[TapCallback] = None
        self._buffer_size = DEFAULT_BUFFER_SIZE
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._running

    @property
    def sample_rate(self) -> int:
        if self._sample_rate is None:
            self._sample_rate = self._native_sample_rate()
        return self._sample_rate

    def _native_sample_rate(self) -> int:
        if sd is None:
            return FALLBACK_SAMPLE_RATE
        try:
            info = sd.query_devices(kind="input")
            return int(info["default_samplerate"])
        except Exception as exc:
            logger.warning("could not query input format, using %d Hz: %s", FALLBACK_SAMPLE_RATE, exc)
            return FALLBACK_SAMPLE_RATE

    def install_tap(self, buffer_size: int, callback: TapCallback) -> None:
        with self._lock:
            self._buffer_size = buffer_size
            self._tap = callback

    def remove_tap(self) -> None:
        with self._lock:
            self._tap = None

    def prepare(self) -> None:
        with self._lock:
            self._open_stream()

    def start(self) -> None:
        with self._lock:
            if self._running:
                return
            if self._tap is None:
                raise AudioEngineError("no tap installed on the input node")
            self._open_stream()
            try:
                self._stream.start()
            except Exception as exc:
                self._close_stream()
                raise AudioEngineError(str(exc)) from exc
            self._running = True
            logger.debug("audio engine started at %d Hz, blocksize %d", self.sample_rate, self._buffer_size)

    def stop(self) -> None:
        with self._lock:
            if not self._running and self._stream is None:
                return
            self._running = False
            self._close_stream()
            logger.debug("audio engine stopped")

    def _open_stream(self) -> None:
        if self._stream is not None:
            return
        if sd is None:
            raise AudioEngineError("sounddevice is not installed")
        try:
            self._stream = sd.InputStream(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype="int16",
                blocksize=self._buffer_size,
                callback=self._on_audio,
            )
        except Exception as exc:
            raise AudioEngineError(str(exc)) from exc

    def _close_stream(self) -> None:
        stream = self._stream
        self._stream = None
        if stream is None:
            return
        try:
            stream.stop()
        finally:
            stream.close()

    def _on_audio(self, indata: Any, frames: int, time_info: Any, status: Any) -> None:
        if status:
            logger.debug("input status: %s", status)
        tap = self._tap
        if not self._running or tap is None or np is None:
            return
        payload = np.asarray(indata, dtype=np.int16).tobytes()
        tap(
            AudioFrame(
                pcm16_bytes=payload,
                sample_rate=self.sample_rate,
                channels=self.channels,
                frames=frames,
                timestamp_ms=int(time.time() * 1000),
            )
        )
