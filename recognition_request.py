"""Buffered recognition request fed by the audio tap."""

from __future__ import annotations

import threading
from queue import Empty, Full, Queue
from typing import Iterator, Optional

from models import AudioFrame


class BufferedRecognitionRequest:
    def __init__(self, maxsize: int = 200) -> None:
        self._queue: Queue[AudioFrame | None] = Queue(maxsize=maxsize)
        self._lock = threading.Lock()
        self._ended = False
        self.dropped_frames = 0
        self.appended_frames = 0

    @property
    def ended(self) -> bool:
        return self._ended

    def append(self, frame: AudioFrame) -> None:
        with self._lock:
            if self._ended:
                return
            try:
                self._queue.put_nowait(frame)
                self.appended_frames += 1
            except Full:
                self.dropped_frames += 1

    def end_audio(self) -> None:
        with self._lock:
            if self._ended:
                return
            self._ended = True
            try:
                self._queue.put_nowait(None)
            except Full:
                # Drop the oldest frame to make room for the marker.
                try:
                    self._queue.get_nowait()
                except Empty:
                    pass
                self._queue.put_nowait(None)

    def get(self, timeout: Optional[float] = None) -> AudioFrame | None:
        """Next frame, or None at end of audio. Raises queue.Empty on timeout."""
        return self._queue.get(timeout=timeout)

    def frames(self, poll_s: float = 0.2) -> Iterator[AudioFrame]:
        while True:
            try:
                frame = self.get(timeout=poll_s)
            except Empty:
                if self._ended and self._queue.empty():
                    return
                continue
            if frame is None:
                return
            yield frame
