from __future__ import annotations

from queue import Empty

import pytest

from models import AudioFrame
from recognition_request import BufferedRecognitionRequest


def _frame(tag: int) -> AudioFrame:
    return AudioFrame(pcm16_bytes=bytes([tag, 0]), frames=1)


def test_frames_iterate_until_end_of_audio() -> None:
    request = BufferedRecognitionRequest()
    request.append(_frame(1))
    request.append(_frame(2))
    request.end_audio()

    assert [f.pcm16_bytes[0] for f in request.frames(poll_s=0.01)] == [1, 2]
    assert request.ended is True


def test_append_after_end_audio_is_ignored() -> None:
    request = BufferedRecognitionRequest()
    request.end_audio()
    request.append(_frame(1))
    request.end_audio()  # idempotent

    assert request.get(timeout=0.1) is None
    with pytest.raises(Empty):
        request.get(timeout=0.01)
    assert request.appended_frames == 0


def test_full_queue_drops_frames_but_keeps_end_marker() -> None:
    request = BufferedRecognitionRequest(maxsize=2)
    for tag in range(4):
        request.append(_frame(tag))
    assert request.dropped_frames == 2

    request.end_audio()

    assert [f.pcm16_bytes[0] for f in request.frames(poll_s=0.01)] == [1]
