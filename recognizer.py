"""Streaming recognition service using the DashScope realtime ASR API.

Audio frames are pulled from a ``BufferedRecognitionRequest`` on a worker
thread and pushed into a ``dashscope.audio.asr.Recognition`` session as
they arrive.  Sentence updates from the SDK flow back to the task's
result handler as ``RecognitionResult`` values; SDK failures arrive as
``RecognitionError`` values; completion arrives as ``(None, None)``.
"""

from __future__ import annotations

import logging
import os
import threading
from queue import Empty
from typing import Any, Optional

from errors import (
    ASR_PROTOCOL_ERROR,
    NO_SPEECH_DETECTED,
    RecognitionError,
    classify_recognition_exception,
)
from interfaces import RecognitionHandler
from recognition_request import BufferedRecognitionRequest
from models import RecognitionResult

try:
    import dashscope
    import dashscope.audio.asr
except Exception:  # pragma: no cover
    dashscope = None  # type: ignore

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "paraformer-realtime-v2"

if dashscope is not None:
    _CallbackBase: Any = dashscope.audio.asr.RecognitionCallback
else:  # pragma: no cover
    _CallbackBase = object


def extract_sentence(result: Any) -> Optional[RecognitionResult]:
    """Pull the current sentence out of a DashScope recognition result."""
    try:
        sentence = result.get_sentence()
    except Exception:
        return None
    if isinstance(sentence, list):
        sentence = sentence[-1] if sentence else None
    if not isinstance(sentence, dict):
        return None
    text = sentence.get("text")
    if text is None:
        return None
    is_final = bool(sentence.get("sentence_end")) or sentence.get("end_time") is not None
    return RecognitionResult(text=str(text), is_final=is_final)


class _CallbackBridge(_CallbackBase):
    def __init__(self, task: "DashscopeRecognitionTask") -> None:
        super().__init__()
        self._task = task

    def on_open(self) -> None:
        logger.debug("recognition session opened")

    def on_close(self) -> None:
        logger.debug("recognition session closed")

    def on_complete(self) -> None:
        self._task._complete()

    def on_error(self, result: Any) -> None:
        code = getattr(result, "code", None) or ASR_PROTOCOL_ERROR
        message = getattr(result, "message", None) or str(result)
        self._task._fail(RecognitionError(str(code), str(message)))

    def on_event(self, result: Any) -> None:
        sentence = extract_sentence(result)
        if sentence is not None:
            self._task._emit(sentence, None)


class DashscopeRecognitionTask:
    def __init__(
        self,
        request: BufferedRecognitionRequest,
        result_handler: RecognitionHandler,
        api_key: str,
        model: str = DEFAULT_MODEL,
        poll_s: float = 0.1,
    ) -> None:
        self._request = request
        self._handler = result_handler
        self._api_key = api_key
        self._model = model
        self._poll_s = poll_s
        self._finishing = threading.Event()
        self._cancelled = threading.Event()
        self._done = threading.Event()
        self._recognition: Any = None
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._thread = threading.Thread(target=self._worker, name="dashscope-asr", daemon=True)
        self._thread.start()

    def finish(self) -> None:
        """Stop accepting audio; results already in flight may still arrive."""
        self._finishing.set()

    def cancel(self, join_timeout_s: float = 0.5) -> None:
        """Suppress all further callbacks and tear the SDK session down."""
        self._finishing.set()
        self._cancelled.set()
        thread = self._thread
        if thread and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=join_timeout_s)

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled.is_set()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout=timeout)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _worker(self) -> None:
        first = self._next_frame()
        if first is None:
            if not self._cancelled.is_set():
                self._fail(RecognitionError(NO_SPEECH_DETECTED, "No speech detected"))
            return

        if dashscope is None:
            self._fail(RecognitionError(ASR_PROTOCOL_ERROR, "dashscope is not installed"))
            return

        try:
            dashscope.api_key = self._api_key
            self._recognition = dashscope.audio.asr.Recognition(
                model=self._model,
                format="pcm",
                sample_rate=first.sample_rate,
                callback=_CallbackBridge(self),
            )
            self._recognition.start()
            self._recognition.send_audio_frame(first.pcm16_bytes)
            while True:
                frame = self._next_frame()
                if frame is None:
                    break
                self._recognition.send_audio_frame(frame.pcm16_bytes)
        except Exception as exc:
            self._fail(classify_recognition_exception(exc))
            self._stop_recognition()
            return

        self._stop_recognition()

    def _next_frame(self):
        while not self._cancelled.is_set():
            try:
                return self._request.get(timeout=self._poll_s)
            except Empty:
                if self._finishing.is_set() and self._request.ended:
                    return None
        return None

    def _stop_recognition(self) -> None:
        recognition = self._recognition
        if recognition is None:
            return
        try:
            recognition.stop()
        except Exception as exc:
            if not self._cancelled.is_set():
                self._fail(classify_recognition_exception(exc))
            else:
                logger.debug("recognition stop after cancel failed: %s", exc)

    def _emit(self, result: Optional[RecognitionResult], error: Optional[RecognitionError]) -> None:
        if self._cancelled.is_set() or self._done.is_set():
            return
        self._handler(result, error)

    def _fail(self, error: RecognitionError) -> None:
        if self._cancelled.is_set() or self._done.is_set():
            return
        self._done.set()
        self._handler(None, error)

    def _complete(self) -> None:
        if self._cancelled.is_set() or self._done.is_set():
            return
        self._done.set()
        self._handler(None, None)


class DashscopeRecognitionService:
    def __init__(self, api_key: str = "", model: str = DEFAULT_MODEL) -> None:
        self._api_key = api_key
        self._model = model

    @property
    def api_key(self) -> str:
        return self._api_key or os.getenv("DASHSCOPE_API_KEY", "")

    @property
    def is_available(self) -> bool:
        return dashscope is not None and bool(self.api_key)

    def recognition_task(
        self,
        request: BufferedRecognitionRequest,
        result_handler: RecognitionHandler,
    ) -> DashscopeRecognitionTask:
        task = DashscopeRecognitionTask(request, result_handler, api_key=self.api_key, model=self._model)
        task.start()
        return task
