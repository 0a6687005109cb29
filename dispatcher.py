"""Single-threaded dispatcher that serializes session-state mutation."""

from __future__ import annotations

import logging
import threading
from queue import Queue
from typing import Any, Callable, Optional, Tuple

logger = logging.getLogger(__name__)

_Job = Optional[Tuple[Callable[..., Any], Tuple[Any, ...]]]


class SerialDispatcher:
    """Runs submitted callables one at a time, in submission order.

    Callbacks from the permission service, the audio thread and the
    recognition service are all funnelled through here so only the
    worker thread ever touches orchestrator state.
    """

    def __init__(self, name: str = "speech-session") -> None:
        self._queue: Queue[_Job] = Queue()
        self._lock = threading.Lock()
        self._idle = threading.Condition(self._lock)
        self._pending = 0
        self._closed = False
        self._thread = threading.Thread(target=self._worker, name=name, daemon=True)
        self._thread.start()

    @property
    def closed(self) -> bool:
        return self._closed

    def in_worker(self) -> bool:
        return threading.current_thread() is self._thread

    def submit(self, fn: Callable[..., Any], *args: Any) -> bool:
        with self._lock:
            if self._closed:
                logger.debug("dispatcher closed, dropping %r", fn)
                return False
            self._pending += 1
            self._queue.put((fn, args))
        return True

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Wait until no job is queued or running, including jobs queued by jobs."""
        if self.in_worker():
            return False
        with self._idle:
            return self._idle.wait_for(lambda: self._pending == 0, timeout)

    def shutdown(self, wait: bool = True, timeout: Optional[float] = 2.0) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._queue.put(None)
        if wait and not self.in_worker():
            self._thread.join(timeout=timeout)

    def _worker(self) -> None:
        while True:
            job = self._queue.get()
            if job is None:
                return
            fn, args = job
            try:
                fn(*args)
            except Exception:
                logger.exception("session job %r failed", fn)
            finally:
                with self._idle:
                    self._pending -= 1
                    if self._pending == 0:
                        self._idle.notify_all()
