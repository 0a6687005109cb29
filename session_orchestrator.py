"""State-machine based speech session orchestration."""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional, Union

from audio_engine import DEFAULT_BUFFER_SIZE
from config import DEFAULT_BENIGN_ERROR_CODES
from dispatcher import SerialDispatcher
from errors import (
    NOT_YET_AUTHORIZED,
    RECOGNITION_NOT_AVAILABLE,
    RESTRICTED_ON_DEVICE,
    UNDETERMINED,
    USER_DENIED,
    RecognitionError,
    SessionError,
    SessionWarning,
    Unauthorized,
    Unavailable,
)
from interfaces import AudioEngine, PermissionService, RecognitionService, RecognitionTask
from models import AuthorizationStatus, RecognitionResult, Session, SessionState, Transcript
from recognition_request import BufferedRecognitionRequest

logger = logging.getLogger(__name__)

SessionOutcome = Union[Transcript, SessionError]
ResultHandler = Callable[[SessionOutcome], None]
StateCallback = Callable[[SessionState, SessionState], None]

UNAUTHORIZED_MESSAGES = {
    AuthorizationStatus.DENIED: USER_DENIED,
    AuthorizationStatus.RESTRICTED: RESTRICTED_ON_DEVICE,
    AuthorizationStatus.NOT_DETERMINED: NOT_YET_AUTHORIZED,
}

_INACTIVE = (SessionState.IDLE, SessionState.STOPPED)


def unauthorized_message(status: object) -> str:
    try:
        return UNAUTHORIZED_MESSAGES.get(AuthorizationStatus(status), UNDETERMINED)
    except ValueError:
        return UNDETERMINED


class SpeechSessionOrchestrator:
    """Runs one authorize -> capture -> recognize -> stop session at a time.

    ``start_session`` toggles: while a session is active it stops that
    session instead of starting another.  Every outcome reaches the
    caller through ``on_result`` as either a ``Transcript`` or a
    ``SessionError``.  All state changes happen on a single dispatcher
    thread, so callers never block and external callbacks never race.
    """

    def __init__(
        self,
        permission_service: PermissionService,
        recognition_service: Optional[RecognitionService],
        audio_engine: AudioEngine,
        request_factory: Callable[[], BufferedRecognitionRequest] = BufferedRecognitionRequest,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        benign_error_codes: Iterable[str] = DEFAULT_BENIGN_ERROR_CODES,
        on_state_change: Optional[StateCallback] = None,
        dispatcher: Optional[SerialDispatcher] = None,
    ) -> None:
        self._permission_service = permission_service
        self._recognition_service = recognition_service
        self._audio_engine = audio_engine
        self._request_factory = request_factory
        self._buffer_size = buffer_size
        self._benign_error_codes = frozenset(benign_error_codes)
        self._on_state_change = on_state_change
        self._dispatcher = dispatcher or SerialDispatcher()

        self._session = Session()
        self._state = SessionState.IDLE
        self._generation = 0
        self._on_result: Optional[ResultHandler] = None
        self._request: Optional[BufferedRecognitionRequest] = None
        self._task: Optional[RecognitionTask] = None
        self._engine_running = False
        self._tap_installed = False
        self._closed = False

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_recording(self) -> bool:
        return self._session.is_recording

    @property
    def is_authorized(self) -> bool:
        return self._session.is_authorized

    @property
    def last_recognized_text(self) -> str:
        return self._session.last_recognized_text

    @property
    def benign_error_codes(self) -> frozenset:
        return self._benign_error_codes

    def start_session(self, on_result: ResultHandler) -> None:
        self._dispatcher.submit(self._toggle, on_result)

    def stop_session(self) -> None:
        self._dispatcher.submit(self._stop_current)

    def wait_idle(self, timeout: Optional[float] = 2.0) -> bool:
        return self._dispatcher.flush(timeout)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._dispatcher.in_worker() or self._dispatcher.closed:
            self._stop_current()
        else:
            self._dispatcher.submit(self._stop_current)
        self._dispatcher.shutdown(wait=True)

    def __enter__(self) -> "SpeechSessionOrchestrator":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __del__(self) -> None:
        if getattr(self, "_dispatcher", None) is not None:
            self.close()

    # ------------------------------------------------------------------
    # Session steps (dispatcher thread only)
    # ------------------------------------------------------------------

    def _toggle(self, on_result: ResultHandler) -> None:
        if self._state not in _INACTIVE:
            logger.info("session active, stopping it")
            self._stop_current()
            return
        self._begin(on_result)

    def _begin(self, on_result: ResultHandler) -> None:
        self._generation += 1
        generation = self._generation
        self._on_result = on_result
        self._session.is_authorized = False
        self._transition(SessionState.AWAITING_AUTHORIZATION)
        try:
            self._permission_service.request_authorization(
                lambda status: self._dispatcher.submit(self._on_authorization, generation, status)
            )
        except Exception as exc:
            logger.error("authorization request failed: %s", exc)
            self._finish_with(Unauthorized(UNDETERMINED))

    def _on_authorization(self, generation: int, status: object) -> None:
        if generation != self._generation:
            return
        if status != AuthorizationStatus.AUTHORIZED:
            logger.info("speech recognition not authorized: %s", status)
            self._finish_with(Unauthorized(unauthorized_message(status)))
            return
        self._session.is_authorized = True

        self._transition(SessionState.CHECKING_AVAILABILITY)
        service = self._recognition_service
        if service is None or not service.is_available:
            self._finish_with(Unavailable(RECOGNITION_NOT_AVAILABLE))
            return

        self._transition(SessionState.ENGINE_STARTING)
        try:
            request = self._request_factory()
            self._request = request
            self._audio_engine.install_tap(self._buffer_size, request.append)
            self._tap_installed = True
            self._audio_engine.prepare()
            self._audio_engine.start()
        except Exception as exc:
            logger.error("audio engine failed to start: %s", exc)
            self._finish_with(Unavailable(f"Audio engine failed to start: {exc}"))
            return
        self._engine_running = True

        self._session.is_recording = True
        self._session.last_recognized_text = ""
        self._transition(SessionState.RECORDING)
        try:
            self._task = service.recognition_task(
                request,
                lambda result, error: self._dispatcher.submit(
                    self._on_recognition, generation, result, error
                ),
            )
        except Exception as exc:
            logger.error("recognition task failed to start: %s", exc)
            self._finish_with(Unavailable(f"Speech recognition failed to start: {exc}"))

    def _on_recognition(
        self,
        generation: int,
        result: Optional[RecognitionResult],
        error: Optional[RecognitionError],
    ) -> None:
        if generation != self._generation or self._state != SessionState.RECORDING:
            return
        if result is not None:
            self._session.last_recognized_text = result.text
            self._deliver(Transcript(result.text, result.is_final))
            if not result.is_final:
                return
        elif error is not None:
            code = getattr(error, "code", "")
            if code in self._benign_error_codes:
                logger.debug("recognition ended: %s", error)
            elif getattr(error, "retryable", False):
                logger.info("recognition interrupted, session ended: %s", error)
            else:
                logger.warning("problem recognizing speech: %s", error)
                message = getattr(error, "message", "") or "Problem recognizing speech. Please try again."
                self._deliver(SessionWarning(message))
        self._stop_current()

    def _finish_with(self, error: SessionError) -> None:
        self._deliver(error)
        self._stop_current()

    def _deliver(self, outcome: SessionOutcome) -> None:
        # A failing handler must not leave the microphone open.
        handler = self._on_result
        if handler is None:
            return
        try:
            handler(outcome)
        except Exception:
            logger.exception("result handler failed for %r", outcome)

    def _stop_current(self) -> None:
        idle = (
            self._state in _INACTIVE
            and self._task is None
            and self._request is None
            and not self._engine_running
            and not self._tap_installed
        )
        if idle:
            return
        # Invalidate callbacks still in flight for this session.
        self._generation += 1
        self._on_result = None

        if self._engine_running or self._tap_installed:
            self._engine_running = False
            try:
                self._audio_engine.stop()
            except Exception as exc:
                logger.warning("audio engine stop failed: %s", exc)
        if self._tap_installed:
            self._tap_installed = False
            self._audio_engine.remove_tap()
        if self._request is not None:
            self._request.end_audio()
            self._request = None
        task = self._task
        self._task = None
        if task is not None:
            task.finish()
            task.cancel()

        self._session.is_recording = False
        self._transition(SessionState.STOPPED)

    def _transition(self, to_state: SessionState) -> None:
        from_state = self._state
        if from_state == to_state:
            return
        self._state = to_state
        logger.debug("session state %s -> %s", from_state.value, to_state.value)
        if self._on_state_change:
            self._on_state_change(from_state, to_state)
