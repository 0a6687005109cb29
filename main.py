"""Application entrypoint."""

from __future__ import annotations

import logging
import os
import sys

from audio_engine import SoundDeviceAudioEngine
from config import JsonConfigStore
from errors import SessionError
from hotkey import ToggleHotkey
from models import AuthorizationStatus, SessionState, Transcript
from permissions import ConfigPermissionService
from recognizer import DashscopeRecognitionService
from session_orchestrator import SessionOutcome, SpeechSessionOrchestrator
from transcript_window import TranscriptWindow

try:
    from PySide6.QtCore import QObject, Signal
    from PySide6.QtWidgets import QApplication
except Exception as exc:  # pragma: no cover
    raise SystemExit(f"PySide6 is required to run the desktop app: {exc}")

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    level = os.getenv("SPEECH_SESSION_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


class UIBridge(QObject):
    transcript_signal = Signal(str)
    error_signal = Signal(object)
    state_signal = Signal(str, str)  # from_state, to_state
    toggle_signal = Signal()


class App:
    def __init__(self) -> None:
        self.app = QApplication(sys.argv)
        self.config_store = JsonConfigStore()
        self.permissions = ConfigPermissionService(self.config_store)
        self.ui = UIBridge()
        self.ui.transcript_signal.connect(self._on_transcript_ui)
        self.ui.error_signal.connect(self._on_error_ui)
        self.ui.state_signal.connect(self._on_state_change_ui)
        self.ui.toggle_signal.connect(self.toggle)

        self.orchestrator = SpeechSessionOrchestrator(
            permission_service=self.permissions,
            recognition_service=DashscopeRecognitionService(
                api_key=self.config_store.get_api_key(),
                model=self.config_store.get_model(),
            ),
            audio_engine=SoundDeviceAudioEngine(),
            benign_error_codes=self.config_store.get_benign_error_codes(),
            on_state_change=self._on_state_change,
        )
        self.window = TranscriptWindow(on_start=self.toggle)
        self.hotkey = ToggleHotkey(hotkey_name=self.config_store.get_hotkey())
        self.app.aboutToQuit.connect(self.quit)

    def toggle(self) -> None:
        if self.permissions.status() == AuthorizationStatus.NOT_DETERMINED:
            if self.window.ask_consent():
                self.permissions.grant()
            else:
                self.permissions.deny()
        self.orchestrator.start_session(self._on_result)

    # ------------------------------------------------------------------
    # Callbacks (called from the session dispatcher → emit signals for UI thread)
    # ------------------------------------------------------------------

    def _on_result(self, outcome: SessionOutcome) -> None:
        if isinstance(outcome, Transcript):
            self.ui.transcript_signal.emit(outcome.text)
        else:
            self.ui.error_signal.emit(outcome)

    def _on_state_change(self, from_state: SessionState, to_state: SessionState) -> None:
        self.ui.state_signal.emit(from_state.value, to_state.value)

    # ------------------------------------------------------------------
    # UI thread handlers (safe for Qt)
    # ------------------------------------------------------------------

    def _on_transcript_ui(self, text: str) -> None:
        self.window.set_phrase(text)

    def _on_error_ui(self, error: SessionError) -> None:
        self.window.show_error(error)

    def _on_state_change_ui(self, from_state: str, to_state: str) -> None:
        self.window.set_recording(to_state == SessionState.RECORDING.value)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def run(self) -> int:
        self.window.show()
        try:
            self.hotkey.start(on_toggle=self.ui.toggle_signal.emit)
        except Exception as exc:
            logger.warning("hotkey disabled: %s", exc)
        return self.app.exec()

    def quit(self) -> None:
        self.hotkey.stop()
        self.orchestrator.close()


def main() -> int:
    configure_logging()
    app = App()
    return app.run()


if __name__ == "__main__":
    raise SystemExit(main())
