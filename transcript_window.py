"""Main window: start button, live transcript and error alerts."""

from __future__ import annotations

from typing import Callable, Optional

from errors import SessionError

try:
    from PySide6.QtCore import Qt
    from PySide6.QtWidgets import QLabel, QMessageBox, QPushButton, QVBoxLayout, QWidget
except Exception:  # pragma: no cover
    Qt = None  # type: ignore
    QLabel = object  # type: ignore
    QMessageBox = None  # type: ignore
    QPushButton = object  # type: ignore
    QVBoxLayout = object  # type: ignore
    QWidget = object  # type: ignore

_PHRASE_STYLE = "font-size: 22px; padding: 12px;"
_CAPTION_STYLE = "color: #666666; font-size: 13px;"


class TranscriptWindow(QWidget):
    def __init__(self, on_start: Optional[Callable[[], None]] = None) -> None:
        if Qt is None:
            raise RuntimeError("PySide6 is not installed")
        super().__init__()
        self.setWindowTitle("Speech Recognition")
        self.setMinimumWidth(420)

        self._button = QPushButton("Start Speaking")
        if on_start is not None:
            self._button.clicked.connect(on_start)

        self._caption = QLabel("Last recognized phrase")
        self._caption.setStyleSheet(_CAPTION_STYLE)
        self._caption.setHidden(True)

        self._phrase = QLabel("")
        self._phrase.setWordWrap(True)
        self._phrase.setAlignment(Qt.AlignCenter)
        self._phrase.setStyleSheet(_PHRASE_STYLE)

        layout = QVBoxLayout()
        layout.addWidget(self._button)
        layout.addWidget(self._caption)
        layout.addWidget(self._phrase)
        layout.addStretch(1)
        self.setLayout(layout)

    def set_recording(self, recording: bool) -> None:
        self._button.setText("Stop" if recording else "Start Speaking")

    def set_phrase(self, text: str) -> None:
        self._caption.setHidden(False)
        self._phrase.setText(text)

    def show_error(self, error: SessionError) -> None:
        QMessageBox.warning(self, error.title, error.message)

    def ask_consent(self) -> bool:
        """Ask the user for microphone and speech recognition access."""
        answer = QMessageBox.question(
            self,
            "Speech Recognition",
            "Allow this app to record audio and send it for speech recognition?",
        )
        return answer == QMessageBox.Yes
