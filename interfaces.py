"""Protocol interfaces used by SpeechSessionOrchestrator."""

from __future__ import annotations

from typing import Callable, List, Optional, Protocol

from errors import RecognitionError
from models import AudioFrame, AuthorizationStatus, RecognitionResult

TapCallback = Callable[[AudioFrame], None]
RecognitionHandler = Callable[[Optional[RecognitionResult], Optional[RecognitionError]], None]


class PermissionService(Protocol):
    def request_authorization(self, callback: Callable[[AuthorizationStatus], None]) -> None: ...


class RecognitionRequest(Protocol):
    def append(self, frame: AudioFrame) -> None: ...

    def end_audio(self) -> None: ...


class RecognitionTask(Protocol):
    def finish(self) -> None: ...

    def cancel(self) -> None: ...


class RecognitionService(Protocol):
    @property
    def is_available(self) -> bool: ...

    def recognition_task(
        self,
        request: RecognitionRequest,
        result_handler: RecognitionHandler,
    ) -> RecognitionTask: ...


class AudioEngine(Protocol):
    def install_tap(self, buffer_size: int, callback: TapCallback) -> None: ...

    def remove_tap(self) -> None: ...

    def prepare(self) -> None: ...

    def start(self) -> None: ...

    def stop(self) -> None: ...


class ConfigStore(Protocol):
    def get_api_key(self) -> str: ...

    def set_api_key(self, key: str) -> None: ...

    def get_model(self) -> str: ...

    def get_hotkey(self) -> str: ...

    def set_hotkey(self, hotkey: str) -> None: ...

    def get_authorization(self) -> str: ...

    def set_authorization(self, value: str) -> None: ...

    def get_benign_error_codes(self) -> List[str]: ...
