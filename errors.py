"""Session error taxonomy and user-facing messages."""

from __future__ import annotations

UNAUTHORIZED = "UNAUTHORIZED"
UNAVAILABLE = "UNAVAILABLE"
WARNING = "WARNING"
INFORMATIONAL = "INFORMATIONAL"

# Recognition task error codes
NO_SPEECH_DETECTED = "NO_SPEECH_DETECTED"
NETWORK_ERROR = "NETWORK_ERROR"
AUTH_FAILED = "AUTH_FAILED"
ASR_PROTOCOL_ERROR = "ASR_PROTOCOL_ERROR"

USER_DENIED = "User denied access to speech recognition"
RESTRICTED_ON_DEVICE = "Speech recognition restricted on this device"
NOT_YET_AUTHORIZED = "Speech recognition not yet authorized"
UNDETERMINED = "Undetermined Error"
RECOGNITION_NOT_AVAILABLE = "Speech Recognition Not Available."

ALERT_TITLES = {
    UNAUTHORIZED: "Speech Authorization Error",
    UNAVAILABLE: "Speech to Text Error",
    WARNING: "Speech to Text Warning",
    INFORMATIONAL: "Speech to Text",
}


class SessionError(Exception):
    """Failure reported to a session's result handler."""

    kind = INFORMATIONAL

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def title(self) -> str:
        return ALERT_TITLES[self.kind]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SessionError):
            return NotImplemented
        return type(self) is type(other) and self.message == other.message

    def __hash__(self) -> int:
        return hash((type(self), self.message))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


class Unauthorized(SessionError):
    kind = UNAUTHORIZED


class Unavailable(SessionError):
    kind = UNAVAILABLE


class SessionWarning(SessionError):
    kind = WARNING


class Informational(SessionError):
    kind = INFORMATIONAL


class AudioEngineError(RuntimeError):
    """Raised when the microphone stream cannot be opened or started."""


class RecognitionError(Exception):
    """Error handed to a recognition task's result handler."""

    def __init__(self, code: str, message: str, retryable: bool = False) -> None:
        super().__init__(f"{code}: {message}")
        self.code = code
        self.message = message
        self.retryable = retryable


def classify_recognition_exception(exc: Exception) -> RecognitionError:
    """Map an SDK/network exception to a RecognitionError."""
    message = str(exc)
    low = message.lower()
    if "401" in low or "auth" in low or "api key" in low:
        return RecognitionError(AUTH_FAILED, message, retryable=False)
    if "timeout" in low or "network" in low or "connection" in low:
        return RecognitionError(NETWORK_ERROR, message, retryable=True)
    return RecognitionError(ASR_PROTOCOL_ERROR, message, retryable=False)
