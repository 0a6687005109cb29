"""Core data models for speech sessions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SessionState(str, Enum):
    IDLE = "IDLE"
    AWAITING_AUTHORIZATION = "AWAITING_AUTHORIZATION"
    CHECKING_AVAILABILITY = "CHECKING_AVAILABILITY"
    ENGINE_STARTING = "ENGINE_STARTING"
    RECORDING = "RECORDING"
    STOPPED = "STOPPED"


class AuthorizationStatus(str, Enum):
    AUTHORIZED = "authorized"
    DENIED = "denied"
    RESTRICTED = "restricted"
    NOT_DETERMINED = "not_determined"


@dataclass
class AudioFrame:
    pcm16_bytes: bytes
    sample_rate: int = 16000
    channels: int = 1
    frames: int = 0
    timestamp_ms: int = 0


@dataclass
class RecognitionResult:
    """Best transcription reported by the recognition service."""

    text: str
    is_final: bool = False


@dataclass(frozen=True)
class Transcript:
    text: str
    is_final: bool = False


@dataclass
class Session:
    is_recording: bool = False
    is_authorized: bool = False
    last_recognized_text: str = ""
