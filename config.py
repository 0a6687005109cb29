"""Simple JSON-based config store."""

from __future__ import annotations

import json
from pathlib import Path
from typing import List

from errors import NO_SPEECH_DETECTED

DEFAULT_MODEL = "paraformer-realtime-v2"
DEFAULT_HOTKEY = "Key.f8"
DEFAULT_BENIGN_ERROR_CODES = [NO_SPEECH_DETECTED, "NO_VALID_AUDIO_ERROR"]


class JsonConfigStore:
    def __init__(self, path: Path | None = None) -> None:
        self._path = path or Path.home() / ".config" / "speech_session" / "config.json"
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def get_api_key(self) -> str:
        data = self._read_all()
        return str(data.get("api_key", ""))

    def set_api_key(self, key: str) -> None:
        self._update("api_key", key)

    def get_model(self) -> str:
        data = self._read_all()
        return str(data.get("model", DEFAULT_MODEL))

    def get_hotkey(self) -> str:
        data = self._read_all()
        return str(data.get("hotkey", DEFAULT_HOTKEY))

    def set_hotkey(self, hotkey: str) -> None:
        self._update("hotkey", hotkey)

    def get_authorization(self) -> str:
        data = self._read_all()
        return str(data.get("authorization", ""))

    def set_authorization(self, value: str) -> None:
        self._update("authorization", value)

    def get_benign_error_codes(self) -> List[str]:
        data = self._read_all()
        codes = data.get("benign_error_codes")
        if not isinstance(codes, list):
            return list(DEFAULT_BENIGN_ERROR_CODES)
        return [str(code) for code in codes]

    def _update(self, key: str, value: object) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def _read_all(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict) -> None:
        self._path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
