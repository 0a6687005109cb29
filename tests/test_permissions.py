from __future__ import annotations

import threading
from pathlib import Path

import pytest

from config import JsonConfigStore
from models import AuthorizationStatus
from permissions import ConfigPermissionService


def _service(tmp_path: Path, has_device: bool = True) -> ConfigPermissionService:
    store = JsonConfigStore(path=tmp_path / "config.json")
    return ConfigPermissionService(store, device_check=lambda: has_device)


def test_status_not_determined_until_consent(tmp_path: Path) -> None:
    service = _service(tmp_path)
    assert service.status() == AuthorizationStatus.NOT_DETERMINED

    service.grant()
    assert service.status() == AuthorizationStatus.AUTHORIZED

    service.deny()
    assert service.status() == AuthorizationStatus.DENIED


def test_missing_microphone_is_restricted(tmp_path: Path) -> None:
    service = _service(tmp_path, has_device=False)
    service.grant()
    assert service.status() == AuthorizationStatus.RESTRICTED


@pytest.mark.parametrize(
    "stored, expected",
    [
        ("authorized", AuthorizationStatus.AUTHORIZED),
        ("denied", AuthorizationStatus.DENIED),
        ("maybe", AuthorizationStatus.NOT_DETERMINED),
    ],
)
def test_request_authorization_reports_asynchronously(
    tmp_path: Path, stored: str, expected: AuthorizationStatus
) -> None:
    service = _service(tmp_path)
    JsonConfigStore(path=tmp_path / "config.json").set_authorization(stored)
    received: list[AuthorizationStatus] = []
    done = threading.Event()

    def callback(status: AuthorizationStatus) -> None:
        received.append(status)
        done.set()

    service.request_authorization(callback)

    assert done.wait(timeout=2.0)
    assert received == [expected]
