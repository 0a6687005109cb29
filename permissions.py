"""Speech recognition authorization backed by the config store."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from audio_engine import has_input_device
from interfaces import ConfigStore
from models import AuthorizationStatus

logger = logging.getLogger(__name__)


class ConfigPermissionService:
    """Reports the consent the user stored, or RESTRICTED without a microphone."""

    def __init__(
        self,
        config_store: ConfigStore,
        device_check: Optional[Callable[[], bool]] = None,
    ) -> None:
        self._config_store = config_store
        self._device_check = device_check or has_input_device

    def status(self) -> AuthorizationStatus:
        if not self._device_check():
            return AuthorizationStatus.RESTRICTED
        stored = self._config_store.get_authorization()
        if stored == AuthorizationStatus.AUTHORIZED.value:
            return AuthorizationStatus.AUTHORIZED
        if stored == AuthorizationStatus.DENIED.value:
            return AuthorizationStatus.DENIED
        return AuthorizationStatus.NOT_DETERMINED

    def request_authorization(self, callback: Callable[[AuthorizationStatus], None]) -> None:
        def _report() -> None:
            status = self.status()
            logger.debug("authorization status: %s", status.value)
            callback(status)

        threading.Thread(target=_report, name="authorization", daemon=True).start()

    def grant(self) -> None:
        self._config_store.set_authorization(AuthorizationStatus.AUTHORIZED.value)

    def deny(self) -> None:
        self._config_store.set_authorization(AuthorizationStatus.DENIED.value)
