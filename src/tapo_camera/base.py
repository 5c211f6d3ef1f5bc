from __future__ import annotations

from typing import TYPE_CHECKING

from scrypted_sdk import ScryptedDeviceBase
from scrypted_sdk.types import Device

from .logging import ScryptedDeviceLoggerMixin
from .util import BackgroundTaskMixin

if TYPE_CHECKING:
    from .provider import TapoProvider


MANUFACTURER = 'TAPO'


class TapoDeviceBase(ScryptedDeviceBase, ScryptedDeviceLoggerMixin, BackgroundTaskMixin):
    nativeId: str = None
    provider: TapoProvider = None

    def __init__(self, nativeId: str, provider: TapoProvider) -> None:
        super().__init__(nativeId=nativeId)
        self.logger_name = nativeId
        self.nativeId = nativeId
        self.provider = provider
        self.logger.setLevel(self.provider.get_current_log_level())

    def __del__(self) -> None:
        self.cancel_pending_tasks()
        self._cleanup()

    def get_applicable_interfaces(self) -> list[str]:
        return []

    def get_device_type(self) -> str:
        return ''

    def get_device_info(self) -> dict:
        return {'manufacturer': MANUFACTURER}

    def get_device_manifest(self, name: str, provider_native_id: str = None) -> Device:
        return {
            'info': self.get_device_info(),
            'nativeId': self.nativeId,
            'name': name,
            'interfaces': self.get_applicable_interfaces(),
            'type': self.get_device_type(),
            'providerNativeId': provider_native_id,
        }

    def _cleanup(self) -> None:
        pass
