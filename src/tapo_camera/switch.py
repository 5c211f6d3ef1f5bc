from __future__ import annotations

from typing import TYPE_CHECKING

from scrypted_sdk.types import OnOff, Refresh, ScryptedInterface, ScryptedDeviceType

from .base import TapoDeviceBase
from .client import DeviceStatus

if TYPE_CHECKING:
    from .camera import TapoCamera
    from .provider import TapoProvider


class TapoBaseSwitch(TapoDeviceBase, OnOff, Refresh):
    camera: TapoCamera = None
    label: str = None

    def __init__(self, nativeId: str, provider: TapoProvider, camera: TapoCamera) -> None:
        super().__init__(nativeId=nativeId, provider=provider)
        self.camera = camera

    def get_applicable_interfaces(self) -> list[str]:
        return [ScryptedInterface.OnOff.value, ScryptedInterface.Refresh.value]

    def get_device_type(self) -> str:
        return ScryptedDeviceType.Switch.value

    def get_device_info(self) -> dict:
        return self.camera.get_device_info()

    async def turnOn(self) -> None:
        await self._set_switch_state(True)

    async def turnOff(self) -> None:
        await self._set_switch_state(False)

    async def _set_switch_state(self, state: bool) -> None:
        self.logger.debug(f'Setting {self.label} to {"on" if state else "off"}')
        try:
            await self._write(state)
            self.on = state
        except Exception as e:
            self.logger.error(f'Error setting {self.label}: {e}')
            return
        self.camera.poller.reset(self.camera.pull_interval)

    async def getRefreshFrequency(self) -> float:
        return self.camera.pull_interval / 1000

    async def refresh(self, refreshInterface: str, userInitiated: bool) -> None:
        # an on-demand read makes the next scheduled poll redundant
        self.camera.poller.reset(self.camera.pull_interval)
        try:
            status = await self.camera.client.get_status()
        except Exception as e:
            self.logger.error(f'Error refreshing {self.label}: {e}')
            return
        self.camera.update_status(status)

    def update_from_status(self, status: DeviceStatus) -> None:
        raise NotImplementedError('Subclasses must implement update_from_status')

    async def _write(self, state: bool) -> None:
        raise NotImplementedError('Subclasses must implement _write')


class TapoAlarmSwitch(TapoBaseSwitch):
    label = 'alarm'

    def update_from_status(self, status: DeviceStatus) -> None:
        self.on = status.alert

    async def _write(self, state: bool) -> None:
        await self.camera.client.set_alert_config(state)


class TapoEyesSwitch(TapoBaseSwitch):
    """On while the camera can see, i.e. while the lens is not masked."""
    label = 'eyes'

    def update_from_status(self, status: DeviceStatus) -> None:
        self.on = not status.lens_mask

    async def _write(self, state: bool) -> None:
        await self.camera.client.set_lens_mask_config(not state)
