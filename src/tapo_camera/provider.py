import logging
import uuid

import scrypted_sdk
from scrypted_sdk import ScryptedDeviceBase
from scrypted_sdk.types import (
    DeviceCreator,
    DeviceProvider,
    ScryptedDeviceType,
    ScryptedInterface,
    Setting,
    SettingValue,
    Settings,
)

from .base import MANUFACTURER
from .camera import TapoCamera
from .client.models import DEFAULT_PULL_INTERVAL
from .logging import ScryptedDeviceLoggerMixin, StdoutLoggerFactory
from .util import BackgroundTaskMixin


class TapoProvider(
    BackgroundTaskMixin,
    DeviceCreator,
    DeviceProvider,
    ScryptedDeviceBase,
    ScryptedDeviceLoggerMixin,
    Settings
):
    plugin_log_level_choices = {
        'Info': logging.INFO,
        'Debug': logging.DEBUG,
        'Extra Debug': logging.DEBUG,
    }

    def __init__(self, nativeId: str = None) -> None:
        super().__init__(nativeId=nativeId)
        self.logger_name = 'Provider'
        self.cameras: dict[str, TapoCamera] = {}
        self._propagate_log_level()

    def print(self, *args, **kwargs) -> None:
        print(*args, **kwargs)

    def _propagate_log_level(self) -> None:
        try:
            self.print(f'Setting plugin log level to {self.plugin_log_level}')
            log_level = self.get_current_log_level()
            self.logger.setLevel(log_level)
            StdoutLoggerFactory.get_logger(name='Client').setLevel(log_level)
            for camera in self.cameras.values():
                camera.logger.setLevel(log_level)
                for switch in (camera.alarm_switch, camera.eyes_switch):
                    if switch:
                        switch.logger.setLevel(log_level)
                if camera.client:
                    camera.client.transport.request.extra_debug_logging = self.extra_debug_logging
                    camera.client.transport.request.set_logging()
        except Exception as e:
            self.logger.error(f'Error setting log level: {e}', exc_info=True)

    def get_current_log_level(self) -> int:
        return TapoProvider.plugin_log_level_choices[self.plugin_log_level]

    @property
    def plugin_log_level(self) -> str:
        log_level = self.storage.getItem('plugin_log_level')
        if log_level not in TapoProvider.plugin_log_level_choices:
            log_level = 'Info'
            self.storage.setItem('plugin_log_level', log_level)
        return log_level

    @property
    def extra_debug_logging(self) -> bool:
        return self.plugin_log_level == 'Extra Debug'

    async def getSettings(self) -> list[Setting]:
        return [
            {
                'group': 'General',
                'key': 'plugin_log_level',
                'title': 'Plugin Log Level',
                'description': 'Sets the log level of the plugin. Extra Debug also prints camera HTTP traffic.',
                'value': self.plugin_log_level,
                'choices': list(TapoProvider.plugin_log_level_choices.keys()),
            },
        ]

    async def putSetting(self, key: str, value: SettingValue) -> None:
        if key == 'plugin_log_level':
            if value not in TapoProvider.plugin_log_level_choices:
                self.logger.error(f'Invalid value for {key}: "{value}" - must be one of {list(TapoProvider.plugin_log_level_choices.keys())}')
            else:
                self.storage.setItem(key, value)
                self._propagate_log_level()
        else:
            self.storage.setItem(key, value)
        await self.onDeviceEvent(ScryptedInterface.Settings.value, None)

    async def getCreateDeviceSettings(self) -> list[Setting]:
        return [
            {
                'key': 'name',
                'title': 'Name',
            },
            {
                'key': 'ip_address',
                'title': 'IP Address',
            },
            {
                'key': 'password',
                'title': 'Camera Password',
                'type': 'password',
            },
            {
                'key': 'stream_user',
                'title': 'Stream User',
            },
            {
                'key': 'stream_password',
                'title': 'Stream Password',
                'type': 'password',
            },
            {
                'key': 'pull_interval',
                'title': 'Pull Interval',
                'type': 'number',
                'value': DEFAULT_PULL_INTERVAL,
            },
        ]

    async def createDevice(self, settings: dict) -> str:
        name = settings.get('name')
        ip_address = settings.get('ip_address')
        if not name or not ip_address or not settings.get('password'):
            raise Exception('Name, IP address and camera password are required.')
        native_id = str(uuid.uuid4())
        self.logger.info(f'Adding camera {name} at {ip_address}')
        manifest = {
            'info': {
                'manufacturer': MANUFACTURER,
            },
            'nativeId': native_id,
            'name': name,
            'interfaces': [
                ScryptedInterface.VideoCamera.value,
                ScryptedInterface.Settings.value,
                ScryptedInterface.DeviceProvider.value,
            ],
            'type': ScryptedDeviceType.Camera.value,
            'providerNativeId': None,
        }
        device_id = await scrypted_sdk.deviceManager.onDeviceDiscovered(manifest)
        camera = await self.getDevice(native_id)
        await camera.apply_settings({
            key: settings.get(key)
            for key in ('name', 'ip_address', 'password', 'stream_user', 'stream_password', 'pull_interval')
        })
        return device_id

    async def getDevice(self, nativeId: str) -> TapoCamera:
        camera = self.cameras.get(nativeId)
        if camera is None:
            self.logger.debug(f'Scrypted requested to load camera {nativeId}')
            camera = TapoCamera(nativeId, self)
            self.cameras[nativeId] = camera
        return camera

    async def releaseDevice(self, id: str, nativeId: str) -> None:
        camera = self.cameras.pop(nativeId, None)
        if camera:
            self.logger.info(f'Releasing camera {nativeId}')
            camera.cancel_pending_tasks()
            camera._cleanup()
