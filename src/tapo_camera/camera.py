from __future__ import annotations

import asyncio

from typing import TYPE_CHECKING

import scrypted_sdk
from scrypted_sdk.types import (
    Device,
    DeviceProvider,
    MediaObject,
    RequestMediaStreamOptions,
    ResponseMediaStreamOptions,
    ScryptedDeviceType,
    ScryptedInterface,
    Setting,
    SettingValue,
    Settings,
    VideoCamera,
)

from .base import MANUFACTURER, TapoDeviceBase
from .client import CameraConfig, DeviceInfo, DeviceStatus, StatusPoller, TapoClient
from .client.models import DEFAULT_PULL_INTERVAL, STREAM_QUALITIES
from .switch import TapoAlarmSwitch, TapoBaseSwitch, TapoEyesSwitch

if TYPE_CHECKING:
    from .provider import TapoProvider


CONFIG_KEYS = ('ip_address', 'password', 'stream_user', 'stream_password')
STREAM_NAMES = {
    'stream1': 'HD',
    'stream2': 'SD',
}


class TapoCamera(TapoDeviceBase, Settings, VideoCamera, DeviceProvider):
    device_info: DeviceInfo = None
    alarm_switch: TapoAlarmSwitch = None
    eyes_switch: TapoEyesSwitch = None

    def __init__(self, nativeId: str, provider: TapoProvider) -> None:
        super().__init__(nativeId=nativeId, provider=provider)
        self.client: TapoClient = None
        self.poller: StatusPoller = None
        self._build_client()
        self.create_task(self._delayed_init(), tag='initialize_camera')

    def _build_client(self) -> None:
        if self.poller:
            self.poller.close()
        if self.client:
            self.client.close()
        self.client = TapoClient(
            self.camera_config,
            logger=self.logger,
            extra_debug_logging=self.provider.extra_debug_logging,
        )
        self.poller = StatusPoller(
            self.client,
            on_change=self.update_status,
            interval=self.pull_interval,
            logger=self.logger,
        )

    async def _delayed_init(self) -> None:
        if not self.ip_address or not self.password:
            self.logger.info('IP address or password not set. Waiting for camera settings.')
            return
        self.logger.info(f'Setup camera {self.camera_name}')
        while True:
            try:
                self.device_info = await self.client.get_info()
                break
            except Exception as e:
                self.logger.error(f'Could not load device info from {self.ip_address}, will try again: {e}')
                await asyncio.sleep(self.pull_interval / 1000)
        await self._announce()
        try:
            self.update_status(await self.client.get_status())
        except Exception as e:
            self.logger.error(f'Could not load initial status: {e}')
        self.poller.start(self.pull_interval)

    async def _announce(self) -> None:
        manifests = [self.get_device_manifest(name=self.camera_name)]
        manifests.extend(self.get_builtin_child_device_manifests())
        for manifest in manifests:
            await scrypted_sdk.deviceManager.onDeviceDiscovered(manifest)

    @property
    def camera_name(self) -> str:
        return self.providedName or self.storage.getItem('name') or self.nativeId

    @property
    def ip_address(self) -> str:
        return self.storage.getItem('ip_address')

    @property
    def password(self) -> str:
        return self.storage.getItem('password')

    @property
    def stream_user(self) -> str:
        return self.storage.getItem('stream_user')

    @property
    def stream_password(self) -> str:
        return self.storage.getItem('stream_password')

    @property
    def pull_interval(self) -> int:
        val = self.storage.getItem('pull_interval')
        if val is None:
            val = DEFAULT_PULL_INTERVAL
            self.storage.setItem('pull_interval', val)
        return int(val)

    @property
    def stream_quality(self) -> str:
        quality = self.storage.getItem('stream_quality')
        if quality not in STREAM_QUALITIES:
            quality = 'stream1'
            self.storage.setItem('stream_quality', quality)
        return quality

    @property
    def video_debug(self) -> bool:
        return str(self.storage.getItem('video_debug')).lower() == 'true'

    @property
    def camera_config(self) -> CameraConfig:
        return CameraConfig(
            name=self.camera_name,
            host=self.ip_address or '',
            password=self.password or '',
            stream_user=self.stream_user,
            stream_password=self.stream_password,
            pull_interval=self.pull_interval,
            stream_quality=self.stream_quality,
            video_debug=self.video_debug,
        )

    def get_applicable_interfaces(self) -> list[str]:
        return [
            ScryptedInterface.VideoCamera.value,
            ScryptedInterface.Settings.value,
            ScryptedInterface.DeviceProvider.value,
        ]

    def get_device_type(self) -> str:
        return ScryptedDeviceType.Camera.value

    def get_device_info(self) -> dict:
        info = super().get_device_info()
        if self.device_info:
            info.update({
                'model': self.device_info.model,
                'serialNumber': self.device_info.mac,
                'firmware': self.device_info.firmware,
            })
        return info

    def get_builtin_child_device_manifests(self) -> list[Device]:
        self._create_switches()
        return [
            switch.get_device_manifest(
                name=f'{self.camera_name} - {switch.label.capitalize()}',
                provider_native_id=self.nativeId,
            )
            for switch in (self.alarm_switch, self.eyes_switch)
        ]

    def _create_switches(self) -> None:
        if not self.alarm_switch:
            self.alarm_switch = TapoAlarmSwitch(f'{self.nativeId}.alarm', self.provider, self)
        if not self.eyes_switch:
            self.eyes_switch = TapoEyesSwitch(f'{self.nativeId}.eyes', self.provider, self)

    async def getDevice(self, nativeId: str) -> TapoBaseSwitch:
        self._create_switches()
        if nativeId.endswith('.alarm'):
            return self.alarm_switch
        if nativeId.endswith('.eyes'):
            return self.eyes_switch
        return None

    async def releaseDevice(self, id: str, nativeId: str) -> None:
        pass

    def update_status(self, status: DeviceStatus) -> None:
        self.logger.debug(f'Status update: alarm={status.alert} lens_mask={status.lens_mask}')
        self._create_switches()
        self.alarm_switch.update_from_status(status)
        self.eyes_switch.update_from_status(status)

    async def getSettings(self) -> list[Setting]:
        return [
            {
                'group': 'General',
                'key': 'ip_address',
                'title': 'IP Address',
                'value': self.ip_address,
            },
            {
                'group': 'General',
                'key': 'password',
                'title': 'Camera Password',
                'description': 'The password used by the TAPO app to talk to the camera.',
                'type': 'password',
                'value': self.password,
            },
            {
                'group': 'General',
                'key': 'pull_interval',
                'title': 'Pull Interval',
                'description': 'Time, in milliseconds, between status refreshes of the Alarm and Eyes switches.',
                'type': 'number',
                'value': self.pull_interval,
            },
            {
                'group': 'Stream',
                'key': 'stream_user',
                'title': 'Stream User',
                'description': 'Camera account username, set up in the TAPO app under Advanced Settings.',
                'value': self.stream_user,
            },
            {
                'group': 'Stream',
                'key': 'stream_password',
                'title': 'Stream Password',
                'type': 'password',
                'value': self.stream_password,
            },
            {
                'group': 'Stream',
                'key': 'stream_quality',
                'title': 'Default Stream',
                'value': self.stream_quality,
                'choices': list(STREAM_QUALITIES),
            },
            {
                'group': 'Stream',
                'key': 'video_debug',
                'title': 'Video Debug',
                'description': 'Runs ffmpeg with debug logging.',
                'type': 'boolean',
                'value': self.video_debug,
            },
        ]

    async def putSetting(self, key: str, value: SettingValue) -> None:
        if not self._validate_setting(key, value):
            await self.onDeviceEvent(ScryptedInterface.Settings.value, None)
            return
        if key in CONFIG_KEYS:
            self.storage.setItem(key, value)
            await self._restart()
        elif key == 'pull_interval':
            self.storage.setItem(key, str(int(value)))
            self.poller.set_interval(self.pull_interval)
        elif key == 'video_debug':
            self.storage.setItem(key, 'true' if value in (True, 'true') else 'false')
        else:
            self.storage.setItem(key, value)
        await self.onDeviceEvent(ScryptedInterface.Settings.value, None)

    async def apply_settings(self, settings: dict) -> None:
        for key, value in settings.items():
            if value is not None:
                self.storage.setItem(key, value)
        await self._restart()

    async def _restart(self) -> None:
        await self.cancel_and_await_tasks_by_tag('initialize_camera')
        self._build_client()
        self.create_task(self._delayed_init(), tag='initialize_camera')

    def _validate_setting(self, key: str, val: SettingValue) -> bool:
        try:
            if key == 'pull_interval':
                if int(val) <= 0:
                    raise ValueError('must be positive')
            elif key == 'stream_quality':
                if val not in STREAM_QUALITIES:
                    raise ValueError(f'must be one of {list(STREAM_QUALITIES)}')
        except (TypeError, ValueError) as e:
            self.logger.error(f'Invalid value for {key}: "{val}" - {e}')
            return False
        return True

    async def getVideoStreamOptions(self, id: str = None) -> list[ResponseMediaStreamOptions]:
        options: list[ResponseMediaStreamOptions] = [
            {
                'id': quality,
                'name': STREAM_NAMES[quality],
                'container': 'rtsp',
                'video': {
                    'codec': 'h264',
                },
                'audio': {
                    'codec': 'pcm_alaw',
                },
                'source': 'local',
                'tool': 'ffmpeg',
                'userConfigurable': False,
            }
            for quality in STREAM_QUALITIES
        ]
        options.sort(key=lambda o: o['id'] != self.stream_quality)
        if id is None:
            return options
        return next(iter([o for o in options if o['id'] == id]), options[0])

    async def getVideoStream(self, options: RequestMediaStreamOptions = None) -> MediaObject:
        options = options or {}
        mso = await self.getVideoStreamOptions(id=options.get('id', self.stream_quality))
        url = self.client.get_stream_url(mso['id'])
        self.logger.debug(f'Requesting {mso["name"]} stream')
        input_arguments = ['-rtsp_transport', 'tcp', '-i', url]
        if self.video_debug:
            input_arguments = ['-loglevel', 'debug'] + input_arguments
        ffmpeg_input = {
            'url': url,
            'container': 'rtsp',
            'mediaStreamOptions': mso,
            'inputArguments': input_arguments,
        }
        return await scrypted_sdk.mediaManager.createFFmpegMediaObject(ffmpeg_input)

    def _cleanup(self) -> None:
        if self.poller:
            self.poller.close()
        if self.client:
            self.client.close()
