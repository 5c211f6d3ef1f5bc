from __future__ import annotations

import asyncio

from logging import Logger
from urllib.parse import quote

from . import codec
from .cache import DEFAULT_SETTLE_TIME, StatusCache
from .models import CameraConfig, DeviceInfo, DeviceStatus, STREAM_QUALITIES
from .request import Request
from .transport import TapoTransport
from ..logging import StdoutLoggerFactory

RTSP_PORT = 554


class TapoClient:
    def __init__(
        self,
        config: CameraConfig,
        logger: Logger | None = None,
        transport: TapoTransport | None = None,
        extra_debug_logging: bool = False,
        settle_time: float = DEFAULT_SETTLE_TIME,
    ):
        self.config: CameraConfig = config
        self.logger: Logger = logger or StdoutLoggerFactory.get_logger(name='Client')
        self.transport: TapoTransport = transport or TapoTransport(
            config.host,
            config.password,
            request=Request(extra_debug_logging=extra_debug_logging, logger=self.logger),
            logger=self.logger,
        )
        self.cache: StatusCache = StatusCache(settle_time=settle_time, logger=self.logger)
        self._device_info: DeviceInfo | None = None
        self._device_info_lock = asyncio.Lock()

    @property
    def host(self) -> str:
        return self.config.host

    @property
    def device_info(self) -> DeviceInfo | None:
        return self._device_info

    async def get_info(self) -> DeviceInfo:
        if self._device_info is not None:
            return self._device_info
        async with self._device_info_lock:
            if self._device_info is None:
                self.logger.debug(f'Fetching device info from {self.host}')
                request = codec.get_device_info()
                result = await self.transport.call(request['method'], request['params'])
                self._device_info = codec.decode_device_info(result)
                self.logger.debug(f'Device info for {self.host}: {self._device_info}')
            return self._device_info

    async def get_status(self) -> DeviceStatus:
        sequence = self.cache.next_sequence()
        alert_result, lens_mask_result = await self.transport.multiple_call([
            codec.get_alert_config(),
            codec.get_lens_mask_config(),
        ])
        fetched = {
            'alert': codec.decode_alert(alert_result),
            'lens_mask': codec.decode_lens_mask(lens_mask_result),
        }
        self.logger.debug(f'Fetched status #{sequence} from {self.host}: {fetched}')
        self.cache.apply_read(sequence, fetched)
        return self.cache.snapshot()

    async def set_alert_config(self, enabled: bool) -> None:
        self.logger.debug(f'Setting alarm on {self.host} to {"on" if enabled else "off"}')
        await self._write('alert', codec.set_alert_config(enabled), enabled)

    async def set_lens_mask_config(self, enabled: bool) -> None:
        self.logger.debug(f'Setting lens mask on {self.host} to {"on" if enabled else "off"}')
        await self._write('lens_mask', codec.set_lens_mask_config(enabled), enabled)

    async def _write(self, field: str, request: dict, value: bool) -> None:
        sequence = self.cache.begin_write(field)
        confirmed = None
        try:
            await self.transport.call(request['method'], request['params'])
            confirmed = value
        finally:
            self.cache.end_write(field, sequence, confirmed)

    def get_stream_url(self, quality: str | None = None) -> str:
        quality = quality or self.config.stream_quality
        if quality not in STREAM_QUALITIES:
            raise ValueError(f'Unknown stream quality {quality!r}, expected one of {STREAM_QUALITIES}')
        credentials = ''
        if self.config.stream_user:
            credentials = quote(self.config.stream_user, safe='')
            if self.config.stream_password:
                credentials += ':' + quote(self.config.stream_password, safe='')
            credentials += '@'
        return f'rtsp://{credentials}{self.host}:{RTSP_PORT}/{quality}'

    def close(self) -> None:
        self.transport.close()
