from __future__ import annotations

import asyncio
import inspect

from logging import Logger
from typing import Any, Awaitable, Callable, TYPE_CHECKING

from .models import DEFAULT_PULL_INTERVAL, DeviceStatus
from ..util import BackgroundTaskMixin

if TYPE_CHECKING:
    from .client import TapoClient


STATE_IDLE = 'idle'
STATE_SCHEDULED = 'scheduled'


class StatusPoller(BackgroundTaskMixin):
    """Periodically reconciles a camera's status and reports changes.

    There is a single timer task per poller. Stopping or resetting cancels
    that timer only: a tick that already started runs to completion, so its
    result still reaches the cache and the change callback. Failed ticks are
    logged and the cadence is left alone.
    """

    def __init__(
        self,
        client: TapoClient,
        on_change: Callable[[DeviceStatus], Awaitable[Any] | Any] | None = None,
        interval: int | None = None,
        logger: Logger | None = None,
    ):
        self.client = client
        self.on_change = on_change
        self.interval: int = interval or DEFAULT_PULL_INTERVAL
        self.logger: Logger = logger or client.logger
        self.last_status: DeviceStatus | None = None

    @property
    def state(self) -> str:
        if any(not task.done() for task in self.tasks_by_tag('poll_timer')):
            return STATE_SCHEDULED
        return STATE_IDLE

    def start(self, interval: int | None = None) -> None:
        self.stop()
        if interval:
            self.interval = interval
        self.create_task(self._run(self.interval / 1000), tag='poll_timer')

    def reset(self, interval: int | None = None) -> None:
        self.stop()
        self.start(interval)

    def set_interval(self, interval: int) -> None:
        self.interval = interval
        if self.state == STATE_SCHEDULED:
            self.reset(interval)

    def stop(self) -> None:
        self.cancel_tasks_by_tag('poll_timer')

    def close(self) -> None:
        self.stop()
        self.cancel_pending_tasks()

    async def _run(self, period: float) -> None:
        while True:
            await asyncio.sleep(period)
            self.logger.debug(f'Time to refresh status of {self.client.host}')
            tick = self.create_task(self.tick(), tag='poll_tick')
            await asyncio.shield(tick)

    async def tick(self) -> DeviceStatus | None:
        try:
            status = await self.client.get_status()
        except Exception as e:
            self.logger.error(f'Error refreshing status of {self.client.host}: {e}')
            return None
        await self._observe(status)
        return status

    async def _observe(self, status: DeviceStatus) -> None:
        if status == self.last_status:
            return
        self.last_status = status
        if self.on_change is None:
            return
        try:
            result = self.on_change(status)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            self.logger.error(f'Error handling status change of {self.client.host}: {e}', exc_info=True)
