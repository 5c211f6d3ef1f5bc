from __future__ import annotations

import time

from logging import Logger

from .models import DeviceStatus


STATUS_FIELDS = ('alert', 'lens_mask')
DEFAULT_SETTLE_TIME = 5.0


class StatusCache:
    """Last known alarm/lens mask values, merged in command issue order.

    Every command takes a sequence number when it is issued. A result only
    lands on a field if it is newer than what the field already holds, so
    the field ends on the value of the last issued command whatever order
    the replies arrive in. Reads additionally back off from a field while a
    write to it is in flight, and for ``settle_time`` seconds after a write
    succeeded, unless they agree with it.
    """

    def __init__(self, settle_time: float = DEFAULT_SETTLE_TIME, logger: Logger | None = None):
        self.settle_time = settle_time
        self.logger = logger
        self._sequence = 0
        self._values: dict[str, bool] = {}
        self._applied: dict[str, int] = {field: 0 for field in STATUS_FIELDS}
        self._pending_writes: dict[str, int] = {field: 0 for field in STATUS_FIELDS}
        self._held_until: dict[str, float] = {field: 0.0 for field in STATUS_FIELDS}

    def next_sequence(self) -> int:
        self._sequence += 1
        return self._sequence

    def begin_write(self, field: str) -> int:
        self._pending_writes[field] += 1
        return self.next_sequence()

    def end_write(self, field: str, sequence: int, value: bool | None) -> None:
        """Finish a write; ``value`` is None when the write failed."""
        self._pending_writes[field] -= 1
        if value is None:
            return
        if sequence <= self._applied[field]:
            self._debug(f'Dropping superseded write #{sequence} of {field}')
            return
        self._values[field] = value
        self._applied[field] = sequence
        self._held_until[field] = time.monotonic() + self.settle_time

    def apply_read(self, sequence: int, values: dict[str, bool]) -> None:
        now = time.monotonic()
        for field, value in values.items():
            if field not in self._values:
                # first fill; an in-flight write still overrides it
                self._values[field] = value
                if not self._pending_writes[field]:
                    self._applied[field] = sequence
                continue
            if self._pending_writes[field]:
                self._debug(f'Ignoring read #{sequence} of {field}, write in flight')
                continue
            if sequence <= self._applied[field]:
                self._debug(f'Ignoring stale read #{sequence} of {field}')
                continue
            if now < self._held_until[field] and value != self._values[field]:
                self._debug(f'Ignoring read #{sequence} of {field}, write still settling')
                continue
            self._values[field] = value
            self._applied[field] = sequence

    def snapshot(self) -> DeviceStatus | None:
        if any(field not in self._values for field in STATUS_FIELDS):
            return None
        return DeviceStatus(alert=self._values['alert'], lens_mask=self._values['lens_mask'])

    def _debug(self, message: str) -> None:
        if self.logger:
            self.logger.debug(message)
