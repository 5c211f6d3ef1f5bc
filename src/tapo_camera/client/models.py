from __future__ import annotations

import time

from dataclasses import dataclass


DEFAULT_PULL_INTERVAL = 60000
DEFAULT_SESSION_LIFETIME = 3600.0
STREAM_QUALITIES = ('stream1', 'stream2')


@dataclass
class Session:
    token: str
    expires_at: float

    @classmethod
    def create(cls, token: str, lifetime: float = DEFAULT_SESSION_LIFETIME) -> Session:
        return cls(token=token, expires_at=time.monotonic() + lifetime)

    @property
    def expired(self) -> bool:
        return time.monotonic() >= self.expires_at

    def __repr__(self) -> str:
        return f'Session(expires_at={self.expires_at!r})'


@dataclass(frozen=True)
class DeviceInfo:
    model: str
    mac: str
    firmware: str
    hardware: str | None = None
    alias: str | None = None
    device_id: str | None = None


@dataclass(frozen=True)
class DeviceStatus:
    """Alarm and lens mask state in the camera's own polarity.

    ``lens_mask`` is True when the lens is masked (privacy on).
    """
    alert: bool
    lens_mask: bool


@dataclass
class CameraConfig:
    name: str
    host: str
    password: str
    stream_user: str | None = None
    stream_password: str | None = None
    pull_interval: int = DEFAULT_PULL_INTERVAL
    stream_quality: str = 'stream1'
    video_debug: bool = False

    def __repr__(self) -> str:
        return f'CameraConfig(name={self.name!r}, host={self.host!r}, pull_interval={self.pull_interval!r})'
