from __future__ import annotations

import asyncio

from logging import Logger
from typing import Any, Callable

from . import codec
from .models import DEFAULT_SESSION_LIFETIME, Session
from .request import Request
from ..logging import StdoutLoggerFactory
from ..util import AuthenticationError


class TapoTransport:
    """Authenticated access to one camera's control endpoint.

    The session token (``stok``) is obtained lazily. Concurrent callers that
    need a session while a login is in flight all wait on that same login.
    A call that fails with an auth fault gets one fresh login and one retry.
    """

    def __init__(
        self,
        host: str,
        password: str,
        request: Request | None = None,
        logger: Logger | None = None,
        session_lifetime: float = DEFAULT_SESSION_LIFETIME,
        username: str = 'admin',
    ):
        self.host: str = host
        self.logger: Logger = logger or StdoutLoggerFactory.get_logger(name='Client')
        self.request: Request = request or Request(logger=self.logger)
        self.session_lifetime: float = session_lifetime
        self._password: str = password
        self._username: str = username
        self._session: Session | None = None
        self._login_future: asyncio.Future[Session] | None = None

    @property
    def base_url(self) -> str:
        return f'https://{self.host}'

    @property
    def session(self) -> Session | None:
        return self._session

    def _ds_url(self, session: Session) -> str:
        return f'{self.base_url}/stok={session.token}/ds'

    async def ensure_session(self) -> Session:
        session = self._session
        if session is not None and not session.expired:
            return session
        if self._login_future is None:
            if session is not None:
                self.logger.debug(f'Session for {self.host} expired, logging in again')
            self._login_future = asyncio.ensure_future(self._login())
            self._login_future.add_done_callback(self._clear_login_future)
        return await asyncio.shield(self._login_future)

    def _clear_login_future(self, future: asyncio.Future) -> None:
        if self._login_future is future:
            self._login_future = None

    async def _login(self) -> Session:
        self.logger.debug(f'Logging in to {self.host}')
        body = await self.request.post(
            f'{self.base_url}/',
            params=codec.encode_login(self._password, self._username),
        )
        token = codec.decode_login(body)
        self._session = Session.create(token, self.session_lifetime)
        self.logger.info(f'Logged in to {self.host}')
        return self._session

    def invalidate_session(self, session: Session | None = None) -> None:
        if session is None or session is self._session:
            self._session = None

    async def call(self, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self.execute(codec.encode_request(method, params))

    async def multiple_call(self, requests: list[dict[str, Any]]) -> list[dict[str, Any]]:
        return await self.execute(
            codec.encode_multiple(requests),
            decode=lambda result: codec.decode_multiple(result, expected=len(requests)),
        )

    async def execute(self, payload: dict[str, Any], decode: Callable[[dict[str, Any]], Any] | None = None) -> Any:
        method = payload.get('method')
        session = await self.ensure_session()
        try:
            return await self._send(session, payload, decode)
        except AuthenticationError as e:
            self.logger.debug(f'{method} on {self.host} rejected ({e}), retrying with a new session')
            self.invalidate_session(session)
        session = await self.ensure_session()
        return await self._send(session, payload, decode)

    async def _send(
        self,
        session: Session,
        payload: dict[str, Any],
        decode: Callable[[dict[str, Any]], Any] | None = None,
    ) -> Any:
        body = await self.request.post(self._ds_url(session), params=payload)
        result = codec.decode_response(body, payload.get('method'))
        # sub-responses of a multipleRequest carry their own auth faults
        return decode(result) if decode else result

    def close(self) -> None:
        self._session = None
        self.request.close()
