from __future__ import annotations

import asyncio
import http.client
import logging
import ssl

from curl_cffi import CurlError
from curl_cffi.requests import Session as CurlCffiSession
from json import JSONDecodeError
from logging import Logger
from requests import Response, Session
from requests.adapters import HTTPAdapter
from requests.exceptions import RequestException
from typing import Any
from urllib3.exceptions import InsecureRequestWarning
from urllib3.util.ssl_ import create_urllib3_context

import urllib3

from ..logging import StdoutLoggerFactory
from ..util import (
    AuthenticationError,
    InvalidResponseError,
    TransientNetworkError,
)

urllib3.disable_warnings(InsecureRequestWarning)


class LegacyTLSAdapter(HTTPAdapter):
    """Accepts the camera's self-signed certificate and older cipher suites."""

    def init_poolmanager(self, *args, **kwargs):
        ctx = create_urllib3_context()
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
        ctx.set_ciphers('ALL:@SECLEVEL=0')
        kwargs['ssl_context'] = ctx
        return super().init_poolmanager(*args, **kwargs)


class Request:
    def __init__(
        self,
        timeout: int = 10,
        mode: str = 'curl',
        extra_debug_logging: bool = False,
        logger: Logger | None = None,
    ):
        self.logger: Logger = logger or StdoutLoggerFactory.get_logger(name='Client')
        self.timeout: int = timeout
        self.mode: str = mode.lower()
        self.extra_debug_logging: bool = extra_debug_logging
        self.set_logging()
        try:
            self.session: CurlCffiSession | Session = self._initialize_session()
        except Exception as e:
            raise RuntimeError(f'Failed to initialize HTTP session for mode "{self.mode}": {e}')

    def set_logging(self):
        request_logger: Logger = logging.getLogger('requests.packages.urllib3')
        for handler in list(request_logger.handlers):
            request_logger.removeHandler(handler)
        if self.extra_debug_logging:
            http.client.HTTPConnection.debuglevel = 1
            for handler in list(self.logger.handlers):
                request_logger.addHandler(handler)
            request_logger.setLevel(self.logger.level)
            request_logger.propagate = False
        else:
            http.client.HTTPConnection.debuglevel = 0
            request_logger.setLevel(logging.WARNING)
            request_logger.propagate = True

    def _initialize_session(self) -> CurlCffiSession | Session:
        if self.mode == 'curl':
            self.logger.debug('HTTP helper using curl_cffi')
            return CurlCffiSession(verify=False)
        self.logger.debug('HTTP helper using requests with LegacyTLSAdapter')
        session = Session()
        session.verify = False
        session.mount('https://', LegacyTLSAdapter())
        return session

    def _request(
        self,
        url: str,
        method: str = 'POST',
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        method = method.upper()
        if self.extra_debug_logging:
            self.logger.debug(f'HTTP {method} {self._redact(url)} method={(params or {}).get("method")}')
        try:
            response = self._send_request(url, method, params, headers)
        except (RequestException, CurlError) as e:
            raise TransientNetworkError(f'Network error for {method} {self._redact(url)}: {e}') from e
        status_code = response.status_code
        if status_code in (401, 403):
            raise AuthenticationError(f'HTTP {status_code} for {method} {self._redact(url)}')
        if 500 <= status_code < 600:
            raise TransientNetworkError(f'Server error {status_code} for {method} {self._redact(url)}')
        if not 200 <= status_code < 300:
            raise InvalidResponseError(f'Unexpected status {status_code} for {method} {self._redact(url)}')
        try:
            body = response.json()
        except (JSONDecodeError, ValueError) as e:
            self.logger.error(f'Invalid JSON from {self._redact(url)}: {e}')
            raise InvalidResponseError(f'Invalid JSON response from {self._redact(url)}') from e
        if self.extra_debug_logging:
            self.logger.debug(f'Response {method} {self._redact(url)}: error_code={body.get("error_code") if isinstance(body, dict) else None}')
        return body

    def _send_request(
        self,
        url: str,
        method: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Response:
        if method == 'POST':
            return self.session.post(url, json=params, headers=headers, timeout=self.timeout, verify=False)
        else:
            raise ValueError(f'Unsupported HTTP method: {method}')

    @staticmethod
    def _redact(url: str) -> str:
        if '/stok=' not in url:
            return url
        head, _, tail = url.partition('/stok=')
        _, _, rest = tail.partition('/')
        return f'{head}/stok=***/{rest}'

    async def post(self, url: str, **kwargs) -> dict[str, Any]:
        return await asyncio.to_thread(self._request, url, 'POST', **kwargs)

    def close(self) -> None:
        if hasattr(self.session, 'close'):
            self.session.close()
