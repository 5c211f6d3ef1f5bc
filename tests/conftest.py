"""
Shared fixtures for the TAPO camera client tests.

FakeCamera mimics the camera's local control API at the level of
Request.post(): a login endpoint handing out stok tokens and a ds endpoint
answering single and multipleRequest envelopes.
"""
import asyncio
import logging

import pytest
from unittest.mock import AsyncMock, MagicMock

from tapo_camera.client import CameraConfig, TapoClient, TapoTransport
from tapo_camera.util import TransientNetworkError


HOST = '192.168.1.50'


class FakeCamera:
    def __init__(self):
        self.alert = False
        self.lens_mask = False
        self.apply_writes = True
        self.login_calls = 0
        self.ds_calls: list[dict] = []
        self.auth_failures = 0
        self.bad_password = False
        self.network_errors = 0
        self.delay = 0.0
        self.method_errors: dict[str, int] = {}
        self.method_auth_failures: dict[str, int] = {}
        self.basic_info = {
            'device_model': 'C200',
            'mac': 'AA-BB-CC-DD-EE-FF',
            'sw_version': '1.1.18 Build 220518',
            'hw_version': '1.0',
            'device_alias': 'Living Room',
            'dev_id': 'ABC123',
            'some_future_field': {'nested': True},
        }

    def calls_of(self, method: str) -> int:
        count = 0
        for payload in self.ds_calls:
            if payload['method'] == method:
                count += 1
            elif payload['method'] == 'multipleRequest':
                count += sum(1 for r in payload['params']['requests'] if r['method'] == method)
        return count

    async def post(self, url, params=None, **kwargs):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.network_errors:
            self.network_errors -= 1
            raise TransientNetworkError(f'Network error for POST {url}')
        if url == f'https://{HOST}/':
            return self._login(params)
        assert '/stok=' in url and url.endswith('/ds')
        self.ds_calls.append(params)
        if self.auth_failures:
            self.auth_failures -= 1
            return {'error_code': -40401}
        return self._handle(params)

    def _login(self, params):
        self.login_calls += 1
        assert params['method'] == 'login'
        if self.bad_password:
            return {'error_code': -40401}
        return {'error_code': 0, 'result': {'stok': f'token-{self.login_calls}', 'user_group': 'root'}}

    def _handle(self, payload):
        method = payload['method']
        params = payload.get('params', {})
        if method in self.method_errors:
            return {'error_code': self.method_errors[method], 'method': method}
        if self.method_auth_failures.get(method):
            self.method_auth_failures[method] -= 1
            return {'error_code': -40401, 'method': method}
        if method == 'multipleRequest':
            return {
                'error_code': 0,
                'result': {'responses': [self._handle(request) for request in params['requests']]},
            }
        if method == 'getDeviceInfo':
            result = {'device_info': {'basic_info': dict(self.basic_info)}}
        elif method == 'getAlertConfig':
            result = {'msg_alarm': {'chn1_msg_alarm_info': {
                'enabled': 'on' if self.alert else 'off',
                'alarm_type': '0',
                'light_type': '0',
            }}}
        elif method == 'getLensMaskConfig':
            result = {'lens_mask': {'lens_mask_info': {'enabled': 'on' if self.lens_mask else 'off'}}}
        elif method == 'setAlertConfig':
            if self.apply_writes:
                self.alert = params['msg_alarm']['chn1_msg_alarm_info']['enabled'] == 'on'
            result = {}
        elif method == 'setLensMaskConfig':
            if self.apply_writes:
                self.lens_mask = params['lens_mask']['lens_mask_info']['enabled'] == 'on'
            result = {}
        else:
            return {'error_code': -40105, 'method': method}
        return {'error_code': 0, 'method': method, 'result': result}


@pytest.fixture
def logger():
    return logging.getLogger('tapo-tests')


@pytest.fixture
def fake_camera():
    return FakeCamera()


@pytest.fixture
def mock_request(fake_camera):
    request = MagicMock()
    request.post = AsyncMock(side_effect=fake_camera.post)
    return request


@pytest.fixture
def transport(mock_request, logger):
    return TapoTransport(HOST, 'opaque-secret', request=mock_request, logger=logger)


@pytest.fixture
def camera_config():
    return CameraConfig(
        name='Living Room',
        host=HOST,
        password='opaque-secret',
        stream_user='viewer',
        stream_password='p@ss:word',
        pull_interval=1000,
    )


@pytest.fixture
def client(camera_config, transport, logger):
    return TapoClient(camera_config, logger=logger, transport=transport)
