"""Envelopes for the TAPO camera control API.

Requests are JSON objects of the form ``{"method": ..., "params": {...}}``
and replies carry an integer ``error_code`` next to an optional ``result``.
Several requests can be batched through the ``multipleRequest`` method, in
which case ``result.responses`` holds one reply per request, in order.

Everything here is pure: no I/O and no state.
"""
from __future__ import annotations

from typing import Any

from ..util import AuthenticationError, DeviceError, InvalidResponseError
from .models import DeviceInfo


ERROR_CODE_SUCCESS = 0
ERROR_CODE_INVALID_SESSION = -40401
ERROR_CODE_BAD_CREDENTIALS = -40209

AUTH_ERROR_CODES = frozenset([
    ERROR_CODE_INVALID_SESSION,
    ERROR_CODE_BAD_CREDENTIALS,
])

ERROR_MESSAGES = {
    -40101: 'Parameter to set does not exist',
    -40105: 'Method does not exist',
    -40106: 'Parameter to get/do does not exist',
    ERROR_CODE_BAD_CREDENTIALS: 'Invalid login credentials',
    -40210: 'Function not supported',
    ERROR_CODE_INVALID_SESSION: 'Invalid stok value',
    -64324: 'Privacy mode is ON, not able to execute',
}

MULTIPLE_REQUEST = 'multipleRequest'


def _on_off(value: bool) -> str:
    return 'on' if value else 'off'


def _is_on(value: Any, field: str) -> bool:
    if value not in ('on', 'off'):
        raise InvalidResponseError(f'Unexpected value {value!r} for {field}')
    return value == 'on'


def _section(data: Any, *path: str) -> Any:
    current = data
    walked = []
    for key in path:
        walked.append(key)
        if not isinstance(current, dict) or key not in current:
            raise InvalidResponseError(f'Missing {".".join(walked)} in response')
        current = current[key]
    return current


def encode_login(password: str, username: str = 'admin') -> dict[str, Any]:
    return {
        'method': 'login',
        'params': {
            'hashed': True,
            'password': password,
            'username': username,
        },
    }


def encode_request(method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
    return {
        'method': method,
        'params': params or {},
    }


def encode_multiple(requests: list[dict[str, Any]]) -> dict[str, Any]:
    return encode_request(MULTIPLE_REQUEST, {'requests': requests})


def error_for(error_code: int, method: str | None = None) -> Exception:
    message = ERROR_MESSAGES.get(error_code, 'Unknown error')
    full = f'{method or "request"} failed: {message} ({error_code})'
    if error_code in AUTH_ERROR_CODES:
        return AuthenticationError(full, error_code=error_code)
    return DeviceError(full, error_code=error_code)


def _error_code(body: Any) -> int:
    if not isinstance(body, dict):
        raise InvalidResponseError(f'Expected a JSON object, got {type(body).__name__}')
    error_code = body.get('error_code')
    if isinstance(error_code, bool) or not isinstance(error_code, int):
        raise InvalidResponseError(f'Missing or invalid error_code in response: {error_code!r}')
    return error_code


def decode_response(body: Any, method: str | None = None) -> dict[str, Any]:
    error_code = _error_code(body)
    if error_code != ERROR_CODE_SUCCESS:
        raise error_for(error_code, method)
    # set* replies carry no result on success
    result = body.get('result', {})
    if not isinstance(result, dict):
        raise InvalidResponseError(f'Expected result object for {method or "request"}, got {type(result).__name__}')
    return result


def decode_multiple(result: dict[str, Any], expected: int | None = None) -> list[dict[str, Any]]:
    responses = _section(result, 'responses')
    if not isinstance(responses, list):
        raise InvalidResponseError('responses is not a list')
    if expected is not None and len(responses) != expected:
        raise InvalidResponseError(f'Expected {expected} responses, got {len(responses)}')
    return [decode_response(response, response.get('method') if isinstance(response, dict) else None) for response in responses]


def decode_login(body: Any) -> str:
    result = decode_response(body, 'login')
    token = result.get('stok')
    if not isinstance(token, str) or not token:
        raise InvalidResponseError('Unable to find token in login response')
    return token


def get_device_info() -> dict[str, Any]:
    return encode_request('getDeviceInfo', {'device_info': {'name': ['basic_info']}})


def get_alert_config() -> dict[str, Any]:
    return encode_request('getAlertConfig', {'msg_alarm': {'name': 'chn1_msg_alarm_info'}})


def get_lens_mask_config() -> dict[str, Any]:
    return encode_request('getLensMaskConfig', {'lens_mask': {'name': 'lens_mask_info'}})


def set_alert_config(enabled: bool) -> dict[str, Any]:
    return encode_request('setAlertConfig', {'msg_alarm': {'chn1_msg_alarm_info': {'enabled': _on_off(enabled)}}})


def set_lens_mask_config(enabled: bool) -> dict[str, Any]:
    return encode_request('setLensMaskConfig', {'lens_mask': {'lens_mask_info': {'enabled': _on_off(enabled)}}})


def decode_device_info(result: dict[str, Any]) -> DeviceInfo:
    basic_info = _section(result, 'device_info', 'basic_info')
    if not isinstance(basic_info, dict):
        raise InvalidResponseError('basic_info is not an object')
    try:
        return DeviceInfo(
            model=str(basic_info['device_model']),
            mac=str(basic_info['mac']),
            firmware=str(basic_info['sw_version']),
            hardware=basic_info.get('hw_version'),
            alias=basic_info.get('device_alias'),
            device_id=basic_info.get('dev_id'),
        )
    except KeyError as e:
        raise InvalidResponseError(f'Missing {e.args[0]} in basic_info') from e


def decode_alert(result: dict[str, Any]) -> bool:
    return _is_on(_section(result, 'msg_alarm', 'chn1_msg_alarm_info', 'enabled'), 'msg_alarm')


def decode_lens_mask(result: dict[str, Any]) -> bool:
    return _is_on(_section(result, 'lens_mask', 'lens_mask_info', 'enabled'), 'lens_mask')
