"""
Unit tests for the camera API envelopes in tapo_camera.client.codec.
"""
import pytest

from tapo_camera.client import codec
from tapo_camera.client.models import DeviceInfo
from tapo_camera.util import AuthenticationError, DeviceError, InvalidResponseError


class TestEncode:
    def test_login_passes_password_through_untouched(self):
        payload = codec.encode_login('ABCDEF0123==')
        assert payload == {
            'method': 'login',
            'params': {'hashed': True, 'password': 'ABCDEF0123==', 'username': 'admin'},
        }

    def test_request_without_params(self):
        assert codec.encode_request('getDeviceInfo') == {'method': 'getDeviceInfo', 'params': {}}

    def test_multiple_wraps_requests(self):
        payload = codec.encode_multiple([codec.get_alert_config(), codec.get_lens_mask_config()])
        assert payload['method'] == 'multipleRequest'
        assert [r['method'] for r in payload['params']['requests']] == ['getAlertConfig', 'getLensMaskConfig']

    @pytest.mark.parametrize('enabled,expected', [(True, 'on'), (False, 'off')])
    def test_set_alert_config(self, enabled, expected):
        payload = codec.set_alert_config(enabled)
        assert payload['method'] == 'setAlertConfig'
        assert payload['params']['msg_alarm']['chn1_msg_alarm_info']['enabled'] == expected

    @pytest.mark.parametrize('enabled,expected', [(True, 'on'), (False, 'off')])
    def test_set_lens_mask_config(self, enabled, expected):
        payload = codec.set_lens_mask_config(enabled)
        assert payload['method'] == 'setLensMaskConfig'
        assert payload['params']['lens_mask']['lens_mask_info']['enabled'] == expected


class TestDecodeResponse:
    def test_success_returns_result(self):
        assert codec.decode_response({'error_code': 0, 'result': {'a': 1}}) == {'a': 1}

    def test_success_without_result_is_empty(self):
        assert codec.decode_response({'error_code': 0}) == {}

    def test_extra_fields_are_ignored(self):
        body = {'error_code': 0, 'result': {'a': 1}, 'new_firmware_field': [1, 2]}
        assert codec.decode_response(body) == {'a': 1}

    @pytest.mark.parametrize('body', [
        {},
        {'error_code': 'zero'},
        {'error_code': None},
        {'error_code': True},
        [],
        'not json object',
    ])
    def test_missing_error_code_fails_closed(self, body):
        with pytest.raises(InvalidResponseError):
            codec.decode_response(body)

    def test_non_object_result_fails_closed(self):
        with pytest.raises(InvalidResponseError):
            codec.decode_response({'error_code': 0, 'result': 'ok'})

    @pytest.mark.parametrize('code', [-40401, -40209])
    def test_auth_codes_raise_authentication_error(self, code):
        with pytest.raises(AuthenticationError) as exc_info:
            codec.decode_response({'error_code': code}, 'getDeviceInfo')
        assert exc_info.value.error_code == code

    def test_other_codes_raise_device_error(self):
        with pytest.raises(DeviceError) as exc_info:
            codec.decode_response({'error_code': -40210}, 'setLensMaskConfig')
        assert exc_info.value.error_code == -40210
        assert 'Function not supported' in str(exc_info.value)
        assert 'setLensMaskConfig' in str(exc_info.value)

    def test_device_error_is_a_protocol_error(self):
        assert issubclass(DeviceError, InvalidResponseError)

    def test_unknown_code_message(self):
        with pytest.raises(DeviceError, match='Unknown error'):
            codec.decode_response({'error_code': -1})


class TestDecodeMultiple:
    def test_returns_results_in_order(self):
        result = {'responses': [
            {'method': 'a', 'error_code': 0, 'result': {'x': 1}},
            {'method': 'b', 'error_code': 0, 'result': {'y': 2}},
        ]}
        assert codec.decode_multiple(result, expected=2) == [{'x': 1}, {'y': 2}]

    def test_missing_responses(self):
        with pytest.raises(InvalidResponseError, match='responses'):
            codec.decode_multiple({})

    def test_count_mismatch(self):
        with pytest.raises(InvalidResponseError):
            codec.decode_multiple({'responses': [{'error_code': 0}]}, expected=2)

    def test_sub_response_error(self):
        result = {'responses': [{'method': 'getLensMaskConfig', 'error_code': -40106}]}
        with pytest.raises(DeviceError):
            codec.decode_multiple(result)


class TestDecodeLogin:
    def test_returns_token(self):
        assert codec.decode_login({'error_code': 0, 'result': {'stok': 'abc', 'user_group': 'root'}}) == 'abc'

    @pytest.mark.parametrize('result', [{}, {'stok': ''}, {'stok': 42}])
    def test_missing_token(self, result):
        with pytest.raises(InvalidResponseError, match='token'):
            codec.decode_login({'error_code': 0, 'result': result})

    def test_rejected_credentials(self):
        with pytest.raises(AuthenticationError):
            codec.decode_login({'error_code': -40401})


class TestDecodeState:
    def test_device_info(self):
        result = {'device_info': {'basic_info': {
            'device_model': 'C200',
            'mac': 'AA-BB',
            'sw_version': '1.0.0',
            'hw_version': '2.0',
            'extra': 'ignored',
        }}}
        assert codec.decode_device_info(result) == DeviceInfo(
            model='C200', mac='AA-BB', firmware='1.0.0', hardware='2.0',
        )

    @pytest.mark.parametrize('missing', ['device_model', 'mac', 'sw_version'])
    def test_device_info_requires_identity_fields(self, missing):
        basic_info = {'device_model': 'C200', 'mac': 'AA-BB', 'sw_version': '1.0.0'}
        del basic_info[missing]
        with pytest.raises(InvalidResponseError, match=missing):
            codec.decode_device_info({'device_info': {'basic_info': basic_info}})

    def test_device_info_missing_section(self):
        with pytest.raises(InvalidResponseError, match='device_info.basic_info'):
            codec.decode_device_info({'device_info': {}})

    @pytest.mark.parametrize('value,expected', [('on', True), ('off', False)])
    def test_alert(self, value, expected):
        result = {'msg_alarm': {'chn1_msg_alarm_info': {'enabled': value, 'light_type': '1'}}}
        assert codec.decode_alert(result) is expected

    @pytest.mark.parametrize('value,expected', [('on', True), ('off', False)])
    def test_lens_mask(self, value, expected):
        assert codec.decode_lens_mask({'lens_mask': {'lens_mask_info': {'enabled': value}}}) is expected

    def test_unexpected_flag_value(self):
        with pytest.raises(InvalidResponseError):
            codec.decode_lens_mask({'lens_mask': {'lens_mask_info': {'enabled': 'maybe'}}})

    def test_missing_flag(self):
        with pytest.raises(InvalidResponseError, match='msg_alarm.chn1_msg_alarm_info'):
            codec.decode_alert({'msg_alarm': {}})
