"""
Tests for VaultData.

Tests cover:
- Dict-like behaviour (MutableMapping)
- Typed accessors and their zero-value fallbacks
- Byte field decoding errors
- JSON encode/decode
"""
import base64

import pytest

from vault_session.data import VaultData, MAX_UINT64, parse_bool, parse_uint64
from vault_session.exceptions import VaultError, MissingFieldError


@pytest.fixture
def data():
    """Create an empty VaultData instance."""
    return VaultData()


# --- Test Magic Methods ---

class TestMagicMethods:
    """Tests for dict-like magic methods."""

    def test_empty_record(self, data):
        assert data.empty is True
        assert len(data) == 0

    def test_initial_data(self):
        record = VaultData({'user': 'admin'}, port='5432')
        assert record['user'] == 'admin'
        assert record['port'] == '5432'
        assert len(record) == 2

    def test_setitem_getitem(self, data):
        data['name'] = 'test'
        assert data['name'] == 'test'
        assert 'name' in data
        assert data.exist('name') is True

    def test_getitem_keyerror(self, data):
        with pytest.raises(KeyError):
            _ = data['nonexistent']

    def test_delitem(self, data):
        data['name'] = 'test'
        del data['name']
        assert 'name' not in data
        assert data.exist('name') is False

    def test_iter_and_items(self, data):
        data['a'] = '1'
        data['b'] = '2'
        assert set(data) == {'a', 'b'}
        assert dict(data.items()) == {'a': '1', 'b': '2'}

    def test_equality_with_mapping(self, data):
        data['a'] = '1'
        assert data == {'a': '1'}
        assert data == VaultData({'a': '1'})
        assert data != {'a': '2'}

    def test_to_dict_is_a_copy(self, data):
        data['a'] = '1'
        plain = data.to_dict()
        plain['a'] = 'changed'
        assert data['a'] == '1'

    def test_repr_hides_values(self, data):
        data['password'] = 'hunter2'
        text = repr(data)
        assert 'password' in text
        assert 'hunter2' not in text


# --- Test Typed Accessors ---

class TestStrings:

    def test_set_and_get(self, data):
        data.set_string('hello', 'world!')
        assert data['hello'] == 'world!'
        assert data.get_string('hello') == 'world!'

    def test_missing_is_empty(self, data):
        assert data.get_string('missing') == ''

    def test_non_string_is_empty(self, data):
        data['number'] = 12
        assert data.get_string('number') == ''


class TestBooleans:

    @pytest.mark.parametrize('value', [True, False])
    def test_roundtrip(self, data, value):
        data.set_bool('enabled', value)
        assert data.get_bool('enabled') is value

    def test_stored_as_decimal_string(self, data):
        data.set_bool('enabled', True)
        data.set_bool('disabled', False)
        assert data['enabled'] == 'true'
        assert data['disabled'] == 'false'

    @pytest.mark.parametrize('raw', ['1', 't', 'T', 'TRUE', 'true', 'True'])
    def test_accepted_true_spellings(self, data, raw):
        data['flag'] = raw
        assert data.get_bool('flag') is True

    @pytest.mark.parametrize('raw', ['yes', 'on', '', 'tRuE', '2'])
    def test_invalid_is_false(self, data, raw):
        data['flag'] = raw
        assert data.get_bool('flag') is False

    def test_missing_is_false(self, data):
        assert data.get_bool('missing') is False

    def test_parse_bool_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_bool('maybe')


class TestUnsignedIntegers:

    @pytest.mark.parametrize('value', [0, 1, 1234, MAX_UINT64])
    def test_roundtrip(self, data, value):
        data.set_uint64('duration', value)
        assert data.get_uint64('duration') == value

    def test_stored_as_decimal_string(self, data):
        data.set_uint64('duration', 1234)
        assert data['duration'] == '1234'

    @pytest.mark.parametrize('value', [-1, MAX_UINT64 + 1, True, 1.5])
    def test_set_rejects_out_of_range(self, data, value):
        with pytest.raises(ValueError):
            data.set_uint64('duration', value)

    @pytest.mark.parametrize('raw', ['-1', '+5', '1.0', 'abc', '', str(MAX_UINT64 + 1)])
    def test_invalid_is_zero(self, data, raw):
        data['duration'] = raw
        assert data.get_uint64('duration') == 0

    def test_missing_is_zero(self, data):
        assert data.get_uint64('missing') == 0

    def test_parse_uint64(self):
        assert parse_uint64('18446744073709551615') == MAX_UINT64
        with pytest.raises(ValueError):
            parse_uint64('18446744073709551616')


class TestBytes:

    @pytest.mark.parametrize('value', [b'\x00', b'secret', bytes(range(256)), b'\xfb\xff\xfe'])
    def test_roundtrip(self, data, value):
        data.set_bytes('blob', value)
        assert data.get_bytes('blob') == value

    def test_url_alphabet_with_padding(self, data):
        data.set_bytes('blob', b'\xfb\xff\xfe')
        assert data['blob'] == '-__-'
        data.set_bytes('blob', b'ab')
        assert data['blob'] == base64.urlsafe_b64encode(b'ab').decode() == 'YWI='

    def test_missing_field_raises(self, data):
        with pytest.raises(MissingFieldError) as exc:
            data.get_bytes('blob')
        assert exc.value == MissingFieldError('blob')

    def test_empty_field_raises(self, data):
        data['blob'] = ''
        with pytest.raises(VaultError, match='blob is empty'):
            data.get_bytes('blob')

    @pytest.mark.parametrize('raw', [
        'not base64!', '+/+/', 'YWI', 'Y===', 'YW I=', 'YWJj=', 'YWJj==',
    ])
    def test_invalid_base64_raises(self, data, raw):
        data['blob'] = raw
        with pytest.raises(VaultError) as exc:
            data.get_bytes('blob')
        assert exc.value.operation == 'getbytes'


# --- Test Encode/Decode ---

class TestEncodeDecode:

    def test_encode_is_json(self, data):
        data.set_string('name', 'test')
        data.set_uint64('count', 42)
        encoded = data.encode()
        assert isinstance(encoded, bytes)
        assert encoded == b'{"name":"test","count":"42"}'

    def test_decode(self):
        record = VaultData.decode('{"enabled": "true", "count": "7"}')
        assert record.get_bool('enabled') is True
        assert record.get_uint64('count') == 7

    def test_encode_decode_roundtrip(self, data):
        data.set_string('hello', 'world!')
        data.set_bytes('blob', b'\x00\x01')
        assert VaultData.decode(data.encode()) == data

    def test_decode_rejects_non_object(self):
        with pytest.raises(VaultError, match='not a JSON object'):
            VaultData.decode(b'["a", "b"]')

    def test_decode_rejects_invalid_json(self):
        with pytest.raises(VaultError) as exc:
            VaultData.decode(b'{nope')
        assert exc.value.operation == 'decode'

    def test_encode_rejects_unserializable(self, data):
        data['obj'] = object()
        with pytest.raises(VaultError) as exc:
            data.encode()
        assert exc.value.operation == 'encode'
