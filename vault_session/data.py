import re
import base64
import binascii
from typing import Optional, Any
from collections.abc import Iterator, Mapping, MutableMapping
import orjson
from .exceptions import VaultError, MissingFieldError

MAX_UINT64 = 2 ** 64 - 1

_TRUE_VALUES = frozenset({'1', 't', 'T', 'TRUE', 'true', 'True'})
_FALSE_VALUES = frozenset({'0', 'f', 'F', 'FALSE', 'false', 'False'})
_URLSAFE_B64 = re.compile(r'^[A-Za-z0-9_-]*={0,2}$')


def parse_bool(value: str) -> bool:
    """Parse the boolean spellings Vault clients write.

    Raises:
        ValueError: the string is not a recognized boolean.
    """
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"invalid boolean {value!r}")


def parse_uint64(value: str) -> int:
    """Parse a decimal unsigned 64-bit integer.

    Raises:
        ValueError: not plain decimal digits, or out of range.
    """
    if not value or not (value.isascii() and value.isdigit()):
        raise ValueError(f"invalid unsigned integer {value!r}")
    number = int(value)
    if number > MAX_UINT64:
        raise ValueError(f"{value} overflows uint64")
    return number


class VaultData(MutableMapping[str, Any]):
    """Fields stored under a single Vault path.

    Every value is kept as a string, the way Vault stores it. Typed
    accessors encode on the way in and decode on the way out:

    - booleans and unsigned integers as decimal strings,
    - bytes as URL-safe base64 (with padding),
    - strings as-is.

    Reading a missing field, or one that does not decode, yields the zero
    value of the accessor. ``get_bytes`` is the exception: it raises.
    """

    def __init__(
        self,
        data: Optional[Mapping[str, Any]] = None,
        **kwargs: Any
    ) -> None:
        self._data: dict[str, Any] = {}
        if data is not None:
            self._data.update(data)
        if kwargs:
            self._data.update(kwargs)

    def __repr__(self) -> str:
        # values may be secrets
        return f'<VaultData fields={sorted(self._data.keys())}>'

    # --- Magic Methods ---

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._data[key] = value

    def __delitem__(self, key: str) -> None:
        del self._data[key]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, VaultData):
            return self._data == other._data
        if isinstance(other, Mapping):
            return self._data == dict(other)
        return NotImplemented

    def to_dict(self) -> dict[str, Any]:
        """Return a plain dict copy, as sent to Vault."""
        return dict(self._data)

    @property
    def empty(self) -> bool:
        return not self._data

    def exist(self, field: str) -> bool:
        return field in self._data

    # --- Typed accessors ---

    def get_string(self, field: str) -> str:
        value = self._data.get(field)
        return value if isinstance(value, str) else ''

    def get_bool(self, field: str) -> bool:
        value = self._data.get(field)
        if isinstance(value, str):
            try:
                return parse_bool(value)
            except ValueError:
                pass
        return False

    def get_uint64(self, field: str) -> int:
        value = self._data.get(field)
        if isinstance(value, str):
            try:
                return parse_uint64(value)
            except ValueError:
                pass
        return 0

    def get_bytes(self, field: str) -> bytes:
        """Return a field decoded from URL-safe base64.

        Raises:
            MissingFieldError: the field is absent or not a string.
            VaultError: the field is empty or not valid URL-safe base64.
        """
        value = self._data.get(field)
        if not isinstance(value, str):
            raise MissingFieldError(field)
        if not value:
            raise VaultError("getbytes", f"{field} is empty")
        if len(value) % 4 or not _URLSAFE_B64.match(value):
            raise VaultError("getbytes", f"{field} is not valid base64")
        try:
            return base64.urlsafe_b64decode(value)
        except (binascii.Error, ValueError) as err:
            raise VaultError("getbytes", err) from err

    def set_string(self, field: str, value: str) -> None:
        self._data[field] = value

    def set_bool(self, field: str, value: bool) -> None:
        self._data[field] = 'true' if value else 'false'

    def set_uint64(self, field: str, value: int) -> None:
        if (
            not isinstance(value, int)
            or isinstance(value, bool)
            or not 0 <= value <= MAX_UINT64
        ):
            raise ValueError(f"{field}: {value!r} is not an unsigned 64-bit integer")
        self._data[field] = str(value)

    def set_bytes(self, field: str, value: bytes) -> None:
        self._data[field] = base64.urlsafe_b64encode(value).decode('ascii')

    # --- Serialization ---

    def encode(self) -> bytes:
        """encode

            Dump the record as JSON.
        Raises:
            VaultError: a value cannot be represented as JSON.

        Returns:
            bytes: JSON document of the record.
        """
        try:
            return orjson.dumps(self._data)
        except orjson.JSONEncodeError as err:
            raise VaultError("encode", err) from err

    @classmethod
    def decode(cls, raw: Any) -> 'VaultData':
        """decode.

            Load a record previously dumped by :meth:`encode`.
        Args:
            raw (bytes | str): JSON document.

        Raises:
            VaultError: the document is not JSON or not an object.

        Returns:
            VaultData: the loaded record.
        """
        try:
            parsed = orjson.loads(raw)
        except orjson.JSONDecodeError as err:
            raise VaultError("decode", err) from err
        if not isinstance(parsed, dict):
            raise VaultError("decode", "payload is not a JSON object")
        return cls(parsed)
