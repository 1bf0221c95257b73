"""
Strkey addresses, validated and encoded by ``stellar_sdk.StrKey``.

``Address.parse`` is the only way to get an Address; anything that fails
length, alphabet, version or checksum never becomes one.
"""

from typing import Any

import stellar_sdk
from pydantic_core import core_schema
from stellar_sdk import StrKey

from lumenpay.errors import InvalidAddress

PAYLOAD_LEN = 32


class Address(str):
    """A checksum-validated strkey. Use ``Address.parse``."""

    prefix: str = ""
    kind: str = ""

    @staticmethod
    def _decode(text: str) -> bytes:
        raise NotImplementedError

    @staticmethod
    def _encode(payload: bytes) -> str:
        raise NotImplementedError

    def __new__(cls, value: str) -> "Address":
        if not isinstance(value, str):
            raise InvalidAddress(f"{value!r} is not a strkey")
        if cls is Address:
            cls = _BY_PREFIX.get(value[:1])  # type: ignore[assignment]
            if cls is None:
                raise InvalidAddress(f"{value!r} is not an account or contract address")
        try:
            payload = cls._decode(value)
        except ValueError:
            raise InvalidAddress(f"{value!r} is not a valid {cls.kind} address") from None
        obj = super().__new__(cls, value)
        obj._payload = payload
        return obj

    @classmethod
    def parse(cls, value: str) -> "Address":
        if isinstance(value, cls):
            return value
        return cls(value.strip() if isinstance(value, str) else value)

    @classmethod
    def from_payload(cls, payload: bytes) -> "Address":
        if len(payload) != PAYLOAD_LEN:
            raise InvalidAddress(f"payload must be {PAYLOAD_LEN} bytes, got {len(payload)}")
        return cls(cls._encode(payload))

    @property
    def payload(self) -> bytes:
        return self._payload

    def to_sdk(self) -> stellar_sdk.Address:
        return stellar_sdk.Address(str.__str__(self))

    def short(self) -> str:
        return f"{self[:6]}...{self[-6:]}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str.__str__(self)!r})"

    @classmethod
    def __get_pydantic_core_schema__(cls, source: Any, handler: Any) -> core_schema.CoreSchema:
        return core_schema.no_info_after_validator_function(
            cls.parse,
            core_schema.str_schema(),
            serialization=core_schema.plain_serializer_function_ser_schema(str),
        )


class AccountAddress(Address):
    prefix = "G"
    kind = "account"
    _decode = staticmethod(StrKey.decode_ed25519_public_key)
    _encode = staticmethod(StrKey.encode_ed25519_public_key)


class ContractAddress(Address):
    prefix = "C"
    kind = "contract"
    _decode = staticmethod(StrKey.decode_contract)
    _encode = staticmethod(StrKey.encode_contract)


_BY_PREFIX = {
    AccountAddress.prefix: AccountAddress,
    ContractAddress.prefix: ContractAddress,
}


def is_valid_address(text: str, kind: str = "") -> bool:
    try:
        address = Address.parse(text)
    except InvalidAddress:
        return False
    return not kind or address.kind == kind
