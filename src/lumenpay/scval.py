"""
Contract values (SCVal) on top of ``stellar_sdk.scval``.

Arguments to contract functions are built with ``from_native`` or the
SDK's ``scval.to_*`` helpers; simulation return values come back through
``decode`` and ``to_native``.
"""

from typing import Any

from stellar_sdk import Address as SdkAddress
from stellar_sdk import scval
from stellar_sdk import xdr as stellar_xdr

from lumenpay.amount import to_i128_units
from lumenpay.errors import XdrError
from lumenpay.strkey import Address

SCVal = stellar_xdr.SCVal


def address(value: str) -> SCVal:
    return scval.to_address(str(Address.parse(value)))


def amount(text: str) -> SCVal:
    """A token amount as i128 at scale 10^7, extra decimals truncated."""
    return scval.to_int128(to_i128_units(text))


def from_native(value: Any) -> SCVal:
    """Best-effort conversion of plain Python values.

    Ints become i128, Address instances become addresses, other
    strings become strings.
    """
    if isinstance(value, SCVal):
        return value
    if value is None:
        return scval.to_void()
    if isinstance(value, bool):
        return scval.to_bool(value)
    if isinstance(value, int):
        try:
            return scval.to_int128(value)
        except ValueError:
            raise XdrError(f"{value!r} does not fit in i128") from None
    if isinstance(value, Address):
        return address(value)
    if isinstance(value, str):
        return scval.to_string(value)
    if isinstance(value, (bytes, bytearray)):
        return scval.to_bytes(bytes(value))
    if isinstance(value, (list, tuple)):
        return scval.to_vec([from_native(v) for v in value])
    if isinstance(value, dict):
        return scval.to_map({from_native(k): from_native(v) for k, v in value.items()})
    raise XdrError(f"cannot convert {type(value).__name__} to a contract value")


def to_native(val: SCVal) -> Any:
    """Plain Python for a contract value.

    Strings that are not valid UTF-8 come back as bytes; addresses come
    back as ``Address``. Values with no plain form are returned as is.
    """
    if val.type == stellar_xdr.SCValType.SCV_VEC:
        return [to_native(v) for v in val.vec.sc_vec] if val.vec is not None else []
    if val.type == stellar_xdr.SCValType.SCV_MAP:
        out: dict[Any, Any] = {}
        for entry in val.map.sc_map if val.map is not None else ():
            key = to_native(entry.key)
            out[tuple(key) if isinstance(key, list) else key] = to_native(entry.val)
        return out
    native = scval.to_native(val)
    if isinstance(native, SdkAddress):
        return Address.parse(native.address)
    return native


def decode(text: str) -> SCVal:
    """SCVal from base64 XDR."""
    try:
        return SCVal.from_xdr(text)
    except Exception as e:
        raise XdrError(f"invalid contract value: {e}") from e
