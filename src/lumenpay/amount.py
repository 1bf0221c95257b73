"""
Amounts are integers of the smallest unit (stroops, 10^-7 XLM).

User-facing decimal strings are converted here, once, at the boundary.
"""

import re

from lumenpay.errors import InvalidAmount

DECIMALS = 7
SCALE = 10 ** DECIMALS
INT64_MAX = 2 ** 63 - 1
I128_MIN = -(2 ** 127)
I128_MAX = 2 ** 127 - 1

_DECIMAL_RE = re.compile(r"^([+-]?)(\d*)(?:\.(\d*))?$")


def _split(text: str) -> tuple[str, str, str]:
    if not isinstance(text, str):
        text = str(text)
    m = _DECIMAL_RE.match(text.strip())
    if not m or not (m.group(2) or m.group(3)):
        raise InvalidAmount(f"{text!r} is not a decimal number")
    return m.group(1), m.group(2) or "0", m.group(3) or ""


def to_stroops(text: str) -> int:
    """Parse a positive-or-zero XLM amount into stroops.

    More than seven fractional digits is an error, not a rounding.
    """
    sign, whole, frac = _split(text)
    if sign == "-":
        raise InvalidAmount(f"{text!r} is negative")
    if len(frac) > DECIMALS:
        raise InvalidAmount(f"{text!r} has more than {DECIMALS} decimal places")
    value = int(whole) * SCALE + int(frac.ljust(DECIMALS, "0"))
    if value > INT64_MAX:
        raise InvalidAmount(f"{text!r} is too large")
    return value


def from_stroops(value: int) -> str:
    sign = "-" if value < 0 else ""
    whole, frac = divmod(abs(value), SCALE)
    return f"{sign}{whole}.{frac:0{DECIMALS}d}"


def to_i128_units(text: str) -> int:
    """Convert a decimal string to contract units at scale 10^7.

    Digits beyond the seventh decimal are truncated.
    """
    sign, whole, frac = _split(text)
    value = int(whole) * SCALE + int(frac[:DECIMALS].ljust(DECIMALS, "0"))
    if sign == "-":
        value = -value
    if not I128_MIN <= value <= I128_MAX:
        raise InvalidAmount(f"{text!r} does not fit in a signed 128-bit integer")
    return value
