"""Key normalization and storage identifier generation."""

from __future__ import annotations

import math
import secrets
import string
import time
from decimal import Decimal

from regcache.errors import InvalidKeyKind

ID_ALPHABET = string.digits + string.ascii_lowercase
ID_TOKEN_LENGTH = 9
ID_DELIMITER = "_"


def format_number(value: int | float) -> str:
    """Decimal string of a number, using ECMAScript ``Number#toString`` layout.

    Floats print their shortest round-tripping digits, switching to exponent
    form below ``1e-6`` and from ``1e21`` up (``1e-7`` -> ``"1e-7"``,
    ``1e21`` -> ``"1e+21"``, ``2.0`` -> ``"2"``). Ints print exactly.
    """
    if isinstance(value, int):
        return str(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "0"

    sign = "-" if value < 0 else ""
    parsed = Decimal(repr(abs(value))).normalize().as_tuple()
    digits = "".join(str(d) for d in parsed.digits)
    k = len(digits)
    n = parsed.exponent + k

    if k <= n <= 21:
        return sign + digits + "0" * (n - k)
    if 0 < n <= 21:
        return sign + digits[:n] + "." + digits[n:]
    if -6 < n <= 0:
        return sign + "0." + "0" * -n + digits
    exponent = f"e{'+' if n > 0 else '-'}{abs(n - 1)}"
    mantissa = digits if k == 1 else digits[0] + "." + digits[1:]
    return sign + mantissa + exponent


def normalize_key(key: str | int | float) -> str:
    """Return the case-folded string form of a cache key.

    Numbers are converted with :func:`format_number` first. Any other type
    (``bool`` included) raises :class:`InvalidKeyKind`.
    """
    if isinstance(key, bool):
        raise InvalidKeyKind(f"Invalid key name: {key!r}")
    if isinstance(key, (int, float)):
        key = format_number(key)
    if not isinstance(key, str):
        raise InvalidKeyKind(f"Invalid key name: {key!r}")
    return key.lower()


def new_identifier() -> str:
    """Mint an opaque identifier: random base-36 token, delimiter, ms timestamp."""
    token = "".join(secrets.choice(ID_ALPHABET) for _ in range(ID_TOKEN_LENGTH))
    return f"{token}{ID_DELIMITER}{int(time.time() * 1000)}"
