"""
reliefanchor/features/checksum/service.py

Deterministic, order-sensitive field signing.

The signature is a DJB2 rolling hash (seed 5381, h = h * 33 + unit) over the
UTF-16 code units of the delimited fields plus a shared secret, rendered in
base 36. It is NOT cryptographically secure: anyone holding the secret and
this routine can forge a signature. It exists to catch casual edits of the
stored bytes.
"""

from enum import Enum
from typing import Iterable, Optional

from reliefanchor.core.config import settings

FIELD_DELIMITER = "|"
DJB2_SEED = 5381
HASH_MASK = 0xFFFFFFFF
_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def canonical_field(value: object) -> str:
    """Render one field; every absent value maps to the same empty sentinel."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def canonical_payload(fields: Iterable[object], secret: str) -> str:
    parts = [canonical_field(f) for f in fields]
    parts.append(secret)
    return FIELD_DELIMITER.join(parts)


def _utf16_units(text: str) -> Iterable[int]:
    raw = text.encode("utf-16-le")
    for i in range(0, len(raw), 2):
        yield raw[i] | (raw[i + 1] << 8)


def djb2(text: str) -> int:
    h = DJB2_SEED
    for unit in _utf16_units(text):
        h = (h * 33 + unit) & HASH_MASK
    return h


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("value must be non-negative")
    if value == 0:
        return "0"
    out = []
    while value:
        value, rem = divmod(value, 36)
        out.append(_BASE36_DIGITS[rem])
    return "".join(reversed(out))


def sign(fields: Iterable[object], secret: Optional[str] = None) -> str:
    """Signature of an ordered field tuple."""
    key = settings.SECURITY_SALT if secret is None else secret
    return to_base36(djb2(canonical_payload(fields, key)))


def signatures_match(stored: Optional[str], expected: str) -> bool:
    return isinstance(stored, str) and bool(stored) and stored == expected
