"""Account identity canonicalization."""
from __future__ import annotations

import re
from typing import Union

from .errors import InvalidIdentity

IDENTITY_BYTES = 20
ZERO_IDENTITY = "0" * (IDENTITY_BYTES * 2)

_HEX_RE = re.compile(r"[0-9a-f]{%d}" % (IDENTITY_BYTES * 2))

IdentityLike = Union[str, bytes]


def canonical_identity(value: IdentityLike) -> str:
    """Return the lowercase, unprefixed hex form of a 20-byte identity."""
    if isinstance(value, (bytes, bytearray)):
        if len(value) != IDENTITY_BYTES:
            raise InvalidIdentity(f"Identity must be {IDENTITY_BYTES} bytes")
        return bytes(value).hex()
    if not isinstance(value, str):
        raise InvalidIdentity("Identity must be a hex string or bytes")

    normalized = value.lower()
    if normalized.startswith("0x"):
        normalized = normalized[2:]
    if not _HEX_RE.fullmatch(normalized):
        raise InvalidIdentity(f"Malformed identity: {value!r}")
    return normalized


def is_zero_identity(value: IdentityLike) -> bool:
    return canonical_identity(value) == ZERO_IDENTITY
