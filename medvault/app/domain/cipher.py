"""AES-256-GCM record encryption and the ``nonce:ciphertext`` envelope."""
from __future__ import annotations

import os
import re
from dataclasses import dataclass

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .errors import AuthenticationFailure, MalformedEnvelope
from .kdf import KEY_SIZE

NONCE_SIZE = 12
SEPARATOR = ":"

_HEX_RE = re.compile(r"(?:[0-9a-fA-F]{2})*")


def _from_hex(field: str) -> bytes:
    # bytes.fromhex tolerates whitespace, the wire format does not
    if not _HEX_RE.fullmatch(field):
        raise MalformedEnvelope("Envelope field is not valid hex")
    return bytes.fromhex(field)


@dataclass(frozen=True)
class Envelope:
    nonce: bytes
    body: bytes  # ciphertext || tag

    def to_wire(self) -> str:
        return f"{self.nonce.hex()}{SEPARATOR}{self.body.hex()}"

    @classmethod
    def parse(cls, text: str) -> "Envelope":
        if not isinstance(text, str):
            raise MalformedEnvelope("Envelope must be a string")
        parts = text.split(SEPARATOR)
        if len(parts) != 2:
            raise MalformedEnvelope()
        nonce_hex, body_hex = parts
        nonce = _from_hex(nonce_hex)
        if len(nonce) != NONCE_SIZE:
            raise MalformedEnvelope(f"Nonce must be {NONCE_SIZE} bytes")
        return cls(nonce=nonce, body=_from_hex(body_hex))


def _check_key(key: bytes) -> None:
    if not isinstance(key, (bytes, bytearray)) or len(key) != KEY_SIZE:
        raise ValueError(f"key must be {KEY_SIZE} bytes")


def encrypt_string(plaintext: str, key: bytes) -> str:
    """Encrypt ``plaintext`` under ``key`` with a fresh random nonce."""
    _check_key(key)
    nonce = os.urandom(NONCE_SIZE)
    body = AESGCM(bytes(key)).encrypt(nonce, plaintext.encode("utf-8"), None)
    return Envelope(nonce=nonce, body=body).to_wire()


def decrypt_string(envelope: str, key: bytes) -> str:
    """Decrypt an envelope produced by :func:`encrypt_string`.

    Raises :class:`MalformedEnvelope` when the text cannot be parsed and
    :class:`AuthenticationFailure` for every verification failure, whether the
    key, nonce or ciphertext was wrong.
    """
    _check_key(key)
    parsed = Envelope.parse(envelope)
    try:
        data = AESGCM(bytes(key)).decrypt(parsed.nonce, parsed.body, None)
        return data.decode("utf-8")
    except (InvalidTag, UnicodeDecodeError):
        raise AuthenticationFailure() from None


def envelope_to_bytes(envelope: str) -> bytes:
    """Pack an envelope into raw ``nonce || body`` bytes."""
    parsed = Envelope.parse(envelope)
    return parsed.nonce + parsed.body


def bytes_to_envelope(data: bytes, nonce_length: int = NONCE_SIZE) -> str:
    """Inverse of :func:`envelope_to_bytes`."""
    if len(data) < nonce_length:
        raise MalformedEnvelope("Packed envelope shorter than nonce")
    return Envelope(nonce=bytes(data[:nonce_length]), body=bytes(data[nonce_length:])).to_wire()
