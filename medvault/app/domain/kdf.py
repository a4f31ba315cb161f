"""Deterministic AES-256 key derivation from identity + network id."""
from __future__ import annotations

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .identity import IdentityLike, canonical_identity

#: Public, fixed salt. Binds derivations to this application's namespace.
KDF_SALT = b"secure-device-maintenance-salt"
KEY_SIZE = 32
MIN_ITERATIONS = 100_000
DEFAULT_ITERATIONS = 600_000


def key_material(identity: IdentityLike, network_id: int) -> bytes:
    if isinstance(network_id, bool) or not isinstance(network_id, int) or network_id < 0:
        raise ValueError("network_id must be a non-negative integer")
    return (canonical_identity(identity) + str(network_id)).encode("utf-8")


def derive_key(
    identity: IdentityLike,
    network_id: int,
    iterations: int = DEFAULT_ITERATIONS,
) -> bytes:
    """Derive the 256-bit record key for ``identity`` on ``network_id``.

    PBKDF2-HMAC-SHA256 over ``canonical_identity + str(network_id)`` with the
    fixed salt. Same inputs always give the same key.
    """
    if iterations < MIN_ITERATIONS:
        raise ValueError(f"iterations must be at least {MIN_ITERATIONS}")
    material = key_material(identity, network_id)
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_SIZE,
        salt=KDF_SALT,
        iterations=iterations,
    )
    return kdf.derive(material)
