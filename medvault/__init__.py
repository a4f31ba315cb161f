"""
MedVault: encrypted maintenance records for medical devices.

Notes and calibration data are encrypted on the caller's side with an AES-256
key derived from the caller's account identity and network id. The record
store behind the authorization ledger only ever holds ciphertext, and hands it
out only to authorized technicians.
"""

__all__ = [
    "Envelope",
    "decrypt_string",
    "derive_key",
    "encrypt_string",
]

from .app.domain.cipher import Envelope, decrypt_string, encrypt_string
from .app.domain.kdf import derive_key

__version__ = "0.1.0"
