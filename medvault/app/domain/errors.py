"""Error taxonomy shared by the crypto helpers, services and API."""
from __future__ import annotations


class VaultError(Exception):
    """Base class; ``status_code`` is used by the HTTP layer."""

    status_code: int = 400
    default_detail: str = "Vault error"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class InvalidIdentity(VaultError, ValueError):
    status_code = 422
    default_detail = "Invalid identity"


class AuthenticationFailure(VaultError):
    """Ciphertext failed verification. Never says which part was at fault."""

    status_code = 400
    default_detail = "Decryption failed: authentication failure"


class MalformedEnvelope(VaultError, ValueError):
    status_code = 422
    default_detail = "Malformed envelope: expected nonce:ciphertext"


class NotAdministrator(VaultError):
    status_code = 403
    default_detail = "Caller is not the administrator"


class NotAuthorized(VaultError):
    status_code = 403
    default_detail = "Not authorized technician"


class NotAuthorizedYet(NotAuthorized):
    status_code = 409
    default_detail = "Target is not authorized"


class AlreadyAuthorized(VaultError):
    status_code = 409
    default_detail = "Target is already authorized"


class DuplicateId(VaultError):
    status_code = 409
    default_detail = "Record already exists"


class RecordNotFound(VaultError):
    status_code = 404
    default_detail = "Record not found"


class EmptyCiphertext(VaultError):
    status_code = 422
    default_detail = "Encrypted fields must not be empty"


class LedgerAlreadyInitialized(VaultError):
    status_code = 409
    default_detail = "Ledger already initialized"


class UnknownOperation(VaultError):
    status_code = 400
    default_detail = "Unknown ledger operation"
