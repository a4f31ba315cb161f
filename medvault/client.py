"""Caller-side device vault client.

Encrypts maintenance notes with the caller's derived key before they reach
the ledger and decrypts what comes back. The ledger only ever sees
ciphertext.
"""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Tuple

from .app.config import KDF_ITERATIONS
from .app.domain.cipher import decrypt_string, encrypt_string
from .app.domain.errors import RecordNotFound
from .app.domain.identity import IdentityLike, canonical_identity
from .app.domain.kdf import derive_key
from .app.domain.models import DeviceInfo, DevicePublicInfo, DeviceStatus
from .app.infra.gateway import Confirmation, LedgerGateway

logger = logging.getLogger(__name__)


class DeviceVaultClient:
    def __init__(
        self,
        gateway: LedgerGateway,
        identity: IdentityLike,
        network_id: int,
        iterations: int = KDF_ITERATIONS,
    ) -> None:
        self.gateway = gateway
        self.identity = canonical_identity(identity)
        self.network_id = network_id
        self._key = derive_key(self.identity, network_id, iterations)

    def encrypt(self, plaintext: str) -> bytes:
        return encrypt_string(plaintext, self._key).encode("ascii")

    def decrypt(self, stored: bytes) -> str:
        return decrypt_string(stored.decode("ascii", errors="replace"), self._key)

    def check_authorization(self) -> bool:
        return self.gateway.read_state("is_authorized", identity=self.identity)

    def register_device(
        self,
        device_id: str,
        name: str,
        category: str = "",
        status: DeviceStatus = DeviceStatus.NOMINAL,
        notes: str = "",
        calibration: str = "",
    ) -> Confirmation:
        info = DeviceInfo(name=name, category=category, status=status)
        return self.gateway.submit_transaction(
            self.identity,
            "register",
            record_id=device_id,
            info=info,
            ciphertext_a=self.encrypt(notes),
            ciphertext_b=self.encrypt(calibration),
        )

    def update_maintenance(
        self,
        device_id: str,
        status: DeviceStatus,
        notes: str,
        calibration: str,
    ) -> Confirmation:
        """Replace status, notes and calibration; name and category carry over."""
        current = self.gateway.read_state("public_info", record_id=device_id)
        info = DeviceInfo(name=current.name, category=current.category, status=status)
        return self.gateway.submit_transaction(
            self.identity,
            "update",
            record_id=device_id,
            info=info,
            ciphertext_a=self.encrypt(notes),
            ciphertext_b=self.encrypt(calibration),
        )

    def get_device_info(self, device_id: str) -> Optional[DevicePublicInfo]:
        try:
            return self.gateway.read_state("public_info", record_id=device_id)
        except RecordNotFound:
            return None

    def get_encrypted_records(self, device_id: str) -> Tuple[bytes, bytes]:
        return self.gateway.read_state("ciphertext", caller=self.identity, record_id=device_id)

    def decrypt_device_records(self, device_id: str) -> Tuple[str, str]:
        notes, calibration = self.get_encrypted_records(device_id)
        return self.decrypt(notes), self.decrypt(calibration)

    def list_device_ids(self, manual_ids: Iterable[str] = ()) -> List[str]:
        ids = self.gateway.discover_record_ids(manual_ids=manual_ids)
        logger.debug("found %d device ids", len(ids))
        return ids
