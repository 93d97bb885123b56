# cipherbox/metadata/registry.py
"""
CipherBox Device Registry

The list of devices allowed to act for a user, published at the
registry address (derived from the master secret) and ECIES-encrypted as
a whole to the user's own public key.

Wire (JSON, then ECIES to the owner):
    {
      "version": "v1",
      "sequenceNumber": <non-negative int>,
      "devices": [
        {"deviceId": <64 hex>, "publicKey": <64 hex>, "name": <= 200,
         "platform": web|macos|linux|windows, "appVersion": <= 50,
         "deviceModel": <= 200, "ipHash": <64 hex>,
         "status": pending|authorized|revoked,
         "createdAt", "lastSeenAt", "revokedAt": number|null, "revokedBy": str|null}
      ]
    }

Device Identity:
    Each device holds its own Ed25519 keypair; deviceId = sha256(public_key).
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..crypto.common import BytesLike, SchemaValidationFailed, bytes_to_hex
from ..crypto.ecies import unwrap_key, wrap_key
from ..crypto.signing import SigningKeypair, generate_signing_keypair
from .schema import Schema, dump_json


logger = logging.getLogger("cipherbox.registry")

REGISTRY_VERSION = "v1"

DEVICE_STATUSES = ("pending", "authorized", "revoked")
DEVICE_PLATFORMS = ("web", "macos", "linux", "windows")

MAX_NAME_LENGTH = 200
MAX_APP_VERSION_LENGTH = 50
MAX_DEVICE_MODEL_LENGTH = 200
HEX_ID_LENGTH = 64

_SCHEMA = Schema("Invalid registry format")


# =============================================================================
# Device Identity
# =============================================================================

def derive_device_id(public_key: BytesLike) -> str:
    """deviceId = lowercase hex SHA-256 of the device's Ed25519 public key."""
    return hashlib.sha256(bytes(public_key)).hexdigest()


@dataclass
class DeviceKeypair:
    device_id: str
    keypair: SigningKeypair

    def wipe(self) -> None:
        self.keypair.wipe()


def generate_device_keypair() -> DeviceKeypair:
    keypair = generate_signing_keypair()
    return DeviceKeypair(device_id=derive_device_id(keypair.public_key), keypair=keypair)


# =============================================================================
# Documents
# =============================================================================

@dataclass(frozen=True)
class DeviceRecord:
    device_id: str
    public_key: str
    name: str
    platform: str
    app_version: str
    device_model: str
    ip_hash: str
    status: str
    created_at: float
    last_seen_at: float
    revoked_at: Optional[float] = None
    revoked_by: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "deviceId": self.device_id,
            "publicKey": self.public_key,
            "name": self.name,
            "platform": self.platform,
            "appVersion": self.app_version,
            "deviceModel": self.device_model,
            "ipHash": self.ip_hash,
            "status": self.status,
            "createdAt": self.created_at,
            "lastSeenAt": self.last_seen_at,
            "revokedAt": self.revoked_at,
            "revokedBy": self.revoked_by,
        }

    @classmethod
    def from_dict(cls, obj: Any) -> DeviceRecord:
        s = _SCHEMA
        obj = s.mapping(obj)
        if "revokedAt" not in obj or "revokedBy" not in obj:
            raise s.fail()
        revoked_at = s.nullable_number(obj.get("revokedAt"))
        revoked_by = s.nullable_text(obj.get("revokedBy"))
        if (revoked_at is None) != (revoked_by is None):
            raise s.fail()
        return cls(
            device_id=s.hex(obj.get("deviceId"), HEX_ID_LENGTH),
            public_key=s.hex(obj.get("publicKey"), HEX_ID_LENGTH),
            name=s.text(obj.get("name"), MAX_NAME_LENGTH),
            platform=s.one_of(obj.get("platform"), DEVICE_PLATFORMS),
            app_version=s.text(obj.get("appVersion"), MAX_APP_VERSION_LENGTH),
            device_model=s.text(obj.get("deviceModel"), MAX_DEVICE_MODEL_LENGTH),
            ip_hash=s.hex(obj.get("ipHash"), HEX_ID_LENGTH),
            status=s.one_of(obj.get("status"), DEVICE_STATUSES),
            created_at=s.number(obj.get("createdAt")),
            last_seen_at=s.number(obj.get("lastSeenAt")),
            revoked_at=revoked_at,
            revoked_by=revoked_by,
        )


@dataclass
class DeviceRegistry:
    sequence_number: int = 0
    devices: List[DeviceRecord] = field(default_factory=list)
    version: str = REGISTRY_VERSION

    def find(self, device_id: str) -> Optional[DeviceRecord]:
        for device in self.devices:
            if device.device_id == device_id:
                return device
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "sequenceNumber": self.sequence_number,
            "devices": [d.to_dict() for d in self.devices],
        }

    @classmethod
    def from_dict(cls, obj: Any) -> DeviceRegistry:
        """
        Validate a decoded registry.

        Raises:
            SchemaValidationFailed: "Invalid registry format", whatever the cause
        """
        s = _SCHEMA
        obj = s.mapping(obj)
        if obj.get("version") != REGISTRY_VERSION:
            raise s.fail()
        return cls(
            sequence_number=s.integer(obj.get("sequenceNumber")),
            devices=[DeviceRecord.from_dict(d) for d in s.array(obj.get("devices"))],
            version=REGISTRY_VERSION,
        )


# =============================================================================
# Encryption
# =============================================================================

def encrypt_device_registry(registry: DeviceRegistry, owner_public_key: BytesLike) -> bytes:
    """ECIES-encrypt the whole registry document to its owner."""
    return wrap_key(dump_json(registry.to_dict()), owner_public_key)


def decrypt_device_registry(encrypted: BytesLike, owner_private_key: BytesLike) -> DeviceRegistry:
    """
    Decrypt and validate a registry.

    Raises:
        KeyUnwrapFailed: Wrong key or tampered ciphertext
        SchemaValidationFailed: Decrypted document is malformed
    """
    with unwrap_key(encrypted, owner_private_key) as plaintext:
        try:
            return DeviceRegistry.from_dict(_SCHEMA.load(plaintext))
        except SchemaValidationFailed:
            logger.debug("Registry rejected after decryption")
            raise
