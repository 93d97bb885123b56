# cipherbox/crypto/kdf.py
"""
CipherBox Deterministic Key Derivation

Derives Ed25519 signing keypairs from a user's 32-byte master secret so
that well-known addresses (root container, device registry, per-item
records) can be rediscovered from the master secret alone.

Derivation:
    seed    = HKDF-SHA256(ikm = master_secret, salt = "CipherBox-v1", info = domain info)
    keypair = Ed25519.from_seed(seed)
    address = derive_address_name(keypair.public_key)

Domains (see cipherbox.params.DOMAINS):
    root-container   "cipherbox-vault-ipns-v1"
    device-registry  "cipherbox-device-registry-ipns-v1"
    item             "cipherbox-file-ipns-v1:{item_id}"

Subcontainer keypairs are never derived; they come from
generate_signing_keypair().
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ..naming.names import derive_address_name
from ..params import HKDF_SALT, get_domain
from .common import (
    AES_KEY_SIZE,
    BytesLike,
    InvalidInput,
    InvalidKeySize,
    SecretBuffer,
    hkdf_sha256,
)
from .signing import SigningKeypair


logger = logging.getLogger("cipherbox.kdf")


@dataclass
class DerivedKeypair:
    """Signing keypair together with the address name it publishes under."""
    keypair: SigningKeypair
    address_name: str

    def wipe(self) -> None:
        self.keypair.wipe()

    def __enter__(self) -> DerivedKeypair:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.wipe()


def derive_key(
    input_key: BytesLike,
    salt: Optional[bytes],
    info: bytes,
    length: int = 32,
) -> SecretBuffer:
    """HKDF-SHA256 over arbitrary input key material."""
    return hkdf_sha256(input_key, salt=salt, info=info, length=length)


def derive_signing_keypair(master_secret: BytesLike, info: bytes) -> DerivedKeypair:
    """
    Derive an Ed25519 keypair for one domain.

    Raises:
        InvalidKeySize: If master_secret is not 32 bytes
    """
    if len(master_secret) != AES_KEY_SIZE:
        raise InvalidKeySize("Invalid master secret size")

    with derive_key(master_secret, HKDF_SALT, info) as seed:
        keypair = SigningKeypair.from_seed(seed)
    return DerivedKeypair(
        keypair=keypair,
        address_name=derive_address_name(keypair.public_key),
    )


def _domain_info(name: str, item_id: Optional[str] = None) -> bytes:
    try:
        return get_domain(name).info_for(item_id)
    except ValueError:
        raise InvalidInput("Invalid derivation identifier") from None


def derive_root_container_keypair(master_secret: BytesLike) -> DerivedKeypair:
    return derive_signing_keypair(master_secret, _domain_info("root-container"))


def derive_registry_keypair(master_secret: BytesLike) -> DerivedKeypair:
    return derive_signing_keypair(master_secret, _domain_info("device-registry"))


def derive_item_keypair(master_secret: BytesLike, item_id: str) -> DerivedKeypair:
    """
    Derive the per-item record keypair.

    Raises:
        InvalidInput: If item_id is shorter than 10 characters
    """
    info = _domain_info("item", item_id)
    logger.debug("Deriving item keypair (%d-char id)", len(item_id))
    return derive_signing_keypair(master_secret, info)
