# cipherbox/vault/container.py
"""
CipherBox Container Key Management

Every container (the vault root and each subcontainer) owns:
    - a 32-byte AES-256 container key, encrypting its listing
    - an Ed25519 signing keypair, signing its address records

Lifecycle:
    1. init_container() creates fresh keys (root: derived signing keypair)
    2. wrap_container_bundle() ECIES-wraps both secrets for server storage
    3. unwrap_container_bundle() recovers them on login, field by field

Plaintext bundles never leave memory; use them as context managers so the
secrets are zeroed when the block exits.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from ..crypto.common import (
    BytesLike,
    InvalidKeySize,
    KeyUnwrapFailed,
    SecretBuffer,
    generate_key,
)
from ..crypto.ecies import unwrap_key, wrap_key
from ..crypto.kdf import derive_root_container_keypair
from ..crypto.signing import SigningKeypair, generate_signing_keypair
from ..naming.names import derive_address_name


logger = logging.getLogger("cipherbox.container")


# =============================================================================
# Bundles
# =============================================================================

@dataclass
class ContainerRootBundle:
    """
    Plaintext key material of one container.

    Attributes:
        container_key: 32-byte AES-256 key for the listing
        signing_keypair: Ed25519 keypair of the container's address
    """
    container_key: SecretBuffer = field(repr=False)
    signing_keypair: SigningKeypair

    @property
    def address_name(self) -> str:
        return derive_address_name(self.signing_keypair.public_key)

    def wipe(self) -> None:
        self.container_key.wipe()
        self.signing_keypair.wipe()

    def __enter__(self) -> ContainerRootBundle:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.wipe()


@dataclass(frozen=True)
class WrappedContainerBundle:
    """
    Container keys wrapped for one user; safe to store server-side.

    The signing public key is kept in the clear so the address name can be
    computed without unwrapping anything.
    """
    wrapped_root_key: bytes
    wrapped_signing_private_key: bytes
    signing_public_key: bytes

    @property
    def address_name(self) -> str:
        return derive_address_name(self.signing_public_key)


# =============================================================================
# Operations
# =============================================================================

def init_container(master_secret: Optional[BytesLike] = None) -> ContainerRootBundle:
    """
    Create the keys of a new container.

    Args:
        master_secret: For the vault root, the user's 32-byte master secret;
            the signing keypair is then derived so the root address can be
            rediscovered. None for subcontainers (random keypair).

    Raises:
        InvalidKeySize: If a master secret is given but is not 32 bytes
    """
    if master_secret is not None:
        keypair = derive_root_container_keypair(master_secret).keypair
    else:
        keypair = generate_signing_keypair()

    bundle = ContainerRootBundle(container_key=generate_key(), signing_keypair=keypair)
    logger.debug("Initialized %s container", "root" if master_secret is not None else "sub")
    return bundle


def wrap_container_bundle(bundle: ContainerRootBundle, user_public_key: BytesLike) -> WrappedContainerBundle:
    """
    ECIES-wrap the container key and signing seed to a user.

    Raises:
        KeyWrapFailed: On an invalid user public key
    """
    return WrappedContainerBundle(
        wrapped_root_key=wrap_key(bundle.container_key, user_public_key),
        wrapped_signing_private_key=wrap_key(bundle.signing_keypair.private_key, user_public_key),
        signing_public_key=bytes(bundle.signing_keypair.public_key),
    )


def unwrap_container_bundle(wrapped: WrappedContainerBundle, user_private_key: BytesLike) -> ContainerRootBundle:
    """
    Recover a container's plaintext keys.

    Each field is unwrapped on its own; the raised KeyUnwrapFailed carries
    the name of the field that failed in its `field` attribute.

    Raises:
        KeyUnwrapFailed: If either field fails to unwrap, or the signing
            seed does not match the stored public key
    """
    try:
        container_key = unwrap_key(wrapped.wrapped_root_key, user_private_key)
    except KeyUnwrapFailed:
        raise KeyUnwrapFailed(field="wrapped_root_key") from None

    try:
        with unwrap_key(wrapped.wrapped_signing_private_key, user_private_key) as seed:
            keypair = SigningKeypair.from_seed(seed)
    except (KeyUnwrapFailed, InvalidKeySize):
        container_key.wipe()
        raise KeyUnwrapFailed(field="wrapped_signing_private_key") from None

    if keypair.public_key != bytes(wrapped.signing_public_key):
        container_key.wipe()
        keypair.wipe()
        raise KeyUnwrapFailed(field="signing_public_key")

    return ContainerRootBundle(container_key=container_key, signing_keypair=keypair)
