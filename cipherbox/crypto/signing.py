# cipherbox/crypto/signing.py
"""
CipherBox Ed25519 Signatures

Signing keypairs back every mutable address (root container, subcontainers,
item records, the device registry). Signatures are deterministic
(RFC 8032), so the same key and message always give the same 64 bytes.

Key Forms:
    private_key   32-byte seed
    public_key    32-byte point
    interchange   seed(32) || public(32), the 64-byte form used by other
                  Ed25519 libraries and for wrapped storage
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass, field

from nacl.exceptions import BadSignatureError
from nacl.signing import SigningKey, VerifyKey

from .common import (
    ED25519_PRIVATE_KEY_SIZE,
    ED25519_PUBLIC_KEY_SIZE,
    ED25519_SIGNATURE_SIZE,
    BytesLike,
    InvalidKeySize,
    SecretBuffer,
    SigningFailed,
)


logger = logging.getLogger("cipherbox.signing")


@dataclass
class SigningKeypair:
    """
    Ed25519 keypair.

    Attributes:
        public_key: 32-byte verification key
        private_key: 32-byte seed
    """
    public_key: bytes
    private_key: SecretBuffer = field(repr=False)

    @classmethod
    def from_seed(cls, seed: BytesLike) -> SigningKeypair:
        """
        Build a keypair from a 32-byte seed.

        Raises:
            InvalidKeySize: If the seed is not 32 bytes
        """
        if len(seed) != ED25519_PRIVATE_KEY_SIZE:
            raise InvalidKeySize("Invalid signing key size")
        sk = SigningKey(bytes(seed))
        return cls(public_key=bytes(sk.verify_key), private_key=SecretBuffer(seed))

    @classmethod
    def from_interchange(cls, raw: BytesLike) -> SigningKeypair:
        """
        Parse the 64-byte seed || public form, checking that the public
        half matches the seed.
        """
        if len(raw) != ED25519_PRIVATE_KEY_SIZE + ED25519_PUBLIC_KEY_SIZE:
            raise InvalidKeySize("Invalid signing key size")
        kp = cls.from_seed(raw[:ED25519_PRIVATE_KEY_SIZE])
        if kp.public_key != bytes(raw[ED25519_PRIVATE_KEY_SIZE:]):
            kp.wipe()
            raise InvalidKeySize("Invalid signing key size")
        return kp

    def to_interchange(self) -> SecretBuffer:
        return SecretBuffer(bytes(self.private_key) + self.public_key)

    def wipe(self) -> None:
        self.private_key.wipe()

    def __enter__(self) -> SigningKeypair:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.wipe()


def generate_signing_keypair() -> SigningKeypair:
    """Fresh random keypair (subcontainers, item records without derivation)."""
    return SigningKeypair.from_seed(secrets.token_bytes(ED25519_PRIVATE_KEY_SIZE))


def sign(message: BytesLike, private_key: BytesLike) -> bytes:
    """
    Sign a message.

    Returns:
        64-byte detached signature

    Raises:
        SigningFailed: If the private key is not 32 bytes
    """
    if len(private_key) != ED25519_PRIVATE_KEY_SIZE:
        raise SigningFailed("Signing failed")
    try:
        return bytes(SigningKey(bytes(private_key)).sign(bytes(message)).signature)
    except (ValueError, TypeError) as e:
        logger.debug("Ed25519 sign rejected: %s", type(e).__name__)
        raise SigningFailed("Signing failed") from None


def verify(signature: BytesLike, message: BytesLike, public_key: BytesLike) -> bool:
    """Check a detached signature. Returns False on any failure, never raises."""
    if len(signature) != ED25519_SIGNATURE_SIZE or len(public_key) != ED25519_PUBLIC_KEY_SIZE:
        return False
    try:
        VerifyKey(bytes(public_key)).verify(bytes(message), bytes(signature))
        return True
    except (BadSignatureError, ValueError, TypeError):
        return False
