# cipherbox/crypto/ecies.py
"""
CipherBox ECIES Key Wrapping (secp256k1)

Wraps symmetric keys to a user's long-term secp256k1 public key so that
only the holder of the matching private key can recover them.

Wrapped Layout:
    ┌────────────────────┬────────────┬──────────┬────────────────┐
    │ ephemeral pub (65) │ nonce (16) │ tag (16) │ ciphertext (N) │
    └────────────────────┴────────────┴──────────┴────────────────┘
    total = N + 97

Key Schedule:
    shared = eph_priv * recipient_pub                   (full point, uncompressed)
    key    = HKDF-SHA256(ikm = eph_pub || shared, salt = none, info = none, L = 32)
    body   = AES-256-GCM(key, nonce16, plaintext)

The 16-byte GCM nonce is part of the stored format and interoperates with
other CipherBox clients; do not shorten it.

Usage:
    from cipherbox.crypto.ecies import generate_user_keypair, wrap_key, unwrap_key

    user = generate_user_keypair()
    wrapped = wrap_key(folder_key, user.public_key)
    with unwrap_key(wrapped, user.private_key) as key:
        ...
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import coincurve
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .common import (
    ECIES_NONCE_SIZE,
    ECIES_OVERHEAD,
    ECIES_TAG_SIZE,
    SECP256K1_PRIVATE_KEY_SIZE,
    SECP256K1_PUBLIC_KEY_SIZE,
    BytesLike,
    InvalidInput,
    InvalidKeySize,
    KeyRewrapFailed,
    KeyUnwrapFailed,
    KeyWrapFailed,
    SecretBuffer,
    hkdf_sha256,
    random_bytes,
    zeroize,
)


logger = logging.getLogger("cipherbox.ecies")

_UNCOMPRESSED_PREFIX = 0x04


# =============================================================================
# User Keypairs
# =============================================================================

@dataclass
class UserKeypair:
    """
    Long-term secp256k1 keypair.

    Attributes:
        public_key: 65-byte uncompressed point (0x04 || x || y)
        private_key: 32-byte scalar
    """
    public_key: bytes
    private_key: SecretBuffer = field(repr=False)

    def wipe(self) -> None:
        self.private_key.wipe()


def generate_user_keypair() -> UserKeypair:
    sk = coincurve.PrivateKey()
    return UserKeypair(
        public_key=sk.public_key.format(compressed=False),
        private_key=SecretBuffer(sk.secret),
    )


def user_keypair_from_private(private_key: BytesLike) -> UserKeypair:
    """
    Rebuild a keypair from its 32-byte private scalar.

    Raises:
        InvalidKeySize: If the scalar is not 32 bytes
        InvalidInput: If the scalar is zero or not below the curve order
    """
    if len(private_key) != SECP256K1_PRIVATE_KEY_SIZE:
        raise InvalidKeySize("Invalid private key size")
    try:
        sk = coincurve.PrivateKey(bytes(private_key))
    except ValueError:
        raise InvalidInput("Invalid private key") from None
    return UserKeypair(
        public_key=sk.public_key.format(compressed=False),
        private_key=SecretBuffer(private_key),
    )


# =============================================================================
# Validation
# =============================================================================

def validate_public_key(public_key: BytesLike) -> coincurve.PublicKey:
    """
    Check a recipient public key: length, then prefix, then curve membership.

    Returns:
        Parsed point

    Raises:
        KeyWrapFailed: On any of the three checks
    """
    if len(public_key) != SECP256K1_PUBLIC_KEY_SIZE:
        raise KeyWrapFailed("Key wrapping failed")
    if public_key[0] != _UNCOMPRESSED_PREFIX:
        raise KeyWrapFailed("Key wrapping failed")
    try:
        return coincurve.PublicKey(bytes(public_key))
    except ValueError:
        raise KeyWrapFailed("Key wrapping failed") from None


def _shared_key(eph_pub: bytes, point: coincurve.PublicKey, scalar: bytes) -> SecretBuffer:
    shared = point.multiply(scalar).format(compressed=False)
    return hkdf_sha256(eph_pub + shared)


# =============================================================================
# Wrap / Unwrap
# =============================================================================

def wrap_key(plaintext: BytesLike, recipient_public_key: BytesLike) -> bytes:
    """
    Wrap a key (or any short secret) to a recipient.

    Returns:
        eph_pub(65) || nonce(16) || tag(16) || ciphertext

    Raises:
        KeyWrapFailed: On an invalid recipient key or any internal failure
    """
    point = validate_public_key(recipient_public_key)

    eph_secret = None
    key = None
    try:
        eph = coincurve.PrivateKey()
        eph_secret = bytearray(eph.secret)
        eph_pub = eph.public_key.format(compressed=False)
        key = _shared_key(eph_pub, point, bytes(eph_secret))

        nonce = random_bytes(ECIES_NONCE_SIZE)
        sealed = AESGCM(bytes(key)).encrypt(nonce, bytes(plaintext), None)
        ciphertext, tag = sealed[:-ECIES_TAG_SIZE], sealed[-ECIES_TAG_SIZE:]
        return eph_pub + nonce + tag + ciphertext
    except KeyWrapFailed:
        raise
    except Exception as e:
        logger.debug("ECIES wrap rejected: %s", type(e).__name__)
        raise KeyWrapFailed("Key wrapping failed") from None
    finally:
        zeroize(eph_secret)
        zeroize(key)


def unwrap_key(wrapped: BytesLike, recipient_private_key: BytesLike) -> SecretBuffer:
    """
    Recover a wrapped key.

    The returned SecretBuffer should be used as a context manager (or wiped)
    so the plaintext key is zeroed once the caller is done with it.

    Raises:
        KeyUnwrapFailed: On wrong key, tampering, truncation or bad sizes
    """
    if len(recipient_private_key) != SECP256K1_PRIVATE_KEY_SIZE:
        raise KeyUnwrapFailed()
    if len(wrapped) < ECIES_OVERHEAD:
        raise KeyUnwrapFailed()

    wrapped = bytes(wrapped)
    eph_pub = wrapped[:SECP256K1_PUBLIC_KEY_SIZE]
    pos = SECP256K1_PUBLIC_KEY_SIZE
    nonce = wrapped[pos:pos + ECIES_NONCE_SIZE]
    pos += ECIES_NONCE_SIZE
    tag = wrapped[pos:pos + ECIES_TAG_SIZE]
    ciphertext = wrapped[ECIES_OVERHEAD:]

    key = None
    try:
        point = coincurve.PublicKey(eph_pub)
        key = _shared_key(eph_pub, point, bytes(recipient_private_key))
        return SecretBuffer(AESGCM(bytes(key)).decrypt(nonce, ciphertext + tag, None))
    except (InvalidTag, ValueError, TypeError) as e:
        logger.debug("ECIES unwrap rejected: %s", type(e).__name__)
        raise KeyUnwrapFailed() from None
    finally:
        zeroize(key)


def rewrap_key(
    wrapped: BytesLike,
    owner_private_key: BytesLike,
    recipient_public_key: BytesLike,
) -> bytes:
    """
    Re-wrap a key from its owner to another recipient.

    The intermediate plaintext is zeroed on every path.

    Raises:
        KeyRewrapFailed: If either the unwrap or the wrap step fails
    """
    plain = None
    try:
        plain = unwrap_key(wrapped, owner_private_key)
        return wrap_key(plain, recipient_public_key)
    except (KeyUnwrapFailed, KeyWrapFailed) as e:
        logger.debug("ECIES re-wrap rejected: %s", type(e).__name__)
        raise KeyRewrapFailed("Key re-wrapping failed") from None
    finally:
        zeroize(plain)
