# cipherbox/crypto/common.py
"""
CipherBox Common Components

Shared sizes, the error taxonomy, key-buffer zeroing and encoding helpers
used by every layer of the engine.

Error Policy:
  - Every failure inside a primitive collapses to one generic message per
    category ("Decryption failed", "Key unwrapping failed", ...)
  - The exception class and its `code` identify the category for callers;
    the message never says whether a key, tag or length was at fault
  - The underlying library exception is logged at DEBUG (class name only)
    and suppressed from the raised exception's context

Key Lifetime:
  - Plaintext keys returned by the engine are `SecretBuffer` instances
    (a bytearray that zeroes itself when its `with` block exits)
  - Functions holding intermediate keys wipe them in `finally` blocks
"""

from __future__ import annotations

import base64
import binascii
import logging
import secrets
from typing import Optional, Union

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF


logger = logging.getLogger("cipherbox.crypto")

BytesLike = Union[bytes, bytearray, memoryview]


# =============================================================================
# Sizes
# =============================================================================

AES_KEY_SIZE: int = 32          # AES-256
AES_IV_SIZE: int = 12           # GCM nonce
AES_TAG_SIZE: int = 16          # GCM tag
AES_BLOCK_SIZE: int = 16
AES_CTR_IV_SIZE: int = 16       # nonce(8) || counter(8)
AES_CTR_NONCE_SIZE: int = 8

SEALED_MIN_SIZE: int = AES_IV_SIZE + AES_TAG_SIZE   # 28

SECP256K1_PUBLIC_KEY_SIZE: int = 65    # 0x04 || x || y
SECP256K1_PRIVATE_KEY_SIZE: int = 32

ECIES_NONCE_SIZE: int = 16             # not the usual 12, part of the stored format
ECIES_TAG_SIZE: int = 16
ECIES_OVERHEAD: int = SECP256K1_PUBLIC_KEY_SIZE + ECIES_NONCE_SIZE + ECIES_TAG_SIZE   # 97

ED25519_PUBLIC_KEY_SIZE: int = 32
ED25519_PRIVATE_KEY_SIZE: int = 32
ED25519_SIGNATURE_SIZE: int = 64


# =============================================================================
# Error Taxonomy
# =============================================================================

class CryptoError(Exception):
    """
    Base exception for all engine failures.

    Attributes:
        code: Stable category identifier (e.g. "DECRYPTION_FAILED")
    """
    code = "CRYPTO_ERROR"

    def __init__(self, message: str = "Cryptographic operation failed"):
        super().__init__(message)


class InvalidKeySize(CryptoError):
    code = "INVALID_KEY_SIZE"


class InvalidIvSize(CryptoError):
    code = "INVALID_IV_SIZE"


class InvalidInput(CryptoError):
    code = "INVALID_INPUT"


class EncryptionFailed(CryptoError):
    code = "ENCRYPTION_FAILED"


class DecryptionFailed(CryptoError):
    code = "DECRYPTION_FAILED"


class KeyWrapFailed(CryptoError):
    code = "KEY_WRAPPING_FAILED"


class KeyUnwrapFailed(CryptoError):
    """
    Raised when a wrapped key cannot be recovered.

    `field` names the independently wrapped field that failed when the
    caller unwraps a multi-field bundle; it is None for a single unwrap.
    """
    code = "KEY_UNWRAPPING_FAILED"

    def __init__(self, message: str = "Key unwrapping failed", field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class KeyRewrapFailed(CryptoError):
    code = "KEY_REWRAP_FAILED"


class SigningFailed(CryptoError):
    code = "SIGNING_FAILED"


class SchemaValidationFailed(CryptoError):
    code = "SCHEMA_VALIDATION_FAILED"


class UnsupportedSchemaVersion(SchemaValidationFailed):
    """Document carries a version tag this engine does not read (unknown or legacy)."""
    code = "UNSUPPORTED_SCHEMA_VERSION"


# =============================================================================
# Key Buffers
# =============================================================================

def zeroize(buf: Optional[Union[bytearray, memoryview]]) -> None:
    """Overwrite a mutable buffer with zero bytes (None-safe)."""
    if buf is None:
        return
    view = memoryview(buf).cast("B")
    view[:] = bytes(len(view))


def zeroize_all(*buffers: Optional[Union[bytearray, memoryview]]) -> None:
    for buf in buffers:
        zeroize(buf)


class SecretBuffer(bytearray):
    """
    Owned plaintext key material.

    A bytearray that zeroes its contents when used as a context manager
    exits, on both the normal and the error path:

        >>> with unwrap_key(wrapped, private_key) as key:
        ...     ciphertext = encrypt_aes_gcm(data, key, iv)
        >>> # key is all zeros here

    `wipe()` may also be called directly from a `finally` block.
    """

    def __enter__(self) -> SecretBuffer:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.wipe()

    def wipe(self) -> None:
        zeroize(self)

    @property
    def is_wiped(self) -> bool:
        return not any(self)

    def __repr__(self) -> str:
        return f"SecretBuffer(<{len(self)} bytes>)"


# =============================================================================
# Randomness
# =============================================================================

def random_bytes(n: int) -> bytes:
    """Cryptographically secure random bytes."""
    return secrets.token_bytes(n)


def generate_key() -> SecretBuffer:
    """Random 32-byte AES-256 key (content, container and item keys)."""
    return SecretBuffer(secrets.token_bytes(AES_KEY_SIZE))


def generate_iv() -> bytes:
    """Random 12-byte AES-GCM IV."""
    return secrets.token_bytes(AES_IV_SIZE)


def generate_ctr_iv() -> bytes:
    """16-byte AES-CTR counter block: nonce(8 random) || counter(8 zero)."""
    return secrets.token_bytes(AES_CTR_NONCE_SIZE) + bytes(AES_CTR_IV_SIZE - AES_CTR_NONCE_SIZE)


# =============================================================================
# Encoding
# =============================================================================

def bytes_to_hex(data: BytesLike) -> str:
    """Lowercase hex, no prefix."""
    return bytes(data).hex()


def hex_to_bytes(text: str) -> bytes:
    """
    Decode hex, accepting an optional 0x prefix.

    Raises:
        ValueError: On odd length or non-hex characters
    """
    if not isinstance(text, str):
        raise ValueError("Invalid hex string: not a string")
    clean = text[2:] if text.startswith("0x") else text
    if len(clean) % 2 != 0:
        raise ValueError("Invalid hex string: odd length")
    try:
        return bytes.fromhex(clean)
    except ValueError:
        raise ValueError("Invalid hex string: non-hex character") from None


def bytes_to_base64(data: BytesLike) -> str:
    """Standard (not url-safe) padded base64."""
    return base64.b64encode(bytes(data)).decode("ascii")


def base64_to_bytes(text: str) -> bytes:
    """
    Strict standard base64 decode.

    Raises:
        ValueError: On characters outside the standard alphabet or bad padding
    """
    if not isinstance(text, str):
        raise ValueError("Invalid base64: not a string")
    try:
        return base64.b64decode(text.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError):
        raise ValueError("Invalid base64") from None


# =============================================================================
# HKDF (RFC 5869)
# =============================================================================

def hkdf_sha256(
    ikm: BytesLike,
    salt: Optional[bytes] = None,
    info: bytes = b"",
    length: int = 32,
) -> SecretBuffer:
    """
    HKDF-SHA256 extract-then-expand.

    An empty or None salt is equivalent to HashLen zero bytes (RFC 5869 §2.2).
    """
    kdf = HKDF(
        algorithm=hashes.SHA256(),
        length=length,
        salt=salt or None,
        info=info,
    )
    return SecretBuffer(kdf.derive(bytes(ikm)))
