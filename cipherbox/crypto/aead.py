# cipherbox/crypto/aead.py
"""
CipherBox AES-256-GCM

Authenticated encryption for metadata documents and small content.

Formats:
    encrypt_aes_gcm:  ciphertext || tag(16)                (IV held by caller)
    seal_aes_gcm:     iv(12) || ciphertext || tag(16)       (self-contained)
    AeadEnvelope:     {"iv": <24 lowercase hex>, "data": <standard base64>}

Security:
    - An IV must never repeat under one key; seal() and AeadEnvelope.encrypt()
      always draw a fresh IV from `secrets`
    - Size checks run before any cipher object is built
    - All decryption failures raise DecryptionFailed("Decryption failed"),
      whatever the cause (wrong key, tampered data, truncated input)

Usage:
    from cipherbox.crypto.aead import seal_aes_gcm, unseal_aes_gcm

    sealed = seal_aes_gcm(b"hello", key)
    assert unseal_aes_gcm(sealed, key) == b"hello"
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .common import (
    AES_IV_SIZE,
    AES_KEY_SIZE,
    AES_TAG_SIZE,
    SEALED_MIN_SIZE,
    BytesLike,
    DecryptionFailed,
    EncryptionFailed,
    InvalidIvSize,
    InvalidKeySize,
    base64_to_bytes,
    bytes_to_base64,
    bytes_to_hex,
    generate_iv,
    hex_to_bytes,
)


logger = logging.getLogger("cipherbox.aead")


# =============================================================================
# Raw AES-GCM
# =============================================================================

def encrypt_aes_gcm(plaintext: BytesLike, key: BytesLike, iv: BytesLike) -> bytes:
    """
    Encrypt with AES-256-GCM.

    Args:
        plaintext: Data to encrypt (may be empty)
        key: 32-byte key
        iv: 12-byte IV, unique per encryption under this key

    Returns:
        ciphertext || 16-byte tag
    """
    if len(key) != AES_KEY_SIZE:
        raise InvalidKeySize("Encryption failed")
    if len(iv) != AES_IV_SIZE:
        raise InvalidIvSize("Encryption failed")

    try:
        return AESGCM(bytes(key)).encrypt(bytes(iv), bytes(plaintext), None)
    except Exception as e:
        logger.debug("AES-GCM encrypt rejected: %s", type(e).__name__)
        raise EncryptionFailed("Encryption failed") from None


def decrypt_aes_gcm(ciphertext: BytesLike, key: BytesLike, iv: BytesLike) -> bytes:
    """
    Decrypt and authenticate AES-256-GCM output.

    Args:
        ciphertext: ciphertext || 16-byte tag
        key: 32-byte key
        iv: 12-byte IV used at encryption

    Raises:
        InvalidKeySize, InvalidIvSize: Before any decryption is attempted
        DecryptionFailed: On any other failure
    """
    if len(key) != AES_KEY_SIZE:
        raise InvalidKeySize("Decryption failed")
    if len(iv) != AES_IV_SIZE:
        raise InvalidIvSize("Decryption failed")
    if len(ciphertext) < AES_TAG_SIZE:
        raise DecryptionFailed("Decryption failed")

    try:
        return AESGCM(bytes(key)).decrypt(bytes(iv), bytes(ciphertext), None)
    except (InvalidTag, ValueError, TypeError) as e:
        logger.debug("AES-GCM decrypt rejected: %s", type(e).__name__)
        raise DecryptionFailed("Decryption failed") from None


# =============================================================================
# Seal / Unseal
# =============================================================================

def seal_aes_gcm(plaintext: BytesLike, key: BytesLike) -> bytes:
    """
    Encrypt with a freshly generated IV bound into the output.

    Returns:
        iv(12) || ciphertext || tag(16)
    """
    if len(key) != AES_KEY_SIZE:
        raise InvalidKeySize("Encryption failed")

    iv = generate_iv()
    return iv + encrypt_aes_gcm(plaintext, key, iv)


def unseal_aes_gcm(sealed: BytesLike, key: BytesLike) -> bytes:
    """
    Reverse seal_aes_gcm(). The shortest accepted input is 28 bytes
    (sealed empty plaintext).
    """
    if len(key) != AES_KEY_SIZE:
        raise InvalidKeySize("Decryption failed")
    if len(sealed) < SEALED_MIN_SIZE:
        raise DecryptionFailed("Decryption failed")

    sealed = bytes(sealed)
    return decrypt_aes_gcm(sealed[AES_IV_SIZE:], key, sealed[:AES_IV_SIZE])


# =============================================================================
# JSON Envelope
# =============================================================================

@dataclass(frozen=True)
class AeadEnvelope:
    """
    AES-GCM output with its IV carried beside it.

    Attributes:
        iv: 12-byte IV
        data: ciphertext || tag
    """
    iv: bytes
    data: bytes

    @classmethod
    def encrypt(cls, plaintext: BytesLike, key: BytesLike) -> AeadEnvelope:
        """Encrypt under a fresh IV."""
        iv = generate_iv()
        return cls(iv=iv, data=encrypt_aes_gcm(plaintext, key, iv))

    def decrypt(self, key: BytesLike) -> bytes:
        return decrypt_aes_gcm(self.data, key, self.iv)

    def to_dict(self) -> Dict[str, str]:
        return {
            "iv": bytes_to_hex(self.iv),
            "data": bytes_to_base64(self.data),
        }

    @classmethod
    def from_dict(cls, obj: Any) -> AeadEnvelope:
        """
        Parse the wire form.

        Raises:
            DecryptionFailed: If the envelope is malformed
        """
        if not isinstance(obj, dict):
            raise DecryptionFailed("Decryption failed")
        iv_text = obj.get("iv")
        data_text = obj.get("data")
        if not isinstance(iv_text, str) or len(iv_text) != AES_IV_SIZE * 2:
            raise DecryptionFailed("Decryption failed")
        try:
            iv = hex_to_bytes(iv_text)
            data = base64_to_bytes(data_text)
        except ValueError:
            raise DecryptionFailed("Decryption failed") from None
        return cls(iv=iv, data=data)
