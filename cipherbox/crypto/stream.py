# cipherbox/crypto/stream.py
"""
CipherBox AES-256-CTR Stream Layer

Unauthenticated counter-mode encryption for large content that must
support random access (media seeking). Integrity of CTR content comes from
the content-addressed storage pointer, not from this layer.

Counter Block (16 bytes):
    ┌──────────────────────┬──────────────────────┐
    │ nonce (8, random)    │ counter (8, BE u64)  │
    └──────────────────────┴──────────────────────┘

    Block i of the content is processed with counter = (base + i) mod 2^64;
    the nonce half never changes.

Range Decryption:
    decrypt_aes_ctr_range(ct, key, iv, start, end) touches only the blocks
    covering [start, end] (inclusive) by starting the keystream at
    base + start // 16 and discarding start % 16 leading bytes.

Chunked Processing:
    CtrStreamEncryptor / CtrStreamDecryptor accept arbitrarily sized chunks
    and produce output byte-identical to the one-shot functions.
"""

from __future__ import annotations

import logging
import struct
from typing import Iterable, Iterator, Optional

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .common import (
    AES_BLOCK_SIZE,
    AES_CTR_IV_SIZE,
    AES_CTR_NONCE_SIZE,
    AES_KEY_SIZE,
    BytesLike,
    DecryptionFailed,
    EncryptionFailed,
    InvalidInput,
    InvalidIvSize,
    InvalidKeySize,
)


logger = logging.getLogger("cipherbox.stream")

_COUNTER_MOD = 1 << 64


# =========================
# Helpers
# =========================

def _check(key: BytesLike, iv: BytesLike, message: str) -> None:
    if len(key) != AES_KEY_SIZE:
        raise InvalidKeySize(message)
    if len(iv) != AES_CTR_IV_SIZE:
        raise InvalidIvSize(message)


def _offset_iv(iv: bytes, blocks: int) -> bytes:
    """Advance the 64-bit big-endian counter half of the IV by `blocks`."""
    (base,) = struct.unpack(">Q", iv[AES_CTR_NONCE_SIZE:])
    counter = (base + blocks) % _COUNTER_MOD
    return iv[:AES_CTR_NONCE_SIZE] + struct.pack(">Q", counter)


def _blocks_before_wrap(iv: bytes) -> int:
    (base,) = struct.unpack(">Q", iv[AES_CTR_NONCE_SIZE:])
    return _COUNTER_MOD - base


def _keystream_xor(data: bytes, key: BytesLike, iv: bytes) -> bytes:
    """XOR with the keystream; the counter half wraps without carrying into the nonce."""
    room = _blocks_before_wrap(iv) * AES_BLOCK_SIZE
    ctx = Cipher(algorithms.AES(bytes(key)), modes.CTR(iv)).encryptor()
    if len(data) <= room:
        return ctx.update(data) + ctx.finalize()
    head = ctx.update(data[:room]) + ctx.finalize()
    return head + _keystream_xor(data[room:], key, _offset_iv(iv, room // AES_BLOCK_SIZE))


# =========================
# One-shot
# =========================

def encrypt_aes_ctr(plaintext: BytesLike, key: BytesLike, iv: BytesLike) -> bytes:
    """
    Encrypt with AES-256-CTR.

    Args:
        plaintext: Data to encrypt
        key: 32-byte key
        iv: 16-byte counter block (see generate_ctr_iv)

    Returns:
        Ciphertext of the same length as the plaintext
    """
    _check(key, iv, "Encryption failed")
    try:
        return _keystream_xor(bytes(plaintext), key, bytes(iv))
    except Exception as e:
        logger.debug("AES-CTR encrypt rejected: %s", type(e).__name__)
        raise EncryptionFailed("Encryption failed") from None


def decrypt_aes_ctr(ciphertext: BytesLike, key: BytesLike, iv: BytesLike) -> bytes:
    """Decrypt AES-256-CTR content. Same-length output, no authentication."""
    _check(key, iv, "Decryption failed")
    try:
        return _keystream_xor(bytes(ciphertext), key, bytes(iv))
    except Exception as e:
        logger.debug("AES-CTR decrypt rejected: %s", type(e).__name__)
        raise DecryptionFailed("Decryption failed") from None


def decrypt_aes_ctr_range(
    ciphertext: BytesLike,
    key: BytesLike,
    iv: BytesLike,
    start: int,
    end: int,
) -> bytes:
    """
    Decrypt the inclusive byte range [start, end] of CTR content.

    `end` is clamped to the last byte; a range starting at or past the end
    of the data yields b"".

    Raises:
        InvalidInput: If start or end is negative, or start > end
    """
    _check(key, iv, "Decryption failed")
    if start < 0 or end < 0 or start > end:
        raise InvalidInput("Invalid byte range")

    total = len(ciphertext)
    if start >= total:
        return b""
    end = min(end, total - 1)

    first_block = start // AES_BLOCK_SIZE
    last_block = end // AES_BLOCK_SIZE
    lo = first_block * AES_BLOCK_SIZE
    hi = min((last_block + 1) * AES_BLOCK_SIZE, total)

    try:
        block_iv = _offset_iv(bytes(iv), first_block)
        plain = _keystream_xor(bytes(ciphertext[lo:hi]), key, block_iv)
    except Exception as e:
        logger.debug("AES-CTR range decrypt rejected: %s", type(e).__name__)
        raise DecryptionFailed("Decryption failed") from None

    skip = start - lo
    return plain[skip:skip + (end - start + 1)]


# =========================
# Chunked
# =========================

class _CtrStream:
    def __init__(self, key: BytesLike, iv: BytesLike, message: str):
        _check(key, iv, message)
        self._key = bytes(key)
        self._finalized = False
        self._processed = 0
        self._open(bytes(iv))

    def _open(self, iv: bytes) -> None:
        self._ctx = Cipher(algorithms.AES(self._key), modes.CTR(iv)).encryptor()
        self._nonce = iv[:AES_CTR_NONCE_SIZE]
        self._room = _blocks_before_wrap(iv) * AES_BLOCK_SIZE

    @property
    def processed(self) -> int:
        """Bytes processed so far."""
        return self._processed

    def update(self, chunk: BytesLike) -> bytes:
        if self._finalized:
            raise InvalidInput("Stream already finalized")
        chunk = bytes(chunk)
        self._processed += len(chunk)
        out = b""
        while len(chunk) > self._room:
            out += self._ctx.update(chunk[:self._room]) + self._ctx.finalize()
            chunk = chunk[self._room:]
            self._open(self._nonce + bytes(AES_CTR_IV_SIZE - AES_CTR_NONCE_SIZE))
        self._room -= len(chunk)
        return out + self._ctx.update(chunk)

    def finalize(self) -> bytes:
        if self._finalized:
            return b""
        self._finalized = True
        return self._ctx.finalize()


class CtrStreamEncryptor(_CtrStream):
    """
    Incremental AES-256-CTR encryption.

    Usage:
        enc = CtrStreamEncryptor(key, iv)
        with open(path, "rb") as f:
            for out in enc.encrypt_chunks(iter(lambda: f.read(1 << 20), b"")):
                sink.write(out)
    """

    def __init__(self, key: BytesLike, iv: BytesLike):
        super().__init__(key, iv, "Encryption failed")

    def encrypt_chunks(self, chunks: Iterable[BytesLike]) -> Iterator[bytes]:
        for chunk in chunks:
            out = self.update(chunk)
            if out:
                yield out
        tail = self.finalize()
        if tail:
            yield tail


class CtrStreamDecryptor(_CtrStream):
    """Incremental AES-256-CTR decryption, optionally starting mid-stream."""

    def __init__(self, key: BytesLike, iv: BytesLike, start_block: Optional[int] = None):
        if start_block:
            _check(key, iv, "Decryption failed")
            iv = _offset_iv(bytes(iv), start_block)
        super().__init__(key, iv, "Decryption failed")

    def decrypt_chunks(self, chunks: Iterable[BytesLike]) -> Iterator[bytes]:
        for chunk in chunks:
            out = self.update(chunk)
            if out:
                yield out
        tail = self.finalize()
        if tail:
            yield tail
