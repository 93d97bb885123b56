# cipherbox/naming/cid.py
"""
CipherBox Content Identifiers

CIDv1 codec for the two identifier kinds the engine produces and reads:

    address name     k...  base36( CIDv1 libp2p-key, identity hash of the key )
    content pointer  b...  base32( CIDv1 raw, sha2-256 of the bytes )

Binary Layout:
    ┌─────────────┬─────────────┬─────────────┬─────────────┬─────────────┐
    │ version (v) │ codec (v)   │ hash fn (v) │ length (v)  │ digest      │
    └─────────────┴─────────────┴─────────────┴─────────────┴─────────────┘
    (v) = unsigned varint

Text Form:
    multibase prefix character followed by the encoded bytes; base36 keeps
    leading zero bytes as leading "0" digits.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
from dataclasses import dataclass

from ..crypto.common import BytesLike, InvalidInput
from .varint import decode_varint, encode_varint


CID_VERSION = 1

# multicodec table
CODEC_RAW = 0x55
CODEC_LIBP2P_KEY = 0x72
HASH_IDENTITY = 0x00
HASH_SHA2_256 = 0x12

_BASE36_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
_BASE36_PREFIX = "k"
_BASE32_PREFIX = "b"


# =============================================================================
# Multibase
# =============================================================================

def _base36_encode(data: bytes) -> str:
    zeros = len(data) - len(data.lstrip(b"\x00"))
    num = int.from_bytes(data, "big")
    digits = []
    while num:
        num, rem = divmod(num, 36)
        digits.append(_BASE36_ALPHABET[rem])
    return "0" * zeros + "".join(reversed(digits))


def _base36_decode(text: str) -> bytes:
    text = text.lower()
    if not text or any(c not in _BASE36_ALPHABET for c in text):
        raise InvalidInput("Invalid CID")
    zeros = len(text) - len(text.lstrip("0"))
    num = int(text, 36)
    body = num.to_bytes((num.bit_length() + 7) // 8, "big") if num else b""
    return b"\x00" * zeros + body


def _base32_encode(data: bytes) -> str:
    return base64.b32encode(data).decode("ascii").lower().rstrip("=")


def _base32_decode(text: str) -> bytes:
    padded = text.upper() + "=" * (-len(text) % 8)
    try:
        return base64.b32decode(padded)
    except (binascii.Error, ValueError):
        raise InvalidInput("Invalid CID") from None


# =============================================================================
# CID
# =============================================================================

@dataclass(frozen=True)
class Cid:
    """
    A version 1 content identifier.

    Attributes:
        codec: Multicodec of the addressed content (raw, libp2p-key)
        hash_code: Multihash function code (identity, sha2-256)
        digest: Hash output, or the content itself for identity
    """
    codec: int
    hash_code: int
    digest: bytes

    def to_bytes(self) -> bytes:
        return b"".join((
            encode_varint(CID_VERSION),
            encode_varint(self.codec),
            encode_varint(self.hash_code),
            encode_varint(len(self.digest)),
            self.digest,
        ))

    @classmethod
    def from_bytes(cls, data: BytesLike) -> Cid:
        """
        Raises:
            InvalidInput: On a version other than 1, truncation, or trailing bytes
        """
        data = bytes(data)
        version, pos = decode_varint(data, 0)
        if version != CID_VERSION:
            raise InvalidInput("Invalid CID")
        codec, pos = decode_varint(data, pos)
        hash_code, pos = decode_varint(data, pos)
        length, pos = decode_varint(data, pos)
        digest = data[pos:]
        if len(digest) != length:
            raise InvalidInput("Invalid CID")
        return cls(codec=codec, hash_code=hash_code, digest=digest)

    def encode(self, base: str = "base32") -> str:
        raw = self.to_bytes()
        if base == "base36":
            return _BASE36_PREFIX + _base36_encode(raw)
        if base == "base32":
            return _BASE32_PREFIX + _base32_encode(raw)
        raise InvalidInput(f"Unsupported multibase: {base}")

    @classmethod
    def decode(cls, text: str) -> Cid:
        """
        Parse the text form (base36 "k" or base32 "b", either case).

        Raises:
            InvalidInput: On an unknown prefix or a malformed body
        """
        if not isinstance(text, str) or len(text) < 2:
            raise InvalidInput("Invalid CID")
        prefix, body = text[0].lower(), text[1:]
        if prefix == _BASE36_PREFIX:
            return cls.from_bytes(_base36_decode(body))
        if prefix == _BASE32_PREFIX:
            return cls.from_bytes(_base32_decode(body))
        raise InvalidInput("Invalid CID")

    def __str__(self) -> str:
        return self.encode()


def raw_content_cid(data: BytesLike) -> Cid:
    """CIDv1 of raw bytes under sha2-256."""
    return Cid(CODEC_RAW, HASH_SHA2_256, hashlib.sha256(bytes(data)).digest())
