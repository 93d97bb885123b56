# cipherbox/naming/names.py
"""
CipherBox Address Names

An address name is the stable, content-independent identifier of a
mutable record. It is derived only from the Ed25519 public key that signs
the record, so any client holding the key (or the master secret it was
derived from) finds the same address.

Encoding:
    pb_key   = 08 01 12 20 || public_key(32)         libp2p PublicKey protobuf
                                                      (KeyType=Ed25519, Data)
    mh       = 00 24 || pb_key                        identity multihash
    cid      = CIDv1(codec = libp2p-key 0x72, mh)
    name     = base36 multibase text, "k51qzi5uqu5..."
"""

from __future__ import annotations

from ..crypto.common import ED25519_PUBLIC_KEY_SIZE, BytesLike, InvalidInput
from .cid import CODEC_LIBP2P_KEY, HASH_IDENTITY, Cid


# libp2p crypto.pb: field 1 (KeyType) = 1 (Ed25519), field 2 (Data) length 32
_PB_KEY_PREFIX = bytes([0x08, 0x01, 0x12, ED25519_PUBLIC_KEY_SIZE])
PB_PUBLIC_KEY_SIZE = len(_PB_KEY_PREFIX) + ED25519_PUBLIC_KEY_SIZE   # 36

_NAME_PREFIX = "/ipns/"


def marshal_public_key(public_key: BytesLike) -> bytes:
    """Encode an Ed25519 public key as a libp2p PublicKey protobuf."""
    if len(public_key) != ED25519_PUBLIC_KEY_SIZE:
        raise InvalidInput("Invalid public key")
    return _PB_KEY_PREFIX + bytes(public_key)


def unmarshal_public_key(data: BytesLike) -> bytes:
    """Inverse of marshal_public_key(); only Ed25519 keys are accepted."""
    data = bytes(data)
    if len(data) != PB_PUBLIC_KEY_SIZE or not data.startswith(_PB_KEY_PREFIX):
        raise InvalidInput("Invalid public key")
    return data[len(_PB_KEY_PREFIX):]


def derive_address_name(public_key: BytesLike) -> str:
    """
    Derive the address name for an Ed25519 public key.

    Raises:
        InvalidInput: If the key is not 32 bytes
    """
    return Cid(CODEC_LIBP2P_KEY, HASH_IDENTITY, marshal_public_key(public_key)).encode("base36")


def public_key_from_address_name(name: str) -> bytes:
    """
    Recover the Ed25519 public key embedded in an address name.

    Accepts the bare name or the "/ipns/" path form.

    Raises:
        InvalidInput: If the text is not a CIDv1 libp2p-key name holding an
            identity-hashed Ed25519 key
    """
    if not isinstance(name, str):
        raise InvalidInput("Invalid address name")
    if name.startswith(_NAME_PREFIX):
        name = name[len(_NAME_PREFIX):]
    try:
        cid = Cid.decode(name)
    except InvalidInput:
        raise InvalidInput("Invalid address name") from None

    if cid.codec != CODEC_LIBP2P_KEY or cid.hash_code != HASH_IDENTITY:
        raise InvalidInput("Invalid address name")
    return unmarshal_public_key(cid.digest)


def is_address_name(name: str) -> bool:
    try:
        public_key_from_address_name(name)
    except InvalidInput:
        return False
    return True
