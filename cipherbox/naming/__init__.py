# cipherbox/naming/__init__.py
"""
CipherBox Naming Module

Mutable addresses over immutable content:
  - cid:        CIDv1 + multibase (content pointers, address names)
  - varint:     unsigned LEB128 varints shared by the binary codecs
  - names:      address name <-> Ed25519 public key (CIDv1, base36)
  - record:     signed, sequence-numbered records (CBOR body)
  - wire:       protobuf marshal / unmarshal
  - validator:  signature, expiry and rollback checks
"""

from .cid import (
    Cid,
    raw_content_cid,
)
from .varint import (
    encode_varint,
    decode_varint,
)
from .names import (
    derive_address_name,
    public_key_from_address_name,
    is_address_name,
    marshal_public_key,
    unmarshal_public_key,
)
from .record import (
    AddressRecord,
    create_record,
    verify_record,
    encode_body,
    decode_body,
    format_validity,
    parse_validity,
)
from .wire import (
    marshal_record,
    unmarshal_record,
)
from .validator import (
    RecordRejected,
    RecordValidator,
)

__all__ = [
    "Cid",
    "raw_content_cid",
    "encode_varint",
    "decode_varint",
    "derive_address_name",
    "public_key_from_address_name",
    "is_address_name",
    "marshal_public_key",
    "unmarshal_public_key",
    "AddressRecord",
    "create_record",
    "verify_record",
    "encode_body",
    "decode_body",
    "format_validity",
    "parse_validity",
    "marshal_record",
    "unmarshal_record",
    "RecordRejected",
    "RecordValidator",
]
