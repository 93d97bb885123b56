# cipherbox/naming/wire.py
"""
CipherBox Address Record Wire Format

Protobuf encoding of AddressRecord, compatible with the IpnsEntry message.

Fields:
    ┌────┬──────────────┬──────────┬────────────────────────────────────┐
    │ #  │ name         │ wire     │ contents                           │
    ├────┼──────────────┼──────────┼────────────────────────────────────┤
    │ 1  │ value        │ bytes    │ content pointer                    │
    │ 2  │ signatureV1  │ bytes    │ legacy signature (optional)        │
    │ 3  │ validityType │ varint   │ 0 = EOL                            │
    │ 4  │ validity     │ bytes    │ RFC 3339 expiry                    │
    │ 5  │ sequence     │ varint   │                                    │
    │ 6  │ ttl          │ varint   │ nanoseconds                        │
    │ 7  │ pubKey       │ bytes    │ libp2p PublicKey (optional)        │
    │ 8  │ signatureV2  │ bytes    │ signature over prefixed CBOR body  │
    │ 9  │ data         │ bytes    │ CBOR body                          │
    └────┴──────────────┴──────────┴────────────────────────────────────┘

Fields are written in field-number order. Unknown fields are skipped on
read; truncated or malformed input raises InvalidInput.
"""

from __future__ import annotations

import struct
from typing import Dict, List, Union

from ..crypto.common import BytesLike, InvalidInput
from .names import marshal_public_key, unmarshal_public_key
from .record import AddressRecord
from .varint import decode_varint, encode_varint


# Wire types
WIRE_VARINT = 0
WIRE_FIXED64 = 1
WIRE_BYTES = 2
WIRE_FIXED32 = 5

FIELD_VALUE = 1
FIELD_SIGNATURE_V1 = 2
FIELD_VALIDITY_TYPE = 3
FIELD_VALIDITY = 4
FIELD_SEQUENCE = 5
FIELD_TTL = 6
FIELD_PUBKEY = 7
FIELD_SIGNATURE_V2 = 8
FIELD_DATA = 9

_VARINT_FIELDS = (FIELD_VALIDITY_TYPE, FIELD_SEQUENCE, FIELD_TTL)


def _key(field_no: int, wire_type: int) -> bytes:
    return encode_varint((field_no << 3) | wire_type)


def _bytes_field(field_no: int, payload: bytes) -> bytes:
    return _key(field_no, WIRE_BYTES) + encode_varint(len(payload)) + payload


def _varint_field(field_no: int, value: int) -> bytes:
    return _key(field_no, WIRE_VARINT) + encode_varint(value)


# =============================================================================
# Marshal / Unmarshal
# =============================================================================

def marshal_record(record: AddressRecord) -> bytes:
    """Serialize a record to its protobuf wire form."""
    parts = [_bytes_field(FIELD_VALUE, record.value)]
    if record.signature_v1 is not None:
        parts.append(_bytes_field(FIELD_SIGNATURE_V1, record.signature_v1))
    parts.append(_varint_field(FIELD_VALIDITY_TYPE, record.validity_type))
    parts.append(_bytes_field(FIELD_VALIDITY, record.validity))
    parts.append(_varint_field(FIELD_SEQUENCE, record.sequence))
    parts.append(_varint_field(FIELD_TTL, record.ttl_ns))
    if record.public_key is not None:
        parts.append(_bytes_field(FIELD_PUBKEY, marshal_public_key(record.public_key)))
    parts.append(_bytes_field(FIELD_SIGNATURE_V2, record.signature_v2))
    parts.append(_bytes_field(FIELD_DATA, record.data))
    return b"".join(parts)


def _read_fields(data: bytes) -> Dict[int, Union[int, bytes]]:
    fields: Dict[int, Union[int, bytes]] = {}
    offset = 0
    while offset < len(data):
        key, offset = decode_varint(data, offset)
        field_no, wire_type = key >> 3, key & 0x07
        if field_no == 0:
            raise InvalidInput("Invalid record encoding")

        if wire_type == WIRE_VARINT:
            value, offset = decode_varint(data, offset)
        elif wire_type == WIRE_BYTES:
            length, offset = decode_varint(data, offset)
            if offset + length > len(data):
                raise InvalidInput("Invalid record encoding")
            value = data[offset:offset + length]
            offset += length
        elif wire_type == WIRE_FIXED64:
            if offset + 8 > len(data):
                raise InvalidInput("Invalid record encoding")
            (value,) = struct.unpack("<Q", data[offset:offset + 8])
            offset += 8
        elif wire_type == WIRE_FIXED32:
            if offset + 4 > len(data):
                raise InvalidInput("Invalid record encoding")
            (value,) = struct.unpack("<I", data[offset:offset + 4])
            offset += 4
        else:
            raise InvalidInput("Invalid record encoding")

        if field_no <= FIELD_DATA:
            expected = WIRE_VARINT if field_no in _VARINT_FIELDS else WIRE_BYTES
            if wire_type != expected:
                raise InvalidInput("Invalid record encoding")
            # last occurrence wins, as in protobuf
            fields[field_no] = value
    return fields


def unmarshal_record(data: BytesLike) -> AddressRecord:
    """
    Parse the protobuf wire form.

    Raises:
        InvalidInput: On truncation, bad wire types, or missing required fields
    """
    fields = _read_fields(bytes(data))

    required: List[int] = [
        FIELD_VALUE, FIELD_VALIDITY_TYPE, FIELD_VALIDITY,
        FIELD_SEQUENCE, FIELD_TTL, FIELD_SIGNATURE_V2, FIELD_DATA,
    ]
    if any(f not in fields for f in required):
        raise InvalidInput("Invalid record encoding")

    public_key = None
    if FIELD_PUBKEY in fields:
        public_key = unmarshal_public_key(fields[FIELD_PUBKEY])

    return AddressRecord(
        value=fields[FIELD_VALUE],
        validity=fields[FIELD_VALIDITY],
        validity_type=fields[FIELD_VALIDITY_TYPE],
        sequence=fields[FIELD_SEQUENCE],
        ttl_ns=fields[FIELD_TTL],
        signature_v2=fields[FIELD_SIGNATURE_V2],
        data=fields[FIELD_DATA],
        signature_v1=fields.get(FIELD_SIGNATURE_V1),
        public_key=public_key,
    )
