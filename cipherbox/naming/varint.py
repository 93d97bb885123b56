# cipherbox/naming/varint.py
"""Unsigned LEB128 varints, shared by the record wire form and CIDs."""

from typing import Tuple

from ..crypto.common import InvalidInput


MAX_VARINT_BYTES = 10
UINT64_MAX = (1 << 64) - 1


def encode_varint(value: int) -> bytes:
    if value < 0 or value > UINT64_MAX:
        raise InvalidInput("Varint out of range")
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def decode_varint(data: bytes, offset: int) -> Tuple[int, int]:
    """
    Read one varint.

    Returns:
        (value, new_offset)

    Raises:
        InvalidInput: On truncation, more than 10 bytes, or a value above 2^64 - 1
    """
    result = 0
    shift = 0
    for _ in range(MAX_VARINT_BYTES):
        if offset >= len(data):
            raise InvalidInput("Invalid varint encoding")
        byte = data[offset]
        offset += 1
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            if result > UINT64_MAX:
                raise InvalidInput("Invalid varint encoding")
            return result, offset
        shift += 7
    raise InvalidInput("Invalid varint encoding")
