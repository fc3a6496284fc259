# vault/tx/wire.py

"""
Minimal protobuf wire codec used by the transaction types.

Only the two wire types the node's transaction format uses are supported:
varints (0) and length-delimited payloads (2). Scalars follow proto3 rules and
are omitted when zero or empty; embedded messages are always written, even when
their payload is empty.
"""

from typing import Iterator, Tuple, Union

VARINT = 0
LENGTH_DELIMITED = 2

MAX_UINT64 = 2 ** 64 - 1


def encode_varint(value: int) -> bytes:
    if value < 0:
        raise ValueError(f"Cannot encode negative varint: {value}")
    if value > MAX_UINT64:
        raise ValueError(f"Varint out of 64-bit range: {value}")
    out = bytearray()
    while True:
        bits = value & 0x7F
        value >>= 7
        if value:
            out.append(bits | 0x80)
        else:
            out.append(bits)
            return bytes(out)


def decode_varint(data: bytes, offset: int) -> Tuple[int, int]:
    """Decode a varint at ``offset``. Returns (value, new_offset)."""
    result = 0
    shift = 0
    while True:
        if offset >= len(data):
            raise ValueError("Truncated varint")
        b = data[offset]
        offset += 1
        result |= (b & 0x7F) << shift
        if not b & 0x80:
            if result > MAX_UINT64:
                raise ValueError("Varint out of 64-bit range")
            return result, offset
        shift += 7
        if shift > 63:
            raise ValueError("Varint too long")


def _key(field_number: int, wire_type: int) -> bytes:
    return encode_varint((field_number << 3) | wire_type)


def uint_field(field_number: int, value: int) -> bytes:
    if not value:
        return b""
    return _key(field_number, VARINT) + encode_varint(value)


def bytes_field(field_number: int, value: bytes) -> bytes:
    if not value:
        return b""
    return _key(field_number, LENGTH_DELIMITED) + encode_varint(len(value)) + value


def string_field(field_number: int, value: str) -> bytes:
    return bytes_field(field_number, value.encode("utf-8"))


def message_field(field_number: int, payload: bytes) -> bytes:
    return _key(field_number, LENGTH_DELIMITED) + encode_varint(len(payload)) + payload


def iter_fields(data: bytes) -> Iterator[Tuple[int, int, Union[int, bytes]]]:
    """
    Yields (field_number, wire_type, value) for every field in ``data``.
    Varint values come back as ints, length-delimited ones as bytes.
    """
    offset = 0
    while offset < len(data):
        key, offset = decode_varint(data, offset)
        field_number, wire_type = key >> 3, key & 0x07
        if wire_type == VARINT:
            value, offset = decode_varint(data, offset)
        elif wire_type == LENGTH_DELIMITED:
            length, offset = decode_varint(data, offset)
            end = offset + length
            if end > len(data):
                raise ValueError(f"Truncated field {field_number}")
            value = data[offset:end]
            offset = end
        else:
            raise ValueError(f"Unsupported wire type {wire_type} for field {field_number}")
        yield field_number, wire_type, value


def iter_typed_fields(data: bytes, varints=()) -> Iterator[Tuple[int, Union[int, bytes]]]:
    """
    Like iter_fields, yielding (field_number, value), but checks each wire
    type: fields listed in ``varints`` must be varints, all others
    length-delimited.
    """
    for field_number, wire_type, value in iter_fields(data):
        expected = VARINT if field_number in varints else LENGTH_DELIMITED
        if wire_type != expected:
            raise ValueError(
                f"Field {field_number} has wire type {wire_type}, expected {expected}"
            )
        yield field_number, value
