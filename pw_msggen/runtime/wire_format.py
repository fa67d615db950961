# Copyright 2026 The Pigweed Authors
#
# Licensed under the Apache License, Version 2.0 (the "License"); you may not
# use this file except in compliance with the License. You may obtain a copy of
# the License at
#
#     https://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS, WITHOUT
# WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied. See the
# License for the specific language governing permissions and limitations under
# the License.
"""Protobuf wire format constants and scalar codecs."""

import enum
import struct
from typing import Any, Callable, NamedTuple

from pw_msggen.runtime.errors import MalformedField

_UINT32_MASK = 2**32 - 1
_UINT64_MASK = 2**64 - 1
_MAX_VARINT_BYTES = 10

MAX_FIELD_NUMBER = 2**29 - 1


class WireType(enum.IntEnum):
    VARINT = 0
    FIXED64 = 1
    LENGTH_DELIMITED = 2
    START_GROUP = 3
    END_GROUP = 4
    FIXED32 = 5


def make_tag(field_number: int, wire_type: WireType) -> int:
    return (field_number << 3) | wire_type


def zig_zag_encode(value: int) -> int:
    """Encodes signed integers to give a compact varint encoding."""
    return value << 1 if value >= 0 else (value << 1) ^ (~0)


def zig_zag_decode(value: int) -> int:
    return (value >> 1) if not value & 1 else (value >> 1) ^ (~0)


def encode_varint(integer: int) -> bytes:
    """Encodes an integer as a little-endian base 128 varint.

    Negative values are encoded as their 64-bit two's complement, as protobuf
    does for int32 and int64 fields.
    """
    integer &= _UINT64_MASK
    data = bytearray()

    while True:
        # Grab 7 bits; the eighth bit is set to 1 to indicate more data coming.
        data.append((integer & 0x7F) | 0x80)
        integer >>= 7

        if not integer:
            break

    data[-1] &= 0x7F  # clear the top bit of the last byte
    return bytes(data)


def decode_varint(data: bytes | memoryview, offset: int) -> tuple[int, int]:
    """Decodes a varint starting at offset.

    Returns:
      the decoded value and the offset just past the varint
    """
    value = 0
    for count in range(_MAX_VARINT_BYTES):
        if offset >= len(data):
            raise MalformedField('truncated varint')

        byte = data[offset]
        offset += 1
        value |= (byte & 0x7F) << (count * 7)

        if not byte & 0x80:
            return value & _UINT64_MASK, offset

    raise MalformedField('varint is longer than 10 bytes')


def _to_signed(value: int, bits: int) -> int:
    value &= (1 << bits) - 1
    if value & (1 << (bits - 1)):
        value -= 1 << bits
    return value


def _decode_string(data: bytes) -> str:
    try:
        return data.decode('utf-8')
    except UnicodeDecodeError as err:
        raise MalformedField(f'invalid UTF-8 in string: {err}') from err


class _Codec(NamedTuple):
    """Converts a scalar value to and from its wire payload.

    For VARINT fields the payload is the decoded varint value; for fixed-width
    and length-delimited fields it is the raw bytes.
    """

    encode: Callable[[Any], Any]
    decode: Callable[[Any], Any]


_CODECS: dict[int, _Codec] = {
    1: _Codec(
        lambda v: struct.pack('<d', v), lambda b: struct.unpack('<d', b)[0]
    ),
    2: _Codec(
        lambda v: struct.pack('<f', v), lambda b: struct.unpack('<f', b)[0]
    ),
    3: _Codec(lambda v: v, lambda v: _to_signed(v, 64)),
    4: _Codec(lambda v: v, lambda v: v & _UINT64_MASK),
    5: _Codec(lambda v: v, lambda v: _to_signed(v, 32)),
    6: _Codec(
        lambda v: struct.pack('<Q', v), lambda b: struct.unpack('<Q', b)[0]
    ),
    7: _Codec(
        lambda v: struct.pack('<I', v), lambda b: struct.unpack('<I', b)[0]
    ),
    8: _Codec(int, bool),
    9: _Codec(lambda v: v.encode('utf-8'), _decode_string),
    12: _Codec(bytes, bytes),
    13: _Codec(lambda v: v & _UINT32_MASK, lambda v: v & _UINT32_MASK),
    14: _Codec(lambda v: v, lambda v: _to_signed(v, 32)),
    15: _Codec(
        lambda v: struct.pack('<i', v), lambda b: struct.unpack('<i', b)[0]
    ),
    16: _Codec(
        lambda v: struct.pack('<q', v), lambda b: struct.unpack('<q', b)[0]
    ),
    17: _Codec(
        zig_zag_encode, lambda v: _to_signed(zig_zag_decode(v), 32)
    ),
    18: _Codec(
        zig_zag_encode, lambda v: _to_signed(zig_zag_decode(v), 64)
    ),
}


class FieldType(enum.Enum):
    """Protobuf field types, numbered as in FieldDescriptorProto.Type."""

    DOUBLE = 1
    FLOAT = 2
    INT64 = 3
    UINT64 = 4
    INT32 = 5
    FIXED64 = 6
    FIXED32 = 7
    BOOL = 8
    STRING = 9
    GROUP = 10
    MESSAGE = 11
    BYTES = 12
    UINT32 = 13
    ENUM = 14
    SFIXED32 = 15
    SFIXED64 = 16
    SINT32 = 17
    SINT64 = 18

    def wire_type(self) -> WireType:
        if self in (FieldType.DOUBLE, FieldType.FIXED64, FieldType.SFIXED64):
            return WireType.FIXED64
        if self in (FieldType.FLOAT, FieldType.FIXED32, FieldType.SFIXED32):
            return WireType.FIXED32
        if self in (
            FieldType.STRING,
            FieldType.BYTES,
            FieldType.MESSAGE,
        ):
            return WireType.LENGTH_DELIMITED
        if self is FieldType.GROUP:
            return WireType.START_GROUP
        return WireType.VARINT

    def is_packable(self) -> bool:
        """True for scalar numeric types, which may use packed encoding."""
        return self.wire_type() in (
            WireType.VARINT,
            WireType.FIXED32,
            WireType.FIXED64,
        )

    def is_scalar(self) -> bool:
        return self not in (FieldType.GROUP, FieldType.MESSAGE)

    def default_value(self) -> Any:
        """The implicit default of a scalar of this type."""
        if self is FieldType.STRING:
            return ''
        if self is FieldType.BYTES:
            return b''
        if self is FieldType.BOOL:
            return False
        if self in (FieldType.DOUBLE, FieldType.FLOAT):
            return 0.0
        if self.is_scalar():
            return 0
        return None

    def encode_payload(self, value: Any) -> Any:
        return _CODECS[self.value].encode(value)

    def decode_payload(self, payload: Any) -> Any:
        return _CODECS[self.value].decode(payload)


def fixed_width(wire_type: WireType) -> int:
    """Number of payload bytes for a fixed-width wire type."""
    if wire_type is WireType.FIXED32:
        return 4
    if wire_type is WireType.FIXED64:
        return 8
    raise ValueError(f'{wire_type!r} is not a fixed-width wire type')


def encode_scalar(field_type: FieldType, value: Any) -> bytes:
    """Encodes a scalar value without its tag."""
    payload = field_type.encode_payload(value)
    wire_type = field_type.wire_type()

    if wire_type is WireType.VARINT:
        return encode_varint(payload)
    if wire_type is WireType.LENGTH_DELIMITED:
        return encode_varint(len(payload)) + payload
    return payload
