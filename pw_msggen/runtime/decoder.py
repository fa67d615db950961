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
"""Reads a serialized message as a stream of field numbers and payloads."""

from typing import Any, TYPE_CHECKING

from pw_msggen.runtime.errors import ConflictingOneofAlternative
from pw_msggen.runtime.errors import MalformedField
from pw_msggen.runtime.unknown import UnknownStorage
from pw_msggen.runtime.wire_format import (
    MAX_FIELD_NUMBER,
    FieldType,
    WireType,
    decode_varint,
    fixed_width,
)

if TYPE_CHECKING:
    from pw_msggen.runtime.extensions import ExtensionFieldValueSet
    from pw_msggen.runtime.extensions import ExtensionMap

# Limits how deeply sub-messages and groups may nest in decoded data.
MAX_RECURSION_DEPTH = 100


def _read_scalar(
    data: bytes, offset: int, field_type: FieldType, wire_type: WireType
) -> tuple[Any, int]:
    """Reads one scalar payload of the given wire type at offset."""
    if wire_type is WireType.VARINT:
        raw, offset = decode_varint(data, offset)
        return field_type.decode_payload(raw), offset

    if wire_type is WireType.LENGTH_DELIMITED:
        size, offset = decode_varint(data, offset)
    else:
        size = fixed_width(wire_type)

    end = offset + size
    if end > len(data):
        raise MalformedField(f'{field_type.name} payload is truncated')
    return field_type.decode_payload(bytes(data[offset:end])), end


class Decoder:
    """Iterates over the fields of one serialized message.

    Generated decode_message() methods call next_field_number() until it
    returns None and consume each field's payload with one of the decode_*
    methods, skip_unknown_field(), or decode_extension_field(). A payload
    left unconsumed is skipped when the next field number is read.
    """

    def __init__(
        self,
        data: bytes,
        extensions: 'ExtensionMap | None' = None,
        *,
        depth: int = 0,
        start: int = 0,
        group_number: int | None = None,
    ):
        self._data = data
        self._extensions = extensions
        self._depth = depth
        self._pos = start
        self._group_number = group_number
        self._group_ended = False

        self._field_number: int | None = None
        self._wire_type = WireType.VARINT
        self._tag_start = start
        self._consumed = True

    @property
    def extensions(self) -> 'ExtensionMap | None':
        return self._extensions

    @property
    def field_number(self) -> int | None:
        """The number of the field currently being decoded."""
        return self._field_number

    @property
    def wire_type(self) -> WireType:
        return self._wire_type

    def next_field_number(self) -> int | None:
        """Reads the next tag, returning its field number or None at the end.

        Raises:
          MalformedField: the tag is invalid or a group is not terminated
        """
        if self._field_number is not None and not self._consumed:
            self._skip_payload()
        self._field_number = None

        if self._group_ended:
            return None

        if self._pos >= len(self._data):
            if self._group_number is not None:
                raise MalformedField('group is not terminated',
                                     self._group_number)
            return None

        self._tag_start = self._pos
        field_number, wire_type = self._read_tag()

        if wire_type is WireType.END_GROUP:
            if field_number != self._group_number:
                raise MalformedField('unmatched end of group', field_number)
            self._group_ended = True
            return None

        self._field_number = field_number
        self._wire_type = wire_type
        self._consumed = False
        return field_number

    def decode_singular(self, field_type: FieldType) -> Any:
        """Decodes a scalar, string or bytes value."""
        wire_type = self._take_field(field_type.wire_type())
        value, self._pos = _read_scalar(
            self._data, self._pos, field_type, wire_type
        )
        return value

    def decode_repeated(self, field_type: FieldType, values: list) -> None:
        """Appends one or more values (packed or not) to a repeated field."""
        if not field_type.is_packable():
            values.append(self.decode_singular(field_type))
            return

        element_wire_type = field_type.wire_type()
        wire_type = self._take_field(
            element_wire_type, WireType.LENGTH_DELIMITED
        )
        if wire_type is not WireType.LENGTH_DELIMITED:
            value, self._pos = _read_scalar(
                self._data, self._pos, field_type, wire_type
            )
            values.append(value)
            return

        packed = self._read_length_delimited()
        offset = 0
        while offset < len(packed):
            value, offset = _read_scalar(
                packed, offset, field_type, element_wire_type
            )
            values.append(value)

    def decode_singular_message(
        self, existing: Any, message_class: type
    ) -> Any:
        """Decodes a sub-message, merging into existing if it is not None."""
        self._take_field(WireType.LENGTH_DELIMITED)
        payload = self._read_length_delimited()
        message = existing if existing is not None else message_class()
        message.decode_message(self._sub_decoder(payload))
        return message

    def decode_repeated_message(
        self, values: list, message_class: type
    ) -> None:
        values.append(self.decode_singular_message(None, message_class))

    def decode_singular_group(self, existing: Any, message_class: type) -> Any:
        """Decodes a group, merging into existing if it is not None."""
        self._take_field(WireType.START_GROUP)
        group_number = self._field_number
        self._check_depth()

        group = Decoder(
            self._data,
            self._extensions,
            depth=self._depth + 1,
            start=self._pos,
            group_number=group_number,
        )
        message = existing if existing is not None else message_class()
        message.decode_message(group)
        self._pos = group._pos  # pylint: disable=protected-access
        return message

    def decode_repeated_group(self, values: list, message_class: type) -> None:
        values.append(self.decode_singular_group(None, message_class))

    def decode_map(
        self,
        entries: dict,
        key_type: FieldType,
        value_type: FieldType,
        value_class: type | None = None,
    ) -> None:
        """Decodes one map entry and stores it, replacing any existing key."""
        self._take_field(WireType.LENGTH_DELIMITED)
        entry = self._sub_decoder(self._read_length_delimited())

        key = key_type.default_value()
        value = None
        while (field_number := entry.next_field_number()) is not None:
            if field_number == 1:
                key = entry.decode_singular(key_type)
            elif field_number == 2:
                if value_class is not None:
                    value = entry.decode_singular_message(value, value_class)
                else:
                    value = entry.decode_singular(value_type)

        if value is None:
            value = (
                value_class()
                if value_class is not None
                else value_type.default_value()
            )
        entries[key] = value

    def decode_extension_field(
        self,
        values: 'ExtensionFieldValueSet',
        message_type: type,
        field_number: int,
        unknown_fields: UnknownStorage,
    ) -> None:
        """Decodes a field in an extension range of message_type.

        Fields without a registered extension are kept as unknown fields.
        """
        extension = None
        if self._extensions is not None:
            extension = self._extensions.get(message_type, field_number)

        if extension is None:
            self.skip_unknown_field(unknown_fields)
        else:
            extension.decode_field(self, values)

    def skip_unknown_field(self, unknown_fields: UnknownStorage) -> None:
        """Consumes the current field and keeps its raw bytes, tag included."""
        if self._field_number is None or self._consumed:
            raise RuntimeError('There is no field to skip')

        self._skip_payload()
        unknown_fields.append(bytes(self._data[self._tag_start : self._pos]))

    def handle_conflicting_oneof(
        self, oneof_name: str, current: int, conflicting: int
    ) -> None:
        raise ConflictingOneofAlternative(oneof_name, current, conflicting)

    def _take_field(self, *wire_types: WireType) -> WireType:
        if self._field_number is None or self._consumed:
            raise RuntimeError('There is no field to decode')

        if self._wire_type not in wire_types:
            raise MalformedField(
                f'unexpected wire type {self._wire_type.name}',
                self._field_number,
            )

        self._consumed = True
        return self._wire_type

    def _read_tag(self) -> tuple[int, WireType]:
        tag, self._pos = decode_varint(self._data, self._pos)
        field_number = tag >> 3

        try:
            wire_type = WireType(tag & 0x7)
        except ValueError as err:
            raise MalformedField(
                f'invalid wire type {tag & 0x7}', field_number
            ) from err

        if not 0 < field_number <= MAX_FIELD_NUMBER:
            raise MalformedField(f'invalid field number {field_number}')

        return field_number, wire_type

    def _read_length_delimited(self) -> bytes:
        size, start = decode_varint(self._data, self._pos)
        end = start + size
        if end > len(self._data):
            raise MalformedField(
                'length-delimited field is truncated', self._field_number
            )
        self._pos = end
        return bytes(self._data[start:end])

    def _check_depth(self) -> None:
        if self._depth >= MAX_RECURSION_DEPTH:
            raise MalformedField(
                'message nesting is too deep', self._field_number
            )

    def _sub_decoder(self, payload: bytes) -> 'Decoder':
        self._check_depth()
        return Decoder(payload, self._extensions, depth=self._depth + 1)

    def _skip_payload(self) -> None:
        self._consumed = True
        assert self._field_number is not None
        self._skip(self._wire_type, self._field_number, self._depth)

    def _skip(self, wire_type: WireType, field_number: int, depth: int) -> None:
        if wire_type is WireType.VARINT:
            _, self._pos = decode_varint(self._data, self._pos)
        elif wire_type is WireType.LENGTH_DELIMITED:
            self._read_length_delimited()
        elif wire_type is WireType.START_GROUP:
            self._skip_group(field_number, depth + 1)
        else:
            end = self._pos + fixed_width(wire_type)
            if end > len(self._data):
                raise MalformedField('fixed-width field is truncated',
                                     field_number)
            self._pos = end

    def _skip_group(self, group_number: int, depth: int) -> None:
        if depth > MAX_RECURSION_DEPTH:
            raise MalformedField('message nesting is too deep', group_number)

        while True:
            if self._pos >= len(self._data):
                raise MalformedField('group is not terminated', group_number)

            field_number, wire_type = self._read_tag()
            if wire_type is WireType.END_GROUP:
                if field_number != group_number:
                    raise MalformedField('unmatched end of group',
                                         field_number)
                return

            self._skip(wire_type, field_number, depth)
