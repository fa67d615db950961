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
"""Visitors that walk the fields of a message in field-number order."""

import abc
from typing import Any, Iterable, Mapping, TYPE_CHECKING

from pw_msggen.runtime.wire_format import (
    FieldType,
    WireType,
    encode_scalar,
    encode_varint,
    make_tag,
)

if TYPE_CHECKING:
    from pw_msggen.runtime.extensions import ExtensionFieldValueSet


class Visitor(abc.ABC):
    """Receives each present field of a message from its traverse() method.

    Fields arrive in ascending field-number order, with extension ranges
    interleaved at their position and unknown fields last.
    """

    @abc.abstractmethod
    def visit_singular(
        self, value: Any, field_type: FieldType, field_number: int
    ) -> None:
        """Visits a scalar, string or bytes field."""

    def visit_repeated(
        self,
        values: Iterable[Any],
        field_type: FieldType,
        field_number: int,
        packed: bool = False,
    ) -> None:
        del packed  # Only relevant to encoders.
        for value in values:
            self.visit_singular(value, field_type, field_number)

    @abc.abstractmethod
    def visit_singular_message(self, value: Any, field_number: int) -> None:
        """Visits a sub-message field."""

    def visit_repeated_message(
        self, values: Iterable[Any], field_number: int
    ) -> None:
        for value in values:
            self.visit_singular_message(value, field_number)

    @abc.abstractmethod
    def visit_singular_group(self, value: Any, field_number: int) -> None:
        """Visits a group field."""

    def visit_repeated_group(
        self, values: Iterable[Any], field_number: int
    ) -> None:
        for value in values:
            self.visit_singular_group(value, field_number)

    @abc.abstractmethod
    def visit_map(
        self,
        entries: Mapping[Any, Any],
        key_type: FieldType,
        value_type: FieldType,
        field_number: int,
    ) -> None:
        """Visits every entry of a map field."""

    def visit_extension_fields(
        self, values: 'ExtensionFieldValueSet', start: int, end: int
    ) -> None:
        """Visits the extension fields numbered within [start, end)."""
        values.traverse(self, start, end)

    @abc.abstractmethod
    def visit_unknown(self, data: bytes) -> None:
        """Visits the raw bytes of the message's unknown fields."""


class BinaryEncodingVisitor(Visitor):
    """Serializes the visited fields in the protobuf binary wire format."""

    def __init__(self) -> None:
        self._data = bytearray()

    def data(self) -> bytes:
        return bytes(self._data)

    def _tag(self, field_number: int, wire_type: WireType) -> None:
        self._data += encode_varint(make_tag(field_number, wire_type))

    def visit_singular(
        self, value: Any, field_type: FieldType, field_number: int
    ) -> None:
        self._tag(field_number, field_type.wire_type())
        self._data += encode_scalar(field_type, value)

    def visit_repeated(
        self,
        values: Iterable[Any],
        field_type: FieldType,
        field_number: int,
        packed: bool = False,
    ) -> None:
        if not packed or not field_type.is_packable():
            super().visit_repeated(values, field_type, field_number)
            return

        payload = b''.join(encode_scalar(field_type, v) for v in values)
        if not payload:
            return

        self._tag(field_number, WireType.LENGTH_DELIMITED)
        self._data += encode_varint(len(payload))
        self._data += payload

    def visit_singular_message(self, value: Any, field_number: int) -> None:
        payload = value.serialize()
        self._tag(field_number, WireType.LENGTH_DELIMITED)
        self._data += encode_varint(len(payload))
        self._data += payload

    def visit_singular_group(self, value: Any, field_number: int) -> None:
        self._tag(field_number, WireType.START_GROUP)
        value.traverse(self)
        self._tag(field_number, WireType.END_GROUP)

    def visit_map(
        self,
        entries: Mapping[Any, Any],
        key_type: FieldType,
        value_type: FieldType,
        field_number: int,
    ) -> None:
        for key, value in entries.items():
            entry = BinaryEncodingVisitor()
            entry.visit_singular(key, key_type, 1)
            if value_type is FieldType.MESSAGE:
                entry.visit_singular_message(value, 2)
            else:
                entry.visit_singular(value, value_type, 2)

            payload = entry.data()
            self._tag(field_number, WireType.LENGTH_DELIMITED)
            self._data += encode_varint(len(payload))
            self._data += payload

    def visit_unknown(self, data: bytes) -> None:
        self._data += data
