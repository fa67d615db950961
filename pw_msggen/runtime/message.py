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
"""Base class of every generated message class."""

import copy
from typing import Any, ClassVar, Iterable

from pw_msggen.runtime.decoder import Decoder
from pw_msggen.runtime.encoder import BinaryEncodingVisitor, Visitor
from pw_msggen.runtime.errors import IncompleteMessageError
from pw_msggen.runtime.extensions import (
    ExtensionFieldValueSet,
    ExtensionMap,
    MessageExtension,
)
from pw_msggen.runtime.storage import MessageStorage
from pw_msggen.runtime.unknown import UnknownStorage


class Message:
    """A protobuf message value.

    Generated subclasses provide decode_message(), traverse(),
    _protobuf_generated_is_equal_to() and _protobuf_copy_fields(), and
    either keep their fields as instance attributes or, for indirected
    messages, in a shared copy-on-write _storage object.

    Messages have value semantics: copy.copy() returns an independent value,
    and getters never hand out references to internal containers. The
    mutable_ accessors do; storage they were called on is copied rather than
    shared by later copies of the message.
    """

    PROTO_MESSAGE_NAME: ClassVar[str] = ''
    IS_PROTO3: ClassVar[bool] = False
    IS_EXTENSIBLE: ClassVar[bool] = False
    EXTENSION_RANGES: ClassVar[tuple[tuple[int, int], ...]] = ()
    FIELD_NAMES: ClassVar[tuple[str, ...]] = ()
    ONEOF_NAMES: ClassVar[tuple[str, ...]] = ()

    _storage: MessageStorage | None = None

    def __init__(self, **fields: Any) -> None:
        self.unknown_fields = UnknownStorage()
        if self.IS_EXTENSIBLE:
            self.extension_fields = ExtensionFieldValueSet()

        for name, value in fields.items():
            if name not in self.FIELD_NAMES and name not in self.ONEOF_NAMES:
                raise TypeError(
                    f'{type(self).__name__} has no field named {name!r}'
                )
            setattr(self, name, value)

    @classmethod
    def parse(
        cls,
        data: bytes,
        extensions: ExtensionMap | None = None,
        partial: bool = True,
    ) -> 'Message':
        """Decodes a message from its serialized form.

        Raises:
          DecodingError: the data is not a valid encoding of this message
          IncompleteMessageError: partial is False and required fields are
              missing
        """
        message = cls()
        message.merge_from_bytes(data, extensions)
        if not partial and not message.is_initialized():
            raise IncompleteMessageError(cls.PROTO_MESSAGE_NAME)
        return message

    def merge_from_bytes(
        self, data: bytes, extensions: ExtensionMap | None = None
    ) -> None:
        """Decodes data into this message, merging with its current fields."""
        self.decode_message(Decoder(bytes(data), extensions))

    def serialize(self, partial: bool = True) -> bytes:
        """Encodes the message in the binary wire format.

        Raises:
          IncompleteMessageError: partial is False and required fields are
              missing
        """
        if not partial and not self.is_initialized():
            raise IncompleteMessageError(self.PROTO_MESSAGE_NAME)

        visitor = BinaryEncodingVisitor()
        self.traverse(visitor)
        return visitor.data()

    def decode_message(self, decoder: Decoder) -> None:
        raise NotImplementedError()

    def traverse(self, visitor: Visitor) -> None:
        raise NotImplementedError()

    def is_initialized(self) -> bool:
        return True

    @staticmethod
    def are_all_initialized(messages: Iterable['Message']) -> bool:
        return all(message.is_initialized() for message in messages)

    def _check_extension(self, extension: MessageExtension) -> None:
        if not isinstance(self, extension.extended_type):
            raise TypeError(
                f'{extension.field_name} does not extend '
                f'{type(self).__name__}'
            )

    def get_extension(self, extension: MessageExtension) -> Any:
        self._check_extension(extension)
        return self.extension_fields.get(extension)

    def has_extension(self, extension: MessageExtension) -> bool:
        self._check_extension(extension)
        return self.extension_fields.has(extension)

    def set_extension(self, extension: MessageExtension, value: Any) -> None:
        self._check_extension(extension)
        self.extension_fields.set(extension, value)

    def clear_extension(self, extension: MessageExtension) -> None:
        self._check_extension(extension)
        self.extension_fields.clear(extension)

    def _protobuf_generated_is_equal_to(self, other: 'Message') -> bool:
        raise NotImplementedError()

    def _protobuf_copy_fields(self, clone: 'Message') -> None:
        raise NotImplementedError()

    def __eq__(self, other) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self is other or self._protobuf_generated_is_equal_to(other)

    __hash__ = None  # type: ignore[assignment]

    def __copy__(self) -> 'Message':
        clone = type(self).__new__(type(self))
        clone.unknown_fields = copy.copy(self.unknown_fields)
        if self.IS_EXTENSIBLE:
            clone.extension_fields = copy.copy(self.extension_fields)
        self._protobuf_copy_fields(clone)
        return clone

    def __deepcopy__(self, memo: dict) -> 'Message':
        return self.__copy__()

    def __del__(self) -> None:
        if self._storage is not None:
            self._storage.release()

    def _field_is_set(self, name: str) -> bool:
        has = getattr(self, f'has_{name}', None)
        if has is not None:
            return has()
        return bool(getattr(self, name))

    def __repr__(self) -> str:
        fields = ', '.join(
            f'{name}={getattr(self, name)!r}'
            for name in self.FIELD_NAMES
            if self._field_is_set(name)
        )
        return f'{type(self).__name__}({fields})'
