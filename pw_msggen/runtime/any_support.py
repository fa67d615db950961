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
"""Storage for google.protobuf.Any that defers serializing a packed message."""

import copy
from typing import Any, TYPE_CHECKING

from pw_msggen.runtime.storage import MessageStorage

if TYPE_CHECKING:
    from pw_msggen.runtime.extensions import ExtensionMap

ANY_MESSAGE_NAME = 'google.protobuf.Any'
DEFAULT_TYPE_URL_PREFIX = 'type.googleapis.com'


def type_url_for(message: Any, prefix: str = DEFAULT_TYPE_URL_PREFIX) -> str:
    return f'{prefix.rstrip("/")}/{message.PROTO_MESSAGE_NAME}'


def type_name_from_url(type_url: str) -> str:
    """Returns the fully-qualified message name at the end of a type URL."""
    return type_url.rpartition('/')[2]


class AnyMessageStorage(MessageStorage):
    """Backing storage for Any messages.

    A packed message is kept as a message until its bytes are needed, so
    packing and then unpacking the same type never goes through the wire
    format. Bytes decoded off the wire are kept as bytes until unpacked.
    """

    __slots__ = ('_type_url', '_value_data', '_message')

    def __init__(self) -> None:
        super().__init__()
        self._type_url = ''
        self._value_data: bytes | None = b''
        self._message: Any = None

    @property
    def _value(self) -> bytes:
        if self._value_data is None:
            self._value_data = self._message.serialize()
        return self._value_data

    @_value.setter
    def _value(self, data: bytes) -> None:
        self._value_data = bytes(data)
        self._message = None

    def copy(self) -> 'AnyMessageStorage':
        clone = AnyMessageStorage()
        clone._type_url = self._type_url
        clone._value_data = self._value_data
        clone._message = copy.copy(self._message)
        return clone

    def pack(self, message: Any, prefix: str = DEFAULT_TYPE_URL_PREFIX) -> None:
        self._type_url = type_url_for(message, prefix)
        self._value_data = None
        self._message = copy.copy(message)

    def is_a(self, message_class: type) -> bool:
        return (
            type_name_from_url(self._type_url)
            == message_class.PROTO_MESSAGE_NAME
        )

    def unpack(
        self, message_class: type, extensions: 'ExtensionMap | None' = None
    ) -> Any:
        """Returns the contained message as an instance of message_class.

        Raises:
          TypeError: the Any holds a different message type
          DecodingError: the contained bytes do not decode
        """
        if not self.is_a(message_class):
            raise TypeError(
                f'Any holds {type_name_from_url(self._type_url)!r}, not '
                f'{message_class.PROTO_MESSAGE_NAME!r}'
            )

        if isinstance(self._message, message_class):
            return copy.copy(self._message)
        return message_class.parse(self._value, extensions)

    def is_equal_to(self, other: 'AnyMessageStorage') -> bool:
        if self._type_url != other._type_url:
            return False
        if (
            self._message is not None
            and type(self._message) is type(other._message)
        ):
            return self._message == other._message
        return self._value == other._value
