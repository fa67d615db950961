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
"""Extension registration and per-message extension value storage."""

import dataclasses
import logging
from typing import Any, Iterable, Iterator, TYPE_CHECKING

from pw_msggen.runtime.storage import copy_value
from pw_msggen.runtime.wire_format import FieldType

if TYPE_CHECKING:
    from pw_msggen.runtime.decoder import Decoder
    from pw_msggen.runtime.encoder import Visitor

_LOG = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class MessageExtension:
    """Describes a field declared in an extension range of another message."""

    field_number: int
    field_name: str
    extended_type: type
    field_type: FieldType
    repeated: bool = False
    packed: bool = False
    message_class: type | None = None

    def __post_init__(self):
        if self.field_type in (FieldType.MESSAGE, FieldType.GROUP):
            if self.message_class is None:
                raise ValueError(
                    f'Extension {self.field_name} needs a message class'
                )

        ranges = getattr(self.extended_type, 'EXTENSION_RANGES', ())
        if not any(start <= self.field_number < end for start, end in ranges):
            raise ValueError(
                f'Extension {self.field_name} ({self.field_number}) is not in '
                f'an extension range of {self.extended_type.__name__}'
            )

    def default_value(self) -> Any:
        if self.repeated:
            return []
        if self.message_class is not None:
            return self.message_class()
        return self.field_type.default_value()

    def decode_field(
        self, decoder: 'Decoder', values: 'ExtensionFieldValueSet'
    ) -> None:
        """Decodes the current field of decoder into values."""
        current = values.stored_value(self.field_number)

        if self.repeated:
            items = current if current is not None else []
            if self.field_type is FieldType.MESSAGE:
                decoder.decode_repeated_message(items, self.message_class)
            elif self.field_type is FieldType.GROUP:
                decoder.decode_repeated_group(items, self.message_class)
            else:
                decoder.decode_repeated(self.field_type, items)
            value = items
        elif self.field_type is FieldType.MESSAGE:
            value = decoder.decode_singular_message(
                current, self.message_class
            )
        elif self.field_type is FieldType.GROUP:
            value = decoder.decode_singular_group(current, self.message_class)
        else:
            value = decoder.decode_singular(self.field_type)

        values.store(self, value)

    def traverse_value(self, visitor: 'Visitor', value: Any) -> None:
        number = self.field_number
        if self.field_type is FieldType.MESSAGE:
            if self.repeated:
                visitor.visit_repeated_message(value, number)
            else:
                visitor.visit_singular_message(value, number)
        elif self.field_type is FieldType.GROUP:
            if self.repeated:
                visitor.visit_repeated_group(value, number)
            else:
                visitor.visit_singular_group(value, number)
        elif self.repeated:
            visitor.visit_repeated(value, self.field_type, number, self.packed)
        else:
            visitor.visit_singular(value, self.field_type, number)

    def is_value_initialized(self, value: Any) -> bool:
        if self.message_class is None:
            return True
        if self.repeated:
            return all(item.is_initialized() for item in value)
        return value.is_initialized()


class ExtensionMap:
    """Registry of known extensions, keyed by (extended type, field number).

    Passed to parse() or a Decoder so extension fields decode into typed
    values rather than being kept as unknown fields.
    """

    def __init__(self, extensions: Iterable[MessageExtension] = ()):
        self._extensions: dict[tuple[type, int], MessageExtension] = {}
        for extension in extensions:
            self.register(extension)

    def register(self, extension: MessageExtension) -> None:
        key = (extension.extended_type, extension.field_number)
        existing = self._extensions.get(key)
        if existing is not None and existing != extension:
            raise ValueError(
                f'Field {extension.field_number} of '
                f'{extension.extended_type.__name__} is already registered '
                f'as extension {existing.field_name}'
            )

        _LOG.debug(
            'Registered extension %s (%d) of %s',
            extension.field_name,
            extension.field_number,
            extension.extended_type.__name__,
        )
        self._extensions[key] = extension

    def get(
        self, message_type: type, field_number: int
    ) -> MessageExtension | None:
        return self._extensions.get((message_type, field_number))

    def __len__(self) -> int:
        return len(self._extensions)

    def __iter__(self) -> Iterator[MessageExtension]:
        return iter(self._extensions.values())


class ExtensionFieldValueSet:
    """The extension fields set on one message, keyed by field number."""

    def __init__(self) -> None:
        self._values: dict[int, tuple[MessageExtension, Any]] = {}

    def get(self, extension: MessageExtension) -> Any:
        """Returns the extension's value, or its default if it is not set."""
        stored = self.stored_value(extension.field_number)
        if stored is None:
            return extension.default_value()
        return copy_value(stored)

    def has(self, extension: MessageExtension) -> bool:
        return extension.field_number in self._values

    def set(self, extension: MessageExtension, value: Any) -> None:
        if extension.repeated:
            value = list(value)
        self.store(extension, copy_value(value))

    def clear(self, extension: MessageExtension) -> None:
        self._values.pop(extension.field_number, None)

    def stored_value(self, field_number: int) -> Any:
        stored = self._values.get(field_number)
        return None if stored is None else stored[1]

    def store(self, extension: MessageExtension, value: Any) -> None:
        self._values[extension.field_number] = (extension, value)

    def is_initialized(self) -> bool:
        return all(
            extension.is_value_initialized(value)
            for extension, value in self._values.values()
        )

    def traverse(self, visitor: 'Visitor', start: int, end: int) -> None:
        """Visits the set extensions numbered within [start, end) in order."""
        for number in sorted(self._values):
            if start <= number < end:
                extension, value = self._values[number]
                extension.traverse_value(visitor, value)

    def __len__(self) -> int:
        return len(self._values)

    def __bool__(self) -> bool:
        return bool(self._values)

    def __eq__(self, other) -> bool:
        if not isinstance(other, ExtensionFieldValueSet):
            return NotImplemented
        return self._values == other._values

    __hash__ = None  # type: ignore[assignment]

    def __copy__(self) -> 'ExtensionFieldValueSet':
        clone = ExtensionFieldValueSet()
        for number, (extension, value) in self._values.items():
            clone._values[number] = (extension, copy_value(value))
        return clone
