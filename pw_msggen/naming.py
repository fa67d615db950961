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
"""Maps schema identifiers to the identifiers used in generated Python."""

import keyword
import re
from pathlib import PurePosixPath
from typing import Iterable

from pw_msggen.proto_tree import (
    ProtoArena,
    ProtoMessage,
    ProtoMessageField,
    ProtoOneof,
)

# Attributes of the runtime Message class and of generated message classes
# that fields, oneofs and nested messages must not shadow.
RESERVED_MESSAGE_ATTRIBUTES = frozenset(
    [
        'EXTENSION_RANGES',
        'FIELD_NAMES',
        'IS_EXTENSIBLE',
        'IS_PROTO3',
        'ONEOF_NAMES',
        'PROTO_MESSAGE_NAME',
        'are_all_initialized',
        'clear_extension',
        'decode_message',
        'extension_fields',
        'get_extension',
        'has_extension',
        'is_a',
        'is_initialized',
        'merge_from_bytes',
        'pack',
        'parse',
        'serialize',
        'set_extension',
        'traverse',
        'unknown_fields',
        'unpack',
        '_StorageClass',
        '_protobuf_copy_fields',
        '_protobuf_generated_is_equal_to',
        '_storage',
        '_escaped_storage',
        '_unique_storage',
    ]
)

# Prefixes of the methods generated for each field and each oneof.
FIELD_ACCESSOR_PREFIXES = ('has_', 'clear_', 'mutable_')
ONEOF_ACCESSOR_PREFIXES = ('clear_',)

# Module-level names used by generated code.
RESERVED_MODULE_NAMES = frozenset(['_pw', 'copy', 'types'])

_NOT_IDENTIFIER = re.compile(r'\W')


def upper_camel_case(name: str) -> str:
    """Converts a snake_case name to UpperCamelCase."""
    return ''.join(part[:1].upper() + part[1:] for part in name.split('_'))


def _identifier(name: str) -> str:
    name = _NOT_IDENTIFIER.sub('_', name)
    if not name or name[0].isdigit():
        name = '_' + name
    return name


def _storage_name(name: str) -> str:
    # Double leading underscores would trigger name mangling.
    if name.startswith('_'):
        return '_f' + name
    return '_' + name


def _accessor_names(
    names: Iterable[str], prefixes: tuple[str, ...]
) -> set[str]:
    return {prefix + name for name in names for prefix in prefixes}


def _unique(name: str, used: set[str], reserved: frozenset[str]) -> str:
    name = _identifier(name)
    while keyword.iskeyword(name) or name in reserved or name in used:
        name += '_'
    used.add(name)
    return name


class Namer:
    """Assigns stable Python names to the messages, fields and oneofs of an
    arena.

    Names are unique within each scope: a message class body, or a module.
    Identifiers that would collide with a keyword, a reserved attribute or an
    earlier name in the same scope get trailing underscores.
    """

    def __init__(
        self,
        arena: ProtoArena,
        module_suffix: str = '_msg',
        module_prefix: str = '',
    ):
        self._arena = arena
        self._module_suffix = module_suffix
        self._module_prefix = module_prefix.strip('.')

        self._classes: dict[int, str] = {}
        self._fields: dict[tuple[int, int], str] = {}
        self._oneofs: dict[tuple[int, int], str] = {}
        self._oneof_classes: dict[tuple[int, int], str] = {}
        self._storage_names: dict[tuple[int, int], str] = {}
        self._oneof_storage_names: dict[tuple[int, int], str] = {}
        self._named_files: set[str] = set()

    def _name_message_scope(self, message: ProtoMessage) -> None:
        """Names everything declared directly inside a message class."""
        index = message.index()

        # A field or oneof must not take the name of a has_, clear_ or
        # mutable_ method generated for another one. Escaping a name changes
        # its accessors, so names are assigned again until they are stable.
        accessors = _accessor_names(
            (_identifier(field.name()) for field in message.fields()),
            FIELD_ACCESSOR_PREFIXES,
        ) | _accessor_names(
            (_identifier(oneof.name()) for oneof in message.oneofs()),
            ONEOF_ACCESSOR_PREFIXES,
        )
        while True:
            used: set[str] = set()
            reserved = RESERVED_MESSAGE_ATTRIBUTES | accessors

            for field in message.fields():
                self._fields[(index, field.number())] = _unique(
                    field.name(), used, reserved
                )
            for oneof in message.oneofs():
                self._oneofs[(index, oneof.index())] = _unique(
                    oneof.name(), used, reserved
                )

            assigned = _accessor_names(
                (
                    self._fields[(index, field.number())]
                    for field in message.fields()
                ),
                FIELD_ACCESSOR_PREFIXES,
            ) | _accessor_names(
                (
                    self._oneofs[(index, oneof.index())]
                    for oneof in message.oneofs()
                ),
                ONEOF_ACCESSOR_PREFIXES,
            )
            if assigned <= accessors:
                break
            accessors |= assigned

        used |= accessors
        for oneof in message.oneofs():
            key = (index, oneof.index())
            self._oneof_classes[key] = _unique(
                'Oneof' + upper_camel_case(oneof.name()),
                used,
                RESERVED_MESSAGE_ATTRIBUTES,
            )

        for nested in message.messages():
            self._classes[nested.index()] = _unique(
                nested.name(), used, RESERVED_MESSAGE_ATTRIBUTES
            )

        # Storage attributes come last so public names are never renamed.
        for field in message.fields():
            key = (index, field.number())
            self._storage_names[key] = _unique(
                _storage_name(self._fields[key]),
                used,
                RESERVED_MESSAGE_ATTRIBUTES,
            )

        for oneof in message.oneofs():
            key = (index, oneof.index())
            self._oneof_storage_names[key] = _unique(
                _storage_name(self._oneofs[key]),
                used,
                RESERVED_MESSAGE_ATTRIBUTES,
            )

    def _name_file(self, proto_file: str) -> None:
        """Names every message declared in a file, in declaration order."""
        if proto_file in self._named_files:
            return
        self._named_files.add(proto_file)

        used: set[str] = set()
        top_level = self._arena.top_level_messages(proto_file)
        for message in top_level:
            self._classes[message.index()] = _unique(
                message.name(), used, RESERVED_MODULE_NAMES
            )

        for message in top_level:
            for node in message:
                if isinstance(node, ProtoMessage):
                    self._name_message_scope(node)

    def _ensure_named(self, message: ProtoMessage) -> None:
        self._name_file(message.file())

    def class_name(self, message: ProtoMessage) -> str:
        """The name of the message's class within its enclosing scope."""
        self._ensure_named(message)
        return self._classes[message.index()]

    def qualified_class_name(self, message: ProtoMessage) -> str:
        """The dotted path of the message's class within its module."""
        return '.'.join(
            self.class_name(node)  # type: ignore[arg-type]
            for node in message.scope()
        )

    def field_name(self, field: ProtoMessageField) -> str:
        self._ensure_named(field.message())
        return self._fields[(field.message().index(), field.number())]

    def storage_name(self, field: ProtoMessageField) -> str:
        """The attribute that holds the field's value."""
        self._ensure_named(field.message())
        return self._storage_names[(field.message().index(), field.number())]

    def oneof_name(self, oneof: ProtoOneof) -> str:
        self._ensure_named(oneof.message())
        return self._oneofs[(oneof.message().index(), oneof.index())]

    def oneof_storage_name(self, oneof: ProtoOneof) -> str:
        self._ensure_named(oneof.message())
        return self._oneof_storage_names[
            (oneof.message().index(), oneof.index())
        ]

    def oneof_class_name(self, oneof: ProtoOneof) -> str:
        self._ensure_named(oneof.message())
        return self._oneof_classes[(oneof.message().index(), oneof.index())]

    def _module_parts(self, proto_file: str) -> list[str]:
        path = PurePosixPath(proto_file)
        parts = [_identifier(part) for part in path.parent.parts]
        parts.append(_identifier(path.stem + self._module_suffix))
        return [
            part + '_' if keyword.iskeyword(part) else part for part in parts
        ]

    def module_name(self, proto_file: str) -> str:
        """The importable name of the module generated for a .proto file."""
        parts = self._module_parts(proto_file)
        if self._module_prefix:
            parts.insert(0, self._module_prefix)
        return '.'.join(parts)

    def module_path(self, proto_file: str) -> str:
        """The path of the generated module, relative to the output root."""
        return self.module_name(proto_file).replace('.', '/') + '.py'

    def module_alias(self, proto_file: str) -> str:
        """The name a generated module imports another one under."""
        return '_' + '_'.join(self._module_parts(proto_file))

    def type_reference(self, message: ProtoMessage, from_file: str) -> str:
        """An expression for the message's class in a module for from_file."""
        name = self.qualified_class_name(message)
        if message.file() == from_file:
            return name
        return f'{self.module_alias(message.file())}.{name}'
