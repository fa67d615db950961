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
"""This module defines the schema model the message compiler works from.

Messages are kept in a ProtoArena and refer to each other by arena index, so
recursive and mutually recursive message types need no object cycles.
"""

import abc
import collections
import enum
from typing import Iterable, Iterator

from google.protobuf import descriptor_pb2
from google.protobuf import text_encoding

from pw_msggen.runtime.wire_format import FieldType

_FieldDescriptor = descriptor_pb2.FieldDescriptorProto

ANY_FULL_NAME = 'google.protobuf.Any'
ANY_PROTO_FILE = 'google/protobuf/any.proto'


class Syntax(enum.Enum):
    PROTO2 = 'proto2'
    PROTO3 = 'proto3'


class Label(enum.Enum):
    OPTIONAL = _FieldDescriptor.LABEL_OPTIONAL
    REQUIRED = _FieldDescriptor.LABEL_REQUIRED
    REPEATED = _FieldDescriptor.LABEL_REPEATED


class FieldClass(enum.Enum):
    """How a field is stored and coded.

    Enum fields are scalars; they are stored as their integer values.
    """

    SCALAR = 1
    MESSAGE = 2
    GROUP = 3
    MAP = 4


class ProtoNode(abc.ABC):
    """A message or enum declared in a .proto file."""

    class Type(enum.Enum):
        MESSAGE = 1
        ENUM = 2

    def __init__(self, name: str, package: str, proto_file: str):
        self._name = name
        self._package = package
        self._file = proto_file
        self._parent: 'ProtoMessage | None' = None
        self._children: dict[str, 'ProtoNode'] = collections.OrderedDict()

    @abc.abstractmethod
    def type(self) -> 'ProtoNode.Type':
        """The type of the node."""

    def name(self) -> str:
        return self._name

    def package(self) -> str:
        return self._package

    def file(self) -> str:
        """The name of the .proto file that declares this node."""
        return self._file

    def parent(self) -> 'ProtoMessage | None':
        return self._parent

    def children(self) -> list['ProtoNode']:
        return list(self._children.values())

    def add_child(self, child: 'ProtoNode') -> None:
        child._parent = self  # type: ignore[assignment]
        self._children[child.name()] = child

    def scope(self) -> list['ProtoNode']:
        """The enclosing nodes from the outermost down to this one."""
        nodes: list[ProtoNode] = []
        node: ProtoNode | None = self
        while node is not None:
            nodes.append(node)
            node = node.parent()
        return list(reversed(nodes))

    def proto_path(self) -> str:
        """Fully-qualified name of the node, without a leading dot."""
        names = [node.name() for node in self.scope()]
        if self._package:
            names.insert(0, self._package)
        return '.'.join(names)

    def __iter__(self) -> Iterator['ProtoNode']:
        """Iterates depth-first through all nodes in this node's subtree."""
        yield self
        for child in self._children.values():
            yield from child


class ProtoEnum(ProtoNode):
    """Representation of an enum in a .proto file."""

    def __init__(self, name: str, package: str, proto_file: str):
        super().__init__(name, package, proto_file)
        self._values: list[tuple[str, int]] = []

    def type(self) -> ProtoNode.Type:
        return ProtoNode.Type.ENUM

    def values(self) -> list[tuple[str, int]]:
        return list(self._values)

    def add_value(self, name: str, value: int) -> None:
        self._values.append((name, value))

    def value_number(self, name: str) -> int | None:
        for value_name, number in self._values:
            if value_name == name:
                return number
        return None

    def default_number(self) -> int:
        """The value of a field of this enum type that was never set."""
        return self._values[0][1] if self._values else 0


class ExtensionRanges:
    """Sorted, disjoint [start, end) field number ranges of a message."""

    def __init__(self, ranges: Iterable[tuple[int, int]] = ()):
        self._ranges = sorted(ranges)

    def ranges(self) -> list[tuple[int, int]]:
        return list(self._ranges)

    def contains(self, number: int) -> bool:
        return any(start <= number < end for start, end in self._ranges)

    def condition(self, variable: str) -> str:
        """A Python expression that is true if variable is in any range."""
        terms = []
        for start, end in self._ranges:
            if end == start + 1:
                terms.append(f'{variable} == {start}')
            else:
                terms.append(f'{start} <= {variable} < {end}')
        return ' or '.join(terms)

    def __iter__(self) -> Iterator[tuple[int, int]]:
        return iter(self._ranges)

    def __len__(self) -> int:
        return len(self._ranges)

    def __bool__(self) -> bool:
        return bool(self._ranges)


class ProtoMessage(ProtoNode):
    """Representation of a message in a .proto file."""

    def __init__(
        self,
        name: str,
        package: str,
        proto_file: str,
        syntax: Syntax,
        descriptor: descriptor_pb2.DescriptorProto,
    ):
        super().__init__(name, package, proto_file)
        self._syntax = syntax
        self._descriptor = descriptor
        self._index = -1
        self._fields: list['ProtoMessageField'] = []
        self._oneofs: list['ProtoOneof'] = []
        self._extension_ranges = ExtensionRanges(
            (r.start, r.end) for r in descriptor.extension_range
        )

    def type(self) -> ProtoNode.Type:
        return ProtoNode.Type.MESSAGE

    def index(self) -> int:
        """The position of this message in its arena."""
        return self._index

    def descriptor(self) -> descriptor_pb2.DescriptorProto:
        return self._descriptor

    def syntax(self) -> Syntax:
        return self._syntax

    def is_proto3(self) -> bool:
        return self._syntax is Syntax.PROTO3

    def fields(self) -> list['ProtoMessageField']:
        """The fields in declaration order."""
        return list(self._fields)

    def sorted_fields(self) -> list['ProtoMessageField']:
        return sorted(self._fields, key=lambda field: field.number())

    def add_field(self, field: 'ProtoMessageField') -> None:
        self._fields.append(field)

    def oneofs(self) -> list['ProtoOneof']:
        """The oneofs declared in the message, excluding synthetic ones."""
        return [oneof for oneof in self._oneofs if not oneof.is_synthetic()]

    def all_oneofs(self) -> list['ProtoOneof']:
        return list(self._oneofs)

    def add_oneof(self, oneof: 'ProtoOneof') -> None:
        self._oneofs.append(oneof)

    def extension_ranges(self) -> ExtensionRanges:
        return self._extension_ranges

    def is_extensible(self) -> bool:
        return bool(self._extension_ranges)

    def is_map_entry(self) -> bool:
        return self._descriptor.options.map_entry

    def is_well_known_any(self) -> bool:
        return (
            self.is_proto3()
            and self.proto_path() == ANY_FULL_NAME
            and self.file() == ANY_PROTO_FILE
        )

    def messages(self) -> list['ProtoMessage']:
        """Nested messages that get their own classes (not map entries)."""
        return [
            child
            for child in self.children()
            if isinstance(child, ProtoMessage) and not child.is_map_entry()
        ]


# This class is not a node and does not appear in the arena.
# Oneofs belong to proto messages and are processed with them.
class ProtoOneof:
    """Representation of a oneof within a protobuf message."""

    def __init__(self, name: str, index: int, message: ProtoMessage):
        self._name = name
        self._index = index
        self._message = message
        self._fields: list['ProtoMessageField'] = []

    def name(self) -> str:
        return self._name

    def index(self) -> int:
        return self._index

    def message(self) -> ProtoMessage:
        return self._message

    def fields(self) -> list['ProtoMessageField']:
        """The member fields in declaration order."""
        return list(self._fields)

    def sorted_fields(self) -> list['ProtoMessageField']:
        return sorted(self._fields, key=lambda field: field.number())

    def field_numbers(self) -> list[int]:
        return [field.number() for field in self.sorted_fields()]

    def add_field(self, field: 'ProtoMessageField') -> None:
        self._fields.append(field)

    def is_synthetic(self) -> bool:
        """True for the oneof protoc creates around a proto3 optional field."""
        return bool(self._fields) and all(
            field.is_proto3_optional() for field in self._fields
        )

    def is_continuous_in_parent(self) -> bool:
        """True if the members are one unbroken run of the sorted fields."""
        positions = [
            position
            for position, field in enumerate(self._message.sorted_fields())
            if field.oneof() is self
        ]
        if not positions:
            return True
        return positions == list(range(positions[0], positions[-1] + 1))


# This class is not a node and does not appear in the arena.
# Fields belong to proto messages and are processed separately.
class ProtoMessageField:
    """Representation of a field within a protobuf message."""

    def __init__(
        self,
        arena: 'ProtoArena',
        message: ProtoMessage,
        descriptor: descriptor_pb2.FieldDescriptorProto,
        type_node: ProtoNode | None = None,
        oneof: ProtoOneof | None = None,
    ):
        self._arena = arena
        self._message = message
        self._descriptor = descriptor
        self._type_node = type_node
        self._oneof = oneof

    def name(self) -> str:
        return self._descriptor.name

    def number(self) -> int:
        return self._descriptor.number

    def label(self) -> Label:
        return Label(self._descriptor.label)

    def type(self) -> int:
        """The descriptor type of the field (FieldDescriptorProto.TYPE_*)."""
        return self._descriptor.type

    def field_type(self) -> FieldType:
        return FieldType(self._descriptor.type)

    def message(self) -> ProtoMessage:
        """The message this field belongs to."""
        return self._message

    def classification(self) -> FieldClass:
        if self.is_map():
            return FieldClass.MAP
        if self.type() == _FieldDescriptor.TYPE_GROUP:
            return FieldClass.GROUP
        if self.type() == _FieldDescriptor.TYPE_MESSAGE:
            return FieldClass.MESSAGE
        return FieldClass.SCALAR

    def oneof(self) -> ProtoOneof | None:
        """The oneof this field is a member of, ignoring synthetic oneofs."""
        if self._oneof is None or self._oneof.is_synthetic():
            return None
        return self._oneof

    def oneof_index(self) -> int | None:
        oneof = self.oneof()
        return None if oneof is None else oneof.index()

    def type_node(self) -> ProtoNode | None:
        return self._type_node

    def type_index(self) -> int | None:
        """Arena index of the field's message type, if it has one."""
        if isinstance(self._type_node, ProtoMessage):
            return self._type_node.index()
        return None

    def message_type(self) -> ProtoMessage:
        assert isinstance(self._type_node, ProtoMessage)
        return self._type_node

    def enum_type(self) -> ProtoEnum | None:
        if isinstance(self._type_node, ProtoEnum):
            return self._type_node
        return None

    def is_proto3_optional(self) -> bool:
        return self._descriptor.proto3_optional

    def is_repeated(self) -> bool:
        """True for repeated fields, including maps."""
        return self.label() is Label.REPEATED

    def is_required(self) -> bool:
        return self.label() is Label.REQUIRED

    def is_map(self) -> bool:
        return (
            self.is_repeated()
            and self.type() == _FieldDescriptor.TYPE_MESSAGE
            and self.message_type().is_map_entry()
        )

    def is_group_or_message(self) -> bool:
        return self.type() in (
            _FieldDescriptor.TYPE_GROUP,
            _FieldDescriptor.TYPE_MESSAGE,
        )

    def has_presence(self) -> bool:
        """True if the field tracks whether it was set."""
        if self.is_repeated():
            return False
        if self.is_group_or_message() or self._oneof is not None:
            return True
        return not self._message.is_proto3()

    def is_packed(self) -> bool:
        if not self.is_repeated() or not self.field_type().is_packable():
            return False
        if self._descriptor.options.HasField('packed'):
            return self._descriptor.options.packed
        return self._message.is_proto3()

    def map_key_field(self) -> 'ProtoMessageField':
        return self.message_type().fields()[0]

    def map_value_field(self) -> 'ProtoMessageField':
        return self.message_type().fields()[1]

    def has_required_fields_transitively(self) -> bool:
        index = self.type_index()
        return index is not None and self._arena.has_required_fields(index)

    def default_value(self) -> object:
        """The value of the field when it is not set, as a Python value."""
        field_type = self.field_type()
        text = self._descriptor.default_value
        has_default = self._descriptor.HasField('default_value')

        if field_type is FieldType.ENUM:
            enum_type = self.enum_type()
            if enum_type is None:
                return 0
            if has_default:
                number = enum_type.value_number(text)
                if number is not None:
                    return number
            return enum_type.default_number()

        if not has_default:
            return field_type.default_value()

        if field_type is FieldType.STRING:
            return text
        if field_type is FieldType.BYTES:
            return text_encoding.CUnescape(text)
        if field_type is FieldType.BOOL:
            return text == 'true'
        if field_type in (FieldType.FLOAT, FieldType.DOUBLE):
            return float(text)
        return int(text)


class CodegenError(Exception):
    def __init__(
        self,
        error_message: str,
        node: ProtoNode,
        field: ProtoMessageField | descriptor_pb2.FieldDescriptorProto | None,
    ):
        super().__init__(f'pw_msggen codegen error: {error_message}')
        self.error_message = error_message
        self.node = node
        self.field = field

    def formatted_message(self) -> str:
        lines = [
            f'pw_msggen codegen error: {self.error_message}',
            f'    at {self.node.proto_path()}',
        ]

        if self.field is not None:
            if isinstance(self.field, ProtoMessageField):
                lines.append(f'    in field {self.field.name()}')
            else:
                lines.append(f'    in field {self.field.name}')

        return '\n'.join(lines)


class ProtoArena:
    """Owns every message and enum known to a compilation pass.

    Messages are addressed by their index; enums and messages can also be
    looked up by fully-qualified name.
    """

    def __init__(self) -> None:
        self._messages: list[ProtoMessage] = []
        self._nodes: dict[str, ProtoNode] = {}
        self._files: dict[str, list[ProtoNode]] = {}
        self._required: dict[int, bool] = {}

    def add(self, node: ProtoNode) -> None:
        if isinstance(node, ProtoMessage):
            # pylint: disable-next=protected-access
            node._index = len(self._messages)
            self._messages.append(node)

        self._nodes[node.proto_path()] = node
        if node.parent() is None:
            self._files.setdefault(node.file(), []).append(node)

    def message(self, index: int) -> ProtoMessage:
        return self._messages[index]

    def messages(self) -> list[ProtoMessage]:
        return list(self._messages)

    def find(self, full_name: str) -> ProtoNode | None:
        return self._nodes.get(full_name.lstrip('.'))

    def top_level_nodes(self, proto_file: str) -> list[ProtoNode]:
        return list(self._files.get(proto_file, []))

    def top_level_messages(self, proto_file: str) -> list[ProtoMessage]:
        return [
            node
            for node in self.top_level_nodes(proto_file)
            if isinstance(node, ProtoMessage)
        ]

    def has_required_fields(self, index: int) -> bool:
        """True if the message at index, or any message it contains, has
        required fields.

        Extensible messages count as having required fields, as an extension
        may declare one. Recursive types are visited once.
        """
        if index not in self._required:
            self._required[index] = self._contains_required(index, set())
        return self._required[index]

    def _contains_required(self, index: int, seen: set[int]) -> bool:
        if index in seen:
            return False
        seen.add(index)

        message = self._messages[index]
        if message.is_extensible():
            return True

        for field in message.fields():
            if field.is_required():
                return True
            type_index = field.type_index()
            if type_index is not None and self._contains_required(
                type_index, seen
            ):
                return True

        return False


def _file_syntax(proto_file: descriptor_pb2.FileDescriptorProto) -> Syntax:
    if proto_file.syntax in ('', 'proto2'):
        return Syntax.PROTO2
    if proto_file.syntax == 'proto3':
        return Syntax.PROTO3
    raise ValueError(
        f'{proto_file.name}: unsupported syntax "{proto_file.syntax}"'
    )


def _add_nodes(
    arena: ProtoArena,
    proto_file: descriptor_pb2.FileDescriptorProto,
    pending: list[ProtoMessage],
) -> None:
    """Creates and registers nodes for every message and enum in a file."""
    package = proto_file.package
    syntax = _file_syntax(proto_file)

    def add_enum(proto_enum, parent: ProtoMessage | None) -> None:
        node = ProtoEnum(proto_enum.name, package, proto_file.name)
        for value in proto_enum.value:
            node.add_value(value.name, value.number)
        if parent is not None:
            parent.add_child(node)
        arena.add(node)

    def add_message(proto_message, parent: ProtoMessage | None) -> None:
        node = ProtoMessage(
            proto_message.name, package, proto_file.name, syntax, proto_message
        )
        if parent is not None:
            parent.add_child(node)
        arena.add(node)
        pending.append(node)

        for proto_enum in proto_message.enum_type:
            add_enum(proto_enum, node)
        for nested in proto_message.nested_type:
            add_message(nested, node)

    for proto_enum in proto_file.enum_type:
        add_enum(proto_enum, None)
    for message in proto_file.message_type:
        add_message(message, None)


def _resolve_type(
    arena: ProtoArena, message: ProtoMessage, type_name: str
) -> ProtoNode | None:
    """Finds a field's type the way protoc scopes type names."""
    if type_name.startswith('.'):
        return arena.find(type_name)

    scope = message.proto_path().split('.')
    for depth in range(len(scope), -1, -1):
        candidate = '.'.join(scope[:depth] + [type_name])
        node = arena.find(candidate)
        if node is not None:
            return node
    return None


def _validate_numbers(message: ProtoMessage) -> None:
    seen: set[int] = set()
    for field in message.descriptor().field:
        if field.number <= 0:
            raise CodegenError(
                f'field number {field.number} is not positive', message, field
            )
        if field.number in seen:
            raise CodegenError(
                f'field number {field.number} is used more than once',
                message,
                field,
            )
        seen.add(field.number)

    previous_end = 0
    for start, end in message.extension_ranges():
        if start >= end or start <= 0:
            raise CodegenError(
                f'invalid extension range [{start}, {end})', message, None
            )
        if start < previous_end:
            raise CodegenError(
                f'extension range [{start}, {end}) overlaps another range',
                message,
                None,
            )
        previous_end = end

    for number in sorted(seen):
        if message.extension_ranges().contains(number):
            raise CodegenError(
                f'field number {number} is inside an extension range',
                message,
                None,
            )


def _populate_message(arena: ProtoArena, message: ProtoMessage) -> None:
    """Adds the fields and oneofs of a message once all types exist."""
    _validate_numbers(message)

    descriptor = message.descriptor()
    oneofs = [
        ProtoOneof(oneof.name, index, message)
        for index, oneof in enumerate(descriptor.oneof_decl)
    ]

    for field_descriptor in descriptor.field:
        type_node = None
        if field_descriptor.type_name:
            type_node = _resolve_type(
                arena, message, field_descriptor.type_name
            )
            if type_node is None:
                raise CodegenError(
                    f'unknown type "{field_descriptor.type_name}"',
                    message,
                    field_descriptor,
                )
        elif field_descriptor.type in (
            _FieldDescriptor.TYPE_MESSAGE,
            _FieldDescriptor.TYPE_GROUP,
            _FieldDescriptor.TYPE_ENUM,
        ):
            raise CodegenError(
                'field has no type name', message, field_descriptor
            )

        oneof = None
        if field_descriptor.HasField('oneof_index'):
            if field_descriptor.oneof_index >= len(oneofs):
                raise CodegenError(
                    f'invalid oneof index {field_descriptor.oneof_index}',
                    message,
                    field_descriptor,
                )
            oneof = oneofs[field_descriptor.oneof_index]

        field = ProtoMessageField(
            arena, message, field_descriptor, type_node, oneof
        )
        if oneof is not None:
            oneof.add_field(field)
        message.add_field(field)

    for oneof in oneofs:
        if not oneof.fields():
            raise CodegenError(
                f'oneof {oneof.name()} has no fields', message, None
            )
        message.add_oneof(oneof)


def build_arena(
    file_protos: Iterable[descriptor_pb2.FileDescriptorProto],
) -> ProtoArena:
    """Builds the schema model for a set of .proto files.

    Two passes are made: the first registers every message and enum by its
    fully-qualified name, the second creates the fields of each message and
    resolves their types, which may be declared anywhere in the set.

    Raises:
      CodegenError: a message is not well formed
      ValueError: a file uses an unsupported syntax
    """
    arena = ProtoArena()
    pending: list[ProtoMessage] = []

    for proto_file in file_protos:
        _add_nodes(arena, proto_file, pending)

    for message in pending:
        _populate_message(arena, message)

    return arena
