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
"""Emits the storage, accessors, decoding and traversal of each field."""

import abc
import math

from pw_msggen.naming import Namer
from pw_msggen.proto_tree import FieldClass, ProtoMessageField
from pw_msggen.runtime.wire_format import FieldType

# Expression that reaches the field values in a generated method: the shared
# storage of an indirected message, or the message itself.
READ_STORAGE = {True: 'self._storage', False: 'self'}
WRITE_STORAGE = {True: 'self._unique_storage()', False: 'self'}
MUTABLE_STORAGE = {True: 'self._escaped_storage()', False: 'self'}

_PYTHON_TYPES = {
    FieldType.DOUBLE: 'float',
    FieldType.FLOAT: 'float',
    FieldType.BOOL: 'bool',
    FieldType.STRING: 'str',
    FieldType.BYTES: 'bytes',
}


def python_literal(value: object) -> str:
    """Returns Python source that evaluates to value."""
    if isinstance(value, float) and not math.isfinite(value):
        return f"float('{value}')"
    return repr(value)


def field_type_expression(field_type: FieldType) -> str:
    return f'_pw.FieldType.{field_type.name}'


def python_type(field_type: FieldType) -> str:
    return _PYTHON_TYPES.get(field_type, 'int')


class FieldGenerator(abc.ABC):
    """Generates the code for one field of a message class.

    Methods that emit statements take an owner: the expression whose
    attributes hold the field values (self, other, storage, clone, ...).
    """

    # Whether the field has a mutable_ accessor returning stored state.
    HANDS_OUT_REFERENCES = False

    def __init__(self, field: ProtoMessageField, namer: Namer, from_file: str):
        self._field = field
        self._namer = namer
        self._from_file = from_file

    def field(self) -> ProtoMessageField:
        return self._field

    def name(self) -> str:
        return self._namer.field_name(self._field)

    def storage_name(self) -> str:
        return self._namer.storage_name(self._field)

    def number(self) -> int:
        return self._field.number()

    def stored(self, owner: str) -> str:
        return f'{owner}.{self.storage_name()}'

    def message_class(self) -> str:
        """The expression for the class of a message-typed field."""
        return self._namer.type_reference(
            self._field.message_type(), self._from_file
        )

    def field_type(self) -> str:
        return field_type_expression(self._field.field_type())

    @abc.abstractmethod
    def initial_value(self) -> str:
        """The value the field is stored as when it is not set."""

    def copy_expression(self, source: str) -> str:
        """An expression copying a stored value deeply enough to not alias."""
        return f'_pw.copy_value({source})'

    @abc.abstractmethod
    def decode_lines(self, owner: str) -> list[str]:
        """Statements decoding the current field of decoder into owner."""

    @abc.abstractmethod
    def present_condition(self, owner: str) -> str:
        """An expression that is true if the field needs to be visited."""

    @abc.abstractmethod
    def visit_line(self, value: str) -> str:
        """A statement visiting the field's value with visitor."""

    def traverse_lines(self, owner: str) -> list[str]:
        return [
            f'if {self.present_condition(owner)}:',
            f'    {self.visit_line(self.stored(owner))}',
        ]

    @abc.abstractmethod
    def accessor_lines(self, indirected: bool) -> list[str]:
        """The properties and methods that give access to the field."""


class ScalarField(FieldGenerator):
    """A singular scalar, enum, string or bytes field."""

    def _default(self) -> str:
        return python_literal(self._field.default_value())

    def _annotation(self) -> str:
        return python_type(self._field.field_type())

    def _converted(self, value: str) -> str:
        if self._field.field_type() is FieldType.BYTES:
            return f'bytes({value})'
        return value

    def initial_value(self) -> str:
        if self._field.has_presence():
            return 'None'
        return self._default()

    def copy_expression(self, source: str) -> str:
        return source

    def decode_lines(self, owner: str) -> list[str]:
        return [
            f'{self.stored(owner)} = '
            f'decoder.decode_singular({self.field_type()})'
        ]

    def present_condition(self, owner: str) -> str:
        if self._field.has_presence():
            return f'{self.stored(owner)} is not None'
        return self.stored(owner)

    def visit_line(self, value: str) -> str:
        return (
            f'visitor.visit_singular({value}, {self.field_type()}, '
            f'{self.number()})'
        )

    def accessor_lines(self, indirected: bool) -> list[str]:
        read = READ_STORAGE[indirected]
        write = WRITE_STORAGE[indirected]
        name = self.name()
        annotation = self._annotation()

        if not self._field.has_presence():
            return [
                '@property',
                f'def {name}(self) -> {annotation}:',
                f'    return {self.stored(read)}',
                '',
                f'@{name}.setter',
                f'def {name}(self, value: {annotation}) -> None:',
                f'    {self.stored(write)} = {self._converted("value")}',
            ]

        return [
            '@property',
            f'def {name}(self) -> {annotation}:',
            f'    value = {self.stored(read)}',
            f'    return {self._default()} if value is None else value',
            '',
            f'@{name}.setter',
            f'def {name}(self, value: {annotation}) -> None:',
            f'    {self.stored(write)} = {self._converted("value")}',
            '',
            f'def has_{name}(self) -> bool:',
            f'    return {self.stored(read)} is not None',
            '',
            f'def clear_{name}(self) -> None:',
            f'    {self.stored(write)} = None',
        ]


class RepeatedScalarField(FieldGenerator):
    """A repeated scalar, enum, string or bytes field."""

    HANDS_OUT_REFERENCES = True

    def initial_value(self) -> str:
        return '[]'

    def copy_expression(self, source: str) -> str:
        return f'list({source})'

    def decode_lines(self, owner: str) -> list[str]:
        return [
            f'decoder.decode_repeated({self.field_type()}, '
            f'{self.stored(owner)})'
        ]

    def present_condition(self, owner: str) -> str:
        return self.stored(owner)

    def visit_line(self, value: str) -> str:
        packed = ', packed=True' if self._field.is_packed() else ''
        return (
            f'visitor.visit_repeated({value}, {self.field_type()}, '
            f'{self.number()}{packed})'
        )

    def accessor_lines(self, indirected: bool) -> list[str]:
        read = READ_STORAGE[indirected]
        write = WRITE_STORAGE[indirected]
        mutable = MUTABLE_STORAGE[indirected]
        name = self.name()
        annotation = python_type(self._field.field_type())

        return [
            '@property',
            f'def {name}(self) -> tuple[{annotation}, ...]:',
            f'    return tuple({self.stored(read)})',
            '',
            f'@{name}.setter',
            f'def {name}(self, values) -> None:',
            f'    {self.stored(write)} = list(values)',
            '',
            f'def mutable_{name}(self) -> list[{annotation}]:',
            f'    return {self.stored(mutable)}',
            '',
            f'def clear_{name}(self) -> None:',
            f'    {self.stored(write)} = []',
        ]


class MessageField(FieldGenerator):
    """A singular message field."""

    HANDS_OUT_REFERENCES = True
    DECODE_METHOD = 'decode_singular_message'
    VISIT_METHOD = 'visit_singular_message'

    def initial_value(self) -> str:
        return 'None'

    def decode_lines(self, owner: str) -> list[str]:
        stored = self.stored(owner)
        return [
            f'{stored} = decoder.{self.DECODE_METHOD}(',
            f'    {stored}, {self.message_class()}',
            ')',
        ]

    def present_condition(self, owner: str) -> str:
        return f'{self.stored(owner)} is not None'

    def visit_line(self, value: str) -> str:
        return f'visitor.{self.VISIT_METHOD}({value}, {self.number()})'

    def accessor_lines(self, indirected: bool) -> list[str]:
        read = READ_STORAGE[indirected]
        write = WRITE_STORAGE[indirected]
        mutable = MUTABLE_STORAGE[indirected]
        name = self.name()
        cls = self.message_class()

        return [
            '@property',
            f"def {name}(self) -> '{cls}':",
            f'    value = {self.stored(read)}',
            f'    return {cls}() if value is None else copy.copy(value)',
            '',
            f'@{name}.setter',
            f"def {name}(self, value: '{cls}') -> None:",
            f'    {self.stored(write)} = copy.copy(value)',
            '',
            f'def has_{name}(self) -> bool:',
            f'    return {self.stored(read)} is not None',
            '',
            f'def clear_{name}(self) -> None:',
            f'    {self.stored(write)} = None',
            '',
            f"def mutable_{name}(self) -> '{cls}':",
            f'    storage = {mutable}',
            f'    if {self.stored("storage")} is None:',
            f'        {self.stored("storage")} = {cls}()',
            f'    return {self.stored("storage")}',
        ]


class GroupField(MessageField):
    """A singular group field."""

    DECODE_METHOD = 'decode_singular_group'
    VISIT_METHOD = 'visit_singular_group'


class RepeatedMessageField(FieldGenerator):
    """A repeated message field."""

    HANDS_OUT_REFERENCES = True
    DECODE_METHOD = 'decode_repeated_message'
    VISIT_METHOD = 'visit_repeated_message'

    def initial_value(self) -> str:
        return '[]'

    def decode_lines(self, owner: str) -> list[str]:
        return [
            f'decoder.{self.DECODE_METHOD}('
            f'{self.stored(owner)}, {self.message_class()})'
        ]

    def present_condition(self, owner: str) -> str:
        return self.stored(owner)

    def visit_line(self, value: str) -> str:
        return f'visitor.{self.VISIT_METHOD}({value}, {self.number()})'

    def accessor_lines(self, indirected: bool) -> list[str]:
        read = READ_STORAGE[indirected]
        write = WRITE_STORAGE[indirected]
        mutable = MUTABLE_STORAGE[indirected]
        name = self.name()
        cls = self.message_class()

        return [
            '@property',
            f"def {name}(self) -> 'tuple[{cls}, ...]':",
            f'    return tuple(copy.copy(v) for v in {self.stored(read)})',
            '',
            f'@{name}.setter',
            f'def {name}(self, values) -> None:',
            f'    {self.stored(write)} = [copy.copy(v) for v in values]',
            '',
            f"def mutable_{name}(self) -> 'list[{cls}]':",
            f'    return {self.stored(mutable)}',
            '',
            f'def clear_{name}(self) -> None:',
            f'    {self.stored(write)} = []',
        ]


class RepeatedGroupField(RepeatedMessageField):
    """A repeated group field."""

    DECODE_METHOD = 'decode_repeated_group'
    VISIT_METHOD = 'visit_repeated_group'


class MapField(FieldGenerator):
    """A map field, stored as a dict."""

    HANDS_OUT_REFERENCES = True

    def _key_type(self) -> str:
        return field_type_expression(self._field.map_key_field().field_type())

    def _value_type(self) -> str:
        return field_type_expression(
            self._field.map_value_field().field_type()
        )

    def _value_class(self) -> str | None:
        value_field = self._field.map_value_field()
        if value_field.classification() is not FieldClass.MESSAGE:
            return None
        return self._namer.type_reference(
            value_field.message_type(), self._from_file
        )

    def initial_value(self) -> str:
        return '{}'

    def decode_lines(self, owner: str) -> list[str]:
        value_class = self._value_class()
        extra = '' if value_class is None else f', {value_class}'
        return [
            'decoder.decode_map(',
            f'    {self.stored(owner)}, {self._key_type()}, '
            f'{self._value_type()}{extra}',
            ')',
        ]

    def present_condition(self, owner: str) -> str:
        return self.stored(owner)

    def visit_line(self, value: str) -> str:
        return (
            f'visitor.visit_map({value}, {self._key_type()}, '
            f'{self._value_type()}, {self.number()})'
        )

    def accessor_lines(self, indirected: bool) -> list[str]:
        read = READ_STORAGE[indirected]
        write = WRITE_STORAGE[indirected]
        mutable = MUTABLE_STORAGE[indirected]
        name = self.name()

        return [
            '@property',
            f'def {name}(self) -> types.MappingProxyType:',
            '    return types.MappingProxyType('
            f'_pw.copy_value({self.stored(read)}))',
            '',
            f'@{name}.setter',
            f'def {name}(self, values) -> None:',
            f'    {self.stored(write)} = _pw.copy_value(dict(values))',
            '',
            f'def mutable_{name}(self) -> dict:',
            f'    return {self.stored(mutable)}',
            '',
            f'def clear_{name}(self) -> None:',
            f'    {self.stored(write)} = {{}}',
        ]


class OneofMember:
    """Generates the code for one member field of a oneof.

    The value of a member lives in the oneof's case object rather than in a
    slot of its own.
    """

    def __init__(self, field: ProtoMessageField, namer: Namer, from_file: str):
        self._field = field
        self._namer = namer
        self._from_file = from_file

    def field(self) -> ProtoMessageField:
        return self._field

    def name(self) -> str:
        return self._namer.field_name(self._field)

    def number(self) -> int:
        return self._field.number()

    def is_message(self) -> bool:
        return self._field.is_group_or_message()

    def message_class(self) -> str:
        return self._namer.type_reference(
            self._field.message_type(), self._from_file
        )

    def _default(self) -> str:
        if self.is_message():
            return f'{self.message_class()}()'
        return python_literal(self._field.default_value())

    def _annotation(self) -> str:
        if self.is_message():
            return f"'{self.message_class()}'"
        return python_type(self._field.field_type())

    def decode_expression(self, existing: str) -> str:
        """An expression decoding the member, merging messages into existing."""
        classification = self._field.classification()
        if classification is FieldClass.MESSAGE:
            return (
                f'decoder.decode_singular_message({existing}, '
                f'{self.message_class()})'
            )
        if classification is FieldClass.GROUP:
            return (
                f'decoder.decode_singular_group({existing}, '
                f'{self.message_class()})'
            )
        field_type = field_type_expression(self._field.field_type())
        return f'decoder.decode_singular({field_type})'

    def visit_line(self, value: str) -> str:
        classification = self._field.classification()
        if classification is FieldClass.MESSAGE:
            return f'visitor.visit_singular_message({value}, {self.number()})'
        if classification is FieldClass.GROUP:
            return f'visitor.visit_singular_group({value}, {self.number()})'
        field_type = field_type_expression(self._field.field_type())
        return (
            f'visitor.visit_singular({value}, {field_type}, {self.number()})'
        )

    def accessor_lines(
        self, indirected: bool, oneof_storage: str, oneof_class: str
    ) -> list[str]:
        read = f'{READ_STORAGE[indirected]}.{oneof_storage}'
        write = f'{WRITE_STORAGE[indirected]}.{oneof_storage}'
        name = self.name()
        number = self.number()

        if self.is_message():
            value, assigned = 'copy.copy(case.value)', 'copy.copy(value)'
        elif self._field.field_type() is FieldType.BYTES:
            value, assigned = 'case.value', 'bytes(value)'
        else:
            value, assigned = 'case.value', 'value'

        return [
            '@property',
            f'def {name}(self) -> {self._annotation()}:',
            f'    case = {read}',
            f'    if case is not None and case.field_number == {number}:',
            f'        return {value}',
            f'    return {self._default()}',
            '',
            f'@{name}.setter',
            f'def {name}(self, value: {self._annotation()}) -> None:',
            f'    {write} = self.{oneof_class}({number}, {assigned})',
            '',
            f'def has_{name}(self) -> bool:',
            f'    case = {read}',
            f'    return case is not None and case.field_number == {number}',
        ]


def field_generator(
    field: ProtoMessageField, namer: Namer, from_file: str
) -> FieldGenerator:
    """Returns the generator for a field that is not a oneof member."""
    classification = field.classification()

    if classification is FieldClass.MAP:
        return MapField(field, namer, from_file)
    if classification is FieldClass.MESSAGE:
        if field.is_repeated():
            return RepeatedMessageField(field, namer, from_file)
        return MessageField(field, namer, from_file)
    if classification is FieldClass.GROUP:
        if field.is_repeated():
            return RepeatedGroupField(field, namer, from_file)
        return GroupField(field, namer, from_file)
    if field.is_repeated():
        return RepeatedScalarField(field, namer, from_file)
    return ScalarField(field, namer, from_file)
