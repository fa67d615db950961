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
"""This module generates Python message classes from the schema model."""

from dataclasses import dataclass
import logging
import os

from google.protobuf import descriptor_pb2

from pw_msggen.fields import FieldGenerator, OneofMember, field_generator
from pw_msggen.naming import Namer
from pw_msggen.output_file import OutputFile
from pw_msggen.patterns import oneof_field_numbers_pattern
from pw_msggen.proto_tree import (
    CodegenError,
    FieldClass,
    ProtoArena,
    ProtoMessage,
    ProtoMessageField,
    ProtoOneof,
)
from pw_msggen.storage import (
    HEAP_STORAGE_FIELD_THRESHOLD,
    StorageDecision,
    decide_storage,
)

_LOG = logging.getLogger(__name__)

PLUGIN_NAME = 'pw_msggen'
PLUGIN_VERSION = '0.1.0'

DEFAULT_RUNTIME_PACKAGE = 'pw_msggen.runtime'


@dataclass
class GeneratorOptions:
    heap_storage_threshold: int = HEAP_STORAGE_FIELD_THRESHOLD
    module_suffix: str = '_msg'
    module_prefix: str = ''
    runtime_package: str = DEFAULT_RUNTIME_PACKAGE


class OneofGenerator:
    """Generates the tagged variant class and the accessors of a oneof."""

    def __init__(self, oneof: ProtoOneof, namer: Namer, from_file: str):
        self._oneof = oneof
        self._namer = namer
        self._members = [
            OneofMember(field, namer, from_file) for field in oneof.fields()
        ]

    def oneof(self) -> ProtoOneof:
        return self._oneof

    def name(self) -> str:
        return self._namer.oneof_name(self._oneof)

    def storage_name(self) -> str:
        return self._namer.oneof_storage_name(self._oneof)

    def class_name(self) -> str:
        return self._namer.oneof_class_name(self._oneof)

    def stored(self, owner: str) -> str:
        return f'{owner}.{self.storage_name()}'

    def members(self) -> list[OneofMember]:
        return list(self._members)

    def member(self, field: ProtoMessageField) -> OneofMember:
        for member in self._members:
            if member.field() is field:
                return member
        raise KeyError(field.name())

    def _sorted_members(self) -> list[OneofMember]:
        return sorted(self._members, key=lambda member: member.number())

    def generate_class(self, output: OutputFile) -> None:
        members = ', '.join(
            f'{member.number()}: {member.name()!r}'
            for member in self._sorted_members()
        )

        output.write_line(f'class {self.class_name()}(_pw.OneofCase):')
        with output.indent():
            output.write_line(f'ONEOF_NAME = {self._oneof.name()!r}')
            output.write_line(f'MEMBERS = {{{members}}}')
            output.write_line()
            output.write_line('@classmethod')
            output.write_line(
                'def by_decoding_from(cls, decoder, field_number, current):'
            )
            with output.indent():
                self._generate_by_decoding_from(output)

            output.write_line()
            output.write_line(
                'def traverse(self, visitor, start=None, end=None) -> None:'
            )
            with output.indent():
                self._generate_traverse(output)

    def _generate_by_decoding_from(self, output: OutputFile) -> None:
        output.write_line('match field_number:')
        with output.indent():
            for member in self._sorted_members():
                number = member.number()
                output.write_line(f'case {number}:')
                with output.indent():
                    if member.is_message():
                        output.write_line('existing = None')
                        output.write_line(
                            'if current is not None and '
                            f'current.field_number == {number}:'
                        )
                        output.write_line('    existing = current.value')
                        expression = member.decode_expression('existing')
                    else:
                        expression = member.decode_expression('None')
                    output.write_line(f'return cls({number}, {expression})')

        output.write_line('raise ValueError(')
        output.write_line(
            f"    f'{{field_number}} is not a member of oneof "
            f"{self._oneof.name()}'"
        )
        output.write_line(')')

    def _generate_traverse(self, output: OutputFile) -> None:
        output.write_line(
            'if start is not None and '
            'not start <= self.field_number < end:'
        )
        output.write_line('    return')
        output.write_line('match self.field_number:')
        with output.indent():
            for member in self._sorted_members():
                output.write_line(f'case {member.number()}:')
                output.write_line(f'    {member.visit_line("self.value")}')

    def accessor_lines(self, indirected: bool) -> list[str]:
        read = 'self._storage' if indirected else 'self'
        write = 'self._unique_storage()' if indirected else 'self'
        name = self.name()
        cls = self.class_name()

        return [
            '@property',
            f"def {name}(self) -> '{cls} | None':",
            f'    return _pw.copy_value({self.stored(read)})',
            '',
            f'@{name}.setter',
            f"def {name}(self, value: '{cls} | None') -> None:",
            f'    if value is not None and not isinstance(value, self.{cls}):',
            f"        raise TypeError('Expected a {cls} or None')",
            f'    {self.stored(write)} = _pw.copy_value(value)',
            '',
            f'def clear_{name}(self) -> None:',
            f'    {self.stored(write)} = None',
        ]


class MessageGenerator:
    """Generates the Python class for one message and its nested messages."""

    def __init__(
        self,
        message: ProtoMessage,
        arena: ProtoArena,
        namer: Namer,
        options: GeneratorOptions,
    ):
        self._message = message
        self._arena = arena
        self._namer = namer
        self._options = options
        self._file = message.file()

        self._is_any = message.is_well_known_any()
        self._is_extensible = message.is_extensible()
        self._storage = decide_storage(
            message.fields(),
            self._is_any,
            options.heap_storage_threshold,
        )

        self._oneofs = [
            OneofGenerator(oneof, namer, self._file)
            for oneof in message.oneofs()
        ]
        self._fields: dict[int, FieldGenerator] = {
            field.number(): field_generator(field, namer, self._file)
            for field in message.fields()
            if field.oneof() is None
        }
        self._messages = [
            MessageGenerator(nested, arena, namer, options)
            for nested in message.messages()
        ]

        _LOG.debug(
            'Message %s uses %s storage',
            message.proto_path(),
            self._storage.name.lower(),
        )

    def storage_decision(self) -> StorageDecision:
        return self._storage

    def _indirected(self) -> bool:
        return self._storage is StorageDecision.INDIRECTED

    def _owner(self, variable: str = 'self') -> str:
        """The name that holds field values within a generated method.

        Indirected messages first bind their storage to a local variable.
        """
        if not self._indirected():
            return variable
        if variable == 'self':
            return 'storage'
        return f'{variable}_storage'

    def _oneof_of(self, field: ProtoMessageField) -> OneofGenerator | None:
        oneof = field.oneof()
        if oneof is None:
            return None
        for generator in self._oneofs:
            if generator.oneof() is oneof:
                return generator
        raise CodegenError('oneof is not part of its message', self._message,
                           field)

    def class_name(self) -> str:
        return self._namer.class_name(self._message)

    def qualified_class_name(self) -> str:
        return self._namer.qualified_class_name(self._message)

    def generate(self, output: OutputFile) -> None:
        """Writes the class definition for the message."""
        output.write_line(f'class {self.class_name()}(_pw.Message):')
        with output.indent():
            self._generate_class_attributes(output)

            for oneof in self._oneofs:
                output.write_line()
                oneof.generate_class(output)

            for nested in self._messages:
                output.write_line()
                nested.generate(output)

            if self._indirected():
                output.write_line()
                self._generate_storage_class(output)

            output.write_line()
            self._generate_init(output)

            if self._indirected():
                output.write_line()
                self._generate_unique_storage(output)
                if self._hands_out_references():
                    output.write_line()
                    self._generate_escaped_storage(output)

            self._generate_accessors(output)

            if self._is_any:
                self._generate_any_helpers(output)

            self._generate_is_initialized(output)

            output.write_line()
            self._generate_decode_message(output)

            output.write_line()
            self._generate_traverse(output)

            output.write_line()
            self._generate_is_equal_to(output)

            output.write_line()
            self._generate_copy_fields(output)

    def _generate_class_attributes(self, output: OutputFile) -> None:
        message = self._message
        ranges = ''.join(
            f'({start}, {end}), ' for start, end in message.extension_ranges()
        ).rstrip(' ')
        field_names = ''.join(
            f'{self._namer.field_name(field)!r}, '
            for field in message.fields()
        ).rstrip(' ')
        oneof_names = ''.join(
            f'{oneof.name()!r}, ' for oneof in self._oneofs
        ).rstrip(' ')

        output.write_line(f'PROTO_MESSAGE_NAME = {message.proto_path()!r}')
        output.write_line(f'IS_PROTO3 = {message.is_proto3()}')
        output.write_line(f'IS_EXTENSIBLE = {self._is_extensible}')
        output.write_line(f'EXTENSION_RANGES = ({ranges})')
        output.write_line(f'FIELD_NAMES = ({field_names})')
        output.write_line(f'ONEOF_NAMES = ({oneof_names})')

    def _storage_slots(self) -> list[tuple[str, str, str]]:
        """(attribute, initial value, copy expression) for each slot."""
        slots = []
        oneofs_handled: set[int] = set()
        for field in self._message.fields():
            oneof = self._oneof_of(field)
            if oneof is None:
                generator = self._fields[field.number()]
                slots.append(
                    (
                        generator.storage_name(),
                        generator.initial_value(),
                        generator.copy_expression(
                            f'self.{generator.storage_name()}'
                        ),
                    )
                )
            elif oneof.oneof().index() not in oneofs_handled:
                oneofs_handled.add(oneof.oneof().index())
                slots.append(
                    (
                        oneof.storage_name(),
                        'None',
                        f'_pw.copy_value(self.{oneof.storage_name()})',
                    )
                )
        return slots

    def _generate_storage_class(self, output: OutputFile) -> None:
        if self._is_any:
            output.write_line('_StorageClass = _pw.AnyMessageStorage')
            return

        slots = self._storage_slots()
        names = ''.join(f'{name!r}, ' for name, _, _ in slots).rstrip(' ')

        output.write_line('class _StorageClass(_pw.MessageStorage):')
        with output.indent():
            output.write_line(f'__slots__ = ({names})')
            output.write_line()
            output.write_line('def __init__(self) -> None:')
            with output.indent():
                output.write_line('super().__init__()')
                for name, initial, _ in slots:
                    output.write_line(f'self.{name} = {initial}')

            output.write_line()
            output.write_line('def copy(self):')
            with output.indent():
                output.write_line('clone = type(self)()')
                for name, _, copied in slots:
                    output.write_line(f'clone.{name} = {copied}')
                output.write_line('return clone')

    def _generate_init(self, output: OutputFile) -> None:
        output.write_line('def __init__(self, **fields) -> None:')
        with output.indent():
            if self._indirected():
                output.write_line('self._storage = self._StorageClass()')
            else:
                for name, initial, _ in self._storage_slots():
                    output.write_line(f'self.{name} = {initial}')
            output.write_line('super().__init__(**fields)')

    def _generate_unique_storage(self, output: OutputFile) -> None:
        output.write_line('def _unique_storage(self):')
        with output.indent():
            output.write_line(
                'if not self._storage.is_uniquely_referenced():'
            )
            with output.indent():
                output.write_line('shared = self._storage')
                output.write_line('self._storage = shared.copy()')
                output.write_line('shared.release()')
            output.write_line('return self._storage')

    def _hands_out_references(self) -> bool:
        return any(
            generator.HANDS_OUT_REFERENCES
            for generator in self._fields.values()
        )

    def _generate_escaped_storage(self, output: OutputFile) -> None:
        output.write_line('def _escaped_storage(self):')
        with output.indent():
            output.write_line('storage = self._unique_storage()')
            output.write_line('storage.mark_escaped()')
            output.write_line('return storage')

    def _generate_accessors(self, output: OutputFile) -> None:
        indirected = self._indirected()
        oneofs_handled: set[int] = set()

        for field in self._message.fields():
            oneof = self._oneof_of(field)
            if oneof is None:
                lines = self._fields[field.number()].accessor_lines(indirected)
            else:
                lines = []
                # The oneof accessors go before those of its first member.
                if oneof.oneof().index() not in oneofs_handled:
                    oneofs_handled.add(oneof.oneof().index())
                    lines.extend(oneof.accessor_lines(indirected))
                    lines.append('')
                lines.extend(
                    oneof.member(field).accessor_lines(
                        indirected, oneof.storage_name(), oneof.class_name()
                    )
                )

            output.write_line()
            output.write_lines(lines)

    def _generate_any_helpers(self, output: OutputFile) -> None:
        output.write_line()
        output.write_lines(
            [
                'def pack(',
                '    self,',
                '    message,',
                '    type_url_prefix=_pw.DEFAULT_TYPE_URL_PREFIX,',
                ') -> None:',
                '    self._unique_storage().pack(message, type_url_prefix)',
                '',
                'def unpack(self, message_class, extensions=None):',
                '    return self._storage.unpack(message_class, extensions)',
                '',
                'def is_a(self, message_class) -> bool:',
                '    return self._storage.is_a(message_class)',
            ]
        )

    def _bind_storage(self, output: OutputFile, *variables: str) -> None:
        if self._indirected():
            for variable in variables:
                output.write_line(
                    f'{self._owner(variable)} = {variable}._storage'
                )

    def _required_check_lines(self, owner: str) -> list[str]:
        """Lines returning False if the message is not fully initialized.

        Covers required fields, nested messages that have required fields
        and the members of oneofs that have them.
        """
        lines: list[str] = []

        if not self._message.is_proto3():
            for generator in self._fields.values():
                if generator.field().is_required():
                    lines.append(f'if {generator.stored(owner)} is None:')
                    lines.append('    return False')

        for generator in self._fields.values():
            field = generator.field()
            if not field.is_group_or_message():
                continue
            if not field.has_required_fields_transitively():
                continue

            stored = generator.stored(owner)
            if field.classification() is FieldClass.MAP:
                if field.map_value_field().is_group_or_message():
                    lines.append(
                        'if not self.are_all_initialized('
                        f'{stored}.values()):'
                    )
                    lines.append('    return False')
            elif field.is_repeated():
                lines.append(f'if not self.are_all_initialized({stored}):')
                lines.append('    return False')
            else:
                lines.append(
                    f'if {stored} is not None and '
                    f'not {stored}.is_initialized():'
                )
                lines.append('    return False')

        for oneof in self._oneofs:
            to_check = [
                member.number()
                for member in oneof.members()
                if member.is_message()
                and member.field().has_required_fields_transitively()
            ]
            if not to_check:
                continue

            case = oneof.stored(owner)
            if len(to_check) == 1:
                active = f'{case}.field_number == {to_check[0]}'
            else:
                numbers = ', '.join(str(n) for n in sorted(to_check))
                active = f'{case}.field_number in ({numbers})'
            lines.append(
                f'if ({case} is not None and {active} and '
                f'not {case}.value.is_initialized()):'
            )
            lines.append('    return False')

        return lines

    def _generate_is_initialized(self, output: OutputFile) -> None:
        check_lines = self._required_check_lines(self._owner())

        # The check would always pass; the base class already says so.
        if not self._is_extensible and not check_lines:
            return

        output.write_line()
        output.write_line('def is_initialized(self) -> bool:')
        with output.indent():
            if self._is_extensible:
                output.write_line(
                    'if not self.extension_fields.is_initialized():'
                )
                output.write_line('    return False')
            if check_lines:
                self._bind_storage(output, 'self')
                output.write_lines(check_lines)
            output.write_line('return True')

    def _decode_case_lines(self) -> list[tuple[str, list[str]]]:
        """(pattern, body) of each case of the decode dispatcher."""
        owner = self._owner()
        cases: list[tuple[str, list[str]]] = []
        oneofs_handled: set[int] = set()

        for field in self._message.sorted_fields():
            oneof = self._oneof_of(field)
            if oneof is None:
                generator = self._fields[field.number()]
                cases.append(
                    (str(field.number()), generator.decode_lines(owner))
                )
                continue

            if oneof.oneof().index() in oneofs_handled:
                continue
            oneofs_handled.add(oneof.oneof().index())

            pattern = oneof_field_numbers_pattern(
                oneof.oneof().field_numbers()
            )
            stored = oneof.stored(owner)
            cases.append(
                (
                    pattern.match_case('field_number'),
                    [
                        f'current = {stored}',
                        f'value = self.{oneof.class_name()}.by_decoding_from(',
                        '    decoder, field_number, current',
                        ')',
                        'if (current is not None and '
                        'current.field_number != field_number):',
                        '    decoder.handle_conflicting_oneof(',
                        f'        {oneof.oneof().name()!r}, '
                        'current.field_number, field_number',
                        '    )',
                        f'{stored} = value',
                    ],
                )
            )

        return cases

    def _extension_decode_line(self) -> str:
        return (
            'decoder.decode_extension_field(self.extension_fields, '
            f'{self.qualified_class_name()}, field_number, '
            'self.unknown_fields)'
        )

    def _generate_decode_message(self, output: OutputFile) -> None:
        output.write_line('def decode_message(self, decoder) -> None:')
        with output.indent():
            if not self._message.fields() and not self._is_extensible:
                output.write_line(
                    'while decoder.next_field_number() is not None:'
                )
                output.write_line(
                    '    decoder.skip_unknown_field(self.unknown_fields)'
                )
                return

            if self._indirected():
                output.write_line('storage = self._unique_storage()')

            output.write_line(
                'while (field_number := decoder.next_field_number()) '
                'is not None:'
            )
            with output.indent():
                if not self._message.fields():
                    condition = self._message.extension_ranges().condition(
                        'field_number'
                    )
                    output.write_line(f'if {condition}:')
                    output.write_line(f'    {self._extension_decode_line()}')
                    output.write_line('else:')
                    output.write_line(
                        '    decoder.skip_unknown_field(self.unknown_fields)'
                    )
                    return

                output.write_line('match field_number:')
                with output.indent():
                    for pattern, body in self._decode_case_lines():
                        output.write_line(f'case {pattern}:')
                        with output.indent():
                            output.write_lines(body)

                    if self._is_extensible:
                        condition = (
                            self._message.extension_ranges().condition(
                                'field_number'
                            )
                        )
                        output.write_line(f'case _ if {condition}:')
                        output.write_line(
                            f'    {self._extension_decode_line()}'
                        )

                    output.write_line('case _:')
                    output.write_line(
                        '    decoder.skip_unknown_field(self.unknown_fields)'
                    )

    def _generate_traverse(self, output: OutputFile) -> None:
        output.write_line('def traverse(self, visitor) -> None:')
        with output.indent():
            self._bind_storage(output, 'self')
            output.write_lines(self._traverse_lines())
            output.write_line('self.unknown_fields.traverse(visitor)')

    def _traverse_lines(self) -> list[str]:
        """Merges fields, oneof runs and extension ranges by field number."""
        owner = self._owner()
        lines: list[str] = []
        ranges = iter(self._message.extension_ranges())
        next_range = next(ranges, None)

        current_oneof: OneofGenerator | None = None
        oneof_start = 0
        oneof_end = 0

        def flush_oneof() -> None:
            assert current_oneof is not None
            stored = current_oneof.stored(owner)
            lines.append(f'if {stored} is not None:')
            if self._traverses_whole_oneof(current_oneof.oneof()):
                lines.append(f'    {stored}.traverse(visitor)')
            else:
                lines.append(
                    f'    {stored}.traverse(visitor, {oneof_start}, '
                    f'{oneof_end})'
                )

        def visit_extensions(start: int, end: int) -> None:
            lines.append(
                'visitor.visit_extension_fields('
                f'self.extension_fields, {start}, {end})'
            )

        for field in self._message.sorted_fields():
            while next_range is not None and next_range[0] < field.number():
                if current_oneof is not None:
                    flush_oneof()
                    current_oneof = None
                visit_extensions(*next_range)
                next_range = next(ranges, None)

            oneof = self._oneof_of(field)
            if current_oneof is not None and oneof is current_oneof:
                oneof_end = field.number() + 1
                continue

            if current_oneof is not None:
                flush_oneof()
                current_oneof = None

            if oneof is not None:
                current_oneof = oneof
                oneof_start = field.number()
                oneof_end = field.number() + 1
            else:
                lines.extend(
                    self._fields[field.number()].traverse_lines(owner)
                )

        if current_oneof is not None:
            flush_oneof()

        while next_range is not None:
            visit_extensions(*next_range)
            next_range = next(ranges, None)

        return lines

    def _traverses_whole_oneof(self, oneof: ProtoOneof) -> bool:
        """True if no other field or extension range lies between members."""
        numbers = oneof.field_numbers()
        return oneof.is_continuous_in_parent() and not any(
            numbers[0] < start < numbers[-1]
            for start, _ in self._message.extension_ranges()
        )

    def _generate_is_equal_to(self, output: OutputFile) -> None:
        output.write_line('def _protobuf_generated_is_equal_to(self, other):')
        with output.indent():
            if self._is_any:
                output.write_line(
                    'if (self._storage is not other._storage and '
                    'not self._storage.is_equal_to(other._storage)):'
                )
                output.write_line('    return False')
            elif self._indirected():
                # Storage shared by both messages is equal to itself.
                output.write_line('if self._storage is not other._storage:')
                with output.indent():
                    self._bind_storage(output, 'self', 'other')
                    comparisons = self._field_comparison_lines()
                    output.write_lines(comparisons or ['pass'])
            else:
                output.write_lines(self._field_comparison_lines())

            output.write_line('if self.unknown_fields != other.unknown_fields:')
            output.write_line('    return False')
            if self._is_extensible:
                output.write_line(
                    'if self.extension_fields != other.extension_fields:'
                )
                output.write_line('    return False')
            output.write_line('return True')

    def _field_comparison_lines(self) -> list[str]:
        this, other = self._owner('self'), self._owner('other')
        lines: list[str] = []
        oneofs_handled: set[int] = set()

        for field in self._message.fields():
            oneof = self._oneof_of(field)
            if oneof is None:
                generator = self._fields[field.number()]
                left, right = generator.stored(this), generator.stored(other)
            elif oneof.oneof().index() not in oneofs_handled:
                oneofs_handled.add(oneof.oneof().index())
                left, right = oneof.stored(this), oneof.stored(other)
            else:
                continue

            lines.append(f'if {left} != {right}:')
            lines.append('    return False')

        return lines

    def _generate_copy_fields(self, output: OutputFile) -> None:
        output.write_line('def _protobuf_copy_fields(self, clone) -> None:')
        with output.indent():
            if self._indirected():
                # A reference handed out by mutable_ accessors may still be
                # written through, so escaped storage is never shared.
                output.write_line('if self._storage.has_escaped_references():')
                output.write_line('    clone._storage = self._storage.copy()')
                output.write_line('else:')
                output.write_line('    clone._storage = self._storage.retain()')
                return

            slots = self._storage_slots()
            if not slots:
                output.write_line('pass')
            for name, _, copied in slots:
                output.write_line(f'clone.{name} = {copied}')


def _generated_module_header(
    proto_file: descriptor_pb2.FileDescriptorProto,
    namer: Namer,
    options: GeneratorOptions,
    output: OutputFile,
) -> None:
    output.write_line(
        f'# {os.path.basename(output.name())} automatically generated by '
        f'{PLUGIN_NAME} {PLUGIN_VERSION}'
    )
    output.write_line(f'# source: {proto_file.name}')
    output.write_line(f'"""Message classes for {proto_file.name}."""')
    output.write_line()
    output.write_line('import copy')
    output.write_line('import types')
    output.write_line()
    output.write_line(f'import {options.runtime_package} as _pw')

    for dependency in proto_file.dependency:
        output.write_line(
            f'import {namer.module_name(dependency)} as '
            f'{namer.module_alias(dependency)}'
        )


def generate_code_for_file(
    proto_file: descriptor_pb2.FileDescriptorProto,
    arena: ProtoArena,
    namer: Namer,
    options: GeneratorOptions,
    output: OutputFile,
) -> None:
    """Generates the module for a single .proto file."""
    _generated_module_header(proto_file, namer, options, output)

    for message in arena.top_level_messages(proto_file.name):
        output.write_line()
        output.write_line()
        MessageGenerator(message, arena, namer, options).generate(output)


def process_proto_file(
    proto_file: descriptor_pb2.FileDescriptorProto,
    arena: ProtoArena,
    options: GeneratorOptions,
) -> list[OutputFile] | None:
    """Generates code for a single .proto file.

    The arena must contain every message of the file and its dependencies.
    Returns None if the file cannot be compiled; the error is logged.
    """
    namer = Namer(arena, options.module_suffix, options.module_prefix)
    output_file = OutputFile(namer.module_path(proto_file.name))

    try:
        generate_code_for_file(proto_file, arena, namer, options, output_file)
    except CodegenError as e:
        _LOG.error('%s', e.formatted_message())
        return None

    _LOG.debug('Generated %s from %s', output_file.name(), proto_file.name)
    return [output_file]
