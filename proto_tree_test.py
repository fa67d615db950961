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
"""Tests for building the schema model from file descriptors."""

import unittest

from google.protobuf import descriptor_pb2, text_format

from pw_msggen import proto_tree
from pw_msggen.proto_tree import CodegenError, FieldClass, ProtoMessage
from pw_msggen.runtime import FieldType

PROTO2_FILE = """\
name: "tree_test.proto"
package: "tree.test"
syntax: "proto2"
enum_type {
  name: "Color"
  value { name: "RED" number: 1 }
  value { name: "BLUE" number: 2 }
}
message_type {
  name: "Node"
  field {
    name: "value" number: 1 label: LABEL_OPTIONAL type: TYPE_INT32
    default_value: "7"
  }
  field {
    name: "child" number: 2 label: LABEL_OPTIONAL type: TYPE_MESSAGE
    type_name: ".tree.test.Node"
  }
  field {
    name: "a" number: 3 label: LABEL_OPTIONAL type: TYPE_INT32 oneof_index: 0
  }
  field {
    name: "x" number: 4 label: LABEL_OPTIONAL type: TYPE_INT32 oneof_index: 1
  }
  field {
    name: "b" number: 5 label: LABEL_OPTIONAL type: TYPE_INT32 oneof_index: 0
  }
  field {
    name: "y" number: 6 label: LABEL_OPTIONAL type: TYPE_INT32 oneof_index: 1
  }
  field {
    name: "d" number: 11 label: LABEL_OPTIONAL type: TYPE_STRING
    oneof_index: 2
  }
  field {
    name: "c" number: 10 label: LABEL_OPTIONAL type: TYPE_STRING
    oneof_index: 2
  }
  field {
    name: "color" number: 12 label: LABEL_OPTIONAL type: TYPE_ENUM
    type_name: "Color" default_value: "BLUE"
  }
  field {
    name: "blob" number: 13 label: LABEL_OPTIONAL type: TYPE_BYTES
    default_value: "\\\\001x"
  }
  field {
    name: "flag" number: 14 label: LABEL_OPTIONAL type: TYPE_BOOL
    default_value: "true"
  }
  field {
    name: "values" number: 15 label: LABEL_REPEATED type: TYPE_INT32
  }
  field {
    name: "packed_values" number: 16 label: LABEL_REPEATED type: TYPE_INT32
    options { packed: true }
  }
  oneof_decl { name: "first" }
  oneof_decl { name: "second" }
  oneof_decl { name: "third" }
}
message_type {
  name: "Leaf"
  field { name: "id" number: 1 label: LABEL_REQUIRED type: TYPE_INT32 }
}
message_type {
  name: "Holder"
  field {
    name: "leaves" number: 1 label: LABEL_REPEATED type: TYPE_MESSAGE
    type_name: "Leaf"
  }
}
message_type {
  name: "Extendable"
  extension_range { start: 200 end: 300 }
  extension_range { start: 100 end: 101 }
}
message_type {
  name: "HasExtendable"
  field {
    name: "inner" number: 1 label: LABEL_OPTIONAL type: TYPE_MESSAGE
    type_name: "Extendable"
  }
}
"""

PROTO3_FILE = """\
name: "tree_test3.proto"
package: "tree.test3"
syntax: "proto3"
message_type {
  name: "Scalars"
  field {
    name: "count" number: 1 label: LABEL_OPTIONAL type: TYPE_INT32
  }
  field {
    name: "maybe" number: 2 label: LABEL_OPTIONAL type: TYPE_INT32
    oneof_index: 0 proto3_optional: true
  }
  field {
    name: "values" number: 3 label: LABEL_REPEATED type: TYPE_SINT32
  }
  field {
    name: "unpacked" number: 4 label: LABEL_REPEATED type: TYPE_INT32
    options { packed: false }
  }
  field {
    name: "names" number: 5 label: LABEL_REPEATED type: TYPE_STRING
  }
  field {
    name: "counts" number: 6 label: LABEL_REPEATED type: TYPE_MESSAGE
    type_name: ".tree.test3.Scalars.CountsEntry"
  }
  nested_type {
    name: "CountsEntry"
    field { name: "key" number: 1 label: LABEL_OPTIONAL type: TYPE_STRING }
    field { name: "value" number: 2 label: LABEL_OPTIONAL type: TYPE_INT32 }
    options { map_entry: true }
  }
  oneof_decl { name: "_maybe" }
}
"""


def _parse_file(text: str) -> descriptor_pb2.FileDescriptorProto:
    return text_format.Parse(text, descriptor_pb2.FileDescriptorProto())


def _message(arena: proto_tree.ProtoArena, name: str) -> ProtoMessage:
    node = arena.find(name)
    assert isinstance(node, ProtoMessage), name
    return node


def _field(message: ProtoMessage, name: str) -> proto_tree.ProtoMessageField:
    for field in message.fields():
        if field.name() == name:
            return field
    raise KeyError(name)


class BuildArenaTest(unittest.TestCase):
    """Tests for build_arena and the nodes it creates."""

    def setUp(self) -> None:
        self.arena = proto_tree.build_arena(
            [_parse_file(PROTO2_FILE), _parse_file(PROTO3_FILE)]
        )
        self.node = _message(self.arena, 'tree.test.Node')

    def test_top_level_messages(self) -> None:
        self.assertEqual(
            [
                message.name()
                for message in self.arena.top_level_messages('tree_test.proto')
            ],
            ['Node', 'Leaf', 'Holder', 'Extendable', 'HasExtendable'],
        )

    def test_indices(self) -> None:
        for index, message in enumerate(self.arena.messages()):
            self.assertEqual(message.index(), index)
            self.assertIs(self.arena.message(index), message)

    def test_sorted_fields(self) -> None:
        self.assertEqual(
            [f.number() for f in self.node.sorted_fields()],
            [1, 2, 3, 4, 5, 6, 10, 11, 12, 13, 14, 15, 16],
        )

    def test_relative_type_names(self) -> None:
        holder = _message(self.arena, 'tree.test.Holder')
        leaves = _field(holder, 'leaves')
        self.assertEqual(
            leaves.type_index(),
            _message(self.arena, 'tree.test.Leaf').index(),
        )
        self.assertIs(leaves.classification(), FieldClass.MESSAGE)

    def test_oneofs(self) -> None:
        first, second, third = self.node.oneofs()
        self.assertEqual(first.field_numbers(), [3, 5])
        self.assertEqual(second.field_numbers(), [4, 6])
        self.assertEqual(third.field_numbers(), [10, 11])
        self.assertEqual([f.name() for f in third.fields()], ['d', 'c'])
        self.assertIs(_field(self.node, 'b').oneof(), first)
        self.assertEqual(_field(self.node, 'y').oneof_index(), 1)

    def test_oneof_continuity(self) -> None:
        first, second, third = self.node.oneofs()
        self.assertFalse(first.is_continuous_in_parent())
        self.assertFalse(second.is_continuous_in_parent())
        self.assertTrue(third.is_continuous_in_parent())

    def test_required_fields(self) -> None:
        def has_required(name: str) -> bool:
            return self.arena.has_required_fields(
                _message(self.arena, name).index()
            )

        self.assertTrue(has_required('tree.test.Leaf'))
        self.assertTrue(has_required('tree.test.Holder'))
        self.assertFalse(has_required('tree.test.Node'))
        self.assertTrue(has_required('tree.test.Extendable'))
        self.assertTrue(has_required('tree.test.HasExtendable'))
        self.assertFalse(has_required('tree.test3.Scalars'))

    def test_recursive_field_has_no_required_fields(self) -> None:
        self.assertFalse(
            _field(self.node, 'child').has_required_fields_transitively()
        )

    def test_extension_ranges(self) -> None:
        extendable = _message(self.arena, 'tree.test.Extendable')
        ranges = extendable.extension_ranges()
        self.assertTrue(extendable.is_extensible())
        self.assertEqual(ranges.ranges(), [(100, 101), (200, 300)])
        self.assertTrue(ranges.contains(299))
        self.assertFalse(ranges.contains(300))
        self.assertEqual(
            ranges.condition('n'), 'n == 100 or 200 <= n < 300'
        )
        self.assertFalse(self.node.is_extensible())

    def test_default_values(self) -> None:
        self.assertEqual(_field(self.node, 'value').default_value(), 7)
        self.assertEqual(_field(self.node, 'color').default_value(), 2)
        self.assertEqual(_field(self.node, 'blob').default_value(), b'\x01x')
        self.assertIs(_field(self.node, 'flag').default_value(), True)
        self.assertEqual(_field(self.node, 'a').default_value(), 0)
        self.assertEqual(_field(self.node, 'c').default_value(), '')

    def test_proto2_presence_and_packing(self) -> None:
        self.assertTrue(_field(self.node, 'value').has_presence())
        self.assertFalse(_field(self.node, 'values').has_presence())
        self.assertFalse(_field(self.node, 'values').is_packed())
        self.assertTrue(_field(self.node, 'packed_values').is_packed())
        self.assertIs(_field(self.node, 'color').field_type(), FieldType.ENUM)

    def test_proto3_fields(self) -> None:
        scalars = _message(self.arena, 'tree.test3.Scalars')
        self.assertTrue(scalars.is_proto3())
        self.assertFalse(_field(scalars, 'count').has_presence())
        self.assertTrue(_field(scalars, 'values').is_packed())
        self.assertFalse(_field(scalars, 'unpacked').is_packed())
        self.assertFalse(_field(scalars, 'names').is_packed())

    def test_proto3_optional(self) -> None:
        scalars = _message(self.arena, 'tree.test3.Scalars')
        maybe = _field(scalars, 'maybe')
        self.assertTrue(maybe.is_proto3_optional())
        self.assertTrue(maybe.has_presence())
        self.assertIsNone(maybe.oneof())
        self.assertEqual(scalars.oneofs(), [])
        self.assertEqual(len(scalars.all_oneofs()), 1)
        self.assertTrue(scalars.all_oneofs()[0].is_synthetic())

    def test_map_field(self) -> None:
        scalars = _message(self.arena, 'tree.test3.Scalars')
        counts = _field(scalars, 'counts')
        self.assertTrue(counts.is_map())
        self.assertIs(counts.classification(), FieldClass.MAP)
        self.assertEqual(counts.map_key_field().name(), 'key')
        self.assertEqual(counts.map_value_field().name(), 'value')
        self.assertEqual(scalars.messages(), [])

    def test_not_any(self) -> None:
        self.assertFalse(self.node.is_well_known_any())


ANY_FILE = """\
name: "google/protobuf/any.proto"
package: "google.protobuf"
syntax: "proto3"
message_type {
  name: "Any"
  field { name: "type_url" number: 1 label: LABEL_OPTIONAL type: TYPE_STRING }
  field { name: "value" number: 2 label: LABEL_OPTIONAL type: TYPE_BYTES }
}
"""


class WellKnownAnyTest(unittest.TestCase):
    def test_any_is_detected(self) -> None:
        arena = proto_tree.build_arena([_parse_file(ANY_FILE)])
        self.assertTrue(
            _message(arena, 'google.protobuf.Any').is_well_known_any()
        )

    def test_any_in_other_file_is_not_detected(self) -> None:
        proto = _parse_file(ANY_FILE)
        proto.name = 'my_any.proto'
        arena = proto_tree.build_arena([proto])
        self.assertFalse(
            _message(arena, 'google.protobuf.Any').is_well_known_any()
        )


def _single_message_file(message_text: str) -> str:
    return (
        'name: "invalid.proto" package: "invalid" syntax: "proto2" '
        f'message_type {{ name: "Bad" {message_text} }}'
    )


class ValidationTest(unittest.TestCase):
    """Tests for the errors reported for malformed messages."""

    def _build(self, message_text: str) -> None:
        proto_tree.build_arena(
            [_parse_file(_single_message_file(message_text))]
        )

    def test_duplicate_field_number(self) -> None:
        with self.assertRaises(CodegenError) as context:
            self._build(
                'field { name: "a" number: 1 label: LABEL_OPTIONAL '
                'type: TYPE_INT32 } '
                'field { name: "b" number: 1 label: LABEL_OPTIONAL '
                'type: TYPE_INT32 }'
            )
        message = context.exception.formatted_message()
        self.assertIn('used more than once', message)
        self.assertIn('at invalid.Bad', message)
        self.assertIn('in field b', message)

    def test_field_inside_extension_range(self) -> None:
        with self.assertRaises(CodegenError):
            self._build(
                'field { name: "a" number: 5 label: LABEL_OPTIONAL '
                'type: TYPE_INT32 } '
                'extension_range { start: 1 end: 10 }'
            )

    def test_overlapping_extension_ranges(self) -> None:
        with self.assertRaises(CodegenError):
            self._build(
                'extension_range { start: 1 end: 10 } '
                'extension_range { start: 5 end: 20 }'
            )

    def test_unknown_type(self) -> None:
        with self.assertRaises(CodegenError) as context:
            self._build(
                'field { name: "a" number: 1 label: LABEL_OPTIONAL '
                'type: TYPE_MESSAGE type_name: ".invalid.Missing" }'
            )
        self.assertIn('.invalid.Missing', context.exception.error_message)

    def test_empty_oneof(self) -> None:
        with self.assertRaises(CodegenError):
            self._build('oneof_decl { name: "empty" }')

    def test_unsupported_syntax(self) -> None:
        proto = _parse_file(_single_message_file(''))
        proto.syntax = 'editions'
        with self.assertRaises(ValueError) as context:
            proto_tree.build_arena([proto])
        self.assertIn('unsupported syntax "editions"', str(context.exception))


if __name__ == '__main__':
    unittest.main()
