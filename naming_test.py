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
"""Tests for the names given to generated modules, classes and fields."""

import unittest

from google.protobuf import descriptor_pb2, text_format

from pw_msggen import proto_tree
from pw_msggen.naming import Namer, upper_camel_case

NAMES_FILE = """\
name: "names/names.proto"
package: "names"
syntax: "proto2"
message_type {
  name: "Outer"
  field { name: "x" number: 1 label: LABEL_OPTIONAL type: TYPE_INT32 }
  field { name: "_x" number: 2 label: LABEL_OPTIONAL type: TYPE_INT32 }
  field { name: "parse" number: 3 label: LABEL_OPTIONAL type: TYPE_INT32 }
  field { name: "value" number: 4 label: LABEL_OPTIONAL type: TYPE_INT32 }
  field {
    name: "first" number: 5 label: LABEL_OPTIONAL type: TYPE_INT32
    oneof_index: 0
  }
  nested_type { name: "value" }
  nested_type { name: "Inner" }
  oneof_decl { name: "some_kind" }
}
message_type { name: "copy" }
"""

OTHER_FILE = """\
name: "other.proto"
package: "other"
syntax: "proto3"
dependency: "names/names.proto"
"""

ACCESSOR_CLASH_FILE = """\
name: "names/clash.proto"
package: "names"
syntax: "proto2"
message_type {
  name: "Clash"
  field { name: "foo" number: 1 label: LABEL_OPTIONAL type: TYPE_INT32 }
  field { name: "has_foo" number: 2 label: LABEL_OPTIONAL type: TYPE_INT32 }
  field {
    name: "mutable_foo" number: 3 label: LABEL_OPTIONAL type: TYPE_INT32
  }
  field {
    name: "has_has_foo_" number: 4 label: LABEL_OPTIONAL type: TYPE_INT32
  }
  field {
    name: "clear_kind" number: 5 label: LABEL_OPTIONAL type: TYPE_INT32
  }
  field {
    name: "member" number: 6 label: LABEL_OPTIONAL type: TYPE_INT32
    oneof_index: 0
  }
  oneof_decl { name: "kind" }
}
"""


def _arena() -> proto_tree.ProtoArena:
    return proto_tree.build_arena(
        text_format.Parse(text, descriptor_pb2.FileDescriptorProto())
        for text in (NAMES_FILE, OTHER_FILE)
    )


class NamerTest(unittest.TestCase):
    """Tests for Namer."""

    def setUp(self) -> None:
        self.arena = _arena()
        self.namer = Namer(self.arena)
        outer = self.arena.find('names.Outer')
        assert isinstance(outer, proto_tree.ProtoMessage)
        self.outer = outer
        self.fields = {field.name(): field for field in outer.fields()}

    def _message(self, name: str) -> proto_tree.ProtoMessage:
        node = self.arena.find(name)
        assert isinstance(node, proto_tree.ProtoMessage)
        return node

    def test_field_names(self) -> None:
        self.assertEqual(self.namer.field_name(self.fields['x']), 'x')
        self.assertEqual(self.namer.field_name(self.fields['_x']), '_x')
        self.assertEqual(self.namer.field_name(self.fields['parse']), 'parse_')

    def test_storage_names_do_not_collide(self) -> None:
        self.assertEqual(self.namer.storage_name(self.fields['x']), '_x_')
        self.assertEqual(self.namer.storage_name(self.fields['_x']), '_f_x')
        self.assertEqual(
            self.namer.storage_name(self.fields['parse']), '_parse_'
        )

    def test_nested_class_does_not_shadow_field(self) -> None:
        self.assertEqual(self.namer.field_name(self.fields['value']), 'value')
        self.assertEqual(
            self.namer.class_name(self._message('names.Outer.value')),
            'value_',
        )

    def test_reserved_module_name(self) -> None:
        self.assertEqual(
            self.namer.class_name(self._message('names.copy')), 'copy_'
        )

    def test_oneof_names(self) -> None:
        (oneof,) = self.outer.oneofs()
        self.assertEqual(self.namer.oneof_name(oneof), 'some_kind')
        self.assertEqual(self.namer.oneof_class_name(oneof), 'OneofSomeKind')
        self.assertEqual(self.namer.oneof_storage_name(oneof), '_some_kind')

    def test_qualified_class_name(self) -> None:
        inner = self._message('names.Outer.Inner')
        self.assertEqual(self.namer.qualified_class_name(inner), 'Outer.Inner')

    def test_type_reference(self) -> None:
        inner = self._message('names.Outer.Inner')
        self.assertEqual(
            self.namer.type_reference(inner, 'names/names.proto'),
            'Outer.Inner',
        )
        self.assertEqual(
            self.namer.type_reference(inner, 'other.proto'),
            '_names_names_msg.Outer.Inner',
        )

    def test_module_names(self) -> None:
        self.assertEqual(
            self.namer.module_name('names/names.proto'), 'names.names_msg'
        )
        self.assertEqual(
            self.namer.module_path('names/names.proto'), 'names/names_msg.py'
        )
        self.assertEqual(
            self.namer.module_alias('names/names.proto'), '_names_names_msg'
        )

    def test_module_names_are_identifiers(self) -> None:
        self.assertEqual(
            self.namer.module_name('import/my-file.proto'),
            'import_.my_file_msg',
        )

    def test_module_prefix_and_suffix(self) -> None:
        namer = Namer(self.arena, module_suffix='_pb', module_prefix='gen.')
        self.assertEqual(
            namer.module_name('names/names.proto'), 'gen.names.names_pb'
        )
        self.assertEqual(
            namer.module_path('names/names.proto'), 'gen/names/names_pb.py'
        )
        self.assertEqual(
            namer.module_alias('names/names.proto'), '_names_names_pb'
        )


class AccessorNameTest(unittest.TestCase):
    """Tests that field names never shadow generated accessor methods."""

    def setUp(self) -> None:
        arena = proto_tree.build_arena(
            [
                text_format.Parse(
                    ACCESSOR_CLASH_FILE, descriptor_pb2.FileDescriptorProto()
                )
            ]
        )
        self.namer = Namer(arena)
        clash = arena.find('names.Clash')
        assert isinstance(clash, proto_tree.ProtoMessage)
        self.clash = clash

    def _field_names(self) -> dict[str, str]:
        return {
            field.name(): self.namer.field_name(field)
            for field in self.clash.fields()
        }

    def test_fields_named_like_accessors_are_escaped(self) -> None:
        self.assertEqual(
            self._field_names(),
            {
                'foo': 'foo',
                'has_foo': 'has_foo_',
                'mutable_foo': 'mutable_foo_',
                'has_has_foo_': 'has_has_foo__',
                'clear_kind': 'clear_kind_',
                'member': 'member',
            },
        )
        self.assertEqual(self.namer.oneof_name(self.clash.oneofs()[0]), 'kind')

    def test_no_name_matches_an_accessor(self) -> None:
        names = set(self._field_names().values())
        names.add(self.namer.oneof_name(self.clash.oneofs()[0]))
        accessors = {
            prefix + name
            for name in names
            for prefix in ('has_', 'clear_', 'mutable_')
        }
        self.assertFalse(names & accessors)


class UpperCamelCaseTest(unittest.TestCase):
    def test_upper_camel_case(self) -> None:
        self.assertEqual(upper_camel_case('some_kind'), 'SomeKind')
        self.assertEqual(upper_camel_case('kind'), 'Kind')
        self.assertEqual(upper_camel_case('already_Camel'), 'AlreadyCamel')


if __name__ == '__main__':
    unittest.main()
