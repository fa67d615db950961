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
"""Tests for the storage layout decision and copy-on-write storage."""

import unittest

from google.protobuf import descriptor_pb2

from pw_msggen import proto_tree
from pw_msggen.runtime import MessageStorage
from pw_msggen.storage import (
    HEAP_STORAGE_FIELD_THRESHOLD,
    StorageDecision,
    decide_storage,
)

_Field = descriptor_pb2.FieldDescriptorProto


def _message(
    scalar_count: int,
    *,
    singular_message: bool = False,
    repeated_message: bool = False,
) -> proto_tree.ProtoMessage:
    """Builds a proto3 message named Test with the requested fields."""
    file_proto = descriptor_pb2.FileDescriptorProto(
        name='storage_test.proto', package='storage.test', syntax='proto3'
    )
    file_proto.message_type.add(name='Sub')
    message = file_proto.message_type.add(name='Test')

    for number in range(1, scalar_count + 1):
        message.field.add(
            name=f'field_{number}',
            number=number,
            label=_Field.LABEL_OPTIONAL,
            type=_Field.TYPE_INT32,
        )

    if singular_message:
        message.field.add(
            name='sub',
            number=100,
            label=_Field.LABEL_OPTIONAL,
            type=_Field.TYPE_MESSAGE,
            type_name='.storage.test.Sub',
        )
    if repeated_message:
        message.field.add(
            name='subs',
            number=101,
            label=_Field.LABEL_REPEATED,
            type=_Field.TYPE_MESSAGE,
            type_name='.storage.test.Sub',
        )

    arena = proto_tree.build_arena([file_proto])
    node = arena.find('storage.test.Test')
    assert isinstance(node, proto_tree.ProtoMessage)
    return node


class DecideStorageTest(unittest.TestCase):
    """Tests for decide_storage."""

    def test_threshold_is_sixteen(self) -> None:
        self.assertEqual(HEAP_STORAGE_FIELD_THRESHOLD, 16)

    def test_at_threshold_is_inline(self) -> None:
        message = _message(16)
        self.assertIs(
            decide_storage(message.fields(), is_any=False),
            StorageDecision.INLINE,
        )

    def test_over_threshold_is_indirected(self) -> None:
        message = _message(17)
        self.assertIs(
            decide_storage(message.fields(), is_any=False),
            StorageDecision.INDIRECTED,
        )

    def test_custom_threshold(self) -> None:
        message = _message(5)
        self.assertIs(
            decide_storage(message.fields(), is_any=False, threshold=4),
            StorageDecision.INDIRECTED,
        )
        self.assertIs(
            decide_storage(message.fields(), is_any=False, threshold=5),
            StorageDecision.INLINE,
        )

    def test_singular_message_field_is_indirected(self) -> None:
        message = _message(2, singular_message=True)
        self.assertEqual(len(message.fields()), 3)
        self.assertIs(
            decide_storage(message.fields(), is_any=False),
            StorageDecision.INDIRECTED,
        )

    def test_repeated_message_field_is_inline(self) -> None:
        message = _message(2, repeated_message=True)
        self.assertIs(
            decide_storage(message.fields(), is_any=False),
            StorageDecision.INLINE,
        )

    def test_any_is_indirected(self) -> None:
        message = _message(0)
        self.assertIs(
            decide_storage(message.fields(), is_any=True),
            StorageDecision.INDIRECTED,
        )

    def test_no_fields_is_inline(self) -> None:
        self.assertIs(
            decide_storage([], is_any=False), StorageDecision.INLINE
        )


class _Storage(MessageStorage):
    __slots__ = ('value',)

    def __init__(self, value: int = 0):
        super().__init__()
        self.value = value

    def copy(self) -> '_Storage':
        return _Storage(self.value)


class MessageStorageTest(unittest.TestCase):
    """Tests for the owner count of shared storage."""

    def test_new_storage_is_unique(self) -> None:
        storage = _Storage()
        self.assertEqual(storage.owners(), 1)
        self.assertTrue(storage.is_uniquely_referenced())

    def test_retain_shares(self) -> None:
        storage = _Storage()
        self.assertIs(storage.retain(), storage)
        self.assertEqual(storage.owners(), 2)
        self.assertFalse(storage.is_uniquely_referenced())

        storage.release()
        self.assertEqual(storage.owners(), 1)
        self.assertTrue(storage.is_uniquely_referenced())

    def test_copy_is_unique(self) -> None:
        storage = _Storage(3)
        storage.retain()
        clone = storage.copy()
        self.assertIsNot(clone, storage)
        self.assertEqual(clone.value, 3)
        self.assertTrue(clone.is_uniquely_referenced())

    def test_escaped_references(self) -> None:
        storage = _Storage(3)
        self.assertFalse(storage.has_escaped_references())
        storage.mark_escaped()
        self.assertTrue(storage.has_escaped_references())
        self.assertFalse(storage.copy().has_escaped_references())

    def test_base_copy_is_abstract(self) -> None:
        with self.assertRaises(NotImplementedError):
            MessageStorage().copy()


if __name__ == '__main__':
    unittest.main()
