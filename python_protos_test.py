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
"""Tests generating and importing message modules on the fly."""

from pathlib import Path
import shutil
import subprocess
import tempfile
import unittest

from google.protobuf import descriptor_pb2, text_format

from pw_msggen import codegen, python_protos

PROTO_1 = """\
syntax = "proto3";

package pw.msggen.test1;

import "test_2.proto";

message SomeMessage {
  uint32 magic_number = 1;
}

message AnotherMessage {
  enum Result {
    FAILED = 0;
    FAILED_MISERABLY = 1;
    I_DONT_WANT_TO_TALK_ABOUT_IT = 2;
  }

  Result result = 1;
  string payload = 2;
  map<string, uint32> totals = 3;
}

message Holder {
  pw.msggen.test2.Request request = 1;
}
"""

PROTO_2 = """\
syntax = "proto2";

package pw.msggen.test2;

message Request {
  optional float magic_number = 1;
  required int32 id = 2;
}
"""

DESCRIPTOR = """\
name: "nested/dir/things.proto"
package: "things"
syntax: "proto3"
message_type {
  name: "Thing"
  field { name: "id" number: 1 label: LABEL_OPTIONAL type: TYPE_INT32 }
}
"""


@unittest.skipIf(shutil.which('protoc') is None, 'protoc is not installed')
class TestCompileAndImport(unittest.TestCase):
    def setUp(self):
        self._proto_dir = tempfile.TemporaryDirectory(prefix='proto_test')
        self._protos = []

        for i, contents in enumerate([PROTO_1, PROTO_2], 1):
            self._protos.append(Path(self._proto_dir.name, f'test_{i}.proto'))
            self._protos[-1].write_text(contents)

    def tearDown(self):
        self._proto_dir.cleanup()

    def test_compile_to_temp_dir_and_import(self):
        modules = python_protos.compile_and_import(self._protos)
        self.assertEqual(sorted(modules), ['test_1.proto', 'test_2.proto'])

        mod = modules['test_1.proto']
        self.assertEqual(mod.SomeMessage(magic_number=123).magic_number, 123)
        self.assertEqual(mod.AnotherMessage().result, 0)

        message = mod.AnotherMessage(payload='hi', totals={'a': 1})
        self.assertEqual(mod.AnotherMessage.parse(message.serialize()), message)

    def test_messages_from_imported_files(self):
        modules = python_protos.compile_and_import(self._protos)
        test1, test2 = modules['test_1.proto'], modules['test_2.proto']

        holder = test1.Holder(request=test2.Request(magic_number=1.5))
        decoded = test1.Holder.parse(holder.serialize())
        self.assertEqual(decoded.request.magic_number, 1.5)
        self.assertFalse(decoded.is_initialized())

    def test_compile_failure(self):
        broken = Path(self._proto_dir.name, 'broken.proto')
        broken.write_text('syntax = "proto3"; message {')
        with self.assertLogs('pw_msggen.python_protos', level='ERROR'):
            with self.assertRaises(subprocess.CalledProcessError):
                python_protos.compile_and_import([broken])


class TestGenerateModules(unittest.TestCase):
    """Tests generating modules from descriptors, without protoc."""

    def setUp(self):
        self._output_dir = tempfile.TemporaryDirectory(prefix='msggen_test')
        self._file = text_format.Parse(
            DESCRIPTOR, descriptor_pb2.FileDescriptorProto()
        )

    def tearDown(self):
        self._output_dir.cleanup()

    def test_writes_module_per_file(self):
        names = python_protos.generate_modules(
            [self._file], self._output_dir.name, codegen.GeneratorOptions()
        )
        self.assertEqual(
            names, {'nested/dir/things.proto': 'nested.dir.things_msg'}
        )
        self.assertTrue(
            Path(self._output_dir.name, 'nested/dir/things_msg.py').is_file()
        )

    def test_import_from_output_dir(self):
        modules = python_protos.generate_and_import(
            [self._file], output_dir=self._output_dir.name
        )
        module = modules['nested/dir/things.proto']
        self.assertEqual(
            module.__name__, 'pw_msggen_generated.nested.dir.things_msg'
        )
        self.assertEqual(module.Thing(id=3).serialize(), b'\x08\x03')

    def test_regenerating_reloads_modules(self):
        first = python_protos.generate_and_import([self._file])
        self._file.message_type[0].name = 'Renamed'
        second = python_protos.generate_and_import([self._file])

        self.assertTrue(hasattr(first['nested/dir/things.proto'], 'Thing'))
        self.assertTrue(
            hasattr(second['nested/dir/things.proto'], 'Renamed')
        )


if __name__ == '__main__':
    unittest.main()
