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
"""Tools for generating and importing message modules on the fly."""

import importlib
import logging
import os
from pathlib import Path
import shlex
import subprocess
import sys
import tempfile
from types import ModuleType
from typing import Iterable

from google.protobuf import descriptor_pb2

from pw_msggen import codegen
from pw_msggen.naming import Namer
from pw_msggen.output_file import OutputFile
from pw_msggen.proto_tree import build_arena

_LOG = logging.getLogger(__name__)

PathOrStr = Path | str

# Generated modules are imported below this package unless told otherwise,
# so they cannot clash with installed packages such as google.protobuf.
DEFAULT_MODULE_PREFIX = 'pw_msggen_generated'


def compile_descriptor_set(
    proto_files: Iterable[PathOrStr], includes: Iterable[PathOrStr] = ()
) -> descriptor_pb2.FileDescriptorSet:
    """Runs protoc to parse .proto files, including everything they import.

    Proto files not covered by one of the provided include paths will have
    their directory added as an include path.
    """
    proto_paths: list[Path] = [Path(f).resolve() for f in proto_files]
    include_paths: set[Path] = set(Path(d).resolve() for d in includes)

    for path in proto_paths:
        if not any(include in path.parents for include in include_paths):
            include_paths.add(path.parent)

    with tempfile.TemporaryDirectory(prefix='pw_msggen_') as tempdir:
        descriptor_set = Path(tempdir, 'descriptors.binpb')
        cmd: tuple[PathOrStr, ...] = (
            'protoc',
            f'--descriptor_set_out={descriptor_set}',
            '--include_imports',
            *(f'-I{d}' for d in sorted(include_paths)),
            *proto_paths,
        )

        _LOG.debug('%s', ' '.join(shlex.quote(str(c)) for c in cmd))
        process = subprocess.run(cmd, capture_output=True)

        if process.returncode:
            _LOG.error(
                'protoc invocation failed!\n%s\n%s',
                ' '.join(shlex.quote(str(c)) for c in cmd),
                process.stderr.decode(),
            )
            process.check_returncode()

        return descriptor_pb2.FileDescriptorSet.FromString(
            descriptor_set.read_bytes()
        )


def generate_modules(
    file_protos: Iterable[descriptor_pb2.FileDescriptorProto],
    output_dir: PathOrStr,
    options: codegen.GeneratorOptions,
) -> dict[str, str]:
    """Writes a module for each file to output_dir.

    Returns:
      the importable module name for each .proto file name

    Raises:
      CodegenError: one of the files could not be compiled
    """
    file_protos = list(file_protos)
    arena = build_arena(file_protos)
    namer = Namer(arena, options.module_suffix, options.module_prefix)

    module_names = {}
    for proto_file in file_protos:
        output = OutputFile(namer.module_path(proto_file.name))
        codegen.generate_code_for_file(proto_file, arena, namer, options,
                                       output)

        path = Path(output_dir, output.name())
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(output.content())
        _LOG.debug('Wrote %s', path)

        module_names[proto_file.name] = namer.module_name(proto_file.name)

    return module_names


def _forget_modules(names: Iterable[str], prefix: str) -> None:
    """Drops previously imported generated modules so they are reloaded."""
    for name in list(sys.modules):
        if name in names or (
            prefix and (name == prefix or name.startswith(prefix + '.'))
        ):
            del sys.modules[name]


def import_modules(
    output_dir: PathOrStr, module_names: dict[str, str], prefix: str = ''
) -> dict[str, ModuleType]:
    """Imports generated modules from output_dir, keyed by .proto file."""
    directory = os.path.abspath(output_dir)
    _forget_modules(module_names.values(), prefix)

    sys.path.insert(0, directory)
    try:
        importlib.invalidate_caches()
        return {
            proto_file: importlib.import_module(name)
            for proto_file, name in module_names.items()
        }
    finally:
        sys.path.remove(directory)


def generate_and_import(
    file_protos: Iterable[descriptor_pb2.FileDescriptorProto],
    options: codegen.GeneratorOptions | None = None,
    output_dir: PathOrStr | None = None,
) -> dict[str, ModuleType]:
    """Generates message modules for descriptors and imports them.

    Every file a generated module imports must be among file_protos.

    Args:
      file_protos: descriptors of the .proto files, dependencies included
      options: code generation options; generated modules are placed below
          DEFAULT_MODULE_PREFIX if omitted
      output_dir: where to place the generated modules; a temporary directory
          is used if omitted

    Returns:
      the imported module for each .proto file name
    """
    if options is None:
        options = codegen.GeneratorOptions(module_prefix=DEFAULT_MODULE_PREFIX)

    if output_dir is not None:
        module_names = generate_modules(file_protos, output_dir, options)
        return import_modules(output_dir, module_names, options.module_prefix)

    with tempfile.TemporaryDirectory(prefix='generated_messages_') as tempdir:
        module_names = generate_modules(file_protos, tempdir, options)
        return import_modules(tempdir, module_names, options.module_prefix)


def compile_and_import(
    proto_files: Iterable[PathOrStr],
    includes: Iterable[PathOrStr] = (),
    options: codegen.GeneratorOptions | None = None,
    output_dir: PathOrStr | None = None,
) -> dict[str, ModuleType]:
    """Compiles .proto files with protoc and imports their message modules.

    Modules are also generated and imported for every file the .proto files
    import.
    """
    descriptor_set = compile_descriptor_set(proto_files, includes)
    return generate_and_import(descriptor_set.file, options, output_dir)
