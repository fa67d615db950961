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
"""pw_msggen compiler plugin.

This file implements a protobuf compiler plugin which generates Python
message classes with copy-on-write storage.
"""

import logging
import sys
from argparse import ArgumentParser, Namespace
from shlex import shlex

from google.protobuf.compiler import plugin_pb2

from pw_msggen import codegen, log
from pw_msggen.proto_tree import CodegenError, build_arena
from pw_msggen.storage import HEAP_STORAGE_FIELD_THRESHOLD

_LOG = logging.getLogger(__name__)


def parse_parameter_options(parameter: str) -> Namespace:
    """Parses parameters passed through from protoc.

    These parameters come in via passing `--${NAME}_opt` parameters to
    protoc, where protoc-gen-${NAME} is the supplied name of the plugin.
    """
    parser = ArgumentParser(prog='protoc-gen-pwmsg')
    parser.add_argument(
        '--heap-storage-threshold',
        dest='heap_storage_threshold',
        metavar='N',
        type=int,
        default=HEAP_STORAGE_FIELD_THRESHOLD,
        help='Messages with more than N fields use copy-on-write storage',
    )
    parser.add_argument(
        '--module-suffix',
        dest='module_suffix',
        default='_msg',
        help='Appended to the .proto file stem to name generated modules',
    )
    parser.add_argument(
        '--module-prefix',
        dest='module_prefix',
        default='',
        help='Package that generated modules are placed under',
    )
    parser.add_argument(
        '--runtime-package',
        dest='runtime_package',
        default=codegen.DEFAULT_RUNTIME_PACKAGE,
        help='Package generated modules import the message runtime from',
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Log the storage decisions and generated files',
    )

    # protoc passes the custom arguments in shell quoted form, separated by
    # commas. Use shlex to split them, correctly handling quoted sections, with
    # equivalent options to IFS=","
    lex = shlex(parameter)
    lex.whitespace_split = True
    lex.whitespace = ','
    lex.commenters = ''
    args = list(lex)

    return parser.parse_args(args)


def generator_options(args: Namespace) -> codegen.GeneratorOptions:
    return codegen.GeneratorOptions(
        heap_storage_threshold=args.heap_storage_threshold,
        module_suffix=args.module_suffix,
        module_prefix=args.module_prefix,
        runtime_package=args.runtime_package,
    )


def process_proto_request(
    req: plugin_pb2.CodeGeneratorRequest,
    res: plugin_pb2.CodeGeneratorResponse,
    args: Namespace | None = None,
) -> bool:
    """Handles a protoc CodeGeneratorRequest message.

    Generates code for the files in the request and writes the output to the
    specified CodeGeneratorResponse message.

    Args:
      req: A CodeGeneratorRequest for a proto compilation.
      res: A CodeGeneratorResponse to populate with the plugin's output.
      args: Parsed plugin parameters; parsed from the request if omitted.
    """
    if args is None:
        args = parse_parameter_options(req.parameter)
    options = generator_options(args)

    # The request includes every file the generated files import, so message
    # types from dependencies can be resolved.
    try:
        arena = build_arena(req.proto_file)
    except CodegenError as e:
        _LOG.error('%s', e.formatted_message())
        return False
    except ValueError as e:
        _LOG.error('%s', e)
        return False

    files_by_name = {
        proto_file.name: proto_file for proto_file in req.proto_file
    }

    success = True
    for file_name in req.file_to_generate:
        output_files = codegen.process_proto_file(
            files_by_name[file_name], arena, options
        )

        if output_files is not None:
            for output_file in output_files:
                fd = res.file.add()
                fd.name = output_file.name()
                fd.content = output_file.content()
        else:
            success = False

    return success


def main() -> int:
    """Protobuf compiler plugin entrypoint.

    Reads a CodeGeneratorRequest proto from stdin and writes a
    CodeGeneratorResponse to stdout.
    """
    data = sys.stdin.buffer.read()
    request = plugin_pb2.CodeGeneratorRequest.FromString(data)
    response = plugin_pb2.CodeGeneratorResponse()

    args = parse_parameter_options(request.parameter)
    log.install(
        logging.DEBUG if args.verbose else logging.WARNING,
        hide_timestamp=True,
    )

    # Declare that this plugin supports optional fields in proto3.
    response.supported_features |= (  # type: ignore[attr-defined]
        response.FEATURE_PROTO3_OPTIONAL
    )  # type: ignore[attr-defined]

    if not process_proto_request(request, response, args):
        _LOG.error('pw_msggen failed to generate protobuf code')
        return 1

    sys.stdout.buffer.write(response.SerializeToString())
    return 0


if __name__ == '__main__':
    sys.exit(main())
