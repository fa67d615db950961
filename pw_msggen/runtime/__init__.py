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
"""Support library imported by generated message modules."""

from pw_msggen.runtime.any_support import (
    ANY_MESSAGE_NAME,
    DEFAULT_TYPE_URL_PREFIX,
    AnyMessageStorage,
    type_name_from_url,
    type_url_for,
)
from pw_msggen.runtime.decoder import MAX_RECURSION_DEPTH, Decoder
from pw_msggen.runtime.encoder import BinaryEncodingVisitor, Visitor
from pw_msggen.runtime.errors import (
    ConflictingOneofAlternative,
    DecodingError,
    IncompleteMessageError,
    MalformedField,
)
from pw_msggen.runtime.extensions import (
    ExtensionFieldValueSet,
    ExtensionMap,
    MessageExtension,
)
from pw_msggen.runtime.message import Message
from pw_msggen.runtime.oneof import OneofCase
from pw_msggen.runtime.storage import MessageStorage, copy_value
from pw_msggen.runtime.unknown import UnknownStorage
from pw_msggen.runtime.wire_format import FieldType, WireType
