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
"""Chooses how a generated message class stores its fields."""

import enum
from typing import Iterable

from pw_msggen.proto_tree import ProtoMessageField

# Messages with more fields than this keep them in shared, copy-on-write
# storage so that copying a message is cheap.
HEAP_STORAGE_FIELD_THRESHOLD = 16


class StorageDecision(enum.Enum):
    """Where a message keeps its fields.

    INLINE messages keep every field as an instance attribute. INDIRECTED
    messages keep them in a reference-counted _StorageClass instance that is
    shared by copies until one of them is mutated.
    """

    INLINE = 1
    INDIRECTED = 2


def _has_singular_message_field(fields: list[ProtoMessageField]) -> bool:
    return any(
        field.is_group_or_message() and not field.is_repeated()
        for field in fields
    )


def decide_storage(
    fields: Iterable[ProtoMessageField],
    is_any: bool,
    threshold: int = HEAP_STORAGE_FIELD_THRESHOLD,
) -> StorageDecision:
    """Decides whether a message needs indirected storage.

    Repeated and map fields never force indirection, since their containers
    are copied independently of the message.
    """
    fields = list(fields)

    if is_any:
        return StorageDecision.INDIRECTED
    if len(fields) > threshold:
        return StorageDecision.INDIRECTED
    if _has_singular_message_field(fields):
        return StorageDecision.INDIRECTED
    return StorageDecision.INLINE
