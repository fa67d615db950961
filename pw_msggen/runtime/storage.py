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
"""Reference-counted backing storage for copy-on-write messages.

Messages with many fields, or with singular sub-message fields, keep their
fields in a separate storage object. Copying such a message only copies a
handle to the storage and bumps its owner count. The first mutation of a
message whose storage has more than one owner copies the storage, so each
message value stays independent of every other one.
"""

import copy
from typing import Any


def copy_value(value: Any) -> Any:
    """Copies a stored field value deeply enough to avoid aliasing.

    Lists and dicts are rebuilt; messages and oneof cases are copied with
    their own copy semantics (which shares storage handles where possible);
    immutable scalars are returned as is.
    """
    if isinstance(value, list):
        return [copy_value(item) for item in value]
    if isinstance(value, dict):
        return {key: copy_value(item) for key, item in value.items()}
    return copy.copy(value)


class MessageStorage:
    """Base class for the generated _StorageClass of indirected messages.

    The owner count tracks how many message values reference this storage. It
    is maintained explicitly: messages retain the storage when they are copied
    and release it when they rebind to a private copy or are collected.
    """

    __slots__ = ('_owners', '_escaped')

    def __init__(self) -> None:
        self._owners = 1
        self._escaped = False

    def owners(self) -> int:
        return self._owners

    def retain(self) -> 'MessageStorage':
        self._owners += 1
        return self

    def release(self) -> None:
        if self._owners > 0:
            self._owners -= 1

    def is_uniquely_referenced(self) -> bool:
        """True if exactly one message value owns this storage.

        Must be checked immediately before every write; the answer changes as
        soon as the owning message is copied.
        """
        return self._owners == 1

    def mark_escaped(self) -> None:
        """Records that a mutable reference into this storage was handed out.

        Such a reference can be written through at any later time, so copies
        of the owning message can no longer share this storage.
        """
        self._escaped = True

    def has_escaped_references(self) -> bool:
        return self._escaped

    def copy(self) -> 'MessageStorage':
        """Returns an independent copy owned by a single message."""
        raise NotImplementedError()
