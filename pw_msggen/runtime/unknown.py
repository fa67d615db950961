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
"""Opaque storage for fields a message does not recognize."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pw_msggen.runtime.encoder import Visitor


class UnknownStorage:
    """Holds the raw bytes of unrecognized fields in the order they were read.

    The bytes include each field's tag, so they can be written back verbatim.
    """

    def __init__(self, data: bytes = b''):
        self._data = bytes(data)

    @property
    def data(self) -> bytes:
        return self._data

    def append(self, raw_field: bytes) -> None:
        self._data += raw_field

    def clear(self) -> None:
        self._data = b''

    def traverse(self, visitor: 'Visitor') -> None:
        if self._data:
            visitor.visit_unknown(self._data)

    def __bool__(self) -> bool:
        return bool(self._data)

    def __eq__(self, other) -> bool:
        if not isinstance(other, UnknownStorage):
            return NotImplemented
        return self._data == other._data

    __hash__ = None  # type: ignore[assignment]

    def __copy__(self) -> 'UnknownStorage':
        return UnknownStorage(self._data)

    def __repr__(self) -> str:
        return f'UnknownStorage({self._data!r})'
