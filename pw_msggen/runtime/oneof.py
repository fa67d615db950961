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
"""Tagged variant used to hold the active member of a oneof."""

from typing import Any, ClassVar

from pw_msggen.runtime.storage import copy_value


class OneofCase:
    """The value of one member of a oneof, tagged with its field number.

    A message stores None for an unset oneof and an instance of a generated
    OneofCase subclass otherwise, so at most one member is ever active.
    Generated subclasses provide by_decoding_from() and traverse().
    """

    __slots__ = ('field_number', 'value')

    ONEOF_NAME: ClassVar[str] = ''
    MEMBERS: ClassVar[dict[int, str]] = {}

    def __init__(self, field_number: int, value: Any):
        if field_number not in self.MEMBERS:
            raise ValueError(
                f'{field_number} is not a member of oneof {self.ONEOF_NAME!r}'
            )
        self.field_number = field_number
        self.value = value

    @property
    def name(self) -> str:
        """The name of the active member field."""
        return self.MEMBERS[self.field_number]

    def __eq__(self, other) -> bool:
        if not isinstance(other, OneofCase):
            return NotImplemented
        return (
            type(self) is type(other)
            and self.field_number == other.field_number
            and self.value == other.value
        )

    __hash__ = None  # type: ignore[assignment]

    def __copy__(self) -> 'OneofCase':
        return type(self)(self.field_number, copy_value(self.value))

    def __repr__(self) -> str:
        return f'{type(self).__name__}({self.name}={self.value!r})'
