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
"""Compresses the field numbers of a oneof into a dispatch pattern."""

from typing import Iterable


class FieldNumberPattern:
    """A set of field numbers matched by one case of the decode dispatcher.

    Three or more consecutive numbers form a closed range; anything else is
    an explicit list.
    """

    def __init__(self, numbers: Iterable[int]):
        self._numbers = sorted(numbers)
        if not self._numbers:
            raise ValueError('A field number pattern needs at least 1 number')

    def numbers(self) -> list[int]:
        return list(self._numbers)

    def is_range(self) -> bool:
        first, last = self._numbers[0], self._numbers[-1]
        return (
            len(self._numbers) > 2
            and first + len(self._numbers) - 1 == last
        )

    def match_case(self, variable: str) -> str:
        """Returns the pattern of a Python case clause matching the numbers.

        variable is the subject of the enclosing match statement.
        """
        if self.is_range():
            first, last = self._numbers[0], self._numbers[-1]
            return f'_ if {first} <= {variable} <= {last}'
        return ' | '.join(str(number) for number in self._numbers)

    def __str__(self) -> str:
        if self.is_range():
            return f'{self._numbers[0]}...{self._numbers[-1]}'
        return ', '.join(str(number) for number in self._numbers)

    def __repr__(self) -> str:
        return f'FieldNumberPattern({self._numbers!r})'


def oneof_field_numbers_pattern(numbers: Iterable[int]) -> FieldNumberPattern:
    return FieldNumberPattern(numbers)
