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
"""Tests for the field number patterns used in decode dispatch."""

import unittest

from parameterized import parameterized  # type: ignore

from pw_msggen.patterns import FieldNumberPattern, oneof_field_numbers_pattern


class FieldNumberPatternTest(unittest.TestCase):
    """Tests for FieldNumberPattern."""

    @parameterized.expand(
        [
            ('single', [2], False, '2', '2'),
            ('pair', [3, 7], False, '3, 7', '3 | 7'),
            ('consecutive pair', [4, 3], False, '3, 4', '3 | 4'),
            ('range', [5, 3, 4], True, '3...5', '_ if 3 <= n <= 5'),
            ('gap', [1, 2, 4], False, '1, 2, 4', '1 | 2 | 4'),
            (
                'long range',
                list(range(10, 20)),
                True,
                '10...19',
                '_ if 10 <= n <= 19',
            ),
        ]
    )
    def test_pattern(
        self, _, numbers, is_range, text, case
    ) -> None:  # pylint: disable=too-many-arguments
        pattern = FieldNumberPattern(numbers)
        self.assertEqual(pattern.numbers(), sorted(numbers))
        self.assertEqual(pattern.is_range(), is_range)
        self.assertEqual(str(pattern), text)
        self.assertEqual(pattern.match_case('n'), case)

    def test_empty(self) -> None:
        with self.assertRaises(ValueError):
            FieldNumberPattern([])

    def test_oneof_pattern(self) -> None:
        pattern = oneof_field_numbers_pattern({12, 10, 11})
        self.assertTrue(pattern.is_range())
        self.assertEqual(
            pattern.match_case('field_number'),
            '_ if 10 <= field_number <= 12',
        )
        self.assertEqual(repr(pattern), 'FieldNumberPattern([10, 11, 12])')


if __name__ == '__main__':
    unittest.main()
