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
"""Errors raised while decoding or encoding generated messages."""


class DecodingError(Exception):
    """Base class for errors that abort decoding a message."""


class MalformedField(DecodingError):
    """The serialized data for a field could not be decoded."""

    def __init__(self, reason: str, field_number: int | None = None):
        if field_number is None:
            super().__init__(f'Malformed protobuf data: {reason}')
        else:
            super().__init__(
                f'Malformed protobuf data in field {field_number}: {reason}'
            )
        self.reason = reason
        self.field_number = field_number


class ConflictingOneofAlternative(DecodingError):
    """A second member of an already populated oneof was decoded.

    The payload of the conflicting field has already been consumed when this
    is raised, so the decoder is still positioned on a field boundary.
    """

    def __init__(self, oneof_name: str, current: int, conflicting: int):
        super().__init__(
            f'oneof {oneof_name!r} already holds field {current}; '
            f'cannot also set field {conflicting}'
        )
        self.oneof_name = oneof_name
        self.current_field_number = current
        self.field_number = conflicting


class IncompleteMessageError(Exception):
    """Raised when a complete encoding is requested for a message missing
    required fields."""

    def __init__(self, message_name: str):
        super().__init__(f'{message_name} is missing required fields')
        self.message_name = message_name
