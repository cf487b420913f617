# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#      https://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Module for reading diagnostics from OCI error handles."""
import ctypes
import logging
from typing import Iterator, NamedTuple

from .handle import ChildHandle, handle_class
from .internal.errors import OCILibError
from .internal.types import (
    MAX_ERROR_MESSAGE_SIZE,
    UB4_MAX,
    HandleKind,
    ReturnCode,
    classify,
    decode_buffer,
    to_native,
)

logger = logging.getLogger(__name__)


class DiagnosticRecord(NamedTuple):
    """One entry of an error handle's diagnostic stack."""

    record_number: int
    error_code: int
    message: str


@handle_class(HandleKind.ERROR)
class ErrorHandle(ChildHandle):
    """Wraps an OCI error handle.

    Native calls that fail leave their diagnostics on the error handle they
    were given; this class reads them back as text.
    """

    def get_record(self, record_number: int = 0) -> DiagnosticRecord:
        """Reads one diagnostic record with OCIErrorGet.

        The message is written into a caller-owned buffer of
        MAX_ERROR_MESSAGE_SIZE bytes and decoded up to its first NUL;
        undecodable bytes are replaced.

        Args:
            record_number (int): The record to read, 0 for the most recent
                failure.

        Returns:
            DiagnosticRecord: The native error code and message.

        Raises:
            ValueError: If record_number is negative or does not fit the
                native unsigned 32-bit record index.
            OCILibError: If the status is anything but SUCCESS. Reading past
                the end of the diagnostic stack reports NO_DATA.
        """
        if not 0 <= record_number <= UB4_MAX:
            raise ValueError(
                f"record_number must be in 0..{UB4_MAX}, got {record_number}"
            )
        self._check_closed()
        self.environment._check_thread()

        buffer = ctypes.create_string_buffer(MAX_ERROR_MESSAGE_SIZE)
        try:
            raw, error_code = self.ocilib.error_get(
                self.token,
                record_number,
                buffer,
                to_native(HandleKind.ERROR),
            )
        except Exception as e:
            logger.exception(
                "Unexpected error reading diagnostic record %d", record_number
            )
            raise OCILibError(f"Unexpected error: {e}") from e

        status = classify(raw)
        if status is not ReturnCode.SUCCESS:
            logger.debug(
                "No diagnostic record %d on error handle %#x: %s",
                record_number,
                self.token,
                status.name,
            )
            raise OCILibError(
                f"OCIErrorGet failed for record {record_number}", status
            )

        message = decode_buffer(buffer.raw, self.environment.encoding)
        return DiagnosticRecord(record_number, error_code, message)

    def get_message(self, record_number: int = 0) -> str:
        """Returns the text of one diagnostic record. See get_record."""
        return self.get_record(record_number).message

    def records(self, start: int = 0) -> Iterator[DiagnosticRecord]:
        """Yields diagnostic records with increasing record numbers.

        Iteration stops when the library reports NO_DATA; any other
        failure is raised.
        """
        record_number = start
        while True:
            try:
                record = self.get_record(record_number)
            except OCILibError as e:
                if e.return_code is ReturnCode.NO_DATA:
                    return
                raise
            yield record
            record_number += 1


def get_error_message(error_handle: ErrorHandle, record_number: int) -> str:
    """Returns the diagnostic text of record_number on error_handle."""
    return error_handle.get_message(record_number)
