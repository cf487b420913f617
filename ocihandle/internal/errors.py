#  Copyright 2025 Google LLC
#
#  Licensed under the Apache License, Version 2.0 (the "License");
#  you may not use this file except in compliance with the License.
#  You may obtain a copy of the License at
#
#        http://www.apache.org/licenses/LICENSE-2.0
#
#  Unless required by applicable law or agreed to in writing, software
#  distributed under the License is distributed on an "AS IS" BASIS,
#  WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#  See the License for the specific language governing permissions and
#  limitations under the License.
"""Internal error types for the ocihandle package."""
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .types import ReturnCode


class OCIError(Exception):
    """Base exception for all recoverable ocihandle errors.

    Catching this exception guarantees catching any error raised explicitly
    by this library, except for UnmappedNativeCodeError which signals a
    broken installation rather than a failed call.
    """


class OCILibError(OCIError):
    """Exception raised when a native OCI call does not succeed."""

    def __init__(
        self, message: str, return_code: Optional["ReturnCode"] = None
    ) -> None:
        """Initializes the OCILibError.

        Args:
            message (str): The error description.
            return_code (Optional[ReturnCode]): The classified native status
                (e.g., ReturnCode.ERROR).
        """
        self.message = message
        self.return_code = return_code

        # Example: "[OCI_ERROR (-1)] OCIHandleAlloc failed"
        if return_code is not None:
            formatted_message = (
                f"[OCI_{return_code.name} ({return_code.value})] {message}"
            )
        else:
            formatted_message = message

        super().__init__(formatted_message)

    def __repr__(self) -> str:
        """Standard unambiguous representation for debugging."""
        code = self.return_code.name if self.return_code is not None else None
        return (
            f"<{self.__class__.__name__}(code={code}, "
            f"message='{self.message}')>"
        )

    @classmethod
    def with_diagnostics(
        cls,
        error_handle,
        message: str,
        return_code: Optional["ReturnCode"] = None,
    ) -> "OCILibError":
        """Builds an error whose text includes the first diagnostic record.

        The layer never fetches diagnostics on its own; callers holding an
        error handle from the failing environment can opt in with this.

        Args:
            error_handle: An open ErrorHandle.
            message (str): Context describing the failed operation.
            return_code (Optional[ReturnCode]): The classified native status.

        Returns:
            OCILibError: The error, with "message: diagnostic" as its text
            when a diagnostic record was available.
        """
        try:
            detail = error_handle.get_message(0)
        except OCILibError:
            detail = ""
        if detail:
            message = f"{message}: {detail}"
        return cls(message, return_code)


class ThreadingModeError(OCIError):
    """Raised when a DEFAULT mode environment is used from another thread."""


class HandleClosedError(RuntimeError):
    """Raised when an operation is attempted on a released handle."""


class UnmappedNativeCodeError(RuntimeError):
    """The native library returned an integer this layer has no mapping for.

    This means the constant tables are out of date with the client library
    in use. It is deliberately not an OCIError: it must not be caught and
    retried like a failed call.
    """

    def __init__(self, domain: str, code: int) -> None:
        self.domain = domain
        self.code = code
        super().__init__(f"unknown oci {domain} {code}")
