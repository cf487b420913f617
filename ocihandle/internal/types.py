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
"""Native constants and CTypes helpers for interacting with OCI."""
import ctypes
import enum
import logging
from types import TracebackType
from typing import Final, Optional, Type

from .errors import UnmappedNativeCodeError

logger = logging.getLogger(__name__)

# Capacity of the caller-owned buffer handed to OCIErrorGet.
MAX_ERROR_MESSAGE_SIZE: Final[int] = 3024

DEFAULT_ENCODING: Final[str] = "utf-8"

# Largest value of the unsigned 32-bit ub4 native integer type.
UB4_MAX: Final[int] = 2**32 - 1


class ReturnCode(enum.Enum):
    """Classified status of a native OCI call."""

    SUCCESS = 0
    SUCCESS_WITH_INFO = 1
    ERROR = -1
    NO_DATA = 100
    INVALID_HANDLE = -2

    @property
    def is_success(self) -> bool:
        """True for SUCCESS and SUCCESS_WITH_INFO."""
        return self in (ReturnCode.SUCCESS, ReturnCode.SUCCESS_WITH_INFO)


class HandleKind(enum.Enum):
    """The OCI_HTYPE_* categories of native handles."""

    ENV = 1
    ERROR = 2
    SVCCTX = 3
    STMT = 4
    BIND = 5
    DEFINE = 6
    DESCRIBE = 7
    SERVER = 8
    SESSION = 9
    AUTHINFO = 10
    CPOOL = 11
    SPOOL = 12
    TRANS = 13
    COMPLEXOBJECT = 14


class Mode(enum.Enum):
    """Environment and pool creation modes."""

    DEFAULT = 0
    THREADED = 1


_RETURN_CODES = {code.value: code for code in ReturnCode}
_HANDLE_KINDS = {kind.value: kind for kind in HandleKind}


def classify(raw: int) -> ReturnCode:
    """Converts a native status integer into a ReturnCode.

    Raises:
        UnmappedNativeCodeError: If raw is not one of the known statuses.
    """
    try:
        return _RETURN_CODES[raw]
    except KeyError:
        logger.critical("Unmapped OCI return code %r", raw)
        raise UnmappedNativeCodeError("return code", raw) from None


def to_native(kind: HandleKind) -> int:
    """Returns the OCI_HTYPE_* integer for a handle kind."""
    return kind.value


def from_native(code: int) -> HandleKind:
    """Returns the handle kind for an OCI_HTYPE_* integer.

    Raises:
        UnmappedNativeCodeError: If code is not a known handle type.
    """
    try:
        return _HANDLE_KINDS[code]
    except KeyError:
        logger.critical("Unmapped OCI handle type %r", code)
        raise UnmappedNativeCodeError("handle type", code) from None


def to_bytes(s: str, encoding: str = DEFAULT_ENCODING) -> bytes:
    """Encodes a string for a native call taking an explicit length.

    The call surface passes len() of the result as the length, so an empty
    string becomes a zero-length buffer.
    """
    try:
        encoded = s.encode(encoding)
    except UnicodeError as e:
        logger.error("Failed to encode string for OCI interop: %s", e)
        raise
    return encoded


def decode_buffer(raw: bytes, encoding: str = DEFAULT_ENCODING) -> str:
    """Decodes native text up to its first NUL, replacing bad bytes."""
    end = raw.find(b"\0")
    if end != -1:
        raw = raw[:end]
    return raw.decode(encoding, errors="replace")


class NativeText:
    """A text buffer allocated by the native library and read by us.

    Holds the out-parameters of a call that hands back a pointer and a
    length (such as the pool name of OCIConnectionPoolCreate). The text is
    read once with its explicit length; release() then drops the native
    pointer so it cannot be read again. The storage itself belongs to the
    handle the call was made against and is reclaimed when that handle is
    freed.
    """

    def __init__(self) -> None:
        self.pointer = ctypes.c_void_p()
        self.length = ctypes.c_int32(0)
        self._is_released: bool = False

    def __enter__(self) -> "NativeText":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_value: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> None:
        self.release()

    @property
    def released(self) -> bool:
        return self._is_released

    def decode(self, encoding: str = DEFAULT_ENCODING) -> str:
        """Reads exactly `length` bytes from the native pointer."""
        if self._is_released:
            raise ValueError("NativeText has already been released")
        if not self.pointer.value or self.length.value <= 0:
            return ""
        raw = ctypes.string_at(self.pointer.value, self.length.value)
        return decode_buffer(raw, encoding)

    def release(self) -> None:
        """Drops the native pointer. Safe to call more than once.

        Nothing is freed here: the pool name returned by
        OCIConnectionPoolCreate lives in memory owned by the pool handle,
        and OCIHandleFree reclaims it. Freeing it from Python would be a
        double free once the pool handle is released.
        """
        if self._is_released:
            return
        self._is_released = True
        self.pointer.value = None
        self.length.value = 0
