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

"""Internal module for the ocihandle package."""
from ocihandle.internal.errors import (
    HandleClosedError,
    OCIError,
    OCILibError,
    ThreadingModeError,
    UnmappedNativeCodeError,
)
from ocihandle.internal.ocilib import OCILib
from ocihandle.internal.ocilib_protocol import OCILibProtocol
from ocihandle.internal.types import (
    MAX_ERROR_MESSAGE_SIZE,
    UB4_MAX,
    HandleKind,
    Mode,
    NativeText,
    ReturnCode,
    classify,
    decode_buffer,
    from_native,
    to_bytes,
    to_native,
)

__all__ = [
    "MAX_ERROR_MESSAGE_SIZE",
    "UB4_MAX",
    "HandleClosedError",
    "HandleKind",
    "Mode",
    "NativeText",
    "OCIError",
    "OCILib",
    "OCILibError",
    "OCILibProtocol",
    "ReturnCode",
    "ThreadingModeError",
    "UnmappedNativeCodeError",
    "classify",
    "decode_buffer",
    "from_native",
    "to_bytes",
    "to_native",
]
