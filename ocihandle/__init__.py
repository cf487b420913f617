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

"""Handle lifecycle and error translation layer for the OCI client library."""
import logging
from typing import Final

from ocihandle.environment import Environment, new_environment
from ocihandle.error_handle import (
    DiagnosticRecord,
    ErrorHandle,
    get_error_message,
)
from ocihandle.handle import AbstractHandle, ChildHandle, allocate, release
from ocihandle.internal.errors import (
    HandleClosedError,
    OCIError,
    OCILibError,
    ThreadingModeError,
    UnmappedNativeCodeError,
)
from ocihandle.internal.types import (
    MAX_ERROR_MESSAGE_SIZE,
    HandleKind,
    Mode,
    ReturnCode,
    classify,
    from_native,
    to_native,
)
from ocihandle.pool import PoolHandle, create_connection_pool

__version__: Final[str] = "0.1.0"

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


def new_error_handle(env: Environment) -> ErrorHandle:
    """Allocates an error handle under env."""
    return env.new_error_handle()


def new_pool_handle(env: Environment) -> PoolHandle:
    """Allocates a connection pool handle under env."""
    return env.new_pool_handle()


__all__: list[str] = [
    "MAX_ERROR_MESSAGE_SIZE",
    "AbstractHandle",
    "ChildHandle",
    "DiagnosticRecord",
    "Environment",
    "ErrorHandle",
    "HandleClosedError",
    "HandleKind",
    "Mode",
    "OCIError",
    "OCILibError",
    "PoolHandle",
    "ReturnCode",
    "ThreadingModeError",
    "UnmappedNativeCodeError",
    "allocate",
    "classify",
    "create_connection_pool",
    "from_native",
    "get_error_message",
    "new_environment",
    "new_error_handle",
    "new_pool_handle",
    "release",
    "to_native",
]
