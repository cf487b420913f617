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
"""Protocol defining the expected interface for the OCI library."""
import ctypes
from typing import Protocol, Tuple, runtime_checkable

from .types import NativeText


@runtime_checkable
class OCILibProtocol(Protocol):
    """
    Protocol defining the expected interface for the OCI library
    dependency.
    """

    def env_create(
        self, mode: int, charset: int = 0, ncharset: int = 0
    ) -> Tuple[int, int]:
        """Calls the OCIEnvNlsCreate function from the shared library."""
        ...

    def handle_alloc(self, parent: int, kind_code: int) -> Tuple[int, int]:
        """Calls the OCIHandleAlloc function from the shared library."""
        ...

    def handle_free(self, handle: int, kind_code: int) -> int:
        """Calls the OCIHandleFree function from the shared library."""
        ...

    def error_get(
        self,
        error_handle: int,
        record_number: int,
        buffer: ctypes.Array,
        kind_code: int,
    ) -> Tuple[int, int]:
        """Calls the OCIErrorGet function from the shared library."""
        ...

    def connection_pool_create(
        self,
        env_handle: int,
        error_handle: int,
        pool_handle: int,
        pool_name: NativeText,
        data_source: bytes,
        min_connections: int,
        max_connections: int,
        increment: int,
        username: bytes,
        password: bytes,
        mode: int,
    ) -> int:
        """Calls the OCIConnectionPoolCreate function from the shared
        library."""
        ...
