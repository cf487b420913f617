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
"""Shared fixtures for the unit tests."""
import itertools
from unittest.mock import Mock

import pytest

from ocihandle import Environment, Mode  # type: ignore
from ocihandle.internal import OCILibProtocol  # type: ignore

from ._helper import ENV_TOKEN


@pytest.fixture
def mock_ocilib():
    """A mock OCI library where every call succeeds."""
    lib = Mock(spec=OCILibProtocol)
    tokens = itertools.count(0x2000, 0x100)
    lib.env_create.return_value = (0, ENV_TOKEN)
    lib.handle_alloc.side_effect = lambda parent, kind: (0, next(tokens))
    lib.handle_free.return_value = 0
    lib.error_get.return_value = (100, 0)
    lib.connection_pool_create.return_value = 0
    return lib


@pytest.fixture
def env(mock_ocilib):
    """A THREADED environment on the mock library."""
    environment = Environment(mock_ocilib, ENV_TOKEN, Mode.THREADED)
    yield environment
    environment.close()
