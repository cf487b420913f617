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
"""Module for creating OCI connection pools."""
import logging
from typing import TYPE_CHECKING, Optional

from .handle import ChildHandle, handle_class
from .internal.errors import OCILibError
from .internal.types import (
    HandleKind,
    Mode,
    NativeText,
    UB4_MAX,
    ReturnCode,
    classify,
    to_bytes,
)

if TYPE_CHECKING:
    from .environment import Environment
    from .error_handle import ErrorHandle

logger = logging.getLogger(__name__)


@handle_class(HandleKind.CPOOL)
class PoolHandle(ChildHandle):
    """Wraps an OCI connection pool handle.

    The handle is allocated empty; create() starts the pool on the server
    side and records the name the library assigned to it.
    """

    _name: Optional[str] = None
    _pool_status: Optional[ReturnCode] = None

    @property
    def name(self) -> Optional[str]:
        """The pool name, or None before the pool has been created."""
        return self._name

    @property
    def pool_status(self) -> Optional[ReturnCode]:
        """The classified status of OCIConnectionPoolCreate, if called."""
        return self._pool_status

    def create(
        self,
        error_handle: "ErrorHandle",
        data_source: str,
        min_connections: int,
        max_connections: int,
        increment: int,
        username: str = "",
        password: str = "",
        mode: Mode = Mode.DEFAULT,
    ) -> str:
        """Starts the pool. See create_connection_pool."""
        return create_connection_pool(
            self.environment,
            error_handle,
            self,
            data_source,
            min_connections,
            max_connections,
            increment,
            username,
            password,
            mode,
        )


def _check_bounds(
    min_connections: int, max_connections: int, increment: int
) -> None:
    for label, value in (
        ("min_connections", min_connections),
        ("max_connections", max_connections),
        ("increment", increment),
    ):
        if not 0 <= value <= UB4_MAX:
            raise ValueError(f"{label} out of range: {value}")
    if min_connections > max_connections:
        raise ValueError(
            f"min_connections ({min_connections}) exceeds "
            f"max_connections ({max_connections})"
        )
    if increment < 1:
        raise ValueError("increment must be at least 1")


def create_connection_pool(
    env: "Environment",
    error_handle: "ErrorHandle",
    pool_handle: PoolHandle,
    data_source: str,
    min_connections: int,
    max_connections: int,
    increment: int,
    username: str,
    password: str,
    mode: Mode = Mode.DEFAULT,
) -> str:
    """Creates a connection pool with OCIConnectionPoolCreate.

    The call opens min_connections connections and blocks until they are
    established or the library gives up. Bounds are checked before any
    native call since the library reports bad parameters only as a bare
    status.

    Args:
        env (Environment): The environment all three handles belong to.
        error_handle (ErrorHandle): Receives diagnostics on failure.
        pool_handle (PoolHandle): The allocated, not yet created, pool.
        data_source (str): The connect string, "" for the default database.
        min_connections (int): Connections opened at creation.
        max_connections (int): Upper bound on open connections.
        increment (int): Connections opened each time the pool grows.
        username (str): The pool user, "" for none.
        password (str): The pool password, "" for none.
        mode (Mode): Creation mode.

    Returns:
        str: The name the library assigned to the pool.

    Raises:
        ValueError: If the bounds are inconsistent or the handles do not
            belong to env.
        OCILibError: If the native call does not succeed. Read the reason
            from error_handle.get_message(0).
    """
    _check_bounds(min_connections, max_connections, increment)
    if error_handle.kind is not HandleKind.ERROR:
        raise ValueError(f"Expected an ERROR handle, got {error_handle.kind}")
    if pool_handle.kind is not HandleKind.CPOOL:
        raise ValueError(f"Expected a CPOOL handle, got {pool_handle.kind}")
    env._check_usable()
    error_handle._check_closed()
    pool_handle._check_closed()
    owners = (error_handle.environment, pool_handle.environment)
    if any(owner is not env for owner in owners):
        raise ValueError("Handles were allocated under another environment")
    if pool_handle.name is not None:
        raise ValueError(f"Pool '{pool_handle.name}' has already been created")

    data_source_bytes = to_bytes(data_source, env.encoding)
    username_bytes = to_bytes(username, env.encoding)
    password_bytes = to_bytes(password, env.encoding)

    logger.debug(
        "Creating connection pool on '%s' for user '%s' "
        "(min=%d, max=%d, increment=%d)",
        data_source,
        username,
        min_connections,
        max_connections,
        increment,
    )
    with NativeText() as pool_name:
        try:
            raw = env.ocilib.connection_pool_create(
                env.token,
                error_handle.token,
                pool_handle.token,
                pool_name,
                data_source_bytes,
                min_connections,
                max_connections,
                increment,
                username_bytes,
                password_bytes,
                mode.value,
            )
        except Exception as e:
            logger.exception("Unexpected error creating connection pool")
            raise OCILibError(f"Unexpected error: {e}") from e

        status = classify(raw)
        if not status.is_success:
            logger.error("OCIConnectionPoolCreate failed: %s", status.name)
            raise OCILibError("OCIConnectionPoolCreate failed", status)
        name = pool_name.decode(env.encoding)

    if status is ReturnCode.SUCCESS_WITH_INFO:
        logger.warning("Connection pool '%s' created with info", name)
    pool_handle._name = name
    pool_handle._pool_status = status
    logger.debug("Connection pool created with name '%s'", name)
    return name
