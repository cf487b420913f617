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
"""Module for the root OCI environment handle."""
import itertools
import logging
import threading
from typing import TYPE_CHECKING, List, Optional
import weakref

from .handle import AbstractHandle, ChildHandle, allocate, release
from .internal.errors import (
    OCILibError,
    ThreadingModeError,
    UnmappedNativeCodeError,
)
from .internal.ocilib import OCILib
from .internal.ocilib_protocol import OCILibProtocol
from .internal.types import (
    DEFAULT_ENCODING,
    HandleKind,
    Mode,
    ReturnCode,
    classify,
)

if TYPE_CHECKING:
    from .error_handle import ErrorHandle
    from .pool import PoolHandle

logger = logging.getLogger(__name__)


class Environment(AbstractHandle):
    """Owns an OCI environment handle and every handle allocated under it.

    The environment must be the outermost scope: closing it first releases
    any child handle that is still open, newest first, and only then frees
    the environment itself.

    An environment created with Mode.DEFAULT may only be used from the
    thread that created it. Use Mode.THREADED when handles descended from
    one environment are used from several threads; the native library's
    behaviour is undefined otherwise.
    """

    def __init__(
        self,
        ocilib: OCILibProtocol,
        token: int,
        mode: Mode = Mode.DEFAULT,
        status: ReturnCode = ReturnCode.SUCCESS,
        encoding: str = DEFAULT_ENCODING,
    ) -> None:
        super().__init__(ocilib, token, HandleKind.ENV, status)
        self._mode = mode
        self._encoding = encoding
        self._owner_thread = threading.get_ident()
        self._children: "weakref.WeakValueDictionary[int, ChildHandle]" = (
            weakref.WeakValueDictionary()
        )
        self._child_keys: "weakref.WeakKeyDictionary[ChildHandle, int]" = (
            weakref.WeakKeyDictionary()
        )
        self._sequence = itertools.count()

    @classmethod
    def create(
        cls, mode: Mode = Mode.DEFAULT, encoding: str = DEFAULT_ENCODING
    ) -> "Environment":
        """Creates a new environment with OCIEnvNlsCreate.

        Args:
            mode (Mode): Mode.THREADED if any handle descended from this
                environment will be used from more than one thread.
            encoding (str): Codec used for text passed to and read from the
                library.

        Returns:
            Environment: A new Environment object.

        Raises:
            OCILibError: If the library cannot be loaded or the call fails.
        """
        logger.debug("Creating environment in %s mode", mode.name)
        try:
            lib = OCILib()
            raw, token = lib.env_create(mode.value)
        except (OCILibError, UnmappedNativeCodeError):
            logger.exception("Failed to create environment")
            raise
        except Exception as e:
            logger.exception("Unexpected error interacting with OCI library")
            raise OCILibError(f"Unexpected error: {e}") from e

        status = classify(raw)
        if not status.is_success or not token:
            logger.error("OCIEnvNlsCreate failed: %s", status.name)
            raise OCILibError(
                "Unable to acquire OCI environment handle",
                status if not status.is_success else ReturnCode.INVALID_HANDLE,
            )
        if status is ReturnCode.SUCCESS_WITH_INFO:
            logger.warning("OCIEnvNlsCreate succeeded with info")

        env = cls(lib, token, mode, status, encoding)
        logger.debug("Environment created with handle %#x", token)
        return env

    @property
    def mode(self) -> Mode:
        return self._mode

    @property
    def threaded(self) -> bool:
        return self._mode is Mode.THREADED

    @property
    def encoding(self) -> str:
        return self._encoding

    def _check_thread(self) -> None:
        """
        Raises:
            ThreadingModeError: If this is a DEFAULT mode environment and the
                caller is not the thread that created it.
        """
        if self.threaded:
            return
        if threading.get_ident() != self._owner_thread:
            raise ThreadingModeError(
                "Environment was created in DEFAULT mode and cannot be used "
                "from another thread; create it with Mode.THREADED."
            )

    def _check_usable(self) -> None:
        self._check_closed()
        self._check_thread()

    def _adopt(self, child: ChildHandle) -> None:
        with self._lock:
            key = next(self._sequence)
            self._children[key] = child
            self._child_keys[child] = key

    def _forget(self, child: ChildHandle) -> None:
        with self._lock:
            key = self._child_keys.pop(child, None)
            if key is not None:
                self._children.pop(key, None)

    def live_handles(self) -> List[ChildHandle]:
        """Returns the open child handles, oldest first."""
        with self._lock:
            return [h for h in self._children.values() if not h.closed]

    def allocate(self, kind: HandleKind) -> ChildHandle:
        """Allocates a child handle of any kind under this environment."""
        return allocate(self, kind)

    def new_error_handle(self) -> "ErrorHandle":
        """Allocates an error handle under this environment."""
        return allocate(self, HandleKind.ERROR)  # type: ignore[return-value]

    def new_pool_handle(self) -> "PoolHandle":
        """Allocates an unstarted connection pool handle."""
        return allocate(self, HandleKind.CPOOL)  # type: ignore[return-value]

    def _release_native(self) -> None:
        for child in reversed(self.live_handles()):
            logger.warning(
                "Releasing %r still open at environment close", child
            )
            child.close()
        release(self.ocilib, self.token, HandleKind.ENV)


def new_environment(
    mode: Mode = Mode.DEFAULT, encoding: Optional[str] = None
) -> Environment:
    """Creates a new environment. See Environment.create."""
    return Environment.create(mode, encoding or DEFAULT_ENCODING)
