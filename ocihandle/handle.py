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
"""Owner objects for native OCI handles."""

from abc import ABC, abstractmethod
import logging
import threading
from typing import (
    TYPE_CHECKING,
    Callable,
    Dict,
    Optional,
    Type,
    TypeVar,
)
import warnings

from .internal.errors import HandleClosedError, OCILibError
from .internal.ocilib_protocol import OCILibProtocol
from .internal.types import HandleKind, ReturnCode, classify, to_native

if TYPE_CHECKING:
    from .environment import Environment

logger = logging.getLogger(__name__)

_HANDLE_CLASSES: Dict[HandleKind, Type["ChildHandle"]] = {}

_T = TypeVar("_T", bound=Type["ChildHandle"])


class AbstractHandle(ABC):
    """
    Base class for every object owning a native OCI handle.

    Implements the Context Manager protocol (for 'with' statements)
    so the handle is freed exactly once when its scope ends.
    """

    def __init__(
        self,
        ocilib: OCILibProtocol,
        token: int,
        kind: HandleKind,
        status: ReturnCode = ReturnCode.SUCCESS,
    ) -> None:
        """
        Initializes the AbstractHandle.

        Args:
            ocilib: The OCI library instance.
            token: The native address of the handle.
            kind: The handle type it was allocated as.
            status: The classified status of the allocating call.
        """
        self._ocilib: OCILibProtocol = ocilib
        self._token: int = token
        self._kind: HandleKind = kind
        self._status: ReturnCode = status
        # Held for the whole release so a second closer waits and then
        # finds the handle disposed.
        self._lock = threading.RLock()
        self._is_disposed: bool = False

    @property
    def ocilib(self) -> OCILibProtocol:
        """Returns the associated OCI library instance."""
        return self._ocilib

    @property
    def token(self) -> int:
        """Returns the native handle address."""
        return self._token

    @property
    def kind(self) -> HandleKind:
        return self._kind

    @property
    def status(self) -> ReturnCode:
        """SUCCESS, or SUCCESS_WITH_INFO if diagnostics are available."""
        return self._status

    @property
    def closed(self) -> bool:
        """Returns True if the handle has been released."""
        return self._is_disposed

    def _check_closed(self) -> None:
        """
        Raises:
            HandleClosedError: If the handle has already been released.
        """
        if self._is_disposed:
            raise HandleClosedError(
                f"{self.__class__.__name__} has already been released."
            )

    def __repr__(self) -> str:
        state = "closed" if self._is_disposed else "open"
        return (
            f"<{self.__class__.__name__} {self._kind.name} "
            f"token={self._token:#x} {state}>"
        )

    # -------------------------------------------------------------------------
    # Synchronous Disposal (Context Manager)
    # -------------------------------------------------------------------------
    def close(self) -> None:
        """
        Releases the native handle. Calling it again does nothing.
        """
        self._dispose()

    def __enter__(self) -> "AbstractHandle":
        """Enters the runtime context related to this handle."""
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[Exception],
        exc_tb: Optional[object],
    ) -> None:
        """Exits the runtime context and releases the handle."""
        self.close()

    def _dispose(self) -> None:
        with self._lock:
            if self._is_disposed:
                return
            self._is_disposed = True
            if self._token:
                self._release_native()

    @abstractmethod
    def _release_native(self) -> None:
        """
        Frees the underlying native handle.

        Must be implemented by concrete subclasses.
        """
        pass

    # -------------------------------------------------------------------------
    # Finalizer
    # -------------------------------------------------------------------------
    def __del__(self) -> None:
        """
        Finalizer that releases the handle if it was not explicitly closed.
        """
        if not getattr(self, "_is_disposed", True):
            warnings.warn(
                f"Unclosed {self.__class__.__name__} "
                f"({self._kind.name}, token {self._token:#x}). "
                "Use 'with' to manage handles.",
                ResourceWarning,
                stacklevel=2,
            )
            self._dispose()


def release(
    ocilib: OCILibProtocol, token: int, kind: HandleKind
) -> Optional[ReturnCode]:
    """Frees a native handle with OCIHandleFree.

    Release runs while a scope is being torn down, so a failure is logged
    and discarded instead of raised. An unmapped status still raises
    UnmappedNativeCodeError.

    Returns:
        Optional[ReturnCode]: The classified status, or None if the native
        call itself raised.
    """
    logger.debug("Freeing %s handle %#x", kind.name, token)
    try:
        raw = ocilib.handle_free(token, to_native(kind))
    except Exception as e:
        logger.exception(
            "Unexpected error freeing %s handle %#x: %s", kind.name, token, e
        )
        return None

    status = classify(raw)
    if status is not ReturnCode.SUCCESS:
        logger.error(
            "Unable to free %s handle %#x: %s", kind.name, token, status.name
        )
    return status


class ChildHandle(AbstractHandle):
    """A handle allocated with OCIHandleAlloc under an environment.

    Holds a strong reference to its environment so the environment cannot
    be finalized while the child is alive. Shares the environment's lock,
    so it is never freed concurrently with its environment.
    """

    def __init__(
        self,
        environment: "Environment",
        token: int,
        kind: HandleKind,
        status: ReturnCode = ReturnCode.SUCCESS,
    ) -> None:
        super().__init__(environment.ocilib, token, kind, status)
        self._environment = environment
        self._lock = environment._lock

    @property
    def environment(self) -> "Environment":
        """Returns the environment this handle was allocated under."""
        return self._environment

    def _release_native(self) -> None:
        try:
            release(self.ocilib, self.token, self.kind)
        finally:
            self._environment._forget(self)


def handle_class(kind: HandleKind) -> Callable[[_T], _T]:
    """Registers the ChildHandle subclass allocate() builds for kind."""

    def register(cls: _T) -> _T:
        _HANDLE_CLASSES[kind] = cls
        return cls

    return register


def allocate(environment: "Environment", kind: HandleKind) -> ChildHandle:
    """Allocates a handle of the given kind under an environment.

    Args:
        environment: The open parent environment.
        kind: Any handle kind except HandleKind.ENV.

    Returns:
        ChildHandle: The owner object registered for kind.

    Raises:
        OCILibError: If OCIHandleAlloc does not succeed.
        HandleClosedError: If the environment has been released.
        ThreadingModeError: If a DEFAULT mode environment is used from a
            thread other than the one that created it.
    """
    if kind is HandleKind.ENV:
        raise ValueError(
            "Environment handles are created by Environment.create"
        )
    # Closing the environment takes the same lock, so it either rejects
    # this allocation or releases the new child before itself.
    with environment._lock:
        environment._check_usable()
        handle = _allocate_locked(environment, kind)
    logger.debug("Allocated %s handle %#x", kind.name, handle.token)
    return handle


def _allocate_locked(
    environment: "Environment", kind: HandleKind
) -> ChildHandle:
    logger.debug(
        "Allocating %s handle under environment %#x",
        kind.name,
        environment.token,
    )
    try:
        raw, token = environment.ocilib.handle_alloc(
            environment.token, to_native(kind)
        )
    except Exception as e:
        logger.exception("Unexpected error allocating %s handle", kind.name)
        raise OCILibError(f"Unexpected error: {e}") from e

    status = classify(raw)
    if not status.is_success:
        logger.error(
            "OCIHandleAlloc failed for %s handle: %s", kind.name, status.name
        )
        raise OCILibError(f"OCIHandleAlloc failed for {kind.name}", status)
    if not token:
        logger.error("OCIHandleAlloc returned a NULL %s handle", kind.name)
        raise OCILibError(
            f"OCIHandleAlloc returned a NULL {kind.name} handle",
            ReturnCode.INVALID_HANDLE,
        )
    if status is ReturnCode.SUCCESS_WITH_INFO:
        logger.warning(
            "OCIHandleAlloc for %s handle succeeded with info", kind.name
        )

    handle_cls = _HANDLE_CLASSES.get(kind, ChildHandle)
    handle = handle_cls(environment, token, kind, status)
    environment._adopt(handle)
    return handle
