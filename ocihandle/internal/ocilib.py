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
"""Module for interacting with the OCI client shared library."""

from contextlib import contextmanager
import ctypes
import ctypes.util
from importlib.resources import as_file, files
import logging
import os
from pathlib import Path
import platform
import threading
from typing import ClassVar, Final, Generator, Optional, Tuple, Union

from .errors import OCILibError
from .types import NativeText

logger = logging.getLogger(__name__)

CURRENT_PACKAGE: Final[str] = __package__ or "ocihandle.internal"
LIB_DIR_NAME: Final[str] = "lib"

# Explicit path to the client library, checked before anything else.
LIB_PATH_ENV_VAR: Final[str] = "OCIHANDLE_LIB_PATH"
ORACLE_HOME_ENV_VAR: Final[str] = "ORACLE_HOME"

# OCI scalar types.
sword = ctypes.c_int
ub4 = ctypes.c_uint32
sb4 = ctypes.c_int32
ub2 = ctypes.c_uint16
dvoidp = ctypes.c_void_p
dvoidpp = ctypes.POINTER(ctypes.c_void_p)
oratext = ctypes.c_char_p


@contextmanager
def get_shared_library(
    library_name: str, subdirectory: str = LIB_DIR_NAME
) -> Generator[Path, None, None]:
    """
    Context manager to yield a physical path to a bundled shared library.

    Compatible with Python 3.8+ and Zip/Egg imports.
    """
    try:

        package_root = files(CURRENT_PACKAGE)
        resource_ref = package_root.joinpath(subdirectory, library_name)

        with as_file(resource_ref) as lib_path:
            yield lib_path

    except (ImportError, TypeError) as e:
        raise FileNotFoundError(
            f"Could not resolve resource '{library_name}'"
            f" in '{CURRENT_PACKAGE}'"
        ) from e


class OCILib:
    """
    A Singleton wrapper for the OCI client shared library.

    Every method is a direct call into the library: arguments are
    marshalled, the raw integer status is returned unclassified together
    with any out-parameters.
    """

    _lib_handle: ClassVar[Optional[ctypes.CDLL]] = None
    _instance: ClassVar[Optional["OCILib"]] = None
    _instance_lock: ClassVar[threading.Lock] = threading.Lock()

    def __new__(cls) -> "OCILib":
        with cls._instance_lock:
            if cls._instance is None:
                instance = super(OCILib, cls).__new__(cls)
                instance._initialize()
                cls._instance = instance
        return cls._instance

    def _initialize(self) -> None:
        """
        Internal initialization logic. Called only once by __new__.
        """
        if OCILib._lib_handle is not None:
            return

        self._load_library()

    def _load_library(self) -> None:
        """
        Locates and loads the shared library.

        The lookup order is the OCIHANDLE_LIB_PATH variable, then
        $ORACLE_HOME/lib, then a library bundled in the package, then the
        system loader's search path.
        """
        filename: str = OCILib._get_lib_filename()

        explicit_path = os.environ.get(LIB_PATH_ENV_VAR)
        if explicit_path:
            self._open(Path(explicit_path))
            return

        oracle_home = os.environ.get(ORACLE_HOME_ENV_VAR)
        if oracle_home:
            self._open(Path(oracle_home) / LIB_DIR_NAME / filename)
            return

        try:
            with get_shared_library(filename) as lib_path:
                if lib_path.exists():
                    self._open(lib_path)
                    return
        except FileNotFoundError:
            logger.debug("No bundled client library named %s", filename)

        system_name = ctypes.util.find_library(OCILib._get_lib_search_name())
        if system_name is None:
            logger.critical("OCI client library %s not found", filename)
            raise OCILibError(
                f"Could not locate the OCI client library '{filename}'. "
                f"Set {LIB_PATH_ENV_VAR} or {ORACLE_HOME_ENV_VAR}."
            )
        self._open(system_name)

    def _open(self, lib_path: Union[Path, str]) -> None:
        """Loads the library at lib_path and configures its signatures."""
        # Sanity check: Ensure the file actually exists
        # before handing to ctypes
        if isinstance(lib_path, Path) and not lib_path.exists():
            raise OCILibError(f"Library path does not exist: {lib_path}")

        try:
            # ctypes requires a string path
            OCILib._lib_handle = ctypes.CDLL(str(lib_path))
            self._configure_signatures()

            logger.debug(
                "Successfully loaded shared library: %s", str(lib_path)
            )

        except OCILibError:
            OCILib._lib_handle = None
            raise
        except (OSError, FileNotFoundError) as e:
            logger.critical("Failed to load native library at %s", lib_path)
            OCILib._lib_handle = None
            raise OCILibError(
                f"Could not load native dependency '{lib_path}': {e}"
            ) from e

    @staticmethod
    def _get_lib_filename() -> str:
        """
        Returns the filename of the client library for this OS.
        """
        system_name = platform.system()

        if system_name == "Windows":
            return "oci.dll"
        if system_name == "Darwin":
            return "libclntsh.dylib"
        if system_name == "Linux":
            return "libclntsh.so"
        raise OCILibError(f"Unsupported operating system: {system_name}")

    @staticmethod
    def _get_lib_search_name() -> str:
        """Returns the short name ctypes.util.find_library expects."""
        return "oci" if platform.system() == "Windows" else "clntsh"

    def _configure_signatures(self) -> None:
        """
        Defines the argument and return types for the C functions.
        """
        lib = OCILib._lib_handle
        if lib is None:
            raise OCILibError("Library handle is None during configuration.")

        try:
            # 1. OCIEnvNlsCreate
            # Corresponds to:
            # sword OCIEnvNlsCreate(OCIEnv **envhpp, ub4 mode, void *ctxp,
            #     void *malocfp, void *ralocfp, void *mfreefp,
            #     size_t xtramemsz, void **usrmempp, ub2 charset,
            #     ub2 ncharset);
            lib.OCIEnvNlsCreate.argtypes = [
                dvoidpp,
                ub4,
                dvoidp,
                dvoidp,
                dvoidp,
                dvoidp,
                ctypes.c_size_t,
                dvoidpp,
                ub2,
                ub2,
            ]
            lib.OCIEnvNlsCreate.restype = sword

            # 2. OCIHandleAlloc
            # Corresponds to:
            # sword OCIHandleAlloc(const void *parenth, void **hndlpp,
            #     ub4 type, size_t xtramem_sz, void **usrmempp);
            lib.OCIHandleAlloc.argtypes = [
                dvoidp,
                dvoidpp,
                ub4,
                ctypes.c_size_t,
                dvoidpp,
            ]
            lib.OCIHandleAlloc.restype = sword

            # 3. OCIHandleFree
            # Corresponds to:
            # sword OCIHandleFree(void *hndlp, ub4 type);
            lib.OCIHandleFree.argtypes = [dvoidp, ub4]
            lib.OCIHandleFree.restype = sword

            # 4. OCIErrorGet
            # Corresponds to:
            # sword OCIErrorGet(void *hndlp, ub4 recordno, OraText *sqlstate,
            #     sb4 *errcodep, OraText *bufp, ub4 bufsiz, ub4 type);
            lib.OCIErrorGet.argtypes = [
                dvoidp,
                ub4,
                oratext,
                ctypes.POINTER(sb4),
                ctypes.POINTER(ctypes.c_char),
                ub4,
                ub4,
            ]
            lib.OCIErrorGet.restype = sword

            # 5. OCIConnectionPoolCreate
            # Corresponds to:
            # sword OCIConnectionPoolCreate(OCIEnv *envhp, OCIError *errhp,
            #     OCICPool *poolhp, OraText **poolName, sb4 *poolNameLen,
            #     const OraText *dblink, sb4 dblinkLen, ub4 connMin,
            #     ub4 connMax, ub4 connIncr, const OraText *poolUsername,
            #     sb4 poolUserLen, const OraText *poolPassword,
            #     sb4 poolPassLen, ub4 mode);
            lib.OCIConnectionPoolCreate.argtypes = [
                dvoidp,
                dvoidp,
                dvoidp,
                dvoidpp,
                ctypes.POINTER(sb4),
                oratext,
                sb4,
                ub4,
                ub4,
                ub4,
                oratext,
                sb4,
                oratext,
                sb4,
                ub4,
            ]
            lib.OCIConnectionPoolCreate.restype = sword

        except AttributeError as e:
            raise OCILibError(f"Symbol missing in native library: {e}") from e

    @property
    def lib(self) -> ctypes.CDLL:
        """Returns the loaded shared library handle."""
        if self._lib_handle is None:
            raise OCILibError("OCILib has not been initialized correctly.")
        return self._lib_handle

    def env_create(
        self, mode: int, charset: int = 0, ncharset: int = 0
    ) -> Tuple[int, int]:
        """Calls the OCIEnvNlsCreate function from the shared library.

        Args:
            mode: The OCI_DEFAULT / OCI_THREADED flag.
            charset: The client character set id, 0 for NLS_LANG.
            ncharset: The national character set id, 0 for NLS_NCHAR.

        Returns:
            Tuple[int, int]: The raw status and the environment token.
        """
        envhp = ctypes.c_void_p()
        status = self.lib.OCIEnvNlsCreate(
            ctypes.byref(envhp),
            ub4(mode),
            None,
            None,
            None,
            None,
            ctypes.c_size_t(0),
            None,
            ub2(charset),
            ub2(ncharset),
        )
        return status, envhp.value or 0

    def handle_alloc(self, parent: int, kind_code: int) -> Tuple[int, int]:
        """Calls the OCIHandleAlloc function from the shared library.

        Args:
            parent: The parent (environment) token.
            kind_code: The OCI_HTYPE_* of the handle to allocate.

        Returns:
            Tuple[int, int]: The raw status and the new handle token.
        """
        hndlp = ctypes.c_void_p()
        status = self.lib.OCIHandleAlloc(
            dvoidp(parent),
            ctypes.byref(hndlp),
            ub4(kind_code),
            ctypes.c_size_t(0),
            None,
        )
        return status, hndlp.value or 0

    def handle_free(self, handle: int, kind_code: int) -> int:
        """Calls the OCIHandleFree function from the shared library.

        Args:
            handle: The handle token.
            kind_code: The OCI_HTYPE_* the handle was allocated as.

        Returns:
            int: The raw status.
        """
        return self.lib.OCIHandleFree(dvoidp(handle), ub4(kind_code))

    def error_get(
        self,
        error_handle: int,
        record_number: int,
        buffer: ctypes.Array,
        kind_code: int,
    ) -> Tuple[int, int]:
        """Calls the OCIErrorGet function from the shared library.

        Args:
            error_handle: The error handle token.
            record_number: The diagnostic record to read.
            buffer: A caller-owned char buffer receiving the message.
            kind_code: The OCI_HTYPE_* of error_handle.

        Returns:
            Tuple[int, int]: The raw status and the native error code.
        """
        errcode = sb4(0)
        status = self.lib.OCIErrorGet(
            dvoidp(error_handle),
            ub4(record_number),
            None,
            ctypes.byref(errcode),
            buffer,
            ub4(len(buffer)),
            ub4(kind_code),
        )
        return status, errcode.value

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
        """Calls the OCIConnectionPoolCreate function from the shared library.

        Args:
            env_handle: The environment token.
            error_handle: The error handle token.
            pool_handle: The allocated connection pool handle token.
            pool_name: Receives the native pool name pointer and length.
            data_source: The encoded connect string.
            min_connections: Minimum number of connections.
            max_connections: Maximum number of connections.
            increment: Connections opened each time the pool grows.
            username: The encoded pool user name.
            password: The encoded pool password.
            mode: OCI_DEFAULT or another OCI_CPOOL_* flag.

        Returns:
            int: The raw status.
        """
        return self.lib.OCIConnectionPoolCreate(
            dvoidp(env_handle),
            dvoidp(error_handle),
            dvoidp(pool_handle),
            ctypes.byref(pool_name.pointer),
            ctypes.byref(pool_name.length),
            data_source,
            sb4(len(data_source)),
            ub4(min_connections),
            ub4(max_connections),
            ub4(increment),
            username,
            sb4(len(username)),
            password,
            sb4(len(password)),
            ub4(mode),
        )
