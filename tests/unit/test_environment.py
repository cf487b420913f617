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
"""Unit tests for Environment behavior."""
import logging
import threading
from unittest.mock import call, patch

import pytest

from ocihandle import (  # type: ignore
    Environment,
    HandleClosedError,
    HandleKind,
    Mode,
    OCILibError,
    ReturnCode,
    ThreadingModeError,
    UnmappedNativeCodeError,
    new_environment,
    new_error_handle,
    new_pool_handle,
)

from ._helper import ENV_TOKEN

# -----------------------------------------------------------------------------
# Fixtures & Helpers
# -----------------------------------------------------------------------------


@pytest.fixture
def mock_ocilib_class(mock_ocilib):
    """
    Patches the OCILib class in the 'environment' module namespace so that
    constructing it returns the mock library.
    """
    with patch("ocihandle.environment.OCILib") as MockClass:
        MockClass.return_value = mock_ocilib
        yield MockClass


def run_in_thread(target):
    """Runs target in another thread and returns what it raised, if any."""
    outcome = {}

    def runner():
        try:
            outcome["result"] = target()
        except Exception as e:  # pylint: disable=broad-except
            outcome["error"] = e

    thread = threading.Thread(target=runner)
    thread.start()
    thread.join()
    return outcome


class TestEnvironmentCreate:
    """Tests for Environment.create."""

    def test_create_threaded(self, mock_ocilib_class, mock_ocilib):
        env = Environment.create(Mode.THREADED)

        mock_ocilib.env_create.assert_called_once_with(1)
        assert env.token == ENV_TOKEN
        assert env.kind is HandleKind.ENV
        assert env.mode is Mode.THREADED
        assert env.threaded
        assert env.status is ReturnCode.SUCCESS

        env.close()
        mock_ocilib.handle_free.assert_called_once_with(ENV_TOKEN, 1)
        assert env.closed

    def test_new_environment_default(self, mock_ocilib_class, mock_ocilib):
        with new_environment() as env:
            assert env.mode is Mode.DEFAULT
            assert env.encoding == "utf-8"
        mock_ocilib.env_create.assert_called_once_with(0)

    def test_create_failure(self, mock_ocilib_class, mock_ocilib):
        mock_ocilib.env_create.return_value = (-1, 0)

        with pytest.raises(OCILibError) as exc_info:
            Environment.create(Mode.THREADED)

        assert exc_info.value.return_code is ReturnCode.ERROR
        mock_ocilib.handle_free.assert_not_called()

    def test_create_null_handle(self, mock_ocilib_class, mock_ocilib):
        mock_ocilib.env_create.return_value = (0, 0)

        with pytest.raises(OCILibError) as exc_info:
            Environment.create()

        assert exc_info.value.return_code is ReturnCode.INVALID_HANDLE

    def test_create_success_with_info(self, mock_ocilib_class, mock_ocilib):
        mock_ocilib.env_create.return_value = (1, ENV_TOKEN)

        with Environment.create() as env:
            assert env.status is ReturnCode.SUCCESS_WITH_INFO

    def test_create_unmapped_status(self, mock_ocilib_class, mock_ocilib):
        mock_ocilib.env_create.return_value = (3, ENV_TOKEN)

        with pytest.raises(UnmappedNativeCodeError):
            Environment.create()

    def test_library_load_error_propagates(self, mock_ocilib_class):
        mock_ocilib_class.side_effect = OCILibError("Could not locate")

        with pytest.raises(OCILibError, match="Could not locate"):
            Environment.create()

    def test_unexpected_error_is_wrapped(self, mock_ocilib_class, mock_ocilib):
        mock_ocilib.env_create.side_effect = TypeError("Internal type error")

        with pytest.raises(OCILibError) as exc_info:
            Environment.create()

        assert "Unexpected error: Internal type error" in str(exc_info.value)

    def test_release_failure_is_not_raised(
        self, mock_ocilib_class, mock_ocilib, caplog
    ):
        mock_ocilib.handle_free.return_value = -1
        env = Environment.create()

        with caplog.at_level(logging.ERROR):
            env.close()

        assert env.closed
        assert "Unable to free ENV handle" in caplog.text


class TestEnvironmentOwnership:
    """Tests for the parent/child release ordering."""

    def test_new_handles(self, env, mock_ocilib):
        error_handle = new_error_handle(env)
        pool_handle = new_pool_handle(env)

        assert error_handle.kind is HandleKind.ERROR
        assert pool_handle.kind is HandleKind.CPOOL
        assert env.live_handles() == [error_handle, pool_handle]
        assert mock_ocilib.handle_alloc.call_args_list == [
            call(ENV_TOKEN, 2),
            call(ENV_TOKEN, 11),
        ]

    def test_close_releases_children_first(self, env, mock_ocilib, caplog):
        error_handle = env.new_error_handle()
        pool_handle = env.new_pool_handle()

        with caplog.at_level(logging.WARNING):
            env.close()

        assert error_handle.closed
        assert pool_handle.closed
        assert mock_ocilib.handle_free.call_args_list == [
            call(pool_handle.token, 11),
            call(error_handle.token, 2),
            call(ENV_TOKEN, 1),
        ]
        assert "still open at environment close" in caplog.text

    def test_nested_scopes(self, env, mock_ocilib):
        with env.new_error_handle() as error_handle:
            with env.new_pool_handle() as pool_handle:
                pass
            assert env.live_handles() == [error_handle]

        env.close()
        assert mock_ocilib.handle_free.call_args_list == [
            call(pool_handle.token, 11),
            call(error_handle.token, 2),
            call(ENV_TOKEN, 1),
        ]

    def test_closed_children_not_freed_twice(self, env, mock_ocilib):
        error_handle = env.new_error_handle()
        error_handle.close()
        env.close()
        error_handle.close()

        assert mock_ocilib.handle_free.call_count == 2

    def test_child_keeps_environment_alive(self, mock_ocilib):
        env = Environment(mock_ocilib, ENV_TOKEN, Mode.THREADED)
        error_handle = env.new_error_handle()
        del env

        assert error_handle.environment.token == ENV_TOKEN
        mock_ocilib.handle_free.assert_not_called()
        error_handle.environment.close()


class TestEnvironmentThreading:
    """Tests for the THREADED mode precondition."""

    def test_default_mode_rejects_other_threads(self, mock_ocilib):
        with Environment(mock_ocilib, ENV_TOKEN, Mode.DEFAULT) as env:
            outcome = run_in_thread(env.new_error_handle)

            assert isinstance(outcome.get("error"), ThreadingModeError)
            mock_ocilib.handle_alloc.assert_not_called()

    def test_default_mode_allows_owner_thread(self, mock_ocilib):
        with Environment(mock_ocilib, ENV_TOKEN, Mode.DEFAULT) as env:
            with env.new_error_handle() as error_handle:
                assert not error_handle.closed

    def test_threaded_mode_allows_other_threads(self, env):
        outcome = run_in_thread(env.new_error_handle)

        assert "error" not in outcome
        error_handle = outcome["result"]
        assert error_handle.environment is env
        error_handle.close()

    def test_threaded_mode_many_threads(self, env):
        results = []
        lock = threading.Lock()

        def worker():
            handle = env.new_error_handle()
            with lock:
                results.append(handle)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(results) == 8
        assert len({h.token for h in results}) == 8
        assert len(env.live_handles()) == 8


class TestConcurrentRelease:
    """Tests for release racing other operations in THREADED mode."""

    @staticmethod
    def freed_tokens(mock_ocilib):
        return [c.args[0] for c in mock_ocilib.handle_free.call_args_list]

    @staticmethod
    def block_free_of(mock_ocilib, token, entered, proceed):
        def handle_free(freed, kind_code):
            if freed == token:
                entered.set()
                proceed.wait(5)
            return 0

        mock_ocilib.handle_free.side_effect = handle_free

    def test_concurrent_close_frees_once(self, env, mock_ocilib):
        error_handle = env.new_error_handle()
        entered, proceed = threading.Event(), threading.Event()
        self.block_free_of(mock_ocilib, error_handle.token, entered, proceed)

        first = threading.Thread(target=error_handle.close)
        first.start()
        assert entered.wait(5)
        second = threading.Thread(target=error_handle.close)
        second.start()
        second.join(0.1)
        proceed.set()
        first.join(5)
        second.join(5)

        assert error_handle.closed
        assert self.freed_tokens(mock_ocilib) == [error_handle.token]

    def test_environment_close_waits_for_child_release(
        self, env, mock_ocilib
    ):
        error_handle = env.new_error_handle()
        entered, proceed = threading.Event(), threading.Event()
        self.block_free_of(mock_ocilib, error_handle.token, entered, proceed)

        child_closer = threading.Thread(target=error_handle.close)
        child_closer.start()
        assert entered.wait(5)
        env_closer = threading.Thread(target=env.close)
        env_closer.start()
        env_closer.join(0.1)

        # The environment must not be freed under a child still releasing.
        assert self.freed_tokens(mock_ocilib) == [error_handle.token]
        proceed.set()
        child_closer.join(5)
        env_closer.join(5)

        assert env.closed
        assert self.freed_tokens(mock_ocilib) == [
            error_handle.token,
            ENV_TOKEN,
        ]

    def test_environment_close_during_allocation(self, env, mock_ocilib):
        entered, proceed = threading.Event(), threading.Event()

        def handle_alloc(parent, kind_code):
            entered.set()
            proceed.wait(5)
            return 0, 0x2000

        mock_ocilib.handle_alloc.side_effect = handle_alloc
        outcome = {}
        allocator = threading.Thread(
            target=lambda: outcome.update(handle=env.new_error_handle())
        )
        allocator.start()
        assert entered.wait(5)
        env_closer = threading.Thread(target=env.close)
        env_closer.start()
        env_closer.join(0.1)

        assert env_closer.is_alive()
        assert mock_ocilib.handle_free.call_count == 0
        proceed.set()
        allocator.join(5)
        env_closer.join(5)

        assert outcome["handle"].closed
        assert self.freed_tokens(mock_ocilib) == [0x2000, ENV_TOKEN]

    def test_allocation_after_close_is_rejected(self, env, mock_ocilib):
        env.close()

        outcome = run_in_thread(env.new_error_handle)

        assert isinstance(outcome.get("error"), HandleClosedError)
        mock_ocilib.handle_alloc.assert_not_called()
