#!/usr/bin/env python

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
from ocihandle import (  # noqa: E402
    Mode,
    OCIError,
    OCILibError,
    create_connection_pool,
    new_environment,
)

from ._helper import DEFAULT_DATA_SOURCE, setup_sample_env


def run_quickstart(data_source, username="", password=""):
    try:
        with new_environment(Mode.THREADED) as env:
            with env.new_error_handle() as error_handle:
                with env.new_pool_handle() as pool_handle:
                    try:
                        name = create_connection_pool(
                            env,
                            error_handle,
                            pool_handle,
                            data_source,
                            1,
                            3,
                            1,
                            username,
                            password,
                        )
                    except OCILibError as e:
                        raise OCILibError.with_diagnostics(
                            error_handle, e.message, e.return_code
                        ) from e
                    print(f"Successfully created pool with name: {name}")
    except OCIError as e:
        print(f"Error creating pool: {e}")
    except Exception as e:
        print(f"An unexpected error occurred: {e}")


if __name__ == "__main__":
    setup_sample_env()
    run_quickstart(DEFAULT_DATA_SOURCE)
