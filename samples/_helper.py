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
import logging
import os

DEFAULT_DATA_SOURCE = os.environ.get("OCIHANDLE_SAMPLE_DSN", "")


def setup_sample_env():
    logging.basicConfig(level=logging.INFO)
    if not (
        os.environ.get("OCIHANDLE_LIB_PATH") or os.environ.get("ORACLE_HOME")
    ):
        print(
            "Neither OCIHANDLE_LIB_PATH nor ORACLE_HOME is set; "
            "falling back to the system library search path"
        )
