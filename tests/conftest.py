# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from __future__ import annotations

import io
import os
from collections.abc import Iterator
from pathlib import Path

import pytest

SAMPLE_TEXT = "This is a test."


@pytest.fixture
def sample_file(tmp_path: Path) -> Path:
    """Return a file containing ``SAMPLE_TEXT``."""
    path = tmp_path / "test.txt"
    _ = path.write_bytes(SAMPLE_TEXT.encode())
    return path


@pytest.fixture
def pipe_reader() -> Iterator[io.BufferedReader]:
    """Return the read end of a pipe preloaded with ``SAMPLE_TEXT``."""
    read_fd, write_fd = os.pipe()
    _ = os.write(write_fd, SAMPLE_TEXT.encode())
    os.close(write_fd)
    reader = os.fdopen(read_fd, "rb")
    try:
        yield reader
    finally:
        if not reader.closed:
            reader.close()
