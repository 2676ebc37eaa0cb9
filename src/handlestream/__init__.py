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

"""Explicit-error wrapper around open byte-stream handles.

Example usage::

    from handlestream import Stream, UnreadableError

    with Stream.from_path("report.txt", "w+") as stream:
        stream.write("Test.")
        stream.rewind()
        assert str(stream) == "Test."

    stream = Stream.from_content("This is a test.")
    stream.seek(5)
    stream.rewind()
    assert stream.tell() == 0
"""

from __future__ import annotations

from ._metadata import StreamMetadata
from ._modes import SeekOrigin
from ._stream import Stream
from .config import ConfigError, StreamConfig, load_config
from .errors import (
    InvalidResourceError,
    StreamError,
    UnreadableError,
    UnseekableError,
    UnwritableError,
)
from .logging import configure_logging, get_logger

__all__ = [
    "ConfigError",
    "InvalidResourceError",
    "SeekOrigin",
    "Stream",
    "StreamConfig",
    "StreamError",
    "StreamMetadata",
    "UnreadableError",
    "UnseekableError",
    "UnwritableError",
    "configure_logging",
    "get_logger",
    "load_config",
]
