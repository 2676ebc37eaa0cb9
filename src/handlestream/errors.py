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

"""Exception hierarchy for :mod:`handlestream`."""

from __future__ import annotations

from typing import ClassVar


class StreamError(Exception):
    """Base class for all handlestream exceptions.

    Every failure raised by a :class:`~handlestream.Stream` operation derives
    from this class, so callers can catch them with a single handler while
    letting unrelated exceptions propagate.

    Example:
        Catch any stream failure::

            try:
                data = stream.read(1024)
            except StreamError as e:
                logger.error("Stream failed: %s", e)

    Note:
        Leaf classes also inherit from a builtin exception type
        (``ValueError`` or ``OSError``) so generic handlers keep working.
    """

    default_message: ClassVar[str] = "Stream error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message if message is not None else self.default_message)


class InvalidResourceError(StreamError, ValueError):
    """Raised when the stream has no usable resource handle.

    Common causes:
        - The stream was closed or detached
        - The constructor received something that is not an open binary
          stream
        - The resource could not be opened
        - The handle failed to report its position
    """

    default_message = "Invalid stream resource"


class UnreadableError(StreamError, OSError):
    """Raised when reading is not allowed by the access mode or fails."""

    default_message = "Stream resource is not readable"


class UnseekableError(StreamError, OSError):
    """Raised when the resource cannot seek or the seek itself fails."""

    default_message = "Stream resource is not seekable"


class UnwritableError(StreamError, OSError):
    """Raised when writing is not allowed by the access mode or fails."""

    default_message = "Stream resource is not writable"


__all__ = [
    "InvalidResourceError",
    "StreamError",
    "UnreadableError",
    "UnseekableError",
    "UnwritableError",
]
