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

"""Metadata snapshots and size probes for wrapped handles."""

from __future__ import annotations

import io
import os
import stat
import tempfile
from dataclasses import dataclass, fields
from typing import IO, Final, Literal

from ._modes import mode_from_capabilities

__all__ = [
    "METADATA_KEYS",
    "StreamMetadata",
    "WrapperType",
    "collect_metadata",
    "probe_size",
]

type WrapperType = Literal["plainfile", "temp", "memory"]


@dataclass(frozen=True, slots=True)
class StreamMetadata:
    """Facts reported by the resource behind a stream.

    Attributes:
        mode: Access mode string, as supplied at open time or reported by
            the handle.
        seekable: Whether the handle supports random access.
        wrapper_type: ``"plainfile"`` for OS-level files, ``"temp"`` for
            spooled temporary buffers, ``"memory"`` for in-memory buffers,
            ``None`` for anything else.
        stream_type: Class name of the underlying handle.
        uri: File name when the handle was opened from a path.
        blocked: Whether the descriptor is in blocking mode.
        eof: Whether a read has run past the end of the data.
    """

    mode: str
    seekable: bool
    wrapper_type: WrapperType | None
    stream_type: str
    uri: str | None
    blocked: bool = True
    eof: bool = False

    def get(self, key: str) -> object:
        """Return the field named ``key``, or ``None`` if there is none."""
        if key not in METADATA_KEYS:
            return None
        return getattr(self, key)


METADATA_KEYS: Final[frozenset[str]] = frozenset(
    field.name for field in fields(StreamMetadata)
)


def collect_metadata(handle: IO[bytes], *, mode: str | None = None) -> StreamMetadata:
    """Build a metadata snapshot for ``handle``.

    ``mode`` overrides the mode string the handle reports. Handles without a
    ``mode`` attribute (``io.BytesIO`` for example) get one derived from
    their ``readable()`` and ``writable()`` answers.
    """
    resolved_mode = mode if mode is not None else _handle_mode(handle)
    return StreamMetadata(
        mode=resolved_mode,
        seekable=handle.seekable(),
        wrapper_type=_wrapper_type(handle),
        stream_type=type(handle).__name__,
        uri=_handle_uri(handle),
        blocked=_is_blocking(handle),
    )


def probe_size(handle: IO[bytes]) -> int | None:
    """Return the byte length of ``handle``'s resource, or ``None``.

    Regular files report their ``fstat`` size after pending writes are
    flushed. Spooled and in-memory buffers report their current length.
    Pipes, sockets and other non-regular resources have no size.
    """
    if isinstance(handle, io.BytesIO):
        with handle.getbuffer() as view:
            return view.nbytes
    if isinstance(handle, tempfile.SpooledTemporaryFile):
        return _seek_size(handle)

    fd = _fileno(handle)
    if fd is None:
        return _seek_size(handle) if handle.seekable() else None
    try:
        if handle.writable():
            handle.flush()
        info = os.fstat(fd)
    except OSError:
        return None
    if not stat.S_ISREG(info.st_mode):
        return None
    return info.st_size


def _seek_size(handle: IO[bytes]) -> int | None:
    try:
        position = handle.tell()
        end = handle.seek(0, os.SEEK_END)
        _ = handle.seek(position)
    except (OSError, ValueError):
        return None
    return end


def _handle_mode(handle: IO[bytes]) -> str:
    reported = getattr(handle, "mode", None)
    if isinstance(reported, str):
        return reported
    return mode_from_capabilities(
        readable=handle.readable(), writable=handle.writable()
    )


def _wrapper_type(handle: IO[bytes]) -> WrapperType | None:
    if isinstance(handle, tempfile.SpooledTemporaryFile):
        return "temp"
    if isinstance(handle, io.BytesIO):
        return "memory"
    if _fileno(handle) is not None:
        return "plainfile"
    return None


def _handle_uri(handle: IO[bytes]) -> str | None:
    # Descriptors opened without a path report an int name.
    name = getattr(handle, "name", None)
    if isinstance(name, (str, os.PathLike)):
        return os.fsdecode(name)
    return None


def _is_blocking(handle: IO[bytes]) -> bool:
    fd = _fileno(handle)
    if fd is None:
        return True
    try:
        return os.get_blocking(fd)
    except OSError:
        return True


def _fileno(handle: IO[bytes]) -> int | None:
    # fileno() on a spooled buffer forces it onto disk.
    if isinstance(handle, tempfile.SpooledTemporaryFile):
        return None
    try:
        return handle.fileno()
    except (OSError, ValueError):
        return None
