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

"""The :class:`Stream` wrapper around an open byte-stream handle."""

from __future__ import annotations

import io
import os
import tempfile
from collections.abc import Iterator
from dataclasses import replace
from typing import IO, Self, cast, overload

from ._metadata import StreamMetadata, collect_metadata, probe_size
from ._modes import (
    SeekOrigin,
    coerce_whence,
    is_readable_mode,
    is_writable_mode,
    resolve_open_spec,
)
from .config import StreamConfig
from .errors import (
    InvalidResourceError,
    StreamError,
    UnreadableError,
    UnseekableError,
    UnwritableError,
)
from .logging import StructuredLogger, get_logger

__all__ = ["Stream"]

logger: StructuredLogger = get_logger(__name__, context={"component": "stream"})


class Stream:
    """Explicit-error wrapper around an open binary handle.

    A stream owns its handle until :meth:`close` releases it or
    :meth:`detach` hands it back to the caller. Afterwards every operation
    that needs the handle raises :class:`InvalidResourceError`, while the
    capability checks simply answer ``False``.

    Example::

        with Stream.from_path("data.bin", "r+") as stream:
            header = stream.read(16)
            stream.seek(0, SeekOrigin.END)
            stream.write(b"trailer")
    """

    __slots__ = ("_config", "_eof", "_handle", "_metadata", "_mode")

    def __init__(
        self,
        handle: object,
        *,
        mode: str | None = None,
        config: StreamConfig | None = None,
    ) -> None:
        """Wrap ``handle``.

        Args:
            handle: An open binary stream (``io.RawIOBase``,
                ``io.BufferedIOBase`` or another non-text ``io.IOBase``).
            mode: Access mode reported instead of the handle's own.
            config: Chunk size and encoding settings.

        Raises:
            InvalidResourceError: If ``handle`` is not an open binary stream.
        """
        if not _is_open_binary_stream(handle):
            raise InvalidResourceError
        self._handle: IO[bytes] | None = cast(IO[bytes], handle)
        self._mode = mode
        self._config = config if config is not None else StreamConfig()
        self._metadata: StreamMetadata | None = None
        self._eof = False

    @classmethod
    def from_path(
        cls,
        path: str | os.PathLike[str],
        mode: str = "r",
        *,
        config: StreamConfig | None = None,
    ) -> Self:
        """Open ``path`` with an access mode string.

        Supported modes are ``r``, ``w``, ``a``, ``x`` and ``c``, each with an
        optional ``+``, plus ``b``/``t`` flags which are accepted and
        ignored. ``c`` opens for writing without truncating, creating the
        file when missing.

        Raises:
            InvalidResourceError: If the mode is unknown or the open fails.
        """
        try:
            spec = resolve_open_spec(mode)
        except ValueError as error:
            raise InvalidResourceError(str(error)) from error

        def opener(file: str, _flags: int) -> int:
            return os.open(file, spec.flags, 0o666)

        try:
            handle = open(path, spec.open_mode, opener=opener)  # noqa: SIM115
        except OSError as error:
            raise InvalidResourceError(
                f"Unable to open {os.fsdecode(path)!r}: {error.strerror}"
            ) from error

        logger.debug(
            "Opened stream from path.",
            event="stream.opened",
            context={"path": os.fsdecode(path), "mode": mode},
        )
        return cls(handle, mode=mode, config=config)

    @classmethod
    def from_content(
        cls,
        content: str | bytes = "",
        *,
        config: StreamConfig | None = None,
    ) -> Self:
        """Create a read/write stream over a transient buffer.

        The buffer stays in memory until it grows past
        ``config.spool_size`` and then spills to a temporary file. The
        cursor is left at the start.

        Raises:
            UnwritableError: If ``content`` cannot be encoded or buffered.
        """
        resolved = config if config is not None else StreamConfig()
        try:
            data = (
                content.encode(resolved.encoding)
                if isinstance(content, str)
                else content
            )
        except UnicodeEncodeError as error:
            raise UnwritableError(
                f"Content is not encodable as {resolved.encoding}"
            ) from error
        buffer = tempfile.SpooledTemporaryFile(  # noqa: SIM115
            max_size=resolved.spool_size, mode="w+b"
        )
        _ = buffer.write(data)
        _ = buffer.seek(0)

        logger.debug(
            "Opened stream from content.",
            event="stream.opened",
            context={"length": len(data)},
        )
        return cls(buffer, config=config)

    @property
    def detached(self) -> bool:
        """True once the stream has been closed or detached."""
        return self._handle is None

    def __str__(self) -> str:
        """Return the entire contents as text, or ``""`` if unreadable."""
        return self._render().decode(self._config.encoding, errors="replace")

    def __bytes__(self) -> bytes:
        """Return the entire contents, or ``b""`` if unreadable."""
        return self._render()

    def __repr__(self) -> str:
        if self._handle is None:
            return f"{type(self).__name__}(detached)"
        if self._handle.closed:
            return f"{type(self).__name__}(closed)"
        return f"{type(self).__name__}(mode={self._capabilities().mode!r})"

    def __iter__(self) -> Iterator[bytes]:
        """Iterate over chunks of the configured default size."""
        return self.chunks()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        if self._is_live():
            self.close()
        else:
            self._handle = None

    def close(self) -> None:
        """Close the underlying resource.

        The stream is detached even when closing fails, so a second call
        raises :class:`InvalidResourceError`.

        Raises:
            InvalidResourceError: If the stream is detached or its handle was
                closed elsewhere.
            UnwritableError: If pending writes cannot be flushed on close.
        """
        handle = self._release()
        try:
            handle.close()
        except (OSError, ValueError) as error:
            raise UnwritableError from error
        logger.debug("Closed stream.", event="stream.closed")

    def detach(self) -> IO[bytes] | None:
        """Hand the handle back to the caller without closing it.

        Returns ``None`` when the stream is already detached.
        """
        handle, self._handle = self._handle, None
        if handle is not None:
            logger.debug("Detached stream.", event="stream.detached")
        return handle

    def eof(self) -> bool:
        """True if detached or a read has run past the end of the data."""
        if not self._is_live():
            return True
        return self._eof

    def contents(self) -> bytes:
        """Read everything from the cursor to the end.

        Raises:
            InvalidResourceError: If the stream is detached.
            UnreadableError: If the stream is not readable or the read fails.
        """
        handle = self._readable_handle()
        try:
            data = handle.read()
        except (OSError, ValueError) as error:
            raise UnreadableError from error
        self._eof = True
        return data if data is not None else b""

    @overload
    def metadata(self, key: None = None) -> StreamMetadata: ...

    @overload
    def metadata(self, key: str) -> object: ...

    def metadata(self, key: str | None = None) -> object:
        """Return the metadata snapshot, or one field of it.

        Unknown keys yield ``None``.

        Raises:
            InvalidResourceError: If the stream is detached.
        """
        _ = self._live_handle()
        snapshot = replace(self._capabilities(), eof=self._eof)
        if key is None:
            return snapshot
        return snapshot.get(key)

    def size(self) -> int | None:
        """Return the resource length in bytes, or ``None`` if unknown.

        Raises:
            InvalidResourceError: If the stream is detached.
        """
        return probe_size(self._live_handle())

    def is_readable(self) -> bool:
        if not self._is_live():
            return False
        return is_readable_mode(self._capabilities().mode)

    def is_seekable(self) -> bool:
        if not self._is_live():
            return False
        return self._capabilities().seekable

    def is_writable(self) -> bool:
        if not self._is_live():
            return False
        return is_writable_mode(self._capabilities().mode)

    def read(self, length: int) -> bytes:
        """Read up to ``length`` bytes from the cursor.

        Raises:
            ValueError: If ``length`` is negative.
            InvalidResourceError: If the stream is detached.
            UnreadableError: If the stream is not readable or the read fails.
        """
        if length < 0:
            msg = f"length must be non-negative (got {length})"
            raise ValueError(msg)
        handle = self._readable_handle()
        try:
            data = handle.read(length)
        except (OSError, ValueError) as error:
            raise UnreadableError from error
        # Non-blocking handles return None when no data is ready.
        if data is None:
            return b""
        if isinstance(handle, io.RawIOBase):
            # Unbuffered reads may come back short while the writer is alive.
            at_end = length > 0 and not data
        else:
            at_end = len(data) < length
        if at_end:
            self._eof = True
        return data

    def chunks(self, size: int | None = None) -> Iterator[bytes]:
        """Iterate over successive reads of ``size`` bytes until exhausted.

        Raises:
            UnreadableError: If the stream is not readable.
        """
        chunk_size = size if size is not None else self._config.chunk_size
        if chunk_size <= 0:
            msg = f"size must be positive (got {chunk_size})"
            raise ValueError(msg)
        _ = self._readable_handle()
        return self._iter_chunks(chunk_size)

    def _iter_chunks(self, size: int) -> Iterator[bytes]:
        while chunk := self.read(size):
            yield chunk

    def rewind(self) -> None:
        """Move the cursor back to the start."""
        self.seek(0)

    def seek(self, offset: int, whence: int = SeekOrigin.START) -> None:
        """Move the cursor.

        Args:
            offset: Offset relative to ``whence``.
            whence: A :class:`SeekOrigin` (plain ``0``/``1``/``2`` accepted).

        Raises:
            ValueError: If ``whence`` is not a seek origin.
            InvalidResourceError: If the stream is detached.
            UnseekableError: If the stream is not seekable or the seek fails.
        """
        handle = self._live_handle()
        origin = coerce_whence(whence)
        if not self._capabilities().seekable:
            raise UnseekableError
        try:
            _ = handle.seek(offset, origin)
        except (OSError, ValueError) as error:
            raise UnseekableError from error
        self._eof = False

    def tell(self) -> int:
        """Return the cursor offset.

        Raises:
            InvalidResourceError: If detached or the handle cannot report it.
        """
        handle = self._live_handle()
        try:
            return handle.tell()
        except (OSError, ValueError) as error:
            raise InvalidResourceError from error

    def write(self, data: bytes | str) -> int:
        """Write ``data`` at the cursor and return the number of bytes written.

        ``str`` data is encoded with the configured encoding.

        Raises:
            InvalidResourceError: If the stream is detached.
            UnwritableError: If the stream is not writable or the write fails.
        """
        handle = self._live_handle()
        if not is_writable_mode(self._capabilities().mode):
            raise UnwritableError
        try:
            payload = (
                data.encode(self._config.encoding) if isinstance(data, str) else data
            )
            written = handle.write(payload)
        except (OSError, ValueError) as error:
            raise UnwritableError from error
        # Non-blocking raw handles return None when nothing could be written.
        return written if written is not None else 0

    def _is_live(self) -> bool:
        return self._handle is not None and not self._handle.closed

    def _live_handle(self) -> IO[bytes]:
        # The handle may also have been closed behind the stream's back.
        if self._handle is None or self._handle.closed:
            raise InvalidResourceError
        return self._handle

    def _readable_handle(self) -> IO[bytes]:
        handle = self._live_handle()
        if not is_readable_mode(self._capabilities().mode):
            raise UnreadableError
        return handle

    def _capabilities(self) -> StreamMetadata:
        if self._metadata is None:
            self._metadata = collect_metadata(self._live_handle(), mode=self._mode)
        return self._metadata

    def _release(self) -> IO[bytes]:
        handle, self._handle = self._handle, None
        if handle is None or handle.closed:
            raise InvalidResourceError
        return handle

    def _render(self) -> bytes:
        if not self.is_readable():
            return b""
        try:
            if self.is_seekable():
                self.rewind()
            return self.contents()
        except StreamError as error:
            logger.debug(
                "Rendering stream contents failed.",
                event="stream.render_failed",
                context={"error": str(error)},
            )
            return b""


def _is_open_binary_stream(handle: object) -> bool:
    if not isinstance(handle, io.IOBase) or isinstance(handle, io.TextIOBase):
        return False
    if handle.closed:
        return False
    # Text-mode spooled buffers are IOBase but yield str.
    mode = getattr(handle, "mode", "b")
    return not isinstance(mode, str) or "b" in mode or not mode
