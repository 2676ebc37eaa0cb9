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

"""Access-mode strings and seek origins.

Mode strings use the conventional file-open tokens (``r``, ``w``, ``a``,
``x``, ``c`` with an optional ``+``) and may carry ``b`` or ``t`` flags.
Capability checks look only at the characters in the string, so a mode
reported by a handle (``"rb"``, ``"w+b"``) is interpreted the same way as
one supplied by a caller.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from enum import IntEnum
from typing import Final

__all__ = [
    "OpenSpec",
    "SeekOrigin",
    "coerce_whence",
    "is_readable_mode",
    "is_writable_mode",
    "mode_from_capabilities",
    "resolve_open_spec",
]

_READABLE_PATTERN: Final = re.compile(r"[r+]")
_WRITABLE_PATTERN: Final = re.compile(r"[xwca+]")
_MODE_PATTERN: Final = re.compile(r"^(?P<base>[rwaxc])(?P<flags>[bt+]*)$")

# O_BINARY only exists on Windows.
_BINARY_FLAG: Final[int] = getattr(os, "O_BINARY", 0)


class SeekOrigin(IntEnum):
    """Reference point for :meth:`Stream.seek`."""

    START = os.SEEK_SET
    CURRENT = os.SEEK_CUR
    END = os.SEEK_END


@dataclass(frozen=True, slots=True)
class OpenSpec:
    """How to open a path for a given mode string.

    Attributes:
        flags: Flags passed to :func:`os.open`.
        open_mode: Binary mode passed to :func:`open`. Truncation,
            creation and exclusivity are already handled by ``flags``.
    """

    flags: int
    open_mode: str


_BASE_FLAGS: Final[dict[str, int]] = {
    "r": 0,
    "w": os.O_CREAT | os.O_TRUNC,
    "a": os.O_CREAT | os.O_APPEND,
    "x": os.O_CREAT | os.O_EXCL,
    "c": os.O_CREAT,
}

_OPEN_MODES: Final[dict[tuple[str, bool], str]] = {
    ("r", False): "rb",
    ("r", True): "r+b",
    ("w", False): "wb",
    ("w", True): "w+b",
    ("a", False): "ab",
    ("a", True): "a+b",
    ("x", False): "wb",
    ("x", True): "r+b",
    ("c", False): "wb",
    ("c", True): "r+b",
}


def resolve_open_spec(mode: str) -> OpenSpec:
    """Translate a mode string into :func:`os.open` flags.

    Raises:
        ValueError: If ``mode`` is not a recognised mode string.
    """
    match = _MODE_PATTERN.match(mode)
    if match is None:
        msg = f"Invalid access mode: {mode!r}"
        raise ValueError(msg)
    base = match.group("base")
    flags = match.group("flags")
    if flags.count("+") > 1 or ("b" in flags and "t" in flags):
        msg = f"Invalid access mode: {mode!r}"
        raise ValueError(msg)

    update = "+" in flags
    if update:
        access = os.O_RDWR
    elif base == "r":
        access = os.O_RDONLY
    else:
        access = os.O_WRONLY
    return OpenSpec(
        flags=access | _BASE_FLAGS[base] | _BINARY_FLAG,
        open_mode=_OPEN_MODES[base, update],
    )


def is_readable_mode(mode: str) -> bool:
    """Return True if ``mode`` grants read access."""
    return _READABLE_PATTERN.search(mode) is not None


def is_writable_mode(mode: str) -> bool:
    """Return True if ``mode`` grants write access."""
    return _WRITABLE_PATTERN.search(mode) is not None


def mode_from_capabilities(*, readable: bool, writable: bool) -> str:
    """Synthesize a mode string for handles that do not report one."""
    if readable and writable:
        return "r+b"
    if writable:
        return "wb"
    if readable:
        return "rb"
    return ""


def coerce_whence(whence: int) -> SeekOrigin:
    """Return ``whence`` as a :class:`SeekOrigin`.

    Raises:
        ValueError: If ``whence`` is not one of the three seek origins.
    """
    try:
        return SeekOrigin(whence)
    except ValueError:
        msg = f"Invalid whence value: {whence}"
        raise ValueError(msg) from None
