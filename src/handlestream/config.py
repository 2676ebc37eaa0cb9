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

"""Configuration for :class:`handlestream.Stream` factories."""

from __future__ import annotations

import codecs
import os
import tomllib
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final, cast

import yaml

DEFAULT_SPOOL_SIZE: Final[int] = 2 * 1024 * 1024
DEFAULT_CHUNK_SIZE: Final[int] = 65_536
DEFAULT_ENCODING: Final[str] = "utf-8"

ENV_SPOOL_SIZE = "HANDLESTREAM_SPOOL_SIZE"
ENV_CHUNK_SIZE = "HANDLESTREAM_CHUNK_SIZE"
ENV_ENCODING = "HANDLESTREAM_ENCODING"

__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_ENCODING",
    "DEFAULT_SPOOL_SIZE",
    "ConfigError",
    "StreamConfig",
    "load_config",
]


class ConfigError(ValueError):
    """Raised when stream configuration is invalid."""


@dataclass(frozen=True, slots=True)
class StreamConfig:
    """Tunables shared by stream factories.

    Attributes:
        spool_size: Bytes a :meth:`Stream.from_content` buffer keeps in
            memory before spilling to a temporary file.
        chunk_size: Default chunk size for :meth:`Stream.chunks` and
            iteration.
        encoding: Codec used for ``str`` content and text rendering.
    """

    spool_size: int = DEFAULT_SPOOL_SIZE
    chunk_size: int = DEFAULT_CHUNK_SIZE
    encoding: str = DEFAULT_ENCODING

    def __post_init__(self) -> None:
        for name in ("spool_size", "chunk_size"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                msg = f"{name} must be a positive integer (got {value!r})."
                raise ConfigError(msg)
        try:
            _ = codecs.lookup(self.encoding)
        except LookupError:
            msg = f"Unknown encoding: {self.encoding!r}"
            raise ConfigError(msg) from None


def load_config(
    source: Path | str | Mapping[str, object] | None = None,
    *,
    env: Mapping[str, str] | None = None,
) -> StreamConfig:
    """Load and validate stream configuration.

    Parameters
    ----------
    source:
        Path to a TOML or YAML file, or an in-memory mapping. Keys may sit
        at the root or under a ``stream`` table. ``None`` uses defaults.
    env:
        Optional environment mapping. Defaults to :data:`os.environ`.
        ``HANDLESTREAM_*`` variables override values from ``source``.

    Returns
    -------
    StreamConfig
        The resolved configuration.
    """

    env_map = os.environ if env is None else env

    if source is None:
        raw: Mapping[str, object] = {}
    elif isinstance(source, Mapping):
        raw = source
    else:
        raw = _load_config_file(Path(source))

    section = raw.get("stream", raw)
    if not isinstance(section, Mapping):
        msg = "The 'stream' section must be a mapping."
        raise ConfigError(msg)
    values = _normalise(cast(Mapping[str, object], section))

    if ENV_SPOOL_SIZE in env_map:
        values["spool_size"] = _coerce_int(env_map[ENV_SPOOL_SIZE], ENV_SPOOL_SIZE)
    if ENV_CHUNK_SIZE in env_map:
        values["chunk_size"] = _coerce_int(env_map[ENV_CHUNK_SIZE], ENV_CHUNK_SIZE)
    if ENV_ENCODING in env_map:
        values["encoding"] = env_map[ENV_ENCODING]

    return StreamConfig(**values)


def _load_config_file(path: Path) -> Mapping[str, object]:
    if not path.exists():
        msg = f"Configuration file not found: {path}"
        raise FileNotFoundError(msg)

    suffix = path.suffix.lower()
    data: object
    if suffix == ".toml":
        with path.open("rb") as handle:
            data = tomllib.load(handle)
    elif suffix in {".yaml", ".yml"}:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    else:
        msg = f"Unsupported configuration format: {path.suffix}"
        raise ConfigError(msg)

    if not isinstance(data, MutableMapping):
        msg = "Configuration file must contain a mapping at the root."
        raise ConfigError(msg)
    return cast(MutableMapping[str, object], data)


def _normalise(section: Mapping[str, object]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for key in ("spool_size", "chunk_size"):
        if key in section:
            values[key] = _coerce_int(section[key], key)
    if "encoding" in section:
        encoding = section["encoding"]
        if not isinstance(encoding, str):
            msg = f"encoding must be a string (got {encoding!r})."
            raise ConfigError(msg)
        values["encoding"] = encoding
    return values


def _coerce_int(value: object, name: str) -> int:
    if isinstance(value, bool):
        msg = f"{name} must be an integer (got {value!r})."
        raise ConfigError(msg)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip().replace("_", ""))
        except ValueError:
            pass
    msg = f"{name} must be an integer (got {value!r})."
    raise ConfigError(msg)
