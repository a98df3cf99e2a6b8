"""Engine configuration.

Settings live in the ``[noteindex]`` table of a TOML file::

    [noteindex]
    context_radius   = 50     # characters kept on each side of a backlink
    search_threshold = 0.7    # minimum fuzzy score (0-1) for a search hit
    title_weight     = 2.0
    snippet_length   = 150

Any field can be overridden through the environment as
``NOTEINDEX_<FIELD>`` (e.g. ``NOTEINDEX_SEARCH_THRESHOLD=0.8``).  Direct
keyword arguments to :func:`load_config` take precedence over both.
"""

from __future__ import annotations

import dataclasses
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from noteindex.errors import ConfigError

ENV_PREFIX = "NOTEINDEX_"


@dataclass(frozen=True)
class EngineConfig:
    context_radius: int = 50
    search_threshold: float = 0.7
    title_weight: float = 2.0
    content_weight: float = 1.0
    tag_weight: float = 1.0
    snippet_length: int = 150
    min_match_length: int = 2
    highlight_open: str = "<mark>"
    highlight_close: str = "</mark>"

    def __post_init__(self) -> None:
        if self.context_radius < 0:
            raise ConfigError("context_radius must be >= 0")
        if not 0.0 <= self.search_threshold <= 1.0:
            raise ConfigError("search_threshold must be between 0 and 1")
        if self.snippet_length <= 0:
            raise ConfigError("snippet_length must be > 0")
        if self.min_match_length < 1:
            raise ConfigError("min_match_length must be >= 1")
        for name in ("title_weight", "content_weight", "tag_weight"):
            if getattr(self, name) <= 0:
                raise ConfigError(f"{name} must be > 0")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EngineConfig":
        section = data.get("noteindex", data)
        known = {f.name: f for f in dataclasses.fields(cls)}
        unknown = set(section) - set(known)
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(sorted(unknown))}")
        return cls(**{k: _coerce(known[k], v) for k, v in section.items()})


def _coerce(f: dataclasses.Field, value: Any) -> Any:
    target = {"int": int, "float": float, "str": str}[f.type]
    if isinstance(value, bool) or (target is not str and isinstance(value, str) and not value.strip()):
        raise ConfigError(f"Invalid value for {f.name}: {value!r}")
    try:
        return target(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid value for {f.name}: {value!r}") from exc


def _env_overrides() -> dict[str, str]:
    names = {f.name for f in dataclasses.fields(EngineConfig)}
    result: dict[str, str] = {}
    for name in names:
        value = os.getenv(ENV_PREFIX + name.upper())
        if value is not None:
            result[name] = value
    return result


def load_config(path: Path | str | None = None, **overrides: Any) -> EngineConfig:
    """Build an :class:`EngineConfig` from *path*, the environment and *overrides*."""
    data: dict[str, Any] = {}
    if path is not None:
        try:
            with open(path, "rb") as fh:
                data = tomllib.load(fh).get("noteindex", {})
        except OSError as exc:
            raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc
    data.update(_env_overrides())
    data.update(overrides)
    return EngineConfig.from_dict({"noteindex": data})
