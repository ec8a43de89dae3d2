"""Shared helpers for locating and loading configuration mappings."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Mapping, TextIO

import json
import shlex
import tomllib

import yaml


ConfigLoader = Callable[[Any], Mapping[str, Any]]


class KeyValueSyntaxError(ValueError):
    """Raised when a key-value file contains a line that is not ``KEY=VALUE``."""

    def __init__(self, line_number: int, line: str, reason: str) -> None:
        super().__init__(f"line {line_number}: {reason}: {line.strip()!r}")
        self.line_number = line_number


def _is_identifier(text: str) -> bool:
    return bool(text) and (text[0].isalpha() or text[0] == "_") and all(
        ch.isalnum() or ch == "_" for ch in text
    )


def parse_key_value(stream: TextIO) -> Dict[str, str]:
    """Parse shell-style ``KEY=VALUE`` assignments without executing anything.

    Blank lines and ``#`` comments are skipped, an optional ``export`` prefix is
    accepted and values may be quoted the way a shell would quote them. Later
    assignments of the same key win.
    """

    values: Dict[str, str] = {}
    for line_number, raw in enumerate(stream, start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export "):].lstrip()

        key, sep, remainder = line.partition("=")
        key = key.strip()
        if not sep:
            raise KeyValueSyntaxError(line_number, raw, "expected KEY=VALUE")
        if not _is_identifier(key):
            raise KeyValueSyntaxError(line_number, raw, f"invalid key '{key}'")

        try:
            tokens = shlex.split(remainder, comments=True, posix=True)
        except ValueError as exc:
            raise KeyValueSyntaxError(line_number, raw, str(exc)) from exc
        if len(tokens) > 1:
            raise KeyValueSyntaxError(line_number, raw, "value must be a single word or quoted")
        values[key] = tokens[0] if tokens else ""
    return values


FILE_LOADERS: Dict[str, ConfigLoader] = {
    ".ini": parse_key_value,
    ".toml": lambda stream: tomllib.load(stream),
    ".json": lambda stream: json.load(stream),
    ".yaml": lambda stream: yaml.safe_load(stream),
    ".yml": lambda stream: yaml.safe_load(stream),
}
"""Mapping of file suffixes to loader callables."""


def load_config_file(path: Path) -> Mapping[str, Any]:
    """Load and decode a configuration mapping from ``path``."""

    suffix = path.suffix.lower()
    loader = FILE_LOADERS.get(suffix)
    if loader is None:
        supported = ", ".join(sorted(FILE_LOADERS)) or "<none>"
        raise ValueError(
            f"Unsupported configuration file extension: {suffix}. Supported: {supported}"
        )

    mode = "rb" if suffix == ".toml" else "r"
    kwargs: Dict[str, Any] = {}
    if mode == "r":
        kwargs["encoding"] = "utf-8"

    with path.open(mode, **kwargs) as handle:
        data = loader(handle)

    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise TypeError(f"Configuration file '{path}' must contain a mapping at the root")

    return data


def find_config_file(directory: Path, stem: str, *, suffixes: Iterable[str] | None = None) -> Path | None:
    """Return the single ``<stem><suffix>`` file inside ``directory``, if any."""

    allowed = [suffix.lower() for suffix in (suffixes or FILE_LOADERS.keys())]
    found = [directory / f"{stem}{suffix}" for suffix in allowed]
    found = [path for path in found if path.is_file()]

    if len(found) > 1:
        names = "', '".join(path.name for path in found)
        raise ValueError(
            f"Multiple configuration files found for '{stem}': '{names}'. "
            "Only one format per configuration entry is allowed."
        )
    return found[0] if found else None


__all__ = [
    "ConfigLoader",
    "FILE_LOADERS",
    "KeyValueSyntaxError",
    "find_config_file",
    "load_config_file",
    "parse_key_value",
]
