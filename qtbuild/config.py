"""Layered configuration resolution.

Four layers are consulted per field, lowest priority first: built-in
defaults, the project file, the process environment and command-line flags.
Each field is resolved on its own; an empty value counts as unset.
"""
from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum
from pathlib import Path
from string import Template
from typing import Any, Mapping
import os
import shutil

import yaml

from core.config_loader import find_config_file, load_config_file
from .errors import InvalidConfig

PROJECT_FILE_STEM = ".project"
PROJECT_FILE_SUFFIXES = (".ini", ".toml", ".json", ".yaml", ".yml")

DEFAULT_QT_SUBDIR = Path("Qt") / "6.9.2" / "gcc_64"


class BuildType(str, Enum):
    DEBUG = "Debug"
    RELEASE = "Release"

    @classmethod
    def parse(cls, value: "str | BuildType") -> "BuildType":
        """Accept the exact names Debug and Release or the d/D/r/R shorthands."""

        if isinstance(value, BuildType):
            return value
        text = str(value)
        if text in {"d", "D", cls.DEBUG.value}:
            return cls.DEBUG
        if text in {"r", "R", cls.RELEASE.value}:
            return cls.RELEASE
        raise InvalidConfig(
            f"Invalid build type: {text!r} (must be Debug or Release, or d/D/r/R)"
        )


class Generator(str, Enum):
    NINJA = "Ninja"
    MAKEFILES = "Unix Makefiles"

    @property
    def driver(self) -> str:
        return "ninja" if self is Generator.NINJA else "make"

    @classmethod
    def parse(cls, value: "str | Generator") -> "Generator":
        if isinstance(value, Generator):
            return value
        text = str(value).strip()
        lowered = text.lower()
        if lowered == "ninja":
            return cls.NINJA
        if lowered in {"make", "makefiles", "unix makefiles"}:
            return cls.MAKEFILES
        raise InvalidConfig(f"Invalid generator: {text} (must be Ninja or Unix Makefiles)")


@dataclass(slots=True)
class ConfigLayer:
    """Raw, unvalidated values contributed by one configuration source."""

    build_type: str | None = None
    toolchain_path: str | None = None
    app_name: str | None = None
    cc: str | None = None
    cxx: str | None = None
    generator: str | None = None

    _KEYS = {
        "BUILD_TYPE": "build_type",
        "QT_PATH": "toolchain_path",
        "APP_NAME": "app_name",
        "CC": "cc",
        "CXX": "cxx",
        "GENERATOR": "generator",
    }

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, allowed: frozenset[str] | None = None) -> "ConfigLayer":
        """Pick recognised keys (case-insensitive) out of ``data``; others are ignored."""

        values: dict[str, str] = {}
        for raw_key, raw_value in data.items():
            key = str(raw_key).strip().upper()
            if allowed is not None and key not in allowed:
                continue
            attr = cls._KEYS.get(key)
            if attr is None or raw_value is None:
                continue
            if isinstance(raw_value, (Mapping, list, tuple)):
                raise InvalidConfig(f"Configuration key '{raw_key}' must be a scalar value")
            values[attr] = str(raw_value)
        return cls(**values)

    @classmethod
    def from_environment(cls, environ: Mapping[str, str]) -> "ConfigLayer":
        return cls.from_mapping(
            environ,
            allowed=frozenset({"BUILD_TYPE", "QT_PATH", "APP_NAME", "CC", "CXX"}),
        )


def default_layer(environ: Mapping[str, str]) -> ConfigLayer:
    home = environ.get("HOME")
    base = Path(home) if home else Path.home()
    return ConfigLayer(
        build_type=BuildType.DEBUG.value,
        toolchain_path=str(base / DEFAULT_QT_SUBDIR),
        app_name=None,
        cc="clang",
        cxx="clang++",
        generator=None,
    )


@dataclass(frozen=True, slots=True)
class ResolvedConfig:
    build_type: BuildType
    toolchain_path: Path
    app_name: str | None
    cc: str
    cxx: str
    generator: Generator
    jobs: int
    generator_overridden: bool = False

    def describe(self) -> list[tuple[str, str]]:
        return [
            ("Build Type", self.build_type.value),
            ("Qt Path", str(self.toolchain_path)),
            ("App Name", self.app_name or "<unset>"),
            ("C Compiler", self.cc),
            ("C++ Compiler", self.cxx),
            ("Generator", self.generator.value),
            ("Jobs", str(self.jobs)),
        ]


def _pick(*candidates: str | None) -> str | None:
    """Return the highest-priority non-empty value; candidates are given highest first."""

    for candidate in candidates:
        if candidate is not None and candidate.strip():
            return candidate.strip()
    return None


def detect_job_count() -> int:
    count = os.cpu_count()
    if not count or count < 1:
        return 1
    return count


def probe_generator() -> Generator:
    return Generator.NINJA if shutil.which("ninja") else Generator.MAKEFILES


class ConfigResolver:
    """Builds a :class:`ResolvedConfig` for one invocation."""

    def __init__(self, workspace: Path, environ: Mapping[str, str] | None = None) -> None:
        self._workspace = workspace
        self._environ = dict(environ) if environ is not None else dict(os.environ)

    @property
    def workspace(self) -> Path:
        return self._workspace

    def project_file(self) -> Path | None:
        try:
            return find_config_file(self._workspace, PROJECT_FILE_STEM, suffixes=PROJECT_FILE_SUFFIXES)
        except ValueError as exc:
            raise InvalidConfig(str(exc)) from exc

    def load_project_layer(self) -> ConfigLayer:
        path = self.project_file()
        if path is None:
            return ConfigLayer()
        try:
            data = load_config_file(path)
        except (ValueError, TypeError, OSError, yaml.YAMLError) as exc:
            raise InvalidConfig(f"Could not read {path.name}: {exc}") from exc

        layer = ConfigLayer.from_mapping(data)
        # Values such as QT_PATH="$HOME/Qt" refer to the environment; expand, never execute.
        for field in fields(layer):
            value = getattr(layer, field.name)
            if isinstance(value, str):
                setattr(layer, field.name, Template(value).safe_substitute(self._environ))
        return layer

    def environment_layer(self) -> ConfigLayer:
        return ConfigLayer.from_environment(self._environ)

    def _toolchain_path(self, raw: str) -> Path:
        if raw == "~" or raw.startswith("~/"):
            home = self._environ.get("HOME")
            path = (Path(home) if home else Path.home()) / raw[2:]
        else:
            path = Path(raw)
        if not path.is_absolute():
            path = self._workspace / path
        return path

    def resolve(self, flags: ConfigLayer | None = None) -> ResolvedConfig:
        flags = flags or ConfigLayer()
        defaults = default_layer(self._environ)
        project = self.load_project_layer()
        env = self.environment_layer()

        def layered(name: str) -> str | None:
            return _pick(
                getattr(flags, name),
                getattr(env, name),
                getattr(project, name),
                getattr(defaults, name),
            )

        build_type = BuildType.parse(layered("build_type") or BuildType.DEBUG.value)

        generator_override = _pick(flags.generator, project.generator)
        if generator_override is not None:
            generator = Generator.parse(generator_override)
        else:
            generator = probe_generator()

        return ResolvedConfig(
            build_type=build_type,
            toolchain_path=self._toolchain_path(layered("toolchain_path") or ""),
            app_name=layered("app_name"),
            cc=layered("cc") or "clang",
            cxx=layered("cxx") or "clang++",
            generator=generator,
            jobs=detect_job_count(),
            generator_overridden=generator_override is not None,
        )


__all__ = [
    "BuildType",
    "ConfigLayer",
    "ConfigResolver",
    "Generator",
    "ResolvedConfig",
    "default_layer",
    "detect_job_count",
    "probe_generator",
]
