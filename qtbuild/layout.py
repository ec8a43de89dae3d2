"""Deterministic artifact paths derived from the build type."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .config import BuildType

BUILD_ROOT = "build"
LOG_DIR = "logs"
COMPILE_COMMANDS = "compile_commands.json"
CACHE_MARKER = "CMakeCache.txt"
TRANSIENT_CACHES = (".cache", ".qmlls.ini")


@dataclass(frozen=True, slots=True)
class ArtifactLayout:
    workspace: Path
    build_type: BuildType

    @classmethod
    def for_build_type(cls, build_type: BuildType | str, workspace: Path) -> "ArtifactLayout":
        return cls(workspace=workspace, build_type=BuildType.parse(build_type))

    @property
    def build_root(self) -> Path:
        return self.workspace / BUILD_ROOT

    @property
    def build_dir(self) -> Path:
        return self.build_root / self.build_type.value

    @property
    def log_dir(self) -> Path:
        return self.workspace / LOG_DIR

    @property
    def log_file(self) -> Path:
        return self.log_dir / f"build_{self.build_type.value}.log"

    @property
    def compile_commands_link(self) -> Path:
        return self.workspace / COMPILE_COMMANDS

    @property
    def compile_database(self) -> Path:
        return self.build_dir / COMPILE_COMMANDS

    @property
    def cache_marker(self) -> Path:
        return self.build_dir / CACHE_MARKER

    @property
    def transient_caches(self) -> tuple[Path, ...]:
        return tuple(self.workspace / name for name in TRANSIENT_CACHES)

    def executable(self, app_name: str) -> Path:
        return self.build_dir / app_name

    def is_configured(self) -> bool:
        return self.cache_marker.is_file()

    def relative(self, path: Path) -> Path:
        """Express ``path`` relative to the workspace for operator messages."""

        try:
            return path.relative_to(self.workspace)
        except ValueError:
            return path


__all__ = [
    "ArtifactLayout",
    "BUILD_ROOT",
    "CACHE_MARKER",
    "COMPILE_COMMANDS",
    "LOG_DIR",
    "TRANSIENT_CACHES",
]
