"""Error types raised by the orchestrator.

Every component raises one of these; only the CLI turns them into a message
and a process exit code.
"""
from __future__ import annotations

from pathlib import Path


class QtBuildError(RuntimeError):
    """Base class for all terminal orchestrator errors."""

    exit_code = 1


class InvalidConfig(QtBuildError):
    """A configuration value or flag combination is unusable."""

    exit_code = 2


class InvalidPath(QtBuildError):
    """The toolkit installation path does not exist."""

    def __init__(self, path: Path) -> None:
        super().__init__(
            f"Invalid Qt path: {path} (set with flag -p or QT_PATH env or in .project.ini)"
        )
        self.path = path


class MissingDependency(QtBuildError):
    """A required external tool or compiler is not on the system path."""

    def __init__(self, tool: str, what: str = "tool") -> None:
        if what == "compiler":
            message = f"Missing compiler: {tool}"
        else:
            message = f"Missing '{tool}'. Please install it."
        super().__init__(message)
        self.tool = tool


class MissingAppName(QtBuildError):
    def __init__(self) -> None:
        super().__init__(
            "Missing application name (set with flag -a or APP_NAME env or in .project.ini)"
        )


class MissingExecutable(QtBuildError):
    def __init__(self, executable: Path, build_type: str) -> None:
        super().__init__(
            f"Executable not found: {executable} "
            f"(did you run 'qtbuild build -t {build_type}' first?)"
        )
        self.executable = executable


class BuildFailure(QtBuildError):
    """The external configure or compile step exited non-zero."""

    def __init__(self, step: str, returncode: int, log_file: Path | None = None) -> None:
        message = f"{step} failed with exit code {returncode}."
        if log_file is not None:
            message = f"{message} See {log_file} for details."
        super().__init__(message)
        self.step = step
        self.returncode = returncode
        self.log_file = log_file


__all__ = [
    "BuildFailure",
    "InvalidConfig",
    "InvalidPath",
    "MissingAppName",
    "MissingDependency",
    "MissingExecutable",
    "QtBuildError",
]
