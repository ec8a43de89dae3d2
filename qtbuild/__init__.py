"""Qt desktop build orchestrator: configure, build, run and clean a CMake + Qt application."""

from .actions import Action, ActionDispatcher
from .config import BuildType, ConfigLayer, ConfigResolver, Generator, ResolvedConfig
from .errors import (
    BuildFailure,
    InvalidConfig,
    InvalidPath,
    MissingAppName,
    MissingDependency,
    MissingExecutable,
    QtBuildError,
)
from .layout import ArtifactLayout
from .cli import main

__all__ = [
    "Action",
    "ActionDispatcher",
    "ArtifactLayout",
    "BuildFailure",
    "BuildType",
    "ConfigLayer",
    "ConfigResolver",
    "Generator",
    "InvalidConfig",
    "InvalidPath",
    "MissingAppName",
    "MissingDependency",
    "MissingExecutable",
    "QtBuildError",
    "ResolvedConfig",
    "main",
]
