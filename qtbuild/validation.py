"""Pre-flight checks run before any action touches the filesystem."""
from __future__ import annotations

import shutil

from .actions import Action
from .config import ResolvedConfig
from .errors import InvalidConfig, InvalidPath, MissingAppName, MissingDependency

CONFIGURE_TOOL = "cmake"


def _require_tool(tool: str, *, what: str = "tool") -> None:
    if not shutil.which(tool):
        raise MissingDependency(tool, what=what)


def validate_flags(action: Action, *, clean_all: bool) -> None:
    if clean_all and action is not Action.CLEAN:
        raise InvalidConfig(f"--all is only valid with 'clean', not '{action.value}'")


def precheck(config: ResolvedConfig, action: Action, *, clean_all: bool = False) -> None:
    """Validate everything ``action`` needs; raise on the first problem found.

    Nothing is created, removed or executed here, so a failure always leaves
    the workspace untouched.
    """

    validate_flags(action, clean_all=clean_all)

    if action.compiles:
        _require_tool(CONFIGURE_TOOL)
        if not config.toolchain_path.is_dir():
            raise InvalidPath(config.toolchain_path)

    if action.plays and not (config.app_name and config.app_name.strip()):
        raise MissingAppName()

    if action.compiles:
        if config.generator_overridden:
            _require_tool(config.generator.driver)
        for compiler in (config.cc, config.cxx):
            _require_tool(compiler, what="compiler")


__all__ = ["CONFIGURE_TOOL", "precheck", "validate_flags"]
