"""Action dispatch: maps each CLI action onto configure/build/play/clean stages."""
from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING
import os

from core.command_runner import CommandRunner
from .config import ResolvedConfig
from .console import Console
from .errors import MissingAppName, MissingExecutable
from .layout import ArtifactLayout

if TYPE_CHECKING:
    from .cleaner import ArtifactCleaner
    from .executor import BuildExecutor


class Action(str, Enum):
    BUILD = "build"
    PLAY = "play"
    RUN = "run"
    FRESH = "fresh"
    CLEAN = "clean"

    @property
    def compiles(self) -> bool:
        return self in {Action.BUILD, Action.RUN, Action.FRESH}

    @property
    def plays(self) -> bool:
        return self in {Action.PLAY, Action.RUN, Action.FRESH}

    @property
    def summary(self) -> str:
        return {
            Action.BUILD: "Build the project",
            Action.PLAY: "Play Application (Play only)",
            Action.RUN: "Build and Play Application",
            Action.FRESH: "Clean, Build and Play Application",
            Action.CLEAN: "Clean build files",
        }[self]


class ActionDispatcher:
    """Executes exactly one action to completion or failure.

    Composite actions stop at the first failing stage: an error raised by a
    stage propagates before the next stage starts.
    """

    def __init__(
        self,
        *,
        config: ResolvedConfig,
        layout: ArtifactLayout,
        executor: "BuildExecutor",
        cleaner: "ArtifactCleaner",
        command_runner: CommandRunner,
        console: Console,
        dry_run: bool = False,
    ) -> None:
        self._config = config
        self._layout = layout
        self._executor = executor
        self._cleaner = cleaner
        self._command_runner = command_runner
        self._console = console
        self._dry_run = dry_run

    def dispatch(self, action: Action, *, clean_all: bool = False) -> int:
        handler = {
            Action.BUILD: self._do_build,
            Action.PLAY: self._do_play,
            Action.RUN: self._do_run,
            Action.FRESH: self._do_fresh,
            Action.CLEAN: lambda: self._do_clean(clean_all=clean_all),
        }[action]
        return handler()

    def _do_build(self) -> int:
        self._executor.build()
        return 0

    def _do_play(self) -> int:
        self._console.blankline()
        self._console.info("Starting play...")
        app_name = self._config.app_name
        if not app_name:
            raise MissingAppName()

        executable = self._layout.executable(app_name)
        display = self._layout.relative(executable)
        if not self._dry_run and not (executable.is_file() and os.access(executable, os.X_OK)):
            raise MissingExecutable(display, self._config.build_type.value)

        self._console.msg(f"Running {display}")
        result = self._command_runner.run(
            [str(executable)],
            cwd=self._layout.workspace,
            check=False,
            note="Play",
            stream=True,
        )
        return result.returncode

    def _do_run(self) -> int:
        self._console.blankline()
        self._console.msg(
            f"Running full pipeline: build ({self._config.build_type.value}) -> run {self._config.app_name}"
        )
        self._do_build()
        return self._do_play()

    def _do_fresh(self) -> int:
        self._console.blankline()
        self._console.msg(
            f"Fresh pipeline: clean -> configure -> build ({self._config.build_type.value}) -> run {self._config.app_name}"
        )
        self._do_clean(clean_all=False)
        self._do_build()
        return self._do_play()

    def _do_clean(self, *, clean_all: bool) -> int:
        self._cleaner.clean(clean_all=clean_all)
        return 0


__all__ = ["Action", "ActionDispatcher"]
