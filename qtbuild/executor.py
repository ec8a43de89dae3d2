"""Configure and compile steps driven through the external build tool."""
from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Callable, List, TextIO
import os
import sys

from core.command_runner import CommandRunner
from .config import BuildType, ResolvedConfig
from .console import Console
from .errors import BuildFailure
from .layout import ArtifactLayout
from .validation import CONFIGURE_TOOL

DEBUG_CXX_FLAGS = "-DQT_QML_DEBUG"


def _timestamp() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


def marker(text: str, *, clock: Callable[[], str] = _timestamp) -> str:
    return f"[ {clock()} ] --- {text} ---\n"


class BuildExecutor:
    """Runs configure (when needed) and compile for one resolved configuration.

    The whole build action is recorded in the layout's log file: it is
    truncated first, then receives a start marker, the interleaved output of
    both steps, and a finished or failed marker.
    """

    def __init__(
        self,
        *,
        config: ResolvedConfig,
        layout: ArtifactLayout,
        command_runner: CommandRunner,
        console: Console,
        dry_run: bool = False,
        terminal: TextIO | None = None,
        clock: Callable[[], str] = _timestamp,
    ) -> None:
        self._config = config
        self._layout = layout
        self._command_runner = command_runner
        self._console = console
        self._dry_run = dry_run
        self._terminal = terminal
        self._clock = clock

    def configure_command(self) -> List[str]:
        config = self._config
        command = [
            CONFIGURE_TOOL,
            "-S",
            ".",
            "-B",
            str(self._layout.relative(self._layout.build_dir)),
            f"-DCMAKE_PREFIX_PATH={config.toolchain_path}",
            f"-DCMAKE_BUILD_TYPE={config.build_type.value}",
            f"-DCMAKE_C_COMPILER={config.cc}",
            f"-DCMAKE_CXX_COMPILER={config.cxx}",
            "-DCMAKE_COLOR_DIAGNOSTICS=ON",
            "-DCMAKE_EXPORT_COMPILE_COMMANDS=ON",
            "-G",
            config.generator.value,
        ]
        if config.build_type is BuildType.DEBUG:
            command.append(f"-DCMAKE_CXX_FLAGS_INIT={DEBUG_CXX_FLAGS}")
        return command

    def compile_command(self) -> List[str]:
        return [
            CONFIGURE_TOOL,
            "--build",
            str(self._layout.relative(self._layout.build_dir)),
            "--parallel",
            str(self._config.jobs),
        ]

    def needs_configure(self) -> bool:
        return not self._layout.is_configured()

    def _write(self, text: str, log: TextIO | None) -> None:
        terminal = self._terminal or sys.stdout
        terminal.write(text)
        terminal.flush()
        if log is not None:
            log.write(text)
            log.flush()

    def _run_step(self, description: str, command: List[str], log: TextIO | None) -> None:
        self._console.debug(f"{description}: {self._command_runner.format_command(command)}")
        result = self._command_runner.run(
            command,
            cwd=self._layout.workspace,
            check=False,
            note=description,
            stream=True,
            log=log,
        )
        if result.returncode != 0:
            log_file = None if self._dry_run else self._layout.relative(self._layout.log_file)
            raise BuildFailure(description, result.returncode, log_file)

    def configure(self, log: TextIO | None = None) -> None:
        self._console.blankline()
        self._console.info("Starting configuration...")
        self._console.msg(
            f"Configuring CMake ({self._config.build_type.value}) with generator: {self._config.generator.value}"
        )
        self._run_step("Configuration", self.configure_command(), log)
        self._console.info("Configuration done.")

    def compile(self, log: TextIO | None = None) -> None:
        self._console.msg(f"Building ({self._config.build_type.value}) with --parallel={self._config.jobs}")
        self._run_step("Build", self.compile_command(), log)

    def build(self) -> None:
        """Configure if the cache marker is absent, then compile."""

        self._console.blankline()
        self._console.info("Starting build...")
        if self._dry_run:
            if self.needs_configure():
                self.configure()
            self.compile()
            return

        layout = self._layout
        layout.log_dir.mkdir(parents=True, exist_ok=True)
        self._console.msg(f"Logging output to {self._console.paint(str(layout.relative(layout.log_file)), Console.YELLOW)}")

        # "w" truncates the previous run; every later write appends.
        with layout.log_file.open("w", encoding="utf-8") as log:
            self._write(marker("Build started", clock=self._clock), log)
            try:
                if self.needs_configure():
                    self.configure(log)
                self.compile(log)
            except (BuildFailure, KeyboardInterrupt):
                self._write(marker("Build failed", clock=self._clock), log)
                raise
            self._write(marker("Build finished", clock=self._clock), log)

        self.update_compile_commands_link()
        self._console.msg(self._console.paint("Build completed successfully.", Console.GREEN, Console.BOLD))

    def update_compile_commands_link(self) -> Path | None:
        """Point the top-level compilation database link at this build, replacing any prior link."""

        layout = self._layout
        if not layout.compile_database.is_file():
            return None
        link = layout.compile_commands_link
        target = layout.relative(layout.compile_database)
        staging = link.with_name(f".{link.name}.tmp")
        if staging.is_symlink() or staging.exists():
            staging.unlink()
        staging.symlink_to(target)
        os.replace(staging, link)
        self._console.msg(f"Symlink updated: {link.name} -> {target}")
        return link


__all__ = ["BuildExecutor", "DEBUG_CXX_FLAGS", "marker"]
