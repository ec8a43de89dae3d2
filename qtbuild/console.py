"""Console output handler with levels and terminal-only colors."""
from __future__ import annotations

from typing import TextIO
import sys


class Console:
    """Prints operator-facing messages.

    Levels: none < error < info < debug
    Default: 'info'
    """

    LEVELS = {
        "none": 0,
        "error": 1,
        "info": 2,
        "debug": 3,
    }

    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    BOLD = "\033[1m"
    RESET = "\033[0m"

    def __init__(
        self,
        level: str = "info",
        dry_run: bool = False,
        *,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
        color: bool | None = None,
    ) -> None:
        if level not in self.LEVELS:
            raise ValueError(f"Unknown console level: {level}")
        self.level_name = level
        self.level = self.LEVELS[level]
        self.dry_run = dry_run
        self.stdout = stdout or sys.stdout
        self.stderr = stderr or sys.stderr
        if color is None:
            isatty = getattr(self.stdout, "isatty", None)
            color = bool(isatty and isatty())
        self.color = color

    def paint(self, text: str, *codes: str) -> str:
        if not self.color or not codes:
            return text
        return f"{''.join(codes)}{text}{self.RESET}"

    def _emit(self, text: str, *, stream: TextIO | None = None) -> None:
        target = stream or self.stdout
        print(text, file=target, flush=True)

    def blankline(self) -> None:
        if self.level >= self.LEVELS["info"]:
            self._emit("")

    def msg(self, message: str) -> None:
        if self.level >= self.LEVELS["info"]:
            self._emit(f"{self.paint('==>', self.GREEN)} {message}")

    def info(self, message: str) -> None:
        if self.level >= self.LEVELS["info"]:
            self._emit(f"{self.paint('==> INFO:', self.BLUE)} {message}")

    def warn(self, message: str) -> None:
        if self.level >= self.LEVELS["info"]:
            self._emit(f"{self.paint('==> WARNING:', self.YELLOW)} {message}")

    def error(self, message: str) -> None:
        if self.level >= self.LEVELS["error"]:
            self._emit(f"{self.paint('ERROR:', self.RED, self.BOLD)} {message}", stream=self.stderr)

    def dry(self, message: str) -> None:
        if self.dry_run:
            self._emit(f"[dry-run] {message}")

    def debug(self, message: str) -> None:
        if self.level >= self.LEVELS["debug"]:
            self._emit(f"[DEBUG] {message}")
