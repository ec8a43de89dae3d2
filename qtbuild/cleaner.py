"""Removal of build directories, logs, caches and the compilation database link."""
from __future__ import annotations

from pathlib import Path
from typing import List
import os
import shutil

from .console import Console
from .layout import ArtifactLayout


def _remove(path: Path) -> bool:
    """Remove ``path`` whatever it is; a missing path is not an error."""

    if path.is_symlink() or path.is_file():
        path.unlink()
        return True
    if path.is_dir():
        shutil.rmtree(path)
        return True
    return False


def link_points_into(link: Path, directory: Path) -> bool:
    """Return whether the symlink ``link`` targets something inside ``directory``.

    The target is compared lexically as well as after resolution, so the
    answer stays correct once ``directory`` has already been deleted.
    """

    if not link.is_symlink():
        return False
    raw_target = Path(os.readlink(link))
    target = raw_target if raw_target.is_absolute() else link.parent / raw_target

    lexical_target = Path(os.path.normpath(target))
    lexical_dir = Path(os.path.normpath(directory))
    if lexical_target.is_relative_to(lexical_dir):
        return True
    return target.resolve().is_relative_to(directory.resolve())


class ArtifactCleaner:
    def __init__(self, *, layout: ArtifactLayout, console: Console, dry_run: bool = False) -> None:
        self._layout = layout
        self._console = console
        self._dry_run = dry_run
        self.removed: List[Path] = []

    def _discard(self, path: Path) -> None:
        if self._dry_run:
            if path.is_symlink() or path.exists():
                self._console.dry(f"remove {self._layout.relative(path)}")
                self.removed.append(path)
            return
        if _remove(path):
            self._console.debug(f"Removed {self._layout.relative(path)}")
            self.removed.append(path)

    def clean(self, *, clean_all: bool = False) -> List[Path]:
        layout = self._layout
        self._console.blankline()
        self._console.info("Starting clean...")

        if clean_all:
            self._console.msg("Cleaning all build directories and logs")
            self._discard(layout.build_root)
            self._discard(layout.log_dir)
            self._discard(layout.compile_commands_link)
        else:
            link = layout.compile_commands_link
            # Decide before the directory disappears.
            drop_link = link_points_into(link, layout.build_dir)

            self._console.msg(f"Cleaning {layout.relative(layout.build_dir)}")
            self._discard(layout.build_dir)
            if drop_link:
                self._discard(link)
                self._console.msg(f"Removed symlink {link.name} (was pointing to cleaned build).")

            self._console.msg(f"Removing log file: {layout.relative(layout.log_file)}")
            self._discard(layout.log_file)

        self._console.msg("Removing runtime cache files.")
        for cache in layout.transient_caches:
            self._discard(cache)

        self._console.info("Clean completed.")
        return list(self.removed)


__all__ = ["ArtifactCleaner", "link_points_into"]
