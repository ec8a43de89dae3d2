"""Shared core utilities for running external tools and loading configuration."""

from .command_runner import (
    CommandError,
    CommandResult,
    CommandRunner,
    RecordingCommandRunner,
    SubprocessCommandRunner,
    normalize_returncode,
)
from .config_loader import (
    ConfigLoader,
    FILE_LOADERS,
    KeyValueSyntaxError,
    find_config_file,
    load_config_file,
    parse_key_value,
)

__all__ = [
    "CommandError",
    "CommandResult",
    "CommandRunner",
    "RecordingCommandRunner",
    "SubprocessCommandRunner",
    "normalize_returncode",
    "ConfigLoader",
    "FILE_LOADERS",
    "KeyValueSyntaxError",
    "find_config_file",
    "load_config_file",
    "parse_key_value",
]
