"""Shared core utilities for configuration, commands, console output and archives."""

from .archive import (
    ArchiveConsole,
    ArchiveManager,
    InvalidArchiveError,
    UnsafeArchiveEntryError,
    iter_entries,
    safe_join,
)
from .command_runner import (
    CommandError,
    CommandResult,
    CommandRunner,
    RecordingCommandRunner,
    SubprocessCommandRunner,
    shell_command,
)
from .config_loader import (
    FILE_LOADERS,
    find_config_file,
    load_config_file,
    normalize_string_list,
)
from .console import Console
from .digest import digest_bytes, digest_file, digest_text

__all__ = [
    "ArchiveConsole",
    "ArchiveManager",
    "InvalidArchiveError",
    "UnsafeArchiveEntryError",
    "iter_entries",
    "safe_join",
    "CommandError",
    "CommandResult",
    "CommandRunner",
    "RecordingCommandRunner",
    "SubprocessCommandRunner",
    "shell_command",
    "FILE_LOADERS",
    "find_config_file",
    "load_config_file",
    "normalize_string_list",
    "Console",
    "digest_bytes",
    "digest_file",
    "digest_text",
]
