"""Exception hierarchy for au2 operations."""
from __future__ import annotations


class Au2Error(Exception):
    """Base class for failures reported to the user as a single line."""


class ConfigurationError(Au2Error, ValueError):
    """Raised when the project configuration is missing or inconsistent."""


class BuildGroupCycleError(ConfigurationError):
    """Raised when build groups reference each other in a loop."""

    def __init__(self, group: str, path: list[str]) -> None:
        chain = " -> ".join([*path, group])
        super().__init__(f"Circular build_group reference detected at '{group}': {chain}")
        self.group = group
        self.path = list(path)


class DestinationExistsError(Au2Error, FileExistsError):
    """Raised when a placement would clobber an unmanaged file."""

    def __init__(self, destination: object) -> None:
        super().__init__(f"Destination already exists (use --force to overwrite): {destination}")
        self.destination = destination


class DownloadError(Au2Error, RuntimeError):
    """Raised when an HTTP download fails."""


class BuildCommandError(Au2Error, RuntimeError):
    """Raised when a build command exits with a non-zero status."""

    def __init__(self, command: str, returncode: int) -> None:
        super().__init__(f"Build command failed with exit code {returncode}: {command}")
        self.command = command
        self.returncode = returncode


class HostNotFoundError(Au2Error, FileNotFoundError):
    """Raised when the AviUtl2 install or executable cannot be located."""


__all__ = [
    "Au2Error",
    "BuildCommandError",
    "BuildGroupCycleError",
    "ConfigurationError",
    "DestinationExistsError",
    "DownloadError",
    "HostNotFoundError",
]
