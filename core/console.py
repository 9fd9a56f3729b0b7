"""Leveled console output shared by the CLI and helper modules."""
from __future__ import annotations

from typing import TextIO
import sys


class Console:
    """Simple console output handler with configurable log level.

    Levels: none < error < warn < info < debug
    Default: 'info'
    """

    LEVELS = {
        "none": 0,
        "error": 1,
        "warn": 2,
        "info": 3,
        "debug": 4,
    }

    def __init__(
        self,
        level: str = "info",
        *,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
    ) -> None:
        if level not in self.LEVELS:
            raise ValueError(f"Unknown console level '{level}'")
        self.level_name = level
        self.level = self.LEVELS[level]
        self._stdout = stdout
        self._stderr = stderr

    def _emit(self, message: str, *, error: bool = False) -> None:
        stream = (self._stderr or sys.stderr) if error else (self._stdout or sys.stdout)
        print(message, file=stream)

    def info(self, message: str) -> None:
        if self.level >= self.LEVELS["info"]:
            self._emit(f"[INFO] {message}")

    def warn(self, message: str) -> None:
        if self.level >= self.LEVELS["warn"]:
            self._emit(f"[WARN] {message}", error=True)

    def error(self, message: str) -> None:
        if self.level >= self.LEVELS["error"]:
            self._emit(f"[ERROR] {message}", error=True)

    def debug(self, message: str) -> None:
        if self.level >= self.LEVELS["debug"]:
            self._emit(f"[DEBUG] {message}")


__all__ = ["Console"]
