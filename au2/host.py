"""Locating, installing and launching the AviUtl2 host application."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Sequence
import os

from core.archive import ArchiveManager
from core.command_runner import CommandRunner
from core.console import Console

from .errors import HostNotFoundError
from .sources import http_get

HOST_EXECUTABLE = "aviutl2.exe"
DOWNLOAD_URL = "https://api.aviutl2.jp/download"
VERSION_MARKER = ".aviutl2-version"

HostFetcher = Callable[[str], bytes]


def find_host_executable(install_dir: Path) -> Path:
    """Walk ``install_dir`` for ``aviutl2.exe``, matching the name case-insensitively."""

    if not install_dir.exists():
        raise HostNotFoundError(f"AviUtl2 install directory not found: {install_dir}")
    for dirpath, dirnames, filenames in os.walk(install_dir):
        dirnames.sort()
        for filename in sorted(filenames):
            if filename.lower() == HOST_EXECUTABLE:
                return Path(dirpath) / filename
    raise HostNotFoundError(f"{HOST_EXECUTABLE} not found under {install_dir}")


def find_data_dir(install_dir: Path) -> Path:
    return find_host_executable(install_dir).parent / "data"


def fetch_host_zip(version: str) -> bytes:
    return http_get(DOWNLOAD_URL, query={"version": version, "type": "zip"})


@dataclass
class HostInstaller:
    """Downloads and unpacks a given AviUtl2 version into an install directory."""

    console: Console
    archives: ArchiveManager
    fetch: HostFetcher = field(default=fetch_host_zip)

    @staticmethod
    def installed_version(install_dir: Path) -> str | None:
        marker = install_dir / VERSION_MARKER
        try:
            return marker.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def install(self, install_dir: Path, version: str) -> bool:
        """Install ``version`` unless it is already recorded; returns whether anything changed."""

        install_dir.mkdir(parents=True, exist_ok=True)
        if self.installed_version(install_dir) == version:
            self.console.info(f"AviUtl2 {version} is already installed in {install_dir}")
            return False

        self.console.info(f"Downloading AviUtl2 {version}")
        self.archives.unpack(self.fetch(version), install_dir, label=f"AviUtl2 {version} download")
        (install_dir / VERSION_MARKER).write_text(version, encoding="utf-8")
        self.console.info(f"Installed AviUtl2 {version} into {install_dir}")
        return True


def launch_host(
    data_dir: Path,
    *,
    runner: CommandRunner,
    console: Console,
    args: Sequence[str] = (),
) -> bool:
    """Start ``aviutl2.exe`` next to ``data_dir``; a missing executable only warns."""

    host_dir = data_dir.parent
    candidates: list[Path] = []
    if host_dir.is_dir():
        candidates = sorted(
            entry for entry in host_dir.iterdir()
            if entry.is_file() and entry.name.lower() == HOST_EXECUTABLE
        )
    if not candidates:
        console.warn(f"{HOST_EXECUTABLE} not found in {host_dir}")
        return False
    executable = candidates[0]
    console.info(f"Starting AviUtl2: {executable}")
    runner.spawn([str(executable), *args], cwd=executable.parent)
    return True


__all__ = [
    "HOST_EXECUTABLE",
    "HostInstaller",
    "find_data_dir",
    "find_host_executable",
    "launch_host",
]
