"""Zip packing of staged directories and guarded unpacking of downloads."""
from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import BinaryIO, Iterator, Protocol, Tuple, runtime_checkable
import io
import shutil
import zipfile


@runtime_checkable
class ArchiveConsole(Protocol):
    """Console methods :class:`ArchiveManager` reports through."""

    def info(self, message: str) -> None:
        ...

    def debug(self, message: str) -> None:
        ...


class UnsafeArchiveEntryError(ValueError):
    """An entry name that would land outside the extraction directory."""


class InvalidArchiveError(ValueError):
    """Data that cannot be read as a zip archive."""


def safe_join(base: Path, entry_name: str) -> Path:
    """Join ``entry_name`` onto ``base``, rejecting entries that escape it.

    ``.`` components are dropped; absolute paths, drive prefixes and ``..``
    components raise :class:`UnsafeArchiveEntryError`.
    """

    pure = PurePosixPath(entry_name.replace("\\", "/"))
    if pure.is_absolute() or (pure.parts and ":" in pure.parts[0]):
        raise UnsafeArchiveEntryError(f"Unsafe path in archive: {entry_name}")

    kept = [part for part in pure.parts if part not in ("", ".")]
    if ".." in kept:
        raise UnsafeArchiveEntryError(f"Unsafe path in archive: {entry_name}")
    return base.joinpath(*kept)


def iter_entries(source_dir: Path) -> Iterator[Tuple[Path, str]]:
    """Yield ``(file, entry_name)`` pairs, files of a directory before its subdirectories."""

    files = [path for path in source_dir.rglob("*") if path.is_file()]
    files.sort(key=lambda path: (path.relative_to(source_dir).parent.parts, path.name))
    for path in files:
        yield path, path.relative_to(source_dir).as_posix()


def _clear(path: Path) -> None:
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.is_dir():
        shutil.rmtree(path)


class ArchiveManager:
    """Pack release stages and unpack host downloads."""

    def __init__(self, console: ArchiveConsole) -> None:
        self._console = console

    def pack(self, source_dir: Path, target: Path, *, label: str | None = None) -> Path:
        """Write every file under ``source_dir`` into a deflate zip at ``target``.

        Entry names use forward slashes; an existing ``target`` is replaced.
        """

        if not source_dir.is_dir():
            raise FileNotFoundError(f"Nothing to package: '{source_dir}' is not a directory")

        target.parent.mkdir(parents=True, exist_ok=True)
        count = 0
        with zipfile.ZipFile(target, "w", zipfile.ZIP_DEFLATED, strict_timestamps=False) as bundle:
            for path, name in iter_entries(source_dir):
                bundle.write(path, name)
                self._console.debug(f"  + {name}")
                count += 1

        self._console.info(f"Packed {count} file(s) of {label or source_dir.name} into {target}")
        return target

    def unpack(self, source: Path | bytes, destination: Path, *, label: str | None = None) -> int:
        """Extract a zip given as a path or raw bytes; returns the number of files written.

        Files already present at entry locations are replaced. A body that is
        not a readable zip raises :class:`InvalidArchiveError` naming ``label``.
        """

        if isinstance(source, bytes):
            handle: Path | BinaryIO = io.BytesIO(source)
            name = label or "downloaded data"
        else:
            handle, name = source, label or str(source)

        try:
            with zipfile.ZipFile(handle) as bundle:
                members = [(member, safe_join(destination, member.filename)) for member in bundle.infolist()]
                destination.mkdir(parents=True, exist_ok=True)
                written = 0
                for member, out_path in members:
                    if member.is_dir():
                        if out_path.exists() and not out_path.is_dir():
                            _clear(out_path)
                        out_path.mkdir(parents=True, exist_ok=True)
                        continue
                    out_path.parent.mkdir(parents=True, exist_ok=True)
                    _clear(out_path)
                    out_path.write_bytes(bundle.read(member))
                    written += 1
        except zipfile.BadZipFile as exc:
            raise InvalidArchiveError(f"{name} is not a valid zip archive: {exc}") from exc

        self._console.debug(f"Unpacked {written} file(s) into {destination}")
        return written


__all__ = [
    "ArchiveConsole",
    "ArchiveManager",
    "InvalidArchiveError",
    "UnsafeArchiveEntryError",
    "iter_entries",
    "safe_join",
]
