"""Placement of resolved artifacts into a host data directory or staging tree."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable
import os
import shutil

from core.console import Console

from .artifacts import ResolvedArtifact
from .build_graph import BuildExecutor
from .config import PlacementMethod
from .errors import DestinationExistsError


def remove_path(path: Path) -> None:
    """Delete ``path`` whatever it is; a missing path is not an error."""

    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink(missing_ok=True)


def clear_destination(destination: Path, *, force: bool) -> None:
    """Remove a managed entry at ``destination``.

    Symbolic links are always considered managed. Anything else is only
    removed when ``force`` is set, otherwise :class:`DestinationExistsError`
    is raised and the entry is left untouched.
    """

    if not destination.is_symlink() and not destination.exists():
        return
    if destination.is_symlink() or force:
        remove_path(destination)
        return
    raise DestinationExistsError(destination)


def copy_to_destination(source: Path, destination: Path, *, force: bool, console: Console) -> None:
    destination.parent.mkdir(parents=True, exist_ok=True)
    clear_destination(destination, force=force)
    shutil.copyfile(source, destination)
    console.info(f"Copied {source} -> {destination}")


def create_symlink(target: Path, destination: Path, *, force: bool, console: Console) -> None:
    """Point ``destination`` at ``target``, retrying once if another writer raced us."""

    destination.parent.mkdir(parents=True, exist_ok=True)
    clear_destination(destination, force=force)
    try:
        os.symlink(target, destination)
    except FileExistsError:
        clear_destination(destination, force=force)
        os.symlink(target, destination)
    console.info(f"Linked {destination} -> {target}")


def copy_dir_contents(source_dir: Path, destination_dir: Path, *, force: bool, console: Console) -> None:
    """Copy every file below ``source_dir`` to the same relative path under ``destination_dir``."""

    for dirpath, dirnames, filenames in os.walk(source_dir):
        dirnames.sort()
        current = Path(dirpath)
        relative = current.relative_to(source_dir)
        for filename in sorted(filenames):
            copy_to_destination(
                current / filename,
                destination_dir / relative / filename,
                force=force,
                console=console,
            )


@dataclass
class Placer:
    """Applies resolved artifacts to a directory tree.

    ``relative_links`` makes symlink targets relative to the link's parent
    directory so the tree keeps working when moved; otherwise links point at
    the absolute source path.
    """

    workspace: Path
    console: Console
    force: bool = False
    relative_links: bool = False
    skip_missing_copies: bool = False

    def source_path(self, artifact: ResolvedArtifact) -> Path:
        return self.workspace / artifact.source

    def link_target(self, artifact: ResolvedArtifact, destination: Path) -> Path:
        source = self.source_path(artifact)
        if not self.relative_links:
            return source
        return Path(os.path.relpath(source, destination.parent))

    def place(self, artifact: ResolvedArtifact, root: Path) -> bool:
        """Place ``artifact`` under ``root``; returns ``False`` when it was skipped."""

        destination = root / artifact.destination
        if artifact.placement_method is PlacementMethod.SYMLINK:
            create_symlink(
                self.link_target(artifact, destination),
                destination,
                force=self.force,
                console=self.console,
            )
            return True

        source = self.source_path(artifact)
        if not source.is_file():
            if self.skip_missing_copies:
                self.console.warn(f"Source for artifact '{artifact.name}' not found, skipping: {source}")
                return False
            raise FileNotFoundError(f"Source for artifact '{artifact.name}' not found: {source}")
        copy_to_destination(source, destination, force=self.force, console=self.console)
        return True


def stage_artifacts(
    artifacts: Iterable[ResolvedArtifact],
    stage_dir: Path,
    *,
    executor: BuildExecutor,
    workspace: Path,
    console: Console,
) -> Path:
    """Build and copy ``artifacts`` into a freshly recreated ``stage_dir``.

    The configured placement method is ignored: staged trees always hold
    real copies.
    """

    if stage_dir.exists() or stage_dir.is_symlink():
        remove_path(stage_dir)
    stage_dir.mkdir(parents=True)

    for artifact in artifacts:
        executor.run_plan(artifact.build_plan)
        source = workspace / artifact.source
        if not source.is_file():
            raise FileNotFoundError(f"Source for artifact '{artifact.name}' not found: {source}")
        copy_to_destination(source, stage_dir / artifact.destination, force=True, console=console)
    return stage_dir


__all__ = [
    "Placer",
    "clear_destination",
    "copy_dir_contents",
    "copy_to_destination",
    "create_symlink",
    "remove_path",
    "stage_artifacts",
]
