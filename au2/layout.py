"""On-disk layout of the ``.aviutl2-cli`` working directory."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .config import Development, Preview

CLI_DIRNAME = ".aviutl2-cli"


@dataclass(frozen=True, slots=True)
class ProjectLayout:
    """Paths derived from the project directory the CLI runs in."""

    workspace: Path

    @property
    def cli_dir(self) -> Path:
        return self.workspace / CLI_DIRNAME

    @property
    def cache_dir(self) -> Path:
        return self.cli_dir / "cache"

    @property
    def release_stage_dir(self) -> Path:
        return self.cli_dir / "release-stage"

    @property
    def schema_path(self) -> Path:
        return self.cli_dir / "aviutl2.schema.json"

    @property
    def prepare_snapshot_path(self) -> Path:
        return self.cli_dir / "prepare-snapshot.json"

    def resolve(self, path: str | Path) -> Path:
        """Interpret ``path`` relative to the workspace unless it is absolute."""
        return self.workspace / Path(path).expanduser()

    def development_dir(self, development: Development) -> Path:
        if development.install_dir:
            return self.resolve(development.install_dir)
        return self.cli_dir / "development"

    def preview_dir(self, preview: Preview) -> Path:
        if preview.install_dir:
            return self.resolve(preview.install_dir)
        return self.cli_dir / "preview"


__all__ = ["CLI_DIRNAME", "ProjectLayout"]
