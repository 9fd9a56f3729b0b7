"""Per-invocation collaborators shared by the CLI commands."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from core.archive import ArchiveManager
from core.command_runner import CommandRunner, SubprocessCommandRunner
from core.console import Console

from .build_graph import BuildExecutor
from .host import HostFetcher, HostInstaller, fetch_host_zip
from .layout import ProjectLayout
from .sources import Fetcher, SourceResolver, http_get


@dataclass
class Context:
    workspace: Path
    console: Console
    runner: CommandRunner
    layout: ProjectLayout
    sources: SourceResolver
    executor: BuildExecutor
    archives: ArchiveManager
    host: HostInstaller

    @classmethod
    def create(
        cls,
        workspace: Path,
        *,
        console: Console | None = None,
        runner: CommandRunner | None = None,
        fetch: Fetcher | None = None,
        host_fetch: HostFetcher | None = None,
    ) -> "Context":
        console = console or Console()
        runner = runner or SubprocessCommandRunner()
        layout = ProjectLayout(workspace)
        archives = ArchiveManager(console)
        return cls(
            workspace=workspace,
            console=console,
            runner=runner,
            layout=layout,
            sources=SourceResolver(layout.cache_dir, console, fetch or http_get),
            executor=BuildExecutor(runner=runner, console=console, workspace=workspace),
            archives=archives,
            host=HostInstaller(console, archives, host_fetch or fetch_host_zip),
        )


__all__ = ["Context"]
