"""Development and preview flows: host setup, artifact placement and launch."""
from __future__ import annotations

from pathlib import Path
from typing import Sequence

from .artifacts import resolve_artifacts
from .config import Config
from .context import Context
from .host import find_data_dir, launch_host
from .placement import Placer, copy_dir_contents
from .release import release_profile, stage_resolved
from .schema import write_schema
from .snapshot import build_snapshot, warn_if_changed, write_snapshot

DEFAULT_DEVELOP_PROFILE = "debug"
# Never copied into a preview install.
PREVIEW_NOTE = Path("preview.txt")


def development_profile(config: Config, override: str | None = None) -> str:
    if override:
        return override
    development = config.require_development()
    return development.profile or DEFAULT_DEVELOP_PROFILE


def prepare_schema(ctx: Context) -> Path:
    return write_schema(ctx.layout.schema_path, ctx.console)


def prepare_host(ctx: Context, config: Config) -> bool:
    development = config.require_development()
    return ctx.host.install(ctx.layout.development_dir(development), development.aviutl2_version)


def prepare_artifacts(
    ctx: Context,
    config: Config,
    *,
    force: bool = False,
    profile: str | None = None,
    refresh: bool = False,
) -> int:
    """Place artifacts into the development install without building them.

    Symlinks get targets relative to their own directory. Copy artifacts whose
    source has not been built yet are skipped; ``develop`` copies them later.
    Returns the number of placed artifacts.
    """

    development = config.require_development()
    artifacts = resolve_artifacts(
        config,
        profile=development_profile(config, profile),
        sources=ctx.sources,
        refresh=refresh,
    )
    data_dir = find_data_dir(ctx.layout.development_dir(development))
    placer = Placer(
        workspace=ctx.workspace,
        console=ctx.console,
        force=force,
        relative_links=True,
        skip_missing_copies=True,
    )
    placed = sum(1 for artifact in artifacts if placer.place(artifact, data_dir))
    ctx.console.info(f"Placed {placed} artifact(s) into {data_dir}")

    write_snapshot(
        ctx.layout.prepare_snapshot_path,
        build_snapshot(config, development.aviutl2_version),
    )
    return placed


def prepare_all(ctx: Context, config: Config, *, force: bool = False) -> None:
    prepare_schema(ctx)
    prepare_host(ctx, config)
    prepare_artifacts(ctx, config, force=force)


def run_develop(
    ctx: Context,
    config: Config,
    *,
    profile: str | None = None,
    skip_start: bool = False,
    refresh: bool = False,
    args: Sequence[str] = (),
) -> Path:
    """Build and place every artifact into the development install, then launch it."""

    development = config.require_development()
    warn_if_changed(
        ctx.layout.prepare_snapshot_path,
        build_snapshot(config, development.aviutl2_version),
        ctx.console,
    )

    ctx.executor.run_optional(development.prebuild, config.build_groups)
    artifacts = resolve_artifacts(
        config,
        profile=development_profile(config, profile),
        sources=ctx.sources,
        refresh=refresh,
    )
    data_dir = find_data_dir(ctx.layout.development_dir(development))
    placer = Placer(workspace=ctx.workspace, console=ctx.console, force=True)
    for artifact in artifacts:
        ctx.executor.run_plan(artifact.build_plan)
        placer.place(artifact, data_dir)
    ctx.executor.run_optional(development.postbuild, config.build_groups)

    if not skip_start:
        launch_host(data_dir, runner=ctx.runner, console=ctx.console, args=args)
    return data_dir


def run_preview(
    ctx: Context,
    config: Config,
    *,
    profile: str | None = None,
    skip_start: bool = False,
    refresh: bool = False,
) -> Path:
    """Install the release build into a separate preview copy of AviUtl2."""

    preview = config.require_preview()
    release = config.require_release()
    version = preview.aviutl2_version or config.require_development().aviutl2_version
    install_dir = ctx.layout.preview_dir(preview)
    ctx.host.install(install_dir, version)

    profile_name = profile or preview.profile or release_profile(config)
    include = preview.include if preview.include is not None else release.include

    ctx.executor.run_optional(preview.prebuild, config.build_groups)
    artifacts = resolve_artifacts(
        config,
        profile=profile_name,
        sources=ctx.sources,
        include=include,
        refresh=refresh,
    )
    artifacts = [artifact for artifact in artifacts if artifact.destination != PREVIEW_NOTE]
    stage_dir = stage_resolved(ctx, artifacts, project=config.project, package_template=None)
    data_dir = find_data_dir(install_dir)
    copy_dir_contents(stage_dir, data_dir, force=True, console=ctx.console)
    ctx.console.info(f"Placed preview build into {data_dir}")
    ctx.executor.run_optional(preview.postbuild, config.build_groups)

    if not skip_start:
        launch_host(data_dir, runner=ctx.runner, console=ctx.console)
    return data_dir


__all__ = [
    "development_profile",
    "prepare_all",
    "prepare_artifacts",
    "prepare_host",
    "prepare_schema",
    "run_develop",
    "run_preview",
]
