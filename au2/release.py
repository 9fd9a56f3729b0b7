"""Release staging and ``.au2pkg.zip`` packaging."""
from __future__ import annotations

from pathlib import Path
from typing import Collection, Iterable

from .artifacts import ResolvedArtifact, resolve_artifacts
from .config import Config, ProjectInfo, Release
from .context import Context
from .placement import stage_artifacts

DEFAULT_PROFILE = "release"
DEFAULT_ZIP_NAME = "{name}-v{version}"
PACKAGE_SUFFIX = ".au2pkg.zip"
PACKAGE_TXT = "package.txt"


def fill_template(template: str, project: ProjectInfo) -> str:
    return template.replace("{name}", project.name).replace("{version}", project.version)


def normalize_to_crlf(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\n", "\r\n")


def zip_name_template(release: Release | None) -> str:
    base = (release.zip_name if release else None) or DEFAULT_ZIP_NAME
    if base.endswith(PACKAGE_SUFFIX):
        return base
    return f"{base}{PACKAGE_SUFFIX}"


def release_profile(config: Config, override: str | None = None) -> str:
    if override:
        return override
    if config.release and config.release.profile:
        return config.release.profile
    return DEFAULT_PROFILE


def stage_resolved(
    ctx: Context,
    artifacts: Iterable[ResolvedArtifact],
    *,
    project: ProjectInfo,
    package_template: str | None,
) -> Path:
    """Copy ``artifacts`` into a fresh staging tree and render ``package.txt``."""

    stage_dir = stage_artifacts(
        artifacts,
        ctx.layout.release_stage_dir,
        executor=ctx.executor,
        workspace=ctx.workspace,
        console=ctx.console,
    )
    if package_template:
        template_path = ctx.layout.resolve(package_template)
        content = template_path.read_text(encoding="utf-8")
        target = stage_dir / PACKAGE_TXT
        target.write_bytes(normalize_to_crlf(fill_template(content, project)).encode("utf-8"))
        ctx.console.info(f"Rendered {template_path} -> {target}")
    return stage_dir


def build_release_stage(
    ctx: Context,
    config: Config,
    *,
    profile: str,
    include: Collection[str] | None = None,
    refresh: bool = False,
) -> Path:
    artifacts = resolve_artifacts(
        config,
        profile=profile,
        sources=ctx.sources,
        include=include,
        refresh=refresh,
    )
    release = config.release
    return stage_resolved(
        ctx,
        artifacts,
        project=config.project,
        package_template=release.package_template if release else None,
    )


def package_release(
    ctx: Context,
    config: Config,
    *,
    profile: str | None = None,
    refresh: bool = False,
) -> Path:
    """Run the full release flow and return the written zip path."""

    release = config.require_release()
    profile_name = release_profile(config, profile)
    output_dir = ctx.layout.resolve(release.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    ctx.executor.run_optional(release.prebuild, config.build_groups)
    stage_dir = build_release_stage(
        ctx,
        config,
        profile=profile_name,
        include=release.include,
        refresh=refresh,
    )

    zip_path = output_dir / fill_template(zip_name_template(release), config.project)
    ctx.archives.pack(stage_dir, zip_path, label=config.project.name)
    ctx.console.info(f"Created release package: {zip_path}")
    ctx.executor.run_optional(release.postbuild, config.build_groups)
    return zip_path


__all__ = [
    "DEFAULT_ZIP_NAME",
    "PACKAGE_SUFFIX",
    "build_release_stage",
    "fill_template",
    "normalize_to_crlf",
    "package_release",
    "release_profile",
    "stage_resolved",
    "zip_name_template",
]
