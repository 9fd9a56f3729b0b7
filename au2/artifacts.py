"""Merging of per-profile overrides onto artifact declarations."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Collection, List

from .build_graph import ResolvedBuild, resolve_build_plan
from .config import Config, PlacementMethod
from .errors import ConfigurationError
from .sources import SourceResolver


@dataclass(frozen=True, slots=True)
class ResolvedArtifact:
    name: str
    source_ref: str
    source: Path
    destination: Path
    build_plan: ResolvedBuild
    placement_method: PlacementMethod


def resolve_artifacts(
    config: Config,
    *,
    profile: str | None,
    sources: SourceResolver,
    include: Collection[str] | None = None,
    refresh: bool = False,
) -> List[ResolvedArtifact]:
    """Resolve every enabled artifact for ``profile`` in declaration order.

    Profile values win over the base declaration field by field; an artifact
    without an override for ``profile`` resolves to its base declaration.
    """

    resolved: List[ResolvedArtifact] = []
    for name, artifact in config.artifacts.items():
        if include is not None and name not in include:
            continue

        override = artifact.profiles.get(profile) if profile is not None else None

        enabled = override.enabled if override is not None and override.enabled is not None else artifact.enabled
        if enabled is None:
            enabled = True
        if not enabled:
            continue

        source_ref = override.source if override is not None and override.source is not None else artifact.source
        if source_ref is None:
            raise ConfigurationError(f"artifacts.{name}.source is required")
        source = sources.resolve(source_ref, refresh=refresh)

        build = override.build if override is not None and override.build is not None else artifact.build
        build_plan = resolve_build_plan(build, config.build_groups)

        resolved.append(
            ResolvedArtifact(
                name=name,
                source_ref=source_ref,
                source=source,
                destination=Path(artifact.destination),
                build_plan=build_plan,
                placement_method=artifact.placement_method or PlacementMethod.SYMLINK,
            )
        )
    return resolved


__all__ = ["ResolvedArtifact", "resolve_artifacts"]
