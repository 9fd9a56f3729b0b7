"""Typed model of the ``aviutl2.toml`` project configuration."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Any, Dict, List, Mapping, Sequence
import os

from core.config_loader import find_config_file, load_config_file, normalize_string_list

from .errors import ConfigurationError

CONFIG_STEM = "aviutl2"
CONFIG_FILENAME = f"{CONFIG_STEM}.toml"


class PlacementMethod(str, Enum):
    SYMLINK = "symlink"
    COPY = "copy"


class BuildRefKind(str, Enum):
    COMMAND = "command"
    LIST = "list"
    GROUP = "group"


@dataclass(frozen=True, slots=True)
class BuildRef:
    """A build reference: one command, an ordered list, or a named group."""

    kind: BuildRefKind
    commands: tuple[str, ...] = ()
    group: str | None = None

    @classmethod
    def command(cls, text: str) -> "BuildRef":
        return cls(kind=BuildRefKind.COMMAND, commands=(text,))

    @classmethod
    def sequence(cls, commands: Sequence[str]) -> "BuildRef":
        return cls(kind=BuildRefKind.LIST, commands=tuple(commands))

    @classmethod
    def group_ref(cls, name: str) -> "BuildRef":
        return cls(kind=BuildRefKind.GROUP, group=name)

    @classmethod
    def from_value(cls, value: Any, *, field_name: str) -> "BuildRef":
        if isinstance(value, str):
            return cls.command(value)
        if isinstance(value, Mapping):
            name = value.get("group")
            if not isinstance(name, str) or not name.strip():
                raise ConfigurationError(f"{field_name}.group must be a non-empty string")
            return cls.group_ref(name.strip())
        if isinstance(value, Sequence):
            if not all(isinstance(item, str) for item in value):
                raise ConfigurationError(f"{field_name} entries must be strings")
            return cls.sequence(value)
        raise ConfigurationError(
            f"{field_name} must be a command string, a list of commands, or {{ group = \"name\" }}"
        )

    @classmethod
    def optional(cls, value: Any, *, field_name: str) -> "BuildRef | None":
        if value is None:
            return None
        return cls.from_value(value, field_name=field_name)


def _section(data: Mapping[str, Any], key: str, *, label: str | None = None) -> Mapping[str, Any] | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"[{label or key}] must be a table")
    return value


def _optional_str(data: Mapping[str, Any], key: str, *, field_name: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigurationError(f"{field_name} must be a string")
    return value


def _required_str(data: Mapping[str, Any], key: str, *, field_name: str) -> str:
    value = _optional_str(data, key, field_name=field_name)
    if not value:
        raise ConfigurationError(f"{field_name} is required")
    return value


def _optional_bool(data: Mapping[str, Any], key: str, *, field_name: str) -> bool | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, bool):
        raise ConfigurationError(f"{field_name} must be a boolean")
    return value


def _optional_list(data: Mapping[str, Any], key: str, *, field_name: str) -> List[str] | None:
    value = data.get(key)
    if value is None:
        return None
    try:
        return normalize_string_list(value, field_name=field_name)
    except TypeError as exc:
        raise ConfigurationError(str(exc)) from exc


def _validate_destination(destination: str, *, field_name: str) -> str:
    normalized = destination.replace("\\", "/")
    pure = PurePosixPath(normalized)
    if pure.is_absolute() or (pure.parts and ":" in pure.parts[0]):
        raise ConfigurationError(f"{field_name} must be relative to the AviUtl2 data directory: {destination}")
    if ".." in pure.parts:
        raise ConfigurationError(f"{field_name} must not leave the AviUtl2 data directory: {destination}")
    return normalized


@dataclass(slots=True)
class ProjectInfo:
    name: str
    version: str

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ProjectInfo":
        return cls(
            name=_required_str(data, "name", field_name="project.name"),
            version=_required_str(data, "version", field_name="project.version"),
        )


@dataclass(slots=True)
class ArtifactProfile:
    enabled: bool | None = None
    source: str | None = None
    build: BuildRef | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, prefix: str) -> "ArtifactProfile":
        return cls(
            enabled=_optional_bool(data, "enabled", field_name=f"{prefix}.enabled"),
            source=_optional_str(data, "source", field_name=f"{prefix}.source"),
            build=BuildRef.optional(data.get("build"), field_name=f"{prefix}.build"),
        )


@dataclass(slots=True)
class Artifact:
    name: str
    destination: str
    enabled: bool | None = None
    source: str | None = None
    build: BuildRef | None = None
    placement_method: PlacementMethod | None = None
    profiles: Dict[str, ArtifactProfile] = field(default_factory=dict)
    raw: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, name: str, data: Mapping[str, Any]) -> "Artifact":
        prefix = f"artifacts.{name}"
        destination = _validate_destination(
            _required_str(data, "destination", field_name=f"{prefix}.destination"),
            field_name=f"{prefix}.destination",
        )

        raw_method = data.get("placement_method")
        placement_method: PlacementMethod | None = None
        if raw_method is not None:
            try:
                placement_method = PlacementMethod(str(raw_method).lower())
            except ValueError as exc:
                raise ConfigurationError(
                    f"{prefix}.placement_method must be 'symlink' or 'copy', got '{raw_method}'"
                ) from exc

        profiles: Dict[str, ArtifactProfile] = {}
        profiles_section = _section(data, "profiles", label=f"{prefix}.profiles")
        if profiles_section:
            for profile_name, profile_data in profiles_section.items():
                if not isinstance(profile_data, Mapping):
                    raise ConfigurationError(f"[{prefix}.profiles.{profile_name}] must be a table")
                profiles[str(profile_name)] = ArtifactProfile.from_mapping(
                    profile_data, prefix=f"{prefix}.profiles.{profile_name}"
                )

        return cls(
            name=name,
            destination=destination,
            enabled=_optional_bool(data, "enabled", field_name=f"{prefix}.enabled"),
            source=_optional_str(data, "source", field_name=f"{prefix}.source"),
            build=BuildRef.optional(data.get("build"), field_name=f"{prefix}.build"),
            placement_method=placement_method,
            profiles=profiles,
            raw=dict(data),
        )


@dataclass(slots=True)
class Development:
    aviutl2_version: str
    install_dir: str | None = None
    profile: str | None = None
    prebuild: BuildRef | None = None
    postbuild: BuildRef | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Development":
        return cls(
            aviutl2_version=_required_str(data, "aviutl2_version", field_name="development.aviutl2_version"),
            install_dir=_optional_str(data, "install_dir", field_name="development.install_dir"),
            profile=_optional_str(data, "profile", field_name="development.profile"),
            prebuild=BuildRef.optional(data.get("prebuild"), field_name="development.prebuild"),
            postbuild=BuildRef.optional(data.get("postbuild"), field_name="development.postbuild"),
        )


@dataclass(slots=True)
class Preview:
    aviutl2_version: str | None = None
    install_dir: str | None = None
    profile: str | None = None
    include: List[str] | None = None
    prebuild: BuildRef | None = None
    postbuild: BuildRef | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Preview":
        return cls(
            aviutl2_version=_optional_str(data, "aviutl2_version", field_name="preview.aviutl2_version"),
            install_dir=_optional_str(data, "install_dir", field_name="preview.install_dir"),
            profile=_optional_str(data, "profile", field_name="preview.profile"),
            include=_optional_list(data, "include", field_name="preview.include"),
            prebuild=BuildRef.optional(data.get("prebuild"), field_name="preview.prebuild"),
            postbuild=BuildRef.optional(data.get("postbuild"), field_name="preview.postbuild"),
        )


@dataclass(slots=True)
class Release:
    output_dir: str = "release"
    package_template: str | None = None
    zip_name: str | None = None
    profile: str | None = None
    include: List[str] | None = None
    prebuild: BuildRef | None = None
    postbuild: BuildRef | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Release":
        return cls(
            output_dir=_optional_str(data, "output_dir", field_name="release.output_dir") or "release",
            package_template=_optional_str(data, "package_template", field_name="release.package_template"),
            zip_name=_optional_str(data, "zip_name", field_name="release.zip_name"),
            profile=_optional_str(data, "profile", field_name="release.profile"),
            include=_optional_list(data, "include", field_name="release.include"),
            prebuild=BuildRef.optional(data.get("prebuild"), field_name="release.prebuild"),
            postbuild=BuildRef.optional(data.get("postbuild"), field_name="release.postbuild"),
        )


class CatalogType(str, Enum):
    OUTPUT = "output"
    INPUT = "input"
    FILTER = "filter"
    COMMON = "common"
    MODIFICATION = "modification"
    SCRIPT = "script"
    LANGUAGE = "language"


TEMPLATE_LICENSE_TYPES = ("MIT", "Apache-2.0", "BSD-2-Clause", "BSD-3-Clause")


@dataclass(slots=True)
class CatalogLicense:
    """License declaration; ``kind`` is template, custom, cc0, other or unknown."""

    kind: str
    license_type: str
    year: str | None = None
    author: str | None = None
    text: str | None = None
    name: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "CatalogLicense":
        license_type = _required_str(data, "type", field_name="catalog.license.type")
        text = _optional_str(data, "text", field_name="catalog.license.text")
        lowered = license_type.lower()

        for template in TEMPLATE_LICENSE_TYPES:
            if lowered != template.lower():
                continue
            if text is not None:
                return cls(kind="custom", license_type=template, text=text)
            year = data.get("year")
            if year is None or year == "":
                raise ConfigurationError("catalog.license.year is required")
            return cls(
                kind="template",
                license_type=template,
                year=str(year),
                author=_required_str(data, "author", field_name="catalog.license.author"),
            )

        if lowered == "cc0":
            return cls(kind="cc0", license_type="CC0")
        if lowered == "other":
            return cls(
                kind="other",
                license_type="other",
                name=_optional_str(data, "name", field_name="catalog.license.name"),
                text=_required_str(data, "text", field_name="catalog.license.text"),
            )
        if lowered == "unknown":
            return cls(kind="unknown", license_type="unknown")
        raise ConfigurationError(f"catalog.license.type '{license_type}' is not supported")


@dataclass(slots=True)
class CatalogDownloadSource:
    """Where installers fetch the package from; ``kind`` selects the used fields."""

    kind: str
    url: str | None = None
    owner: str | None = None
    repo: str | None = None
    pattern: str | None = None
    id: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "CatalogDownloadSource":
        prefix = "catalog.download_source"
        kind = _required_str(data, "type", field_name=f"{prefix}.type").lower()
        if kind in {"direct", "booth"}:
            return cls(kind=kind, url=_required_str(data, "url", field_name=f"{prefix}.url"))
        if kind == "github":
            return cls(
                kind=kind,
                owner=_required_str(data, "owner", field_name=f"{prefix}.owner"),
                repo=_required_str(data, "repo", field_name=f"{prefix}.repo"),
                pattern=_optional_str(data, "pattern", field_name=f"{prefix}.pattern"),
            )
        if kind == "google_drive":
            return cls(kind=kind, id=_required_str(data, "id", field_name=f"{prefix}.id"))
        raise ConfigurationError(f"{prefix}.type '{kind}' is not supported")


@dataclass(slots=True)
class CatalogAction:
    action: str
    from_path: str | None = None
    to_path: str | None = None
    path: str | None = None
    args: List[str] = field(default_factory=list)
    elevate: bool | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, field_name: str) -> "CatalogAction":
        action = _required_str(data, "action", field_name=f"{field_name}.action").lower()
        if action in {"download", "extract"}:
            return cls(action=action)
        if action == "copy":
            return cls(
                action=action,
                from_path=_required_str(data, "from", field_name=f"{field_name}.from"),
                to_path=_required_str(data, "to", field_name=f"{field_name}.to"),
            )
        if action == "delete":
            return cls(action=action, path=_required_str(data, "path", field_name=f"{field_name}.path"))
        if action == "run":
            return cls(
                action=action,
                path=_required_str(data, "path", field_name=f"{field_name}.path"),
                args=_optional_list(data, "args", field_name=f"{field_name}.args") or [],
                elevate=_optional_bool(data, "elevate", field_name=f"{field_name}.elevate"),
            )
        raise ConfigurationError(f"{field_name}.action '{action}' is not supported")


def _parse_actions(value: Any, *, field_name: str) -> List[CatalogAction] | None:
    if value is None:
        return None
    if not isinstance(value, Sequence) or isinstance(value, (str, bytes)):
        raise ConfigurationError(f"{field_name} must be a list of tables")
    actions: List[CatalogAction] = []
    for index, item in enumerate(value):
        if not isinstance(item, Mapping):
            raise ConfigurationError(f"{field_name}[{index}] must be a table")
        actions.append(CatalogAction.from_mapping(item, field_name=f"{field_name}[{index}]"))
    return actions


def _parse_description(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, Mapping):
        for key in ("url", "content"):
            text = value.get(key)
            if isinstance(text, str):
                return text
    raise ConfigurationError("catalog.description must be a string, { url = ... } or { content = ... }")


@dataclass(slots=True)
class Catalog:
    id: str
    name: str
    catalog_type: CatalogType
    summary: str
    description: str
    author: str
    homepage: str
    license: CatalogLicense
    download_source: CatalogDownloadSource
    niconi_commons_id: str | None = None
    tags: List[str] = field(default_factory=list)
    dependencies: List[str] = field(default_factory=list)
    install_steps: List[CatalogAction] | None = None
    uninstall_steps: List[CatalogAction] | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Catalog":
        raw_type = _required_str(data, "type", field_name="catalog.type")
        try:
            catalog_type = CatalogType(raw_type.lower())
        except ValueError as exc:
            choices = ", ".join(member.value for member in CatalogType)
            raise ConfigurationError(f"catalog.type must be one of {choices}, got '{raw_type}'") from exc

        license_section = _section(data, "license", label="catalog.license")
        if license_section is None:
            raise ConfigurationError("catalog.license is required")
        source_section = _section(data, "download_source", label="catalog.download_source")
        if source_section is None:
            raise ConfigurationError("catalog.download_source is required")
        if "description" not in data:
            raise ConfigurationError("catalog.description is required")

        return cls(
            id=_required_str(data, "id", field_name="catalog.id"),
            name=_required_str(data, "name", field_name="catalog.name"),
            catalog_type=catalog_type,
            summary=_required_str(data, "summary", field_name="catalog.summary"),
            description=_parse_description(data.get("description")),
            author=_required_str(data, "author", field_name="catalog.author"),
            homepage=_required_str(data, "homepage", field_name="catalog.homepage"),
            license=CatalogLicense.from_mapping(license_section),
            download_source=CatalogDownloadSource.from_mapping(source_section),
            niconi_commons_id=_optional_str(data, "niconi_commons_id", field_name="catalog.niconi_commons_id"),
            tags=_optional_list(data, "tags", field_name="catalog.tags") or [],
            dependencies=_optional_list(data, "dependencies", field_name="catalog.dependencies") or [],
            install_steps=_parse_actions(data.get("install_steps"), field_name="catalog.install_steps"),
            uninstall_steps=_parse_actions(data.get("uninstall_steps"), field_name="catalog.uninstall_steps"),
        )


@dataclass(slots=True)
class Config:
    project: ProjectInfo
    artifacts: Dict[str, Artifact] = field(default_factory=dict)
    build_groups: Dict[str, BuildRef] | None = None
    development: Development | None = None
    preview: Preview | None = None
    release: Release | None = None
    catalog: Catalog | None = None
    path: Path | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, path: Path | None = None) -> "Config":
        project_section = _section(data, "project")
        if project_section is None:
            raise ConfigurationError("[project] section is required")

        artifacts: Dict[str, Artifact] = {}
        artifacts_section = _section(data, "artifacts")
        if artifacts_section is None:
            raise ConfigurationError("[artifacts] section is required")
        for name, artifact_data in artifacts_section.items():
            if not isinstance(artifact_data, Mapping):
                raise ConfigurationError(f"[artifacts.{name}] must be a table")
            artifacts[str(name)] = Artifact.from_mapping(str(name), artifact_data)

        build_groups: Dict[str, BuildRef] | None = None
        groups_section = _section(data, "build_group")
        if groups_section is not None:
            build_groups = {
                str(name): BuildRef.from_value(value, field_name=f"build_group.{name}")
                for name, value in groups_section.items()
            }

        development = _section(data, "development")
        preview = _section(data, "preview")
        release = _section(data, "release")
        catalog = _section(data, "catalog")

        return cls(
            project=ProjectInfo.from_mapping(project_section),
            artifacts=artifacts,
            build_groups=build_groups,
            development=Development.from_mapping(development) if development is not None else None,
            preview=Preview.from_mapping(preview) if preview is not None else None,
            release=Release.from_mapping(release) if release is not None else None,
            catalog=Catalog.from_mapping(catalog) if catalog is not None else None,
            path=path,
        )

    def require_development(self) -> Development:
        if self.development is None:
            raise ConfigurationError("[development] section is required")
        return self.development

    def require_preview(self) -> Preview:
        if self.preview is None:
            raise ConfigurationError("[preview] section is required")
        return self.preview

    def require_release(self) -> Release:
        if self.release is None:
            raise ConfigurationError("[release] section is required")
        return self.release

    def require_catalog(self) -> Catalog:
        if self.catalog is None:
            raise ConfigurationError("[catalog] section is required")
        return self.catalog


def user_config_dir(environ: Mapping[str, str] | None = None) -> Path | None:
    env = os.environ if environ is None else environ
    xdg = env.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg)
    home = env.get("HOME")
    if home:
        return Path(home) / ".config"
    return None


def find_config_path(workspace: Path, *, environ: Mapping[str, str] | None = None) -> Path:
    """Locate ``aviutl2.<ext>`` in ``workspace``, falling back to the user config directory."""

    directories = [workspace]
    fallback = user_config_dir(environ)
    if fallback is not None:
        directories.append(fallback)
    path = find_config_file(directories, CONFIG_STEM)
    if path is None:
        raise ConfigurationError(f"{CONFIG_FILENAME} not found in {workspace}")
    return path


def load_config(workspace: Path, *, environ: Mapping[str, str] | None = None) -> Config:
    try:
        path = find_config_path(workspace, environ=environ)
        data = load_config_file(path)
    except ConfigurationError:
        raise
    except (TypeError, ValueError, RuntimeError) as exc:
        raise ConfigurationError(str(exc)) from exc
    return Config.from_mapping(data, path=path)


__all__ = [
    "Artifact",
    "ArtifactProfile",
    "BuildRef",
    "BuildRefKind",
    "CONFIG_FILENAME",
    "Catalog",
    "CatalogAction",
    "CatalogDownloadSource",
    "CatalogLicense",
    "CatalogType",
    "Config",
    "Development",
    "PlacementMethod",
    "Preview",
    "ProjectInfo",
    "Release",
    "find_config_path",
    "load_config",
]
