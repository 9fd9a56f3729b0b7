"""Generation of the installer catalog manifest (``catalog.json``)."""
from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping
import json
import os

from core.digest import digest_file

from .config import (
    Catalog,
    CatalogAction,
    CatalogDownloadSource,
    CatalogLicense,
    CatalogType,
    Config,
    ProjectInfo,
    Release,
)
from .context import Context
from .release import build_release_stage, release_profile, zip_name_template

CATALOG_FILENAME = "catalog.json"

CATALOG_TYPE_LABELS: Mapping[CatalogType, str] = {
    CatalogType.OUTPUT: "出力プラグイン",
    CatalogType.INPUT: "入力プラグイン",
    CatalogType.FILTER: "フィルタプラグイン",
    CatalogType.COMMON: "汎用プラグイン",
    CatalogType.MODIFICATION: "MOD",
    CatalogType.SCRIPT: "スクリプト",
    CatalogType.LANGUAGE: "スクリプト",
}

_REGEX_SPECIALS = frozenset("\\^$.|?*+()[]{}")
_NAME_TOKEN = "__AU2_NAME_TOKEN__"
_VERSION_TOKEN = "__AU2_VERSION_TOKEN__"


def regex_escape(text: str) -> str:
    return "".join(f"\\{char}" if char in _REGEX_SPECIALS else char for char in text)


def generate_au2pkg_pattern(project: ProjectInfo, release: Release | None) -> str:
    """Anchored regex matching the release zip name for any version of ``project``."""

    tokenized = (
        zip_name_template(release)
        .replace("{name}", _NAME_TOKEN)
        .replace("{version}", _VERSION_TOKEN)
    )
    escaped = regex_escape(tokenized)
    escaped = escaped.replace(_NAME_TOKEN, regex_escape(project.name))
    escaped = escaped.replace(_VERSION_TOKEN, "[^/]+")
    return f"^{escaped}$"


def collect_version_files(stage_dir: Path) -> List[Dict[str, str]]:
    files: List[Dict[str, str]] = []
    for dirpath, dirnames, filenames in os.walk(stage_dir):
        dirnames.sort()
        current = Path(dirpath)
        for filename in filenames:
            path = current / filename
            files.append(
                {
                    "path": path.relative_to(stage_dir).as_posix(),
                    "XXH3_128": digest_file(path),
                }
            )
    files.sort(key=lambda item: item["path"])
    return files


def default_install_steps(files: List[Mapping[str, str]]) -> List[Dict[str, Any]]:
    steps: List[Dict[str, Any]] = [{"action": "download"}, {"action": "extract"}]
    for item in files:
        if item["path"].lower() == "package.txt":
            continue
        steps.append({"action": "copy", "from": item["path"], "to": item["path"]})
    return steps


def map_license(license: CatalogLicense) -> Dict[str, Any]:
    if license.kind == "template":
        return {
            "type": license.license_type,
            "isCustom": False,
            "copyrights": [{"years": license.year, "holder": license.author}],
            "licenseBody": None,
        }
    if license.kind == "custom":
        return {
            "type": license.license_type.lower(),
            "isCustom": True,
            "copyrights": [],
            "licenseBody": license.text,
        }
    if license.kind == "other":
        return {
            "type": license.name or "other",
            "isCustom": True,
            "copyrights": [],
            "licenseBody": license.text,
        }
    return {
        "type": license.license_type.lower(),
        "isCustom": False,
        "copyrights": [],
        "licenseBody": None,
    }


def map_source(source: CatalogDownloadSource, generated_pattern: str) -> Dict[str, Any]:
    if source.kind == "direct":
        return {"direct": source.url}
    if source.kind == "booth":
        return {"booth": source.url}
    if source.kind == "github":
        return {
            "github": {
                "owner": source.owner,
                "repo": source.repo,
                "pattern": source.pattern or generated_pattern,
            }
        }
    return {"GoogleDrive": {"id": source.id}}


def map_action(action: CatalogAction) -> Dict[str, Any]:
    if action.action == "copy":
        return {"action": "copy", "from": action.from_path, "to": action.to_path}
    if action.action == "delete":
        return {"action": "delete", "path": action.path}
    if action.action == "run":
        return {
            "action": "run",
            "path": action.path,
            "args": list(action.args),
            "elevate": action.elevate,
        }
    return {"action": action.action}


def release_date(now: datetime | None = None) -> str:
    moment = now or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%d")


def build_catalog_entry(
    catalog: Catalog,
    *,
    project: ProjectInfo,
    release: Release | None,
    files: List[Dict[str, str]],
    date: str,
) -> Dict[str, Any]:
    if catalog.install_steps is not None:
        install = [map_action(action) for action in catalog.install_steps]
    else:
        install = default_install_steps(files)
    uninstall = [map_action(action) for action in catalog.uninstall_steps or []]

    return {
        "id": catalog.id,
        "name": catalog.name,
        "type": CATALOG_TYPE_LABELS[catalog.catalog_type],
        "summary": catalog.summary,
        "description": catalog.description,
        "author": catalog.author,
        "repoURL": catalog.homepage,
        "licenses": [map_license(catalog.license)],
        "niconiCommonsId": catalog.niconi_commons_id,
        "tags": list(catalog.tags),
        "dependencies": list(catalog.dependencies),
        "images": [],
        "installer": {
            "source": map_source(catalog.download_source, generate_au2pkg_pattern(project, release)),
            "install": install,
            "uninstall": uninstall,
        },
        "version": [
            {
                "version": project.version,
                "release_date": date,
                "file": files,
            }
        ],
    }


def write_catalog(ctx: Context, config: Config, *, now: datetime | None = None) -> Path:
    """Stage the release build and write ``<output_dir>/catalog.json``."""

    catalog = config.require_catalog()
    release = config.release
    stage_dir = build_release_stage(
        ctx,
        config,
        profile=release_profile(config),
        include=release.include if release else None,
    )
    entry = build_catalog_entry(
        catalog,
        project=config.project,
        release=release,
        files=collect_version_files(stage_dir),
        date=release_date(now),
    )

    output_dir = ctx.layout.resolve(release.output_dir if release else "release")
    output_dir.mkdir(parents=True, exist_ok=True)
    target = output_dir / CATALOG_FILENAME
    target.write_text(json.dumps([entry], ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
    ctx.console.info(f"Wrote catalog: {target}")
    return target


__all__ = [
    "CATALOG_TYPE_LABELS",
    "build_catalog_entry",
    "collect_version_files",
    "default_install_steps",
    "generate_au2pkg_pattern",
    "map_license",
    "regex_escape",
    "write_catalog",
]
