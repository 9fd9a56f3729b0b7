"""JSON Schema describing ``aviutl2.toml`` for editor completion."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict
import json

from core.console import Console

SCHEMA_ID = "https://github.com/sevenc-nanashi/aviutl2-cli/aviutl2.schema.json"


def _string(description: str | None = None) -> Dict[str, Any]:
    schema: Dict[str, Any] = {"type": "string"}
    if description:
        schema["description"] = description
    return schema


def _string_list(description: str | None = None) -> Dict[str, Any]:
    schema: Dict[str, Any] = {"type": "array", "items": {"type": "string"}}
    if description:
        schema["description"] = description
    return schema


BUILD_REF: Dict[str, Any] = {
    "description": "A shell command, a list of commands, or a reference to a build group.",
    "oneOf": [
        {"type": "string"},
        {"type": "array", "items": {"type": "string"}},
        {
            "type": "object",
            "properties": {"group": _string("Name of a [build_group] entry.")},
            "required": ["group"],
            "additionalProperties": False,
        },
    ],
}

ARTIFACT_PROFILE: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "enabled": {"type": "boolean"},
        "source": _string("Local path or http(s) URL of the built file."),
        "build": {"$ref": "#/definitions/buildRef"},
    },
    "additionalProperties": False,
}

ARTIFACT: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "enabled": {"type": "boolean", "default": True},
        "source": _string("Local path or http(s) URL of the built file."),
        "destination": _string("Path relative to the AviUtl2 data directory."),
        "build": {"$ref": "#/definitions/buildRef"},
        "placement_method": {"enum": ["symlink", "copy"], "default": "symlink"},
        "profiles": {
            "type": "object",
            "additionalProperties": {"$ref": "#/definitions/artifactProfile"},
        },
    },
    "required": ["destination"],
    "additionalProperties": False,
}

_HOOKS: Dict[str, Any] = {
    "prebuild": {"$ref": "#/definitions/buildRef"},
    "postbuild": {"$ref": "#/definitions/buildRef"},
}

ACTION: Dict[str, Any] = {
    "oneOf": [
        {
            "type": "object",
            "properties": {"action": {"enum": ["download", "extract"]}},
            "required": ["action"],
        },
        {
            "type": "object",
            "properties": {"action": {"const": "copy"}, "from": _string(), "to": _string()},
            "required": ["action", "from", "to"],
        },
        {
            "type": "object",
            "properties": {"action": {"const": "delete"}, "path": _string()},
            "required": ["action", "path"],
        },
        {
            "type": "object",
            "properties": {
                "action": {"const": "run"},
                "path": _string(),
                "args": _string_list(),
                "elevate": {"type": "boolean"},
            },
            "required": ["action", "path"],
        },
    ]
}

LICENSE: Dict[str, Any] = {
    "oneOf": [
        {
            "type": "object",
            "properties": {
                "type": {"enum": ["MIT", "Apache-2.0", "BSD-2-Clause", "BSD-3-Clause"]},
                "year": {"type": ["string", "integer"]},
                "author": _string(),
            },
            "required": ["type", "year", "author"],
        },
        {
            "type": "object",
            "properties": {
                "type": {"enum": ["MIT", "Apache-2.0", "BSD-2-Clause", "BSD-3-Clause"]},
                "text": _string("Full license text."),
            },
            "required": ["type", "text"],
        },
        {"type": "object", "properties": {"type": {"const": "CC0"}}, "required": ["type"]},
        {
            "type": "object",
            "properties": {"type": {"const": "other"}, "name": _string(), "text": _string()},
            "required": ["type", "text"],
        },
        {"type": "object", "properties": {"type": {"const": "unknown"}}, "required": ["type"]},
    ]
}

DOWNLOAD_SOURCE: Dict[str, Any] = {
    "oneOf": [
        {
            "type": "object",
            "properties": {"type": {"enum": ["direct", "booth"]}, "url": _string()},
            "required": ["type", "url"],
        },
        {
            "type": "object",
            "properties": {
                "type": {"const": "github"},
                "owner": _string(),
                "repo": _string(),
                "pattern": _string("Regex for the release asset; generated from zip_name when omitted."),
            },
            "required": ["type", "owner", "repo"],
        },
        {
            "type": "object",
            "properties": {"type": {"const": "google_drive"}, "id": _string()},
            "required": ["type", "id"],
        },
    ]
}


def config_schema() -> Dict[str, Any]:
    return {
        "$schema": "http://json-schema.org/draft-07/schema#",
        "$id": SCHEMA_ID,
        "title": "aviutl2.toml",
        "type": "object",
        "definitions": {
            "buildRef": BUILD_REF,
            "artifact": ARTIFACT,
            "artifactProfile": ARTIFACT_PROFILE,
            "catalogAction": ACTION,
        },
        "properties": {
            "project": {
                "type": "object",
                "properties": {"name": _string(), "version": _string()},
                "required": ["name", "version"],
            },
            "artifacts": {
                "type": "object",
                "additionalProperties": {"$ref": "#/definitions/artifact"},
            },
            "build_group": {
                "type": "object",
                "additionalProperties": {"$ref": "#/definitions/buildRef"},
            },
            "development": {
                "type": "object",
                "properties": {
                    "aviutl2_version": _string("AviUtl2 version to install, or \"latest\"."),
                    "install_dir": _string(),
                    "profile": {"type": "string", "default": "debug"},
                    **_HOOKS,
                },
                "required": ["aviutl2_version"],
            },
            "preview": {
                "type": "object",
                "properties": {
                    "aviutl2_version": _string(),
                    "install_dir": _string(),
                    "profile": _string(),
                    "include": _string_list("Artifact names to place; all when omitted."),
                    **_HOOKS,
                },
            },
            "release": {
                "type": "object",
                "properties": {
                    "output_dir": {"type": "string", "default": "release"},
                    "package_template": _string("Template rendered into package.txt."),
                    "zip_name": {"type": "string", "default": "{name}-v{version}"},
                    "profile": {"type": "string", "default": "release"},
                    "include": _string_list("Artifact names to package; all when omitted."),
                    **_HOOKS,
                },
            },
            "catalog": {
                "type": "object",
                "properties": {
                    "id": _string(),
                    "name": _string(),
                    "type": {
                        "enum": ["output", "input", "filter", "common", "modification", "script", "language"]
                    },
                    "summary": _string(),
                    "description": {
                        "oneOf": [
                            {"type": "string"},
                            {"type": "object", "properties": {"url": _string()}, "required": ["url"]},
                            {"type": "object", "properties": {"content": _string()}, "required": ["content"]},
                        ]
                    },
                    "author": _string(),
                    "homepage": _string(),
                    "license": LICENSE,
                    "niconi_commons_id": _string(),
                    "tags": _string_list(),
                    "dependencies": _string_list(),
                    "download_source": DOWNLOAD_SOURCE,
                    "install_steps": {"type": "array", "items": {"$ref": "#/definitions/catalogAction"}},
                    "uninstall_steps": {"type": "array", "items": {"$ref": "#/definitions/catalogAction"}},
                },
                "required": [
                    "id",
                    "name",
                    "type",
                    "summary",
                    "description",
                    "author",
                    "homepage",
                    "license",
                    "download_source",
                ],
            },
        },
        "required": ["project", "artifacts"],
    }


def write_schema(target: Path, console: Console) -> Path:
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(config_schema(), ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
    console.info(f"Wrote JSON Schema: {target}")
    return target


__all__ = ["config_schema", "write_schema"]
