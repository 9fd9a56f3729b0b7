"""Locating and decoding ``<stem>.toml|json|yaml|yml`` configuration files."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Sequence

import json
import tomllib

try:  # Optional dependency for YAML support
    import yaml
except ModuleNotFoundError:  # pragma: no cover - exercised when PyYAML absent
    yaml = None


def _load_toml(path: Path) -> Any:
    return tomllib.loads(path.read_text(encoding="utf-8"))


def _load_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def _load_yaml(path: Path) -> Any:
    if yaml is None:
        raise RuntimeError(
            "PyYAML is required to load YAML configuration files. Install with `pip install PyYAML`."
        )
    try:
        return yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ValueError(f"Failed to parse configuration file '{path}': {exc}") from exc


FILE_LOADERS: Dict[str, Callable[[Path], Any]] = {
    ".toml": _load_toml,
    ".json": _load_json,
    ".yaml": _load_yaml,
    ".yml": _load_yaml,
}
"""Suffix to decoder; every decoder preserves key order."""


def load_config_file(path: Path) -> Mapping[str, Any]:
    """Decode ``path`` by suffix and require a mapping at the root."""

    loader = FILE_LOADERS.get(path.suffix.lower())
    if loader is None:
        supported = ", ".join(sorted(FILE_LOADERS))
        raise ValueError(f"Unsupported configuration file extension: {path.suffix}. Supported: {supported}")

    try:
        data = loader(path)
    except (tomllib.TOMLDecodeError, json.JSONDecodeError) as exc:
        raise ValueError(f"Failed to parse configuration file '{path}': {exc}") from exc

    if not isinstance(data, Mapping):
        raise TypeError(f"Configuration file '{path}' must contain a mapping at the root")
    return data


def find_config_file(directories: Iterable[Path], stem: str) -> Path | None:
    """Return the first ``<stem>.<ext>`` found while scanning ``directories`` in order.

    Within one directory only a single format may exist for ``stem``.
    """

    for directory in directories:
        if not directory.is_dir():
            continue
        matches = [
            path
            for path in sorted(directory.iterdir())
            if path.is_file() and path.stem == stem and path.suffix.lower() in FILE_LOADERS
        ]
        if len(matches) > 1:
            names = "', '".join(path.name for path in matches)
            raise ValueError(
                f"Multiple configuration files found for '{stem}': '{names}'. "
                "Only one format per configuration entry is allowed."
            )
        if matches:
            return matches[0]
    return None


def normalize_string_list(value: Any, *, field_name: str | None = None) -> List[str]:
    """Coerce ``value`` into a list of trimmed, non-empty strings."""

    label = f"{field_name} " if field_name else ""
    if value is None:
        return []
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if not isinstance(value, Sequence):
        raise TypeError(f"{label}must be a string or sequence of strings")

    items: List[str] = []
    for item in value:
        if not isinstance(item, str):
            raise TypeError(f"{label}entries must be strings")
        if item.strip():
            items.append(item.strip())
    return items


__all__ = [
    "FILE_LOADERS",
    "find_config_file",
    "load_config_file",
    "normalize_string_list",
]
