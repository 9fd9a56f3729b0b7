"""Record of what ``prepare`` placed, so ``develop`` can spot a stale setup."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict
import json

from core.console import Console

from .config import Config


def build_snapshot(config: Config, aviutl2_version: str) -> Dict[str, Any]:
    artifacts = {name: artifact.raw for name, artifact in sorted(config.artifacts.items())}
    # Round-trip so values such as TOML dates compare equal to what was stored.
    return json.loads(
        json.dumps({"aviutl2_version": aviutl2_version, "artifacts": artifacts}, default=str)
    )


def write_snapshot(path: Path, snapshot: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(snapshot, ensure_ascii=False, indent=2, sort_keys=True) + "\n", encoding="utf-8")


def load_snapshot(path: Path) -> Dict[str, Any] | None:
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def warn_if_changed(path: Path, current: Dict[str, Any], console: Console) -> bool:
    """Warn when a stored snapshot differs from ``current``; returns whether it warned."""

    stored = load_snapshot(path)
    if stored is None:
        return False
    if stored != current:
        console.warn("Configuration changed since the last `au2 prepare`; run it again to refresh placements")
        return True
    return False


__all__ = ["build_snapshot", "load_snapshot", "warn_if_changed", "write_snapshot"]
