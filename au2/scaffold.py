"""Project scaffolding for ``au2 init``."""
from __future__ import annotations

from pathlib import Path

from core.console import Console

from .config import CONFIG_FILENAME
from .errors import ConfigurationError

GITIGNORE_BLOCK = "# AviUtl2 CLI\n/.aviutl2-cli\n/release\n"
DEFAULT_PROJECT_NAME = "my_aviutl2_project"

INIT_TEMPLATE = """\
#:schema ./.aviutl2-cli/aviutl2.schema.json
[project]
name = "{project_name}"
version = "0.1.0"

[artifacts.my_plugin_aux2]
enabled = true
destination = "Plugin/my_plugin.aux2"

[artifacts.my_plugin_aux2.profiles.debug]
build = "cargo build"
source = "target/debug/my_plugin_aux2.dll"
enabled = true

[artifacts.my_plugin_aux2.profiles.release]
build = ["cargo build --release"]
source = "target/release/my_plugin_aux2.dll"
enabled = true

[development]
aviutl2_version = "latest"

[release]
package_template = "package_template.txt"
"""


def render_config(project_name: str) -> str:
    return INIT_TEMPLATE.format(project_name=project_name.replace('"', '\\"'))


def init_project(workspace: Path, console: Console) -> Path:
    """Write a starter config and register the CLI directories in ``.gitignore``."""

    config_path = workspace / CONFIG_FILENAME
    if config_path.exists():
        raise ConfigurationError(f"{CONFIG_FILENAME} already exists: {config_path}")
    project_name = workspace.resolve().name or DEFAULT_PROJECT_NAME
    config_path.write_text(render_config(project_name), encoding="utf-8")
    console.info(f"Created {config_path}")

    gitignore = workspace / ".gitignore"
    if gitignore.exists():
        content = gitignore.read_text(encoding="utf-8")
        gitignore.write_text(f"{content}\n{GITIGNORE_BLOCK}", encoding="utf-8")
        console.info(f"Updated {gitignore}")
    else:
        gitignore.write_text(GITIGNORE_BLOCK, encoding="utf-8")
        console.info(f"Created {gitignore}")
    return config_path


__all__ = ["GITIGNORE_BLOCK", "init_project", "render_config"]
