from __future__ import annotations

from pathlib import Path
import tempfile
import textwrap
import unittest
import zipfile

from au2.config import ProjectInfo, Release, load_config
from au2.context import Context
from au2.errors import BuildCommandError
from au2.release import (
    fill_template,
    normalize_to_crlf,
    package_release,
    release_profile,
    zip_name_template,
)
from core.command_runner import RecordingCommandRunner
from core.console import Console


class TemplateHelperTests(unittest.TestCase):
    def test_fill_template(self) -> None:
        project = ProjectInfo(name="demo", version="1.2.3")
        self.assertEqual(fill_template("{name}-v{version} ({name})", project), "demo-v1.2.3 (demo)")

    def test_normalize_to_crlf(self) -> None:
        self.assertEqual(normalize_to_crlf("a\nb\r\nc\n"), "a\r\nb\r\nc\r\n")

    def test_zip_name_template(self) -> None:
        self.assertEqual(zip_name_template(None), "{name}-v{version}.au2pkg.zip")
        self.assertEqual(zip_name_template(Release(zip_name="{name}")), "{name}.au2pkg.zip")
        self.assertEqual(zip_name_template(Release(zip_name="pkg.au2pkg.zip")), "pkg.au2pkg.zip")


class PackageReleaseTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.workspace = Path(self.temp_dir.name)
        (self.workspace / "target" / "release").mkdir(parents=True)
        (self.workspace / "target" / "release" / "plugin.dll").write_bytes(b"release build")
        (self.workspace / "scripts").mkdir()
        (self.workspace / "scripts" / "tool.lua").write_bytes(b"-- lua")
        (self.workspace / "package_template.txt").write_text("{name}\nversion {version}\n", encoding="utf-8")
        (self.workspace / "aviutl2.toml").write_text(
            textwrap.dedent(
                """
                [project]
                name = "demo"
                version = "0.3.0"

                [build_group]
                native = "cargo build --release"

                [artifacts.plugin]
                destination = "Plugin/demo.aux2"
                placement_method = "symlink"
                [artifacts.plugin.profiles.release]
                source = "target/release/plugin.dll"
                build = { group = "native" }

                [artifacts.helper]
                destination = "Plugin/helper.aux2"
                source = "target/release/plugin.dll"
                build = { group = "native" }

                [artifacts.script]
                source = "scripts/tool.lua"
                destination = "Script/tool.lua"

                [release]
                package_template = "package_template.txt"
                include = ["plugin", "helper"]
                prebuild = "echo pre"
                postbuild = ["echo post"]
                """
            ),
            encoding="utf-8",
        )
        self.runner = RecordingCommandRunner()
        self.ctx = Context.create(self.workspace, console=Console("none"), runner=self.runner)

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_release_profile_precedence(self) -> None:
        config = load_config(self.workspace, environ={})
        self.assertEqual(release_profile(config), "release")
        self.assertEqual(release_profile(config, "custom"), "custom")
        config.release.profile = "dist"
        self.assertEqual(release_profile(config), "dist")

    def test_package_release_writes_zip(self) -> None:
        config = load_config(self.workspace, environ={})

        zip_path = package_release(self.ctx, config)

        self.assertEqual(zip_path, self.workspace / "release" / "demo-v0.3.0.au2pkg.zip")
        with zipfile.ZipFile(zip_path) as archive:
            self.assertEqual(
                sorted(archive.namelist()),
                ["Plugin/demo.aux2", "Plugin/helper.aux2", "package.txt"],
            )
            self.assertEqual(archive.read("Plugin/demo.aux2"), b"release build")
            self.assertEqual(archive.read("package.txt"), b"demo\r\nversion 0.3.0\r\n")
        self.assertEqual(self.runner.notes(), ["echo pre", "cargo build --release", "echo post"])

    def test_set_version_changes_zip_and_package_text(self) -> None:
        config = load_config(self.workspace, environ={})
        config.project.version = "9.9.9"
        config.release.zip_name = "{name}_{version}"
        config.release.output_dir = "dist/out"

        zip_path = package_release(self.ctx, config)

        self.assertEqual(zip_path, self.workspace / "dist" / "out" / "demo_9.9.9.au2pkg.zip")
        with zipfile.ZipFile(zip_path) as archive:
            self.assertEqual(archive.read("package.txt"), b"demo\r\nversion 9.9.9\r\n")

    def test_failed_build_stops_release_before_packaging(self) -> None:
        runner = RecordingCommandRunner(failures={"cargo build --release": 101})
        ctx = Context.create(self.workspace, console=Console("none"), runner=runner)
        config = load_config(self.workspace, environ={})

        with self.assertRaisesRegex(BuildCommandError, "cargo build --release"):
            package_release(ctx, config)

        self.assertEqual(runner.notes(), ["echo pre", "cargo build --release"])
        self.assertEqual(list((self.workspace / "release").glob("*.au2pkg.zip")), [])
        stage = ctx.layout.release_stage_dir
        self.assertEqual(list(stage.rglob("*")) if stage.exists() else [], [])


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
