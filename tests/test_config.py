from __future__ import annotations

from pathlib import Path
import tempfile
import textwrap
import unittest

from au2.config import BuildRef, BuildRefKind, PlacementMethod, find_config_path, load_config
from au2.errors import ConfigurationError

try:  # PyYAML is optional
    import yaml  # type: ignore
except ModuleNotFoundError:  # pragma: no cover - optional dependency absent
    yaml = None


class ConfigLoadingTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.workspace = Path(self.temp_dir.name) / "project"
        self.workspace.mkdir()
        self.environ = {"HOME": str(Path(self.temp_dir.name) / "home")}

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def _write(self, content: str, name: str = "aviutl2.toml") -> None:
        (self.workspace / name).write_text(textwrap.dedent(content), encoding="utf-8")

    def test_parses_artifacts_in_declaration_order(self) -> None:
        self._write(
            """
            [project]
            name = "demo"
            version = "1.2.0"

            [artifacts.zeta]
            source = "dist/zeta.auf"
            destination = "Plugin/zeta.auf"
            placement_method = "copy"

            [artifacts.alpha]
            destination = "Script\\\\alpha.lua"
            build = { group = "scripts" }

            [artifacts.alpha.profiles.release]
            enabled = false
            source = "https://example.com/alpha.lua"
            build = ["make a", "make b"]

            [build_group]
            scripts = "make scripts"
            """
        )

        config = load_config(self.workspace, environ=self.environ)

        self.assertEqual(config.project.name, "demo")
        self.assertEqual(list(config.artifacts), ["zeta", "alpha"])
        zeta = config.artifacts["zeta"]
        self.assertEqual(zeta.placement_method, PlacementMethod.COPY)
        self.assertIsNone(zeta.build)
        alpha = config.artifacts["alpha"]
        self.assertEqual(alpha.destination, "Script/alpha.lua")
        self.assertIsNone(alpha.placement_method)
        self.assertEqual(alpha.build, BuildRef.group_ref("scripts"))
        release = alpha.profiles["release"]
        self.assertFalse(release.enabled)
        self.assertEqual(release.build.kind, BuildRefKind.LIST)
        self.assertEqual(release.build.commands, ("make a", "make b"))
        self.assertEqual(config.build_groups, {"scripts": BuildRef.command("make scripts")})

    def test_sections_fall_back_to_defaults(self) -> None:
        self._write(
            """
            [project]
            name = "demo"
            version = "0.1.0"

            [artifacts]

            [development]
            aviutl2_version = "latest"

            [release]
            """
        )

        config = load_config(self.workspace, environ=self.environ)

        self.assertEqual(config.artifacts, {})
        self.assertIsNone(config.build_groups)
        self.assertEqual(config.require_development().aviutl2_version, "latest")
        self.assertIsNone(config.development.profile)
        self.assertEqual(config.require_release().output_dir, "release")
        with self.assertRaises(ConfigurationError):
            config.require_preview()

    def test_missing_artifacts_section_is_rejected(self) -> None:
        self._write(
            """
            [project]
            name = "demo"
            version = "0.1.0"
            """
        )
        with self.assertRaisesRegex(ConfigurationError, r"\[artifacts\]"):
            load_config(self.workspace, environ=self.environ)

    def test_absolute_and_escaping_destinations_are_rejected(self) -> None:
        for destination in ("/etc/passwd", "C:/Plugin/x.auf", "../outside.auf", "Plugin/../../x"):
            with self.subTest(destination=destination):
                self._write(
                    f"""
                    [project]
                    name = "demo"
                    version = "0.1.0"

                    [artifacts.bad]
                    source = "x"
                    destination = "{destination}"
                    """
                )
                with self.assertRaisesRegex(ConfigurationError, "artifacts.bad.destination"):
                    load_config(self.workspace, environ=self.environ)

    def test_invalid_build_reference_type(self) -> None:
        self._write(
            """
            [project]
            name = "demo"
            version = "0.1.0"

            [artifacts.bad]
            source = "x"
            destination = "x"
            build = 3
            """
        )
        with self.assertRaisesRegex(ConfigurationError, "artifacts.bad.build"):
            load_config(self.workspace, environ=self.environ)

    def test_unknown_placement_method(self) -> None:
        self._write(
            """
            [project]
            name = "demo"
            version = "0.1.0"

            [artifacts.bad]
            source = "x"
            destination = "x"
            placement_method = "hardlink"
            """
        )
        with self.assertRaisesRegex(ConfigurationError, "placement_method"):
            load_config(self.workspace, environ=self.environ)

    def test_parse_errors_become_configuration_errors(self) -> None:
        self._write("[project\nname = ")
        with self.assertRaisesRegex(ConfigurationError, "Failed to parse"):
            load_config(self.workspace, environ=self.environ)

    def test_supports_json_configs(self) -> None:
        self._write(
            """
            {
                "project": {"name": "demo", "version": "0.1.0"},
                "artifacts": {"b": {"source": "b", "destination": "b"}, "a": {"source": "a", "destination": "a"}}
            }
            """,
            name="aviutl2.json",
        )
        config = load_config(self.workspace, environ=self.environ)
        self.assertEqual(list(config.artifacts), ["b", "a"])

    @unittest.skipUnless(yaml is not None, "PyYAML is required for YAML config tests")
    def test_supports_yaml_configs(self) -> None:
        self._write(
            """
            project:
              name: demo
              version: 0.1.0
            artifacts:
              plugin:
                source: dist/plugin.auf
                destination: Plugin/plugin.auf
            """,
            name="aviutl2.yaml",
        )
        config = load_config(self.workspace, environ=self.environ)
        self.assertEqual(config.artifacts["plugin"].source, "dist/plugin.auf")

    def test_conflicting_formats_raise(self) -> None:
        self._write('[project]\nname = "demo"\nversion = "0.1.0"\n[artifacts]\n')
        self._write('{"project": {"name": "demo", "version": "0.1.0"}, "artifacts": {}}', name="aviutl2.json")
        with self.assertRaisesRegex(ConfigurationError, "Multiple configuration files"):
            load_config(self.workspace, environ=self.environ)

    def test_falls_back_to_user_config_directory(self) -> None:
        xdg = Path(self.temp_dir.name) / "xdg"
        xdg.mkdir()
        (xdg / "aviutl2.toml").write_text('[project]\nname = "global"\nversion = "9"\n[artifacts]\n')

        path = find_config_path(self.workspace, environ={"XDG_CONFIG_HOME": str(xdg)})
        self.assertEqual(path, xdg / "aviutl2.toml")

        self._write('[project]\nname = "local"\nversion = "1"\n[artifacts]\n')
        config = load_config(self.workspace, environ={"XDG_CONFIG_HOME": str(xdg)})
        self.assertEqual(config.project.name, "local")

    def test_missing_config_names_workspace(self) -> None:
        with self.assertRaisesRegex(ConfigurationError, "aviutl2.toml not found"):
            load_config(self.workspace, environ=self.environ)


class CatalogConfigTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.workspace = Path(self.temp_dir.name)

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def _load(self, catalog: str):
        base = textwrap.dedent(
            """
            [project]
            name = "demo"
            version = "0.1.0"

            [artifacts]

            [catalog]
            id = "demo.plugin"
            name = "Demo"
            type = "filter"
            summary = "A demo"
            description = { content = "Long text" }
            author = "someone"
            homepage = "https://example.com"
            download_source = { type = "github", owner = "someone", repo = "demo" }
            """
        )
        (self.workspace / "aviutl2.toml").write_text(base + textwrap.dedent(catalog), encoding="utf-8")
        return load_config(self.workspace, environ={})

    def test_template_license(self) -> None:
        config = self._load('license = { type = "mit", year = 2025, author = "someone" }\n')
        catalog = config.require_catalog()
        self.assertEqual(catalog.description, "Long text")
        self.assertEqual(catalog.license.kind, "template")
        self.assertEqual(catalog.license.license_type, "MIT")
        self.assertEqual(catalog.license.year, "2025")
        self.assertEqual(catalog.download_source.kind, "github")
        self.assertIsNone(catalog.download_source.pattern)

    def test_template_license_requires_year(self) -> None:
        with self.assertRaisesRegex(ConfigurationError, "catalog.license.year"):
            self._load('license = { type = "MIT", author = "someone" }\n')

    def test_custom_and_other_licenses(self) -> None:
        custom = self._load('license = { type = "BSD-3-Clause", text = "custom terms" }\n').catalog.license
        self.assertEqual((custom.kind, custom.text), ("custom", "custom terms"))

        other = self._load('license = { type = "other", name = "WTFPL", text = "do it" }\n').catalog.license
        self.assertEqual((other.kind, other.name, other.text), ("other", "WTFPL", "do it"))

    def test_unsupported_license(self) -> None:
        with self.assertRaisesRegex(ConfigurationError, "not supported"):
            self._load('license = { type = "GPL-3.0" }\n')

    def test_install_steps(self) -> None:
        config = self._load(
            textwrap.dedent(
                """
                license = { type = "unknown" }
                install_steps = [
                    { action = "download" },
                    { action = "copy", from = "a.auf", to = "Plugin/a.auf" },
                    { action = "run", path = "setup.exe", args = ["/S"], elevate = true },
                ]
                """
            )
        )
        steps = config.catalog.install_steps
        self.assertEqual([step.action for step in steps], ["download", "copy", "run"])
        self.assertEqual(steps[1].to_path, "Plugin/a.auf")
        self.assertEqual(steps[2].args, ["/S"])
        self.assertTrue(steps[2].elevate)

    def test_unknown_catalog_type(self) -> None:
        (self.workspace / "aviutl2.toml").write_text(
            textwrap.dedent(
                """
                [project]
                name = "demo"
                version = "0.1.0"
                [artifacts]
                [catalog]
                type = "widget"
                """
            )
        )
        with self.assertRaisesRegex(ConfigurationError, "catalog.type"):
            load_config(self.workspace, environ={})


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
