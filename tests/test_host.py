from __future__ import annotations

from pathlib import Path
import io
import tempfile
import unittest
import zipfile
from unittest.mock import patch

from au2.errors import HostNotFoundError
from au2.host import VERSION_MARKER, HostInstaller, fetch_host_zip, find_data_dir, launch_host
from core.archive import ArchiveManager, InvalidArchiveError
from core.command_runner import RecordingCommandRunner
from core.console import Console


def _host_zip(*, exe_name: str = "aviutl2.exe") -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        archive.writestr(exe_name, b"MZ")
        archive.writestr("data/Plugin/", b"")
    return buffer.getvalue()


class HostInstallerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.install_dir = Path(self.temp_dir.name) / "development"
        self.console = Console("none")
        self.requested: list[str] = []

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def _fetch(self, version: str) -> bytes:
        self.requested.append(version)
        return _host_zip()

    def test_install_extracts_and_records_version(self) -> None:
        installer = HostInstaller(self.console, ArchiveManager(self.console), self._fetch)

        self.assertTrue(installer.install(self.install_dir, "2.00beta1"))

        self.assertEqual(self.requested, ["2.00beta1"])
        self.assertTrue((self.install_dir / "aviutl2.exe").is_file())
        self.assertEqual((self.install_dir / VERSION_MARKER).read_text(), "2.00beta1")
        self.assertEqual(HostInstaller.installed_version(self.install_dir), "2.00beta1")

    def test_non_zip_download_is_reported_without_recording_version(self) -> None:
        installer = HostInstaller(self.console, ArchiveManager(self.console), lambda version: b"<html>busy</html>")

        with self.assertRaisesRegex(InvalidArchiveError, "AviUtl2 latest download"):
            installer.install(self.install_dir, "latest")

        self.assertIsNone(HostInstaller.installed_version(self.install_dir))

    def test_matching_version_skips_download(self) -> None:
        installer = HostInstaller(self.console, ArchiveManager(self.console), self._fetch)
        installer.install(self.install_dir, "latest")

        self.assertFalse(installer.install(self.install_dir, "latest"))
        self.assertTrue(installer.install(self.install_dir, "2.00beta2"))
        self.assertEqual(self.requested, ["latest", "2.00beta2"])

    def test_fetch_uses_download_api(self) -> None:
        with patch("au2.host.http_get", return_value=b"zip") as http_get:
            self.assertEqual(fetch_host_zip("latest"), b"zip")
        http_get.assert_called_once_with(
            "https://api.aviutl2.jp/download",
            query={"version": "latest", "type": "zip"},
        )


class HostLookupTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name)

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_data_dir_is_sibling_of_executable(self) -> None:
        host_dir = self.root / "install" / "AviUtl2"
        host_dir.mkdir(parents=True)
        (host_dir / "AviUtl2.EXE").write_bytes(b"MZ")
        self.assertEqual(find_data_dir(self.root / "install"), host_dir / "data")

    def test_missing_install_or_executable(self) -> None:
        with self.assertRaises(HostNotFoundError):
            find_data_dir(self.root / "missing")
        (self.root / "empty").mkdir()
        with self.assertRaisesRegex(FileNotFoundError, "aviutl2.exe"):
            find_data_dir(self.root / "empty")

    def test_launch_spawns_executable_with_arguments(self) -> None:
        (self.root / "aviutl2.exe").write_bytes(b"MZ")
        runner = RecordingCommandRunner()

        started = launch_host(self.root / "data", runner=runner, console=Console("none"), args=["--profile", "x"])

        self.assertTrue(started)
        [record] = runner.commands
        self.assertTrue(record.detached)
        self.assertEqual(record.command, [str(self.root / "aviutl2.exe"), "--profile", "x"])
        self.assertEqual(record.cwd, self.root)

    def test_launch_without_executable_only_warns(self) -> None:
        stderr = io.StringIO()
        runner = RecordingCommandRunner()

        started = launch_host(self.root / "data", runner=runner, console=Console(stderr=stderr))

        self.assertFalse(started)
        self.assertEqual(runner.commands, [])
        self.assertIn("[WARN]", stderr.getvalue())


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
