from __future__ import annotations

from pathlib import Path
import io
import tempfile
import unittest
import urllib.error
from unittest.mock import MagicMock, patch

from au2.errors import DownloadError
from au2.sources import SourceResolver, filename_from_url, http_get, is_http_url
from core.console import Console
from core.digest import digest_text


class FakeFetcher:
    def __init__(self, *bodies: bytes) -> None:
        self.bodies = list(bodies)
        self.calls: list[str] = []

    def __call__(self, url: str) -> bytes:
        self.calls.append(url)
        return self.bodies.pop(0)


class SourceResolverTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.cache_dir = Path(self.temp_dir.name) / ".aviutl2-cli" / "cache"
        self.console = Console("none")

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_local_paths_are_returned_verbatim(self) -> None:
        fetch = FakeFetcher()
        resolver = SourceResolver(self.cache_dir, self.console, fetch)
        self.assertEqual(resolver.resolve("target/release/missing.dll"), Path("target/release/missing.dll"))
        self.assertEqual(fetch.calls, [])
        self.assertFalse(self.cache_dir.exists())

    def test_url_is_fetched_once_and_cached(self) -> None:
        url = "https://example.com/releases/plugin.auf?token=1#frag"
        fetch = FakeFetcher(b"payload")
        resolver = SourceResolver(self.cache_dir, self.console, fetch)

        first = resolver.resolve(url)
        second = resolver.resolve(url)

        self.assertEqual(fetch.calls, [url])
        self.assertEqual(first, second)
        self.assertEqual(first, self.cache_dir / f"{digest_text(url)}_plugin.auf")
        self.assertEqual(first.read_bytes(), b"payload")
        self.assertEqual(len(digest_text(url)), 32)

    def test_refresh_replaces_cached_entry(self) -> None:
        url = "http://example.com/plugin.auf"
        fetch = FakeFetcher(b"old", b"new")
        resolver = SourceResolver(self.cache_dir, self.console, fetch)

        resolver.resolve(url)
        path = resolver.resolve(url, refresh=True)

        self.assertEqual(len(fetch.calls), 2)
        self.assertEqual(path.read_bytes(), b"new")
        self.assertEqual(sorted(item.name for item in self.cache_dir.iterdir()), [path.name])

    def test_failed_download_leaves_cache_untouched(self) -> None:
        url = "https://example.com/plugin.auf"

        def failing(_: str) -> bytes:
            raise DownloadError(f"Failed to download {url} (404 Not Found)")

        resolver = SourceResolver(self.cache_dir, self.console, failing)
        with self.assertRaisesRegex(DownloadError, "404"):
            resolver.resolve(url)
        self.assertEqual(list(self.cache_dir.iterdir()), [])


class UrlHelperTests(unittest.TestCase):
    def test_is_http_url(self) -> None:
        self.assertTrue(is_http_url("https://example.com/a"))
        self.assertTrue(is_http_url("http://example.com/a"))
        self.assertFalse(is_http_url("ftp://example.com/a"))
        self.assertFalse(is_http_url("dist/http://odd"))

    def test_filename_from_url(self) -> None:
        self.assertEqual(filename_from_url("https://example.com/a/b/plugin.auf?x=1"), "plugin.auf")
        self.assertEqual(filename_from_url("https://example.com/a/b/file.zip#top"), "file.zip")
        self.assertEqual(filename_from_url("https://example.com/dir/"), "download")


class HttpGetTests(unittest.TestCase):
    def test_http_error_names_url_and_status(self) -> None:
        opener = MagicMock()
        opener.open.side_effect = urllib.error.HTTPError(
            "https://example.com/x", 404, "Not Found", {}, io.BytesIO(b"")
        )
        with patch("au2.sources.urllib.request.build_opener", return_value=opener):
            with self.assertRaisesRegex(DownloadError, r"https://example.com/x \(404 Not Found\)"):
                http_get("https://example.com/x")

    def test_query_and_user_agent(self) -> None:
        response = MagicMock()
        response.status = 200
        response.read.return_value = b"zip"
        response.__enter__.return_value = response
        opener = MagicMock()
        opener.open.return_value = response

        with patch("au2.sources.urllib.request.build_opener", return_value=opener):
            body = http_get("https://api.example.com/download", query={"version": "2.0", "type": "zip"})

        self.assertEqual(body, b"zip")
        request = opener.open.call_args.args[0]
        self.assertEqual(request.full_url, "https://api.example.com/download?version=2.0&type=zip")
        self.assertEqual(request.get_header("User-agent"), "aviutl2-cli")


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
