"""Resolution of artifact sources to local files, with a download cache for URLs."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable
import tempfile
import urllib.error
import urllib.parse
import urllib.request

from core.console import Console
from core.digest import digest_text

from .errors import DownloadError

MAX_REDIRECTS = 5
USER_AGENT = "aviutl2-cli"
DEFAULT_FILENAME = "download"

Fetcher = Callable[[str], bytes]


class _LimitedRedirectHandler(urllib.request.HTTPRedirectHandler):
    max_redirections = MAX_REDIRECTS


def is_http_url(source: str) -> bool:
    return source.startswith("http://") or source.startswith("https://")


def filename_from_url(url: str) -> str:
    """Return the last path segment of ``url`` without query or fragment."""

    url = url.split("#", 1)[0]
    url = url.split("?", 1)[0]
    name = url.rsplit("/", 1)[-1]
    return name or DEFAULT_FILENAME


def http_get(url: str, *, query: dict[str, str] | None = None) -> bytes:
    """GET ``url`` following at most :data:`MAX_REDIRECTS` redirects."""

    if query:
        separator = "&" if "?" in url else "?"
        url = f"{url}{separator}{urllib.parse.urlencode(query)}"
    opener = urllib.request.build_opener(_LimitedRedirectHandler)
    request = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})
    try:
        with opener.open(request) as response:
            status = getattr(response, "status", 200)
            if not 200 <= status < 300:
                raise DownloadError(f"Failed to download {url} ({status})")
            return response.read()
    except urllib.error.HTTPError as exc:
        raise DownloadError(f"Failed to download {url} ({exc.code} {exc.reason})") from exc
    except urllib.error.URLError as exc:
        raise DownloadError(f"Failed to download {url}: {exc.reason}") from exc


@dataclass
class SourceResolver:
    """Maps source references to local paths.

    URLs are downloaded once into ``cache_dir`` as ``<digest>_<filename>`` and
    reused until ``refresh`` is requested. Everything else is returned as a
    path, unchecked.
    """

    cache_dir: Path
    console: Console
    fetch: Fetcher = field(default=http_get)

    def cache_path_for(self, url: str) -> Path:
        return self.cache_dir / f"{digest_text(url)}_{filename_from_url(url)}"

    def resolve(self, source: str, *, refresh: bool = False) -> Path:
        if not is_http_url(source):
            return Path(source)
        return self._download(source, refresh=refresh)

    def _download(self, url: str, *, refresh: bool) -> Path:
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        cache_path = self.cache_path_for(url)
        if cache_path.exists() and not refresh:
            self.console.info(f"Using cached source: {url} -> {cache_path}")
            return cache_path

        body = self.fetch(url)

        with tempfile.NamedTemporaryFile(
            dir=self.cache_dir,
            prefix=f"{cache_path.name}.",
            suffix=".partial",
            delete=False,
        ) as handle:
            temp_path = Path(handle.name)
            handle.write(body)

        try:
            cache_path.unlink(missing_ok=True)
            temp_path.rename(cache_path)
        except OSError:
            temp_path.unlink(missing_ok=True)
            raise

        self.console.info(f"Downloaded source: {url} -> {cache_path}")
        return cache_path


__all__ = [
    "MAX_REDIRECTS",
    "SourceResolver",
    "filename_from_url",
    "http_get",
    "is_http_url",
]
