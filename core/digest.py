"""XXH3-128 digests formatted as 32 lowercase hex characters."""
from __future__ import annotations

from pathlib import Path

import xxhash

_CHUNK_SIZE = 1 << 20


def digest_bytes(data: bytes) -> str:
    return xxhash.xxh3_128_hexdigest(data)


def digest_text(text: str) -> str:
    return digest_bytes(text.encode("utf-8"))


def digest_file(path: Path) -> str:
    """Hash the contents of ``path`` without loading it into memory at once."""

    hasher = xxhash.xxh3_128()
    with path.open("rb") as handle:
        while True:
            chunk = handle.read(_CHUNK_SIZE)
            if not chunk:
                break
            hasher.update(chunk)
    return hasher.hexdigest()


__all__ = ["digest_bytes", "digest_file", "digest_text"]
