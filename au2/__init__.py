"""Developer workflow CLI for AviUtl2 plugins."""
from __future__ import annotations

__version__ = "0.1.0"


def main(argv=None) -> int:
    from .cli import main as _main

    return _main(argv)


__all__ = ["__version__", "main"]
