from __future__ import annotations

from bt_bundle.core.errors import ConfigurationError

from .base import Bundler
from .browserify import BrowserifyBundler

BUNDLERS = {
    "browserify": BrowserifyBundler,
}


def get_bundler(name: str) -> Bundler:
    cls = BUNDLERS.get((name or "").strip().lower())
    if cls is None:
        raise ConfigurationError(f"Unknown bundler {name!r} (expected one of: {', '.join(sorted(BUNDLERS))})")
    return cls()


__all__ = ["BUNDLERS", "Bundler", "BrowserifyBundler", "get_bundler"]
