from __future__ import annotations

import json

from bt_bundle.core.errors import ConfigurationError


def compile_global_accessor(path: str) -> str:
    """
    Compile a dot-delimited path into subscripts of the global object.

        "jQuery"      -> '["jQuery"]'
        "ns.lib.dep"  -> '["ns"]["lib"]["dep"]'
    """
    segments = str(path or "").split(".")
    if not all(s.strip() for s in segments):
        raise ConfigurationError(f"Invalid global path {path!r}")
    return "".join(f"[{json.dumps(s.strip())}]" for s in segments)


def global_ref(path: str) -> str:
    return "global" + compile_global_accessor(path)
