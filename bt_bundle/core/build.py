from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from bt_bundle.core.bundler import get_bundler
from bt_bundle.core.bundler.base import Bundler
from bt_bundle.core.compiler.emitter import CoreLoader, compile_bundle
from bt_bundle.core.config import BundleConfig
from bt_bundle.core.observability.metrics import record_compilation
from bt_bundle.core.templates import read_templates

log = logging.getLogger("bt_bundle.build")


@dataclass(frozen=True)
class BuildResult:
    target: Path
    size: int
    fragments: int


async def build_bundle(
    config: BundleConfig,
    *,
    root: Union[str, Path],
    bundler: Optional[Bundler] = None,
    core_loader: Optional[CoreLoader] = None,
) -> BuildResult:
    """Reads templates, compiles them with the BT core and writes the target file."""
    root = Path(root)
    options = config.to_compile_options(root)
    bundler = bundler or get_bundler(config.bundler)

    start = time.perf_counter()
    try:
        sources = await read_templates(config.templates, root=root)
        code = await compile_bundle(sources, options, core_loader=core_loader, bundler=bundler)
    except Exception:
        record_compilation("failed", time.perf_counter() - start)
        raise
    record_compilation("succeeded", time.perf_counter() - start)

    target = Path(options.filename)
    await asyncio.to_thread(_write, target, code)
    log.info("Built %s from %d template(s)", target, len(sources))

    return BuildResult(target=target, size=len(code.encode("utf-8")), fragments=len(sources))


def _write(target: Path, code: str) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(code, encoding="utf-8")
