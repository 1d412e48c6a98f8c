from __future__ import annotations

import asyncio
import os
import re
from pathlib import Path
from typing import List, Sequence, Union

from bt_bundle.core.compiler.models import SourceFragment
from bt_bundle.core.errors import TemplateReadError

_EXPORT_HEAD = re.compile(r"module\.exports\s*=\s*function\s*\([^)]*\)\s*\{")
_EXPORT_TAIL = re.compile(r"}\s*;?\s*\Z")


def process_template(contents: str) -> str:
    """
    Adapt a single BT template file for concatenation.

        module.exports = function (bt) { <body> };   ->   <body>
    """
    body = _EXPORT_HEAD.sub("", contents, count=1)
    return _EXPORT_TAIL.sub("", body, count=1)


def _read(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise TemplateReadError(f"Cannot read template {path}: {exc}") from exc


async def read_templates(paths: Sequence[Union[str, Path]], *, root: Union[str, Path]) -> List[SourceFragment]:
    """Reads template files concurrently; the result keeps the order of `paths`."""
    root = Path(root)
    resolved = [p if Path(p).is_absolute() else root / p for p in map(Path, paths)]
    contents = await asyncio.gather(*(asyncio.to_thread(_read, p) for p in resolved))

    return [
        SourceFragment(
            path=str(p),
            rel_path=os.path.relpath(p, root).replace(os.sep, "/"),
            contents=process_template(text),
        )
        for p, text in zip(resolved, contents)
    ]
