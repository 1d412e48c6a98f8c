from __future__ import annotations

import os
import time
from pathlib import Path
from typing import Any, Dict, List

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from bt_bundle.core.compiler.emitter import compile_bundle
from bt_bundle.core.compiler.models import SourceFragment
from bt_bundle.api.middleware.error_shaping import error_detail, http_status
from bt_bundle.core.errors import BundleError, ConfigurationError
from bt_bundle.core.observability.metrics import record_compilation

router = APIRouter(tags=["Compile"])

_PATH_OPTIONS = ("filename", "dirname", "btFilename", "bt_filename")


class CompileRequest(BaseModel):
    fragments: List[SourceFragment] = Field(default_factory=list)
    options: Dict[str, Any] = Field(default_factory=dict)


def workspace_root() -> Path:
    return Path(os.getenv("BT_BUNDLE_WORKSPACE") or Path.cwd()).resolve()


def _inside_root(value: str, root: Path, field: str) -> str:
    p = Path(value)
    if not p.is_absolute():
        p = root / p
    p = p.resolve()
    if p != root and root not in p.parents:
        raise HTTPException(
            status_code=400,
            detail={"code": "path_outside_workspace", "message": f"{field} must stay inside the workspace"},
        )
    return str(p)


@router.post("/compile")
async def compile_module(req: CompileRequest):
    root = workspace_root()
    options = dict(req.options)
    for key in _PATH_OPTIONS:
        if options.get(key):
            options[key] = _inside_root(str(options[key]), root, key)

    start = time.perf_counter()
    try:
        code = await compile_bundle(req.fragments, options)
    except BundleError as e:
        outcome = "rejected" if isinstance(e, ConfigurationError) else "failed"
        record_compilation(outcome, time.perf_counter() - start)
        raise HTTPException(status_code=http_status(e), detail=error_detail(e))
    record_compilation("succeeded", time.perf_counter() - start)

    return {"code": code, "size": len(code.encode("utf-8"))}
