from __future__ import annotations

from fastapi import APIRouter
from starlette.responses import JSONResponse

from bt_bundle.api.endpoints.compile import workspace_root
from bt_bundle.core.observability.metrics import inc_named

router = APIRouter()


@router.get("/health/live")
async def live():
    inc_named("health_live")
    return {"status": "ok"}


@router.get("/api/v1/health/ready")
def readiness():
    """Readiness reflects ability to serve compilations (workspace must be readable)."""
    inc_named("health_ready")

    root = workspace_root()
    problems: list[str] = []
    if not root.is_dir():
        problems.append(f"missing_workspace:{root}")

    if problems:
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "problems": problems},
        )

    return {"status": "ready"}
