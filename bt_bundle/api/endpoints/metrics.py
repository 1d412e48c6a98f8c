from fastapi import APIRouter

from bt_bundle.core.observability.metrics import snapshot_named

router = APIRouter()


@router.get("/api/v1/metrics/snapshot")
def metrics_snapshot_v1():
    return {"counters": snapshot_named()}
