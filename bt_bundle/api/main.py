from __future__ import annotations

from fastapi import FastAPI

from bt_bundle import __version__
from bt_bundle.api.endpoints import compile as compile_ep
from bt_bundle.api.endpoints import health
from bt_bundle.api.endpoints import metrics as metrics_ep
from bt_bundle.api.endpoints import metrics_export
from bt_bundle.api.middleware.error_shaping import SafeErrorMiddleware
from bt_bundle.api.middleware.request_context import RequestContextMiddleware

app = FastAPI(
    title="BT Bundle Compiler API",
    version=__version__,
)

# ------------------------------------------------------------
# Middleware stack (ORDER MATTERS)
# Starlette reverses add_middleware order: the LAST call is the OUTERMOST wrapper.
#   SafeErrorMiddleware -> RequestContext -> handler
# ------------------------------------------------------------
app.add_middleware(RequestContextMiddleware)
app.add_middleware(SafeErrorMiddleware)

app.include_router(health.router)
app.include_router(metrics_ep.router)
app.include_router(metrics_export.router)
app.include_router(compile_ep.router, prefix="/api/v1")
