from __future__ import annotations

import logging
import time
import uuid
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from bt_bundle.api.observability.metrics import (
    HTTP_REQUESTS_TOTAL,
    HTTP_REQUEST_DURATION_SECONDS,
    route_label,
)

log = logging.getLogger("bt_bundle.request")


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Tags each request with an id (`X-Request-Id`, generated when absent) and
    records it in the HTTP metrics by route template.

    Only the compile call is logged; request bodies carry template sources
    and are never logged.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        rid = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = rid

        start = time.perf_counter()
        resp = await call_next(request)
        duration = time.perf_counter() - start

        resp.headers["X-Request-Id"] = rid

        route = route_label(request)
        method = request.method.upper()
        HTTP_REQUESTS_TOTAL.labels(method=method, route=route, status=str(resp.status_code)).inc()
        HTTP_REQUEST_DURATION_SECONDS.labels(method=method, route=route).observe(duration)

        if route.endswith("/compile"):
            log.info(
                "compile request rid=%s status=%s duration_ms=%d size=%s",
                rid,
                resp.status_code,
                int(duration * 1000),
                request.headers.get("content-length", "-"),
            )
        return resp
