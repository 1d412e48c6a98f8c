from __future__ import annotations

from prometheus_client import Counter, Histogram
from starlette.requests import Request
from starlette.routing import Match

UNMATCHED_ROUTE = "unmatched"


def route_label(request: Request) -> str:
    """
    Route template the request matched, e.g. `/api/v1/compile`.

    Unknown paths collapse into a single `unmatched` label, so scanners cannot
    grow the label set.
    """
    app = request.scope.get("app")
    for route in getattr(app, "routes", ()):
        match, _ = route.matches(request.scope)
        if match == Match.FULL:
            return getattr(route, "path", UNMATCHED_ROUTE)
    return UNMATCHED_ROUTE


HTTP_REQUESTS_TOTAL = Counter(
    "bt_bundle_http_requests_total",
    "Total HTTP requests to the compile service",
    ["method", "route", "status"],
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "bt_bundle_http_request_duration_seconds",
    "Compile service request duration in seconds",
    ["method", "route"],
)
