from __future__ import annotations

import logging
import traceback
from typing import Any, Callable, Dict, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from bt_bundle.core.errors import BundleError, ConfigurationError

log = logging.getLogger("bt_bundle.errors")

INTERNAL_ERROR_CODE = "internal_error"


def http_status(exc: BundleError) -> int:
    """Bad options are the caller's fault (400); unreadable inputs or a failed bundler are 422."""
    return 400 if isinstance(exc, ConfigurationError) else 422


def error_detail(exc: BundleError) -> Dict[str, str]:
    return {"code": exc.code, "message": str(exc)}


def _error_response(status_code: int, detail: Dict[str, str], rid: Optional[str]) -> JSONResponse:
    payload: Dict[str, Any] = {"detail": detail}
    if rid:
        payload["request_id"] = rid
    return JSONResponse(status_code=status_code, content=payload)


class SafeErrorMiddleware(BaseHTTPMiddleware):
    """
    Outermost error boundary of the compile service.

    A `BundleError` that escapes an endpoint is shaped like the ones the
    endpoints raise themselves: status from the error class, `code` from the
    error. Anything else becomes a generic 500. Tracebacks and template
    sources stay in the server log.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except BundleError as e:
            rid = getattr(request.state, "request_id", None) or request.headers.get("x-request-id")
            log.warning("Unshaped %s rid=%s path=%s: %s", e.code, rid, request.url.path, e)
            return _error_response(http_status(e), error_detail(e), rid)
        except Exception as e:
            rid = getattr(request.state, "request_id", None) or request.headers.get("x-request-id")
            log.error(
                "Unhandled error: %s rid=%s path=%s\n%s",
                str(e),
                rid,
                request.url.path,
                traceback.format_exc(),
            )
            detail = {"code": INTERNAL_ERROR_CODE, "message": "Internal Server Error"}
            return _error_response(500, detail, rid)
