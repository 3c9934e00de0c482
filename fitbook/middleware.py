"""
Request middleware: access logging with request ids, and Prometheus metrics.
"""

import logging
import time
from typing import Callable
from uuid import uuid4

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from .logging_config import get_logger, log_context

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# metrics label for requests no route matched (404s, scanners)
UNMATCHED_ROUTE = "unmatched"


def route_label(request: Request) -> str:
    """
    Route template the request was dispatched to, e.g. ``/sessions/{session_id}``.

    Only available once the router has run, so call it after ``call_next``.
    """
    route = request.scope.get("route")
    return getattr(route, "path", None) or UNMATCHED_ROUTE


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Writes one access log line per request.

    The request id is taken from ``X-Request-ID`` when the caller sends one,
    bound to the log context for everything logged while the request runs,
    and echoed on the response. Requests slower than ``slow_request_ms`` are
    logged as warnings.
    """

    def __init__(self, app: ASGIApp, slow_request_ms: float = 1000.0) -> None:
        super().__init__(app)
        self.slow_request_ms = slow_request_ms

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex
        start_time = time.perf_counter()

        with log_context(request_id=request_id):
            try:
                response = await call_next(request)
            except Exception:
                logger.exception(
                    f"{request.method} {request.url.path} failed",
                    extra={
                        "extra_fields": {
                            "duration_ms": round((time.perf_counter() - start_time) * 1000, 2)
                        }
                    },
                )
                raise

            duration_ms = (time.perf_counter() - start_time) * 1000
            response.headers[REQUEST_ID_HEADER] = request_id

            level = logging.WARNING if duration_ms > self.slow_request_ms else logging.INFO
            logger.log(
                level,
                f"{request.method} {request.url.path} {response.status_code} "
                f"({duration_ms:.1f}ms)",
                extra={
                    "extra_fields": {
                        "route": route_label(request),
                        "status_code": response.status_code,
                        "duration_ms": round(duration_ms, 2),
                    }
                },
            )
            return response


class PrometheusMiddleware(BaseHTTPMiddleware):
    """
    Records request count and duration for every HTTP request.

    Requests are labelled with their route template so label cardinality
    stays bounded; unmatched paths share a single label.
    """

    def __init__(self, app: ASGIApp, track_func: Callable) -> None:
        super().__init__(app)
        self.track_func = track_func

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()
        response = await call_next(request)

        self.track_func(
            method=request.method,
            endpoint=route_label(request),
            status_code=response.status_code,
            duration=time.perf_counter() - start_time,
        )
        return response
