# contentops/middleware/request_logging.py
from __future__ import annotations

import logging
import time
import uuid
from typing import Iterable, Tuple

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from contentops.services.audit import ip_from_request

logger = logging.getLogger("contentops.request")


QUIET_PREFIXES: Tuple[str, ...] = (
    "/api/healthz",
    "/api/readyz",
    "/docs",
    "/redoc",
    "/openapi.json",
)


def _level_for(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    One log line per request: method, path, status, caller identity and
    admin role (once auth has resolved them), duration and trace id.

    Every response carries X-Request-ID; an incoming X-Request-ID is reused.
    """

    def __init__(self, app, quiet_prefixes: Iterable[str] = QUIET_PREFIXES):
        super().__init__(app)
        self.quiet_prefixes = tuple(quiet_prefixes)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        method = request.method.upper()
        path = request.url.path
        trace_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        request.state.trace_id = trace_id

        quiet = method == "OPTIONS" or path.startswith(self.quiet_prefixes)
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            if not quiet:
                logger.exception(
                    "request CRASH %s %s who=%s dur_ms=%s trace_id=%s",
                    method,
                    path,
                    getattr(request.state, "identity", "-"),
                    int((time.perf_counter() - started) * 1000),
                    trace_id,
                )
            raise

        response.headers["X-Request-ID"] = trace_id
        if quiet:
            return response

        logger.log(
            _level_for(response.status_code),
            "request %s %s -> %s who=%s role=%s ip=%s dur_ms=%s trace_id=%s",
            method,
            path,
            response.status_code,
            getattr(request.state, "identity", "-"),
            getattr(request.state, "admin_role", None) or "-",
            ip_from_request(request) or "-",
            int((time.perf_counter() - started) * 1000),
            trace_id,
        )
        return response
