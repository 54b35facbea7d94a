# contentops/core/errors.py
from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

log = logging.getLogger("contentops.errors")


# -----------------------------
# Assignment error taxonomy
# -----------------------------
class AssignmentError(Exception):
    """
    Base of every error the assignment core reports.

    Core components never raise these across their public API; they hand
    them back inside result values. The HTTP layer is the only place that
    raises them, and the handlers below render them.
    """

    code = "assignment_error"
    status_code = 400
    default_message = "Assignment operation failed."

    def __init__(self, message: Optional[str] = None, *, details: Optional[Any] = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class UnauthorizedError(AssignmentError):
    code = "unauthorized"
    status_code = 403
    default_message = "Unauthorized - Super admin access required."


class ValidationError(AssignmentError):
    code = "validation_error"
    status_code = 422
    default_message = "Invalid bulk operation."


class NoSelectionError(ValidationError):
    code = "no_selection"
    default_message = "Please select at least one client."


class MissingTargetError(ValidationError):
    code = "missing_target"
    default_message = "Please select the destination sub-admin."


class MissingSourceError(ValidationError):
    code = "missing_source"
    default_message = "Please select the source sub-admin."


class SameAdminError(ValidationError):
    code = "same_admin"
    default_message = "Source and destination sub-admin must differ."


class InvalidRoleError(AssignmentError):
    code = "invalid_role"
    status_code = 422
    default_message = "Can only assign clients to sub-admins."


class NotFoundError(AssignmentError):
    code = "not_found"
    status_code = 404
    default_message = "Not found."


class AssignmentNotFoundError(NotFoundError):
    code = "assignment_not_found"
    default_message = "Assignment not found."


class DuplicateAssignmentError(AssignmentError):
    code = "already_assigned"
    status_code = 409
    default_message = "Client is already assigned to a sub-admin."


class TransportError(AssignmentError):
    code = "transport_error"
    status_code = 503
    default_message = "Assignment store is unavailable."


class AccessResolutionFailed(AssignmentError):
    code = "access_resolution_failed"
    status_code = 503
    default_message = "Failed to verify admin status."


# -----------------------------
# Trace / request id helpers
# -----------------------------
def _ensure_trace_id(request: Request) -> str:
    """
    Return a stable trace_id for this request: request.state first, then the
    inbound correlation headers, finally a fresh one stored on request.state.
    """
    val = getattr(request.state, "trace_id", None)
    if val:
        return str(val)

    for h in ("x-request-id", "x-correlation-id", "x-trace-id"):
        v = request.headers.get(h)
        if v:
            request.state.trace_id = v
            return v

    new_id = uuid.uuid4().hex
    request.state.trace_id = new_id
    return new_id


def _payload(
    *,
    message: str,
    typ: str,
    status: int,
    trace_id: str,
    details: Optional[Any] = None,
) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "ok": False,
        "error": {
            "type": typ,
            "message": message,
            "status": status,
            "trace_id": trace_id,
        },
    }
    if details is not None:
        body["error"]["details"] = details
    return body


# -----------------------------
# Install / register handlers
# -----------------------------
def register_exception_handlers(app: FastAPI) -> None:
    """
    Registers consistent JSON error handlers.
    Every error response carries the X-Request-ID header.
    """

    @app.exception_handler(AssignmentError)
    async def assignment_exc_handler(request: Request, exc: AssignmentError):
        trace_id = _ensure_trace_id(request)
        status_code = int(exc.status_code)
        level = logging.ERROR if status_code >= 500 else logging.WARNING
        log.log(
            level,
            "%s %s %s -> %s | trace_id=%s | message=%r",
            type(exc).__name__,
            request.method,
            request.url.path,
            status_code,
            trace_id,
            exc.message,
        )
        return JSONResponse(
            status_code=status_code,
            headers={"X-Request-ID": trace_id},
            content=_payload(
                message=exc.message,
                typ=exc.code,
                status=status_code,
                trace_id=trace_id,
                details=exc.details,
            ),
        )

    @app.exception_handler(HTTPException)
    async def http_exc_handler(request: Request, exc: HTTPException):
        trace_id = _ensure_trace_id(request)
        status_code = int(exc.status_code)
        message = exc.detail if isinstance(exc.detail, str) else "HTTP error"
        details = exc.detail if isinstance(exc.detail, dict) else None

        headers = dict(exc.headers or {})
        headers["X-Request-ID"] = trace_id

        level = logging.ERROR if status_code >= 500 else logging.WARNING
        log.log(
            level,
            "HTTPException %s %s -> %s | trace_id=%s | detail=%r",
            request.method,
            request.url.path,
            status_code,
            trace_id,
            exc.detail,
        )

        return JSONResponse(
            status_code=status_code,
            headers=headers,
            content=_payload(
                message=message,
                typ="http_error",
                status=status_code,
                trace_id=trace_id,
                details=details,
            ),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exc_handler(request: Request, exc: RequestValidationError):
        trace_id = _ensure_trace_id(request)
        errors = exc.errors()
        log.warning(
            "RequestValidationError %s %s -> 422 | trace_id=%s | errors=%s",
            request.method,
            request.url.path,
            trace_id,
            errors,
        )
        return JSONResponse(
            status_code=422,
            headers={"X-Request-ID": trace_id},
            content=_payload(
                message="Validation failed.",
                typ="request_validation_error",
                status=422,
                trace_id=trace_id,
                details=jsonable_errors(errors),
            ),
        )

    @app.exception_handler(Exception)
    async def unhandled_exc_handler(request: Request, exc: Exception):
        trace_id = _ensure_trace_id(request)
        # Full traceback to server logs; generic message to client
        log.exception(
            "Unhandled exception %s %s -> 500 | trace_id=%s",
            request.method,
            request.url.path,
            trace_id,
        )
        return JSONResponse(
            status_code=500,
            headers={"X-Request-ID": trace_id},
            content=_payload(
                message="Internal server error.",
                typ="internal_error",
                status=500,
                trace_id=trace_id,
            ),
        )


def jsonable_errors(errors: Any) -> Any:
    # pydantic puts the raw exception under ctx for some validators
    return jsonable_encoder(errors, custom_encoder={Exception: str})
