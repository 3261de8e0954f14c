"""
Request ID Middleware

Every request gets an ID: the caller's X-Request-ID when present, otherwise a
new uuid4. The ID is bound to the logging context for the lifetime of the
request, stored on request.state and echoed back in the X-Request-ID
response header. One access line is logged per request with its outcome and
duration.

Usage in main.py:
    app.add_middleware(RequestIdMiddleware)  # Add LAST so it runs FIRST
"""

import uuid
import time
import logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from src.utils.structured_logger import (
    set_request_id,
    clear_request_id,
    clear_account_id,
    get_logger,
)

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Probe endpoints hit every few seconds; only failures are logged for these
_QUIET_PATHS = {"/health", "/health/live", "/health/ready"}


def client_ip(request: Request) -> str:
    """Client address, honouring X-Forwarded-For / X-Real-IP from a proxy"""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    return request.client.host if request.client else "unknown"


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Binds a request ID to the logging context and logs one line per request."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        set_request_id(request_id)

        fields = {
            "method": request.method,
            "path": request.url.path,
            "client_ip": client_ip(request),
        }
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"{request.method} {request.url.path} raised {type(e).__name__}",
                extra={**fields, "duration_ms": _elapsed_ms(started), "error_type": type(e).__name__},
                exc_info=True
            )
            raise
        else:
            response.headers[REQUEST_ID_HEADER] = request_id
            level = logging.WARNING if response.status_code >= 500 else logging.INFO
            if level > logging.INFO or request.url.path not in _QUIET_PATHS:
                logger.log(
                    level,
                    f"{request.method} {request.url.path} -> {response.status_code}",
                    extra={**fields, "status_code": response.status_code, "duration_ms": _elapsed_ms(started)},
                )
            return response
        finally:
            clear_request_id()
            clear_account_id()
