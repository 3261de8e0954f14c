"""
Error Handler Utility - Secure Error Response Generation

Turns domain exceptions into structured JSON responses and keeps internal
details of unexpected failures out of API responses. Internal exception
details are logged; callers get generic messages.

Usage:
    from src.utils.error_handler import log_and_raise, domain_error_response

    # Unexpected failures inside a route
    try:
        ...
    except Exception as e:
        log_and_raise(500, "listing lawyers", e, logger)

    # Registered once in main.py
    app.add_exception_handler(DirectoryError, directory_error_handler)
"""

import logging
from typing import NoReturn
from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse

from src.utils.exceptions import DirectoryError, AccountLockedError, StorageFailure
from src.tools.supabase_tool import to_timestamp

logger = logging.getLogger(__name__)


def safe_error_response(
    status_code: int,
    operation: str,
    exception: Exception,
    logger: logging.Logger
) -> HTTPException:
    """
    Create a safe HTTPException that doesn't expose internal details.

    Logs the full exception with traceback, then returns an HTTPException
    with a generic user-facing message.

    Args:
        status_code: HTTP status code (e.g., 500, 400)
        operation: Description of what operation failed (e.g., "listing lawyers")
        exception: The caught exception
        logger: Logger instance for recording the error
    """
    logger.error(f"{operation} failed: {exception}", exc_info=True)

    if status_code >= 500:
        detail = f"An internal error occurred while {operation}. Please try again later."
    else:
        detail = f"Error while {operation}. Please check your request and try again."

    return HTTPException(status_code=status_code, detail=detail)


def log_and_raise(
    status_code: int,
    operation: str,
    exception: Exception,
    logger: logging.Logger
) -> NoReturn:
    """
    Log an exception and raise a safe HTTPException.

    Raises:
        HTTPException: Always raises with sanitized error message
    """
    raise safe_error_response(status_code, operation, exception, logger)


def domain_error_response(exc: DirectoryError) -> JSONResponse:
    """Map a DirectoryError to its status code and a structured body"""
    body = {"success": False, "error": exc.message}
    headers = None

    if isinstance(exc, StorageFailure):
        # Store errors never reach the client verbatim
        body["error"] = "Service temporarily unavailable. Please try again later."
    elif isinstance(exc, AccountLockedError) and exc.locked_until is not None:
        body["locked_until"] = to_timestamp(exc.locked_until)

    if exc.status_code == 401:
        headers = {"WWW-Authenticate": "Bearer"}

    return JSONResponse(status_code=exc.status_code, content=body, headers=headers)


async def directory_error_handler(request: Request, exc: DirectoryError) -> JSONResponse:
    """FastAPI exception handler for DirectoryError and its subclasses"""
    if isinstance(exc, StorageFailure):
        logger.error(f"Storage failure on {request.method} {request.url.path}: {exc}", exc_info=exc)
    else:
        logger.info(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
    return domain_error_response(exc)
