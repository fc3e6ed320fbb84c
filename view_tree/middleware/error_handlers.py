"""Exception handlers for the application."""

from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from view_tree.exceptions import ErrorCode, ViewTreeError
from view_tree.logging_config import get_logger, log_with_context

logger = get_logger(__name__)


async def view_tree_exception_handler(request: Request, exc: ViewTreeError) -> JSONResponse:
    """Handle view tree exceptions with their HTTP status codes.

    Returns structured JSON error responses with status code, error code,
    message, and optional details.
    """
    log_with_context(
        logger,
        "warning",
        "View tree error",
        error_code=exc.code.value,
        error_message=exc.message,
        status_code=exc.status_code,
        method=request.method,
        path=request.url.path,
        event_type="view_tree_error",
    )

    error_content: dict[str, Any] = {"code": exc.code.value, "message": exc.message, "details": exc.details}

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": error_content},
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Answer any exception that escaped the view tree with a bare 500.

    The error is logged with its traceback but never echoed to the client;
    a route that wants a rendered error page calls ``View.status_error``.
    """
    cause = exc.__cause__
    log_with_context(
        logger,
        "error",
        "Request failed outside the view tree",
        error=str(exc),
        error_type=type(exc).__name__,
        cause_type=type(cause).__name__ if cause is not None else None,
        method=request.method,
        path=request.url.path,
        event_type="request_unhandled_error",
    )
    logger.error("Unhandled request error traceback", exc_info=exc)

    return JSONResponse(
        status_code=500,
        content={"error": {"code": ErrorCode.INTERNAL_ERROR.value, "message": "The page could not be rendered"}},
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the application.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(ViewTreeError, view_tree_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
