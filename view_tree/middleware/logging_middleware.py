"""Request logging middleware."""

import time

from fastapi import FastAPI, Request

from view_tree.logging_config import get_logger, log_with_context

logger = get_logger(__name__)


def setup_request_logging(app: FastAPI) -> None:
    """Log every request with its status code, content type and duration.

    Only the path is logged; query strings never reach the log.
    """

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        log_with_context(
            logger,
            "info",
            "HTTP Request",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            content_type=response.headers.get("content-type"),
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
            event_type="http_request",
        )
        return response
