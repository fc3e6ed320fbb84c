"""Custom exceptions for View Tree with HTTP status codes."""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes for structured error responses."""

    # Generic errors
    VIEW_TREE_ERROR = "VIEW_TREE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # Configuration errors
    CONFIG_ERROR = "CONFIG_ERROR"
    RENDERER_NOT_REGISTERED = "RENDERER_NOT_REGISTERED"

    # Render errors
    RENDER_FAILED = "RENDER_FAILED"
    RENDER_UNHANDLED = "RENDER_UNHANDLED"
    RENDER_TIMEOUT = "RENDER_TIMEOUT"


class ViewTreeError(Exception):
    """Base exception for view tree errors with HTTP status code support.

    All custom exceptions inherit from this class so the web layer can
    translate them into structured responses.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.VIEW_TREE_ERROR,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ):
        """Initialize view tree exception.

        Args:
            message: Human-readable error message
            code: Error code from ErrorCode enum
            status_code: HTTP status code (default 500)
            details: Additional error context/details
        """
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class ConfigurationError(ViewTreeError):
    """Configuration errors."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.CONFIG_ERROR,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code, status_code, details)


class RendererNotRegisteredError(ConfigurationError):
    """No renderer has been registered for a content type."""

    def __init__(self, content_type: str | None, details: dict[str, Any] | None = None):
        self.content_type = content_type
        super().__init__(
            f"Unsupported content type: {content_type}",
            code=ErrorCode.RENDERER_NOT_REGISTERED,
            details={"content_type": content_type, **(details or {})},
        )


class RenderFailedError(ViewTreeError):
    """A template engine failed while rendering a view."""

    def __init__(self, message: str, template: str | None = None, details: dict[str, Any] | None = None):
        self.template = template
        super().__init__(
            message,
            code=ErrorCode.RENDER_FAILED,
            details={"template": template, **(details or {})},
        )


class UnhandledRenderError(ViewTreeError):
    """Raised by the default error handler of a view without its own handler."""

    def __init__(
        self,
        message: str = (
            "No error handler has been assigned to this view. "
            "Is a status call failing, or has the root view no error handler?"
        ),
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code=ErrorCode.RENDER_UNHANDLED, details=details)


class RenderTimeoutError(ViewTreeError):
    """The view tree did not finish rendering in time."""

    def __init__(self, timeout: float, details: dict[str, Any] | None = None):
        self.timeout = timeout
        super().__init__(
            f"View tree did not finish rendering within {timeout} seconds",
            code=ErrorCode.RENDER_TIMEOUT,
            status_code=504,
            details={"timeout_seconds": timeout, **(details or {})},
        )
