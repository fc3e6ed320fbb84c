"""FastAPI dependencies for dependency injection."""

from fastapi import Depends, Request

from view_tree.config import Settings, get_settings
from view_tree.logging_config import get_logger, log_with_context
from view_tree.renderers.registry import RendererRegistry
from view_tree.scheduler import EventLoopScheduler
from view_tree.sinks import ResponseOutput
from view_tree.view import View

logger = get_logger(__name__)


async def get_renderer_registry(request: Request) -> RendererRegistry:
    """
    Get the shared renderer registry from app state.

    Args:
        request: The FastAPI request object.

    Returns:
        The RendererRegistry built during startup.

    Raises:
        RuntimeError: If the registry is not initialized.
    """
    registry: RendererRegistry | None = getattr(request.app.state, "renderer_registry", None)

    if registry is None:
        raise RuntimeError("Renderer registry not initialized.")

    return registry


async def get_view(
    request: Request,
    registry: RendererRegistry = Depends(get_renderer_registry),
    settings: Settings = Depends(get_settings),
) -> View:
    """
    Create the root view for a request.

    The view writes to a fresh ResponseOutput and defers parent renders to
    the running event loop. Render failures anywhere in the tree end the
    response with a 500.

    Args:
        request: The FastAPI request object.
        registry: Renderers available to the view tree.
        settings: Settings instance.

    Returns:
        A root View with no children.
    """
    content_type = settings.default_content_type
    view = View(
        ResponseOutput(media_type=content_type),
        registry=registry,
        scheduler=EventLoopScheduler(),
        content_type=content_type,
    )

    def handle_render_error(error: Exception) -> None:
        log_with_context(
            logger,
            "error",
            "View tree render failed",
            error=str(error),
            error_type=type(error).__name__,
            method=request.method,
            path=request.url.path,
            event_type="request_render_error",
        )
        view.status_error(error)

    view.set_error_handler(handle_render_error)
    return view
