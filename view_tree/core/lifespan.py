"""Application lifespan management."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from view_tree import __version__
from view_tree.config import get_settings
from view_tree.logging_config import get_logger, log_with_context
from view_tree.renderers.jinja2_renderer import make_jinja2_registry

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the renderer registry on startup and drop it on shutdown.

    Exceptions after yield are re-raised so cleanup always runs.
    """
    settings = get_settings()

    log_with_context(
        logger,
        "info",
        "Starting View Tree application",
        version=__version__,
        event_type="app_startup",
    )

    # Tests and embedding applications may install their own registry first
    if getattr(app.state, "renderer_registry", None) is None:
        if not settings.template_dir_exists:
            log_with_context(
                logger,
                "warning",
                "Template directory not found, template renders will fail",
                template_dir=str(settings.template_dir),
                event_type="config_template_dir_missing",
            )
        app.state.renderer_registry = make_jinja2_registry(settings)

    log_with_context(
        logger,
        "info",
        "Renderer registry ready",
        content_types=app.state.renderer_registry.content_types,
        event_type="renderer_registry_ready",
    )

    try:
        yield
    except Exception as e:
        log_with_context(
            logger,
            "error",
            "Application error during lifespan",
            error=str(e),
            error_type=type(e).__name__,
            event_type="app_error",
        )
        raise
    finally:
        log_with_context(
            logger,
            "info",
            "Shutting down View Tree application",
            event_type="app_shutdown",
        )
        app.state.renderer_registry = None
