"""Jinja2 template engine adapter."""

from collections.abc import Mapping
from functools import partial
from pathlib import PurePosixPath
from typing import Any

from fastapi.templating import Jinja2Templates
from jinja2 import Environment, FileSystemLoader

from view_tree.config import Settings
from view_tree.exceptions import RenderFailedError
from view_tree.logging_config import get_logger, log_with_context
from view_tree.protocols import OutputSink
from view_tree.renderers.base import Renderer
from view_tree.renderers.registry import RendererRegistry

logger = get_logger(__name__)


class Jinja2Renderer(Renderer):
    """Renders a view's data through a Jinja2 template."""

    def __init__(
        self,
        environment: Environment,
        data: Mapping[str, Any] | None = None,
        sink: OutputSink | None = None,
        extension: str = "",
    ):
        super().__init__(data, sink)
        self.environment = environment
        self.extension = extension

    def resolve(self, template_path: str) -> str:
        """Append the configured extension when the template has none."""
        if self.extension and not PurePosixPath(template_path).suffix:
            return f"{template_path}{self.extension}"
        return template_path

    def render(self, template_path: str) -> None:
        name = self.resolve(template_path)
        try:
            content = self.environment.get_template(name).render(self.data)
        except Exception as e:
            log_with_context(
                logger,
                "error",
                "Template rendering failed",
                template=name,
                error=str(e),
                error_type=type(e).__name__,
                event_type="template_render_error",
            )
            error = RenderFailedError(f"Failed to render template {name}: {e}", template=name)
            error.__cause__ = e
            self.fail(error)
            return

        self.emit(content)


def make_jinja2_registry(settings: Settings, registry: RendererRegistry | None = None) -> RendererRegistry:
    """Register Jinja2 renderers for HTML and plain text.

    HTML templates are autoescaped; plain text templates are not.

    Args:
        settings: Settings providing the template directory and extension
        registry: Registry to add to; a new one is created when None

    Returns:
        The registry
    """
    registry = registry if registry is not None else RendererRegistry()

    html_environment = Jinja2Templates(directory=settings.template_dir).env
    text_environment = Environment(loader=FileSystemLoader(settings.template_dir), autoescape=False)

    registry.register("text/html", partial(Jinja2Renderer, html_environment, extension=settings.template_extension))
    registry.register("text/plain", partial(Jinja2Renderer, text_environment, extension=".txt"))

    return registry
