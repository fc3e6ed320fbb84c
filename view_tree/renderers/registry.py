"""Registry mapping content types to renderer factories."""

from view_tree.exceptions import RendererNotRegisteredError
from view_tree.logging_config import get_logger, log_with_context
from view_tree.protocols import RendererFactory

logger = get_logger(__name__)


def normalize_content_type(content_type: str) -> str:
    """Lower-case a content type and drop parameters such as charset."""
    return content_type.split(";", 1)[0].strip().lower()


class RendererRegistry:
    """Maps a content type (mime type) to the renderer that handles it.

    One registry is created by the embedding application and passed to
    root views; children share their root's registry.
    """

    def __init__(self):
        self._renderers: dict[str, RendererFactory] = {}

    def __contains__(self, content_type: object) -> bool:
        return isinstance(content_type, str) and normalize_content_type(content_type) in self._renderers

    @property
    def content_types(self) -> list[str]:
        return sorted(self._renderers)

    def register(self, content_type: str, factory: RendererFactory) -> None:
        """Register a renderer factory for a content type.

        Args:
            content_type: The content type (or mime type) of the output
            factory: Callable taking ``data`` and ``sink`` keyword arguments
                and returning a renderer, typically a Renderer subclass
        """
        key = normalize_content_type(content_type)
        replaced = key in self._renderers
        self._renderers[key] = factory
        log_with_context(
            logger,
            "debug",
            "Renderer registered",
            content_type=key,
            replaced=replaced,
            event_type="renderer_registered",
        )

    def lookup(self, content_type: str | None) -> RendererFactory:
        """Return the renderer factory for a content type.

        Raises:
            RendererNotRegisteredError: If no renderer handles the content type
        """
        if content_type is not None:
            factory = self._renderers.get(normalize_content_type(content_type))
            if factory is not None:
                return factory
        raise RendererNotRegisteredError(content_type, details={"registered": self.content_types})
