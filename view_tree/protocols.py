"""Protocol definitions for the collaborators of a view."""

from collections.abc import Callable, Mapping
from typing import Any, Protocol

Chunk = str | bytes


class OutputSink(Protocol):
    """Destination a renderer writes to.

    Implemented by the real response output of a root view and by the
    child output adapter of every other view.
    """

    def write(self, chunk: Chunk) -> None:
        """Append a chunk of rendered content."""
        ...

    def end(self) -> None:
        """Signal that no more content will be written."""
        ...


class ResponseSink(OutputSink, Protocol):
    """Output sink attached to a real response, owned by a root view."""

    status_code: int

    def set_header(self, name: str, value: str) -> None:
        """Set a response header."""
        ...


class RendererProtocol(Protocol):
    """Contract a template engine adapter satisfies to render a view."""

    data: Mapping[str, Any]
    sink: OutputSink

    def render(self, template_path: str) -> None:
        """Render the template and write the result to the sink."""
        ...

    def on_error(self, callback: Callable[[Exception], None]) -> "RendererProtocol":
        """Register the failure callback."""
        ...

    def on_end(self, callback: Callable[[], None]) -> "RendererProtocol":
        """Register the completion callback."""
        ...


RendererFactory = Callable[..., RendererProtocol]


class Scheduler(Protocol):
    """Runs callbacks on a later tick of a single-threaded scheduler."""

    def call_soon(self, callback: Callable[..., Any], *args: Any) -> None:
        """Schedule ``callback(*args)`` to run after the current task yields."""
        ...
