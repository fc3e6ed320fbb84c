"""Base renderer implementing the completion/failure callback contract."""

from collections.abc import Callable, Mapping
from typing import Any

from view_tree.logging_config import get_logger, log_with_context
from view_tree.protocols import Chunk, OutputSink

logger = get_logger(__name__)


class Renderer:
    """Base class for template engine adapters.

    A renderer is built for a single render: it receives the view's data
    and output sink, writes to the sink, and signals exactly one of
    completion or failure. A signal raised before its callback has been
    registered is held, then delivered synchronously from inside
    ``on_end`` or ``on_error``, not on a later scheduler tick. Renderers
    have no scheduler of their own; ``View`` registers both callbacks
    before calling ``render``, so a held signal only reaches code that
    uses a renderer directly.

    Subclasses implement ``render`` and finish with ``emit`` or ``fail``.
    """

    def __init__(self, data: Mapping[str, Any] | None = None, sink: OutputSink | None = None):
        self.data: Mapping[str, Any] = data if data is not None else {}
        self.sink = sink
        self._error_callback: Callable[[Exception], None] | None = None
        self._end_callback: Callable[[], None] | None = None
        self._pending_error: Exception | None = None
        self._pending_end = False
        self._signalled = False

    def render(self, template_path: str) -> None:
        """Render ``template_path`` with ``self.data`` into ``self.sink``."""
        raise NotImplementedError

    def on_error(self, callback: Callable[[Exception], None]) -> "Renderer":
        """Assign the function called when rendering fails.

        Args:
            callback: Takes a single parameter, the error

        Returns:
            self, for chaining
        """
        self._error_callback = callback
        if self._pending_error is not None:
            error, self._pending_error = self._pending_error, None
            callback(error)
        return self

    def on_end(self, callback: Callable[[], None]) -> "Renderer":
        """Assign the function called when rendering ends.

        Returns:
            self, for chaining
        """
        self._end_callback = callback
        if self._pending_end:
            self._pending_end = False
            callback()
        return self

    def emit(self, content: Chunk) -> None:
        """Write the rendered content, end the sink and signal completion."""
        if self.sink is None:
            raise RuntimeError("Renderer has no output sink")
        self.sink.write(content)
        self.sink.end()
        self.finish()

    def finish(self) -> None:
        """Signal successful completion."""
        if not self._claim_signal("end"):
            return
        if self._end_callback is None:
            self._pending_end = True
        else:
            self._end_callback()

    def fail(self, error: Exception) -> None:
        """Signal a render failure."""
        if not self._claim_signal("error"):
            return
        if self._error_callback is None:
            self._pending_error = error
        else:
            self._error_callback(error)

    def _claim_signal(self, signal: str) -> bool:
        if self._signalled:
            log_with_context(
                logger,
                "warning",
                "Renderer signalled more than once",
                signal=signal,
                renderer=type(self).__name__,
                event_type="renderer_duplicate_signal",
            )
            return False
        self._signalled = True
        return True
