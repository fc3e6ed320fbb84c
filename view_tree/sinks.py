"""Output sinks a renderer writes to.

``ResponseOutput`` collects the final output of a root view for a real
HTTP response. ``ChildOutput`` stands in for a response on every child
view: it buffers the child's content and hands it to the parent.
"""

import asyncio
from typing import TYPE_CHECKING

from fastapi.responses import Response
from markupsafe import Markup

from view_tree.logging_config import get_logger, log_with_context
from view_tree.protocols import Chunk
from view_tree.states import RenderState

if TYPE_CHECKING:
    from view_tree.view import View


logger = get_logger(__name__)


class ChildOutput:
    """Synthetic output sink that writes a child view into its parent's data."""

    def __init__(self, view: "View", key: str):
        """Bind the adapter to a child view.

        Args:
            view: The child view whose renderer writes here
            key: Key the parent renders the child's content under
        """
        self.view = view
        self.key = key
        self._chunks: list[str] = []

    @property
    def content(self) -> str:
        """Everything written so far, in write order."""
        return "".join(self._chunks)

    def write(self, chunk: Chunk) -> None:
        if isinstance(chunk, bytes):
            chunk = chunk.decode("utf-8")
        self._chunks.append(chunk)

    def end(self) -> None:
        """Complete the child and splice its content into the parent.

        The parent's render is never called inline: when this completion
        opens the parent's gate, the render goes to the scheduler.
        """
        view = self.view
        parent = view.parent

        detached = view.sink is not self or parent is None or parent.children.get(self.key) is not view
        if detached or view.render_state == RenderState.CANCELLED:
            log_with_context(
                logger,
                "debug",
                "Ignoring output of a detached child view",
                view_key=self.key,
                render_state=view.render_state.name,
                event_type="child_output_ignored",
            )
            return

        view.render_state = RenderState.COMPLETE
        parent.set(self.key, Markup(self.content))

        log_with_context(
            logger,
            "debug",
            "Child view complete",
            view_key=self.key,
            content_length=len(self.content),
            event_type="child_view_complete",
        )

        if parent.can_render():
            view.scheduler.call_soon(parent.render_deferred)


class ResponseOutput:
    """Real output sink collecting the response of a root view.

    The body, status code and headers are accumulated until ``end()``;
    ``wait()`` then turns them into a FastAPI response.
    """

    def __init__(self, media_type: str | None = None, status_code: int = 200):
        """Initialize the response output.

        Args:
            media_type: Initial Content-Type header, if any
            status_code: Initial HTTP status code
        """
        self._status_code = status_code
        self.headers: dict[str, str] = {}
        if media_type:
            self.headers["Content-Type"] = media_type
        self._body = bytearray()
        self._ended = asyncio.Event()

    @property
    def ended(self) -> bool:
        return self._ended.is_set()

    @property
    def body(self) -> bytes:
        return bytes(self._body)

    @property
    def status_code(self) -> int:
        return self._status_code

    @status_code.setter
    def status_code(self, code: int) -> None:
        if self.ended:
            log_with_context(
                logger,
                "warning",
                "Status code set after response ended ignored",
                status_code=code,
                event_type="response_status_after_end",
            )
            return
        self._status_code = code

    def write(self, chunk: Chunk) -> None:
        if self.ended:
            log_with_context(
                logger,
                "warning",
                "Write after response ended ignored",
                event_type="response_write_after_end",
            )
            return
        if isinstance(chunk, str):
            chunk = chunk.encode("utf-8")
        self._body.extend(chunk)

    def set_header(self, name: str, value: str) -> None:
        if self.ended:
            log_with_context(
                logger,
                "warning",
                "Header set after response ended ignored",
                header=name,
                event_type="response_header_after_end",
            )
            return
        self.headers[name] = value

    def end(self) -> None:
        if self.ended:
            log_with_context(
                logger,
                "warning",
                "Response already ended",
                event_type="response_double_end",
            )
            return
        self._ended.set()
        log_with_context(
            logger,
            "debug",
            "Response ended",
            status_code=self.status_code,
            content_length=len(self._body),
            event_type="response_ended",
        )

    def to_response(self) -> Response:
        """Build a FastAPI response from the collected output."""
        return Response(content=self.body, status_code=self.status_code, headers=self.headers)

    async def wait(self, timeout: float | None = None) -> Response:
        """Wait until the output has been ended and return the response.

        Args:
            timeout: Seconds to wait, or None to wait indefinitely

        Returns:
            The collected response

        Raises:
            TimeoutError: If the output was not ended in time
        """
        await asyncio.wait_for(self._ended.wait(), timeout)
        return self.to_response()
