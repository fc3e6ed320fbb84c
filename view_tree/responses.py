"""Turning a finished view tree into a FastAPI response."""

from fastapi.responses import Response

from view_tree.exceptions import RenderTimeoutError
from view_tree.logging_config import get_logger, log_with_context
from view_tree.sinks import ResponseOutput
from view_tree.view import View

logger = get_logger(__name__)


def _pending_views(view: View, prefix: str = "") -> list[str]:
    """Dotted keys of every descendant that has not completed."""
    pending = []
    for key, child in view.children.items():
        path = f"{prefix}{key}"
        if not child.is_rendered():
            pending.append(path)
        pending.extend(_pending_views(child, f"{path}."))
    return pending


async def render_response(view: View, timeout: float | None = None) -> Response:
    """Wait for the tree of ``view`` to finish and return its response.

    Args:
        view: Any view of a tree whose root writes to a ResponseOutput
        timeout: Seconds to wait before giving up

    Returns:
        The response written by the root view

    Raises:
        RenderTimeoutError: If the tree did not finish in time; the tree is cancelled
    """
    root = view.root
    sink = root.sink
    if not isinstance(sink, ResponseOutput):
        raise TypeError(f"Root view must write to a ResponseOutput, not {type(sink).__name__}")

    try:
        return await sink.wait(timeout)
    except TimeoutError as e:
        pending = _pending_views(root)
        log_with_context(
            logger,
            "warning",
            "View tree render timed out",
            timeout_seconds=timeout,
            pending_views=pending,
            event_type="render_timeout",
        )
        root.cancel_render()
        raise RenderTimeoutError(timeout or 0.0, details={"pending_views": pending}) from e
